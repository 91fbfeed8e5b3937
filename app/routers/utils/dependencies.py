from fastapi import Depends, HTTPException, Request

from app.core.app_state import AppState
from app.core.identity import normalize_identity
from app.services.advisor_assignment_service import AdvisorAssignmentService
from app.services.conversation_analyzer import ConversationAnalyzer
from app.services.conversation_log_service import ConversationLogService
from app.services.conversation_report_service import ConversationReportService
from app.services.operator_service import OperatorService
from app.services.prompt_loader import PromptLoader
from app.services.sale_status_service import SaleStatusService
from app.services.session_manager import SessionManager


def get_app_state(request: Request) -> AppState:
    """FastAPI dependency returning the service container built at startup."""
    state = getattr(request.app.state, "services", None)
    if state is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return state


def get_identity(identity: str) -> str:
    """FastAPI dependency normalizing an identity path parameter."""
    try:
        return normalize_identity(identity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid identity") from e


def get_operator_service(state: AppState = Depends(get_app_state)) -> OperatorService:
    return state.operator


def get_session_manager(state: AppState = Depends(get_app_state)) -> SessionManager:
    return state.session_manager


def get_conversation_log(
    state: AppState = Depends(get_app_state),
) -> ConversationLogService:
    return state.conversation_log


def get_advisor_service(
    state: AppState = Depends(get_app_state),
) -> AdvisorAssignmentService:
    return state.advisors


def get_sale_status_service(state: AppState = Depends(get_app_state)) -> SaleStatusService:
    return state.sales


def get_prompt_loader(state: AppState = Depends(get_app_state)) -> PromptLoader:
    return state.prompt_loader


def get_conversation_analyzer(
    state: AppState = Depends(get_app_state),
) -> ConversationAnalyzer:
    return state.analyzer


def get_report_service(
    state: AppState = Depends(get_app_state),
) -> ConversationReportService:
    return state.reports
