"""Fixtures wiring the conversation services onto the test database."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic_ai.messages import ModelResponse, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from app.config import Settings
from app.core.app_state import AppState
from app.core.identity_lock import IdentityLockManager
from app.core.routing import ConversationRouter
from app.main import create_app
from app.schemas.advisor import Advisor
from app.services.advisor_assignment_service import AdvisorAssignmentService
from app.services.conversation_analyzer import ConversationAnalyzer
from app.services.conversation_log_service import ConversationLogService
from app.services.conversation_report_service import ConversationReportService
from app.services.location_validator import LocationValidator
from app.services.mode_manager import ModeManager
from app.services.operator_service import OperatorService
from app.services.prompt_loader import PromptLoader
from app.services.sale_status_service import SaleStatusService
from app.services.session_manager import SessionManager

DEFAULT_REPLY = "¡Hola! ¿En qué puedo ayudarte?"


@pytest.fixture(scope="function")
def mode_manager(store):
    return ModeManager(store)


@pytest.fixture(scope="function")
def session_manager(store):
    return SessionManager(store, max_messages=10, session_timeout=timedelta(minutes=5))


@pytest.fixture(scope="function")
def conversation_log(store):
    return ConversationLogService(store)


@pytest.fixture(scope="function")
def advisors():
    return [
        Advisor(name="Alicia Puente", phone="+52 55 1234 5678"),
        Advisor(name="David Villagarcia", phone="+52 55 2345 6789"),
        Advisor(name="Hector Lozano", phone="+52 55 3456 7890"),
    ]


@pytest.fixture(scope="function")
def advisor_service(store, advisors):
    return AdvisorAssignmentService(store, advisors)


@pytest.fixture(scope="function")
def sale_status_service(store):
    return SaleStatusService(store)


@pytest.fixture(scope="function")
def prompt_loader(tmp_path):
    path = tmp_path / "prompt.txt"
    path.write_text("Eres un asistente de pruebas.", encoding="utf-8")
    return PromptLoader(path)


@pytest.fixture(scope="function")
def llm():
    """AI responder double; set llm.complete.return_value / side_effect per test."""
    responder = MagicMock()
    responder.complete = AsyncMock(return_value=DEFAULT_REPLY)
    return responder


@pytest.fixture(scope="function")
def router(session_manager, mode_manager, conversation_log, transport, llm, prompt_loader):
    return ConversationRouter(
        session_manager=session_manager,
        mode_manager=mode_manager,
        conversation_log=conversation_log,
        transport=transport,
        llm=llm,
        prompt_loader=prompt_loader,
        location_validator=LocationValidator(),
        identity_locks=IdentityLockManager(),
    )


@pytest.fixture(scope="function")
def operator_service(mode_manager, session_manager, conversation_log, transport):
    return OperatorService(mode_manager, session_manager, conversation_log, transport)


@pytest.fixture(scope="function")
def analysis_output():
    """Structured answer the analysis model returns; tests may edit it."""
    return {
        "possible_sale": True,
        "closed_sale": False,
        "appointment_scheduled": True,
        "sentiment": "positivo",
        "intent": "compra",
        "main_topics": ["renta de nave"],
        "keywords": ["nave", "renta"],
        "satisfaction_score": 8.5,
    }


@pytest.fixture(scope="function")
def analysis_calls():
    """Message lists the analysis model was called with."""
    return []


@pytest.fixture(scope="function")
def analysis_model(analysis_output, analysis_calls):
    """Model that answers every analysis with ``analysis_output`` through the output tool."""

    def reply(messages, info: AgentInfo) -> ModelResponse:
        analysis_calls.append(messages)
        return ModelResponse(
            parts=[ToolCallPart(info.output_tools[0].name, dict(analysis_output))]
        )

    return FunctionModel(reply)


@pytest.fixture(scope="function")
def conversation_analyzer(conversation_log, sale_status_service, analysis_model):
    return ConversationAnalyzer(conversation_log, sale_status_service, analysis_model)


@pytest.fixture(scope="function")
def report_service(conversation_log, sale_status_service, mode_manager):
    return ConversationReportService(conversation_log, sale_status_service, mode_manager)


@pytest.fixture(scope="function")
def app_state(session_factory, transport, llm, conversation_analyzer, tmp_path):
    """Service container on the test database with the recording transport."""
    settings = Settings(prompt_file=str(tmp_path / "prompt.txt"))
    return AppState(
        settings,
        session_factory=session_factory,
        transport=transport,
        llm=llm,
        analyzer=conversation_analyzer,
    )


@pytest.fixture(scope="function")
def client(app_state):
    app = create_app(testing=True, state=app_state)
    with TestClient(app) as c:
        yield c
