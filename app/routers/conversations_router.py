"""Conversations API: operator messages, ending conversations, history, sale status and analysis."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.exceptions import AIAuthenticationError, PersistenceError, TransportError
from app.routers.utils.dependencies import (
    get_conversation_analyzer,
    get_conversation_log,
    get_identity,
    get_operator_service,
    get_sale_status_service,
    get_session_manager,
)
from app.schemas.conversation_analysis import ConversationAnalysisRead
from app.schemas.conversation_log import ConversationLogRead
from app.schemas.operator import OperatorActionResult, OperatorMessageCreate
from app.schemas.sale_status import SaleStatusRead, SaleStatusUpdate
from app.schemas.session import SessionRead
from app.services.conversation_analyzer import ConversationAnalyzer
from app.services.conversation_log_service import ConversationLogService
from app.services.operator_service import OperatorService
from app.services.sale_status_service import SaleStatusService
from app.services.session_manager import SessionManager

conversations_router = APIRouter(prefix="/conversations", tags=["Conversation"])


@conversations_router.post("/{identity}/messages", response_model=OperatorActionResult)
async def send_operator_message(
    data: OperatorMessageCreate,
    identity: str = Depends(get_identity),
    operator: OperatorService = Depends(get_operator_service),
) -> OperatorActionResult:
    """Send a message as an operator, whoever owns the conversation."""
    try:
        await operator.send_operator_message(identity, data.text, data.responder_id)
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return OperatorActionResult(identity=identity, message="Mensaje enviado correctamente")


@conversations_router.post("/{identity}/end", response_model=OperatorActionResult)
async def end_conversation(
    identity: str = Depends(get_identity),
    operator: OperatorService = Depends(get_operator_service),
) -> OperatorActionResult:
    """Send the closing text, clear the session and return the contact to the AI."""
    try:
        await operator.end_conversation(identity)
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return OperatorActionResult(
        identity=identity, message="Conversación finalizada correctamente"
    )


@conversations_router.get("/{identity}/logs", response_model=List[ConversationLogRead])
async def get_conversation_logs(
    identity: str = Depends(get_identity),
    day: Optional[date] = Query(None),
    log: ConversationLogService = Depends(get_conversation_log),
) -> List[ConversationLogRead]:
    """Log entries for one contact, oldest first."""
    return await log.get_conversation(identity, day=day)


@conversations_router.get("/{identity}/session", response_model=SessionRead)
async def get_session(
    identity: str = Depends(get_identity),
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionRead:
    session = await sessions.find_session(identity)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionRead.from_session(session)


@conversations_router.get("/{identity}/sale-status", response_model=SaleStatusRead)
async def get_sale_status(
    identity: str = Depends(get_identity),
    sales: SaleStatusService = Depends(get_sale_status_service),
) -> SaleStatusRead:
    return await sales.get_sale_status(identity)


@conversations_router.patch("/{identity}/sale-status", response_model=SaleStatusRead)
async def update_sale_status(
    data: SaleStatusUpdate,
    identity: str = Depends(get_identity),
    sales: SaleStatusService = Depends(get_sale_status_service),
) -> SaleStatusRead:
    try:
        return await sales.update_sale_status(identity, data)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail="Could not save sale status") from e


@conversations_router.post("/{identity}/analysis", response_model=ConversationAnalysisRead)
async def analyze_conversation(
    identity: str = Depends(get_identity),
    day: Optional[date] = Query(None),
    analyzer: ConversationAnalyzer = Depends(get_conversation_analyzer),
) -> ConversationAnalysisRead:
    """Classify the conversation with the AI and record the result on its sale status."""
    try:
        analysis = await analyzer.analyze(identity, day=day)
    except AIAuthenticationError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    if analysis is None:
        raise HTTPException(status_code=404, detail="No conversation to analyze")
    return analysis
