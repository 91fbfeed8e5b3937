"""Conversation log reports."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi_pagination import Page, Params, create_page

from app.routers.utils.dependencies import get_conversation_log, get_report_service
from app.schemas.conversation_analysis import ConversationReport, ReportPeriod
from app.schemas.conversation_log import ConversationLogRead, ConversationStats
from app.services.conversation_log_service import ConversationLogService
from app.services.conversation_report_service import ConversationReportService

logs_router = APIRouter(prefix="/logs", tags=["Log"])


@logs_router.get("", response_model=Page[ConversationLogRead])
async def list_logs(
    params: Params = Depends(),
    day: Optional[date] = Query(None),
    log: ConversationLogService = Depends(get_conversation_log),
) -> Page[ConversationLogRead]:
    """Log entries newest first, optionally for a single day."""
    offset = (params.page - 1) * params.size
    items = await log.get_logs(day=day, limit=params.size, offset=offset)
    stats = await log.get_stats(day=day)
    return create_page(items, total=stats.total_messages, params=params)


@logs_router.get("/dates", response_model=List[date])
async def list_log_dates(
    log: ConversationLogService = Depends(get_conversation_log),
) -> List[date]:
    return await log.get_available_dates()


@logs_router.get("/stats", response_model=ConversationStats)
async def get_log_stats(
    day: Optional[date] = Query(None),
    log: ConversationLogService = Depends(get_conversation_log),
) -> ConversationStats:
    return await log.get_stats(day=day)


@logs_router.get("/report", response_model=List[ConversationReport])
async def get_conversation_report(
    day: Optional[date] = Query(None),
    period: ReportPeriod = Query(ReportPeriod.ALL),
    reports: ConversationReportService = Depends(get_report_service),
) -> List[ConversationReport]:
    """One entry per contact with its turns, sale flags and mode; ``day`` overrides ``period``."""
    return await reports.build_report(day=day, period=period)
