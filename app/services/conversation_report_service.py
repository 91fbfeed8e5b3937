"""Per-conversation reports: log entries grouped by contact and joined with sales and mode."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from app.constants.modes import ConversationMode, LogRole
from app.schemas.conversation_analysis import ConversationReport, ReportPeriod
from app.schemas.conversation_log import ConversationLogRead
from app.schemas.sale_status import SaleStage
from app.services.conversation_log_service import ConversationLogService, day_bounds
from app.services.mode_manager import ModeManager
from app.services.sale_status_service import SaleStatusService
from app.utils.dates import utcnow

_TURN_TYPES = ("USER", "BOT", "HUMAN")
_SUPPORT_NOTICE = "Modo SOPORTE activado"
_HUMAN_NOTICE = "Modo HUMANO establecido"

Bounds = Tuple[Optional[datetime], Optional[datetime]]


def period_bounds(period: ReportPeriod, today: date) -> Bounds:
    """Half-open UTC range covered by a named period; ``(None, None)`` for all."""
    if period == ReportPeriod.TODAY:
        return day_bounds(today)
    if period == ReportPeriod.YESTERDAY:
        return day_bounds(today - timedelta(days=1))
    if period == ReportPeriod.WEEK:
        return day_bounds(today - timedelta(days=6))[0], day_bounds(today)[1]
    if period == ReportPeriod.MONTH:
        first = today.replace(day=1)
        following = (first + timedelta(days=32)).replace(day=1)
        return day_bounds(first)[0], day_bounds(following)[0]
    return None, None


class ConversationReportService:
    def __init__(
        self,
        conversation_log: ConversationLogService,
        sales: SaleStatusService,
        mode_manager: ModeManager,
    ) -> None:
        self._log = conversation_log
        self._sales = sales
        self._modes = mode_manager

    async def build_report(
        self,
        day: Optional[date] = None,
        period: ReportPeriod = ReportPeriod.ALL,
        today: Optional[date] = None,
    ) -> List[ConversationReport]:
        """
        One report per contact with customer, bot or operator turns in the
        range, sorted by first message. ``day`` takes precedence over ``period``.
        """
        if day is not None:
            start, end = day_bounds(day)
        else:
            start, end = period_bounds(period, today or utcnow().date())
        entries = await self._log.get_entries(start, end)

        reports: Dict[str, ConversationReport] = {}
        for entry in entries:
            report = reports.get(entry.identity)
            if entry.type in _TURN_TYPES:
                if report is None:
                    report = reports[entry.identity] = ConversationReport(
                        identity=entry.identity,
                        day=entry.timestamp.date(),
                        first_message_at=entry.timestamp,
                        last_message_at=entry.timestamp,
                    )
                report.message_count += 1
                report.last_message_at = entry.timestamp
                report.conversation.append(entry)
                if entry.display_name and entry.role == LogRole.CLIENT:
                    report.display_name = entry.display_name
            if report is not None:
                self._apply_flags(report, entry)

        statuses = await self._sales.get_many(list(reports))
        for identity, report in reports.items():
            status = statuses[identity]
            report.possible_sale = status.possible_sale
            report.closed_sale = status.stage == SaleStage.CLOSED_WON
            report.appointment_scheduled = status.appointment_scheduled
            report.analyzed = status.analyzed
            report.stage = status.stage
            mode = await self._modes.get_mode(identity)
            if mode == ConversationMode.SUPPORT:
                report.support_activated = True
            elif mode == ConversationMode.HUMAN:
                report.human_mode = True

        return sorted(reports.values(), key=lambda r: r.first_message_at)

    @staticmethod
    def _apply_flags(report: ConversationReport, entry: ConversationLogRead) -> None:
        if entry.type == "HUMAN":
            report.support_activated = True
        elif entry.role == LogRole.SYSTEM and entry.message:
            if _SUPPORT_NOTICE in entry.message:
                report.support_activated = True
            elif _HUMAN_NOTICE in entry.message:
                report.human_mode = True
