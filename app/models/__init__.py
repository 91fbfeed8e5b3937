from app.models.advisor_assignment import AdvisorAssignment, AdvisorRotation
from app.models.conversation_log import ConversationLog
from app.models.mode_state import ModeState
from app.models.sale_status import SaleStatus
from app.models.session import ConversationSession

__all__ = [
    "AdvisorAssignment",
    "AdvisorRotation",
    "ConversationLog",
    "ConversationSession",
    "ModeState",
    "SaleStatus",
]
