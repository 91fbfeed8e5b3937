from app.services.advisor_assignment_service import AdvisorAssignmentService
from app.services.conversation_log_service import ConversationLogService
from app.services.mode_manager import ModeManager
from app.services.session_manager import SessionManager

__all__ = [
    "AdvisorAssignmentService",
    "ConversationLogService",
    "ModeManager",
    "SessionManager",
]
