"""Data models for the membership back-office."""

# Import SQLAlchemy ORM models to register them with Base.metadata
# This ensures all tables are known when create_tables() is called
from backoffice.models.admin import Admin, AdminDB, AdminRole, AdminStatus  # noqa: F401
from backoffice.models.chatbot import ChatbotQueryLogDB, ChatbotResponse  # noqa: F401
from backoffice.models.development_request import (  # noqa: F401
    DevelopmentRequest,
    DevelopmentRequestDB,
    RequestStatus,
    StorageStatus,
)
from backoffice.models.event import Event, EventDB, EventStatus, Inscription, InscriptionDB  # noqa: F401
from backoffice.models.idea import Idea, IdeaDB, IdeaStatus, Vote, VoteDB  # noqa: F401
from backoffice.models.loan import LoanItem, LoanItemDB, LoanStatus  # noqa: F401
from backoffice.models.member import (  # noqa: F401
    ActivityType,
    Member,
    MemberActivityDB,
    MemberDB,
    MemberRelationDB,
    MemberStatusDB,
    MemberTagAssignmentDB,
    MemberTagDB,
    MemberTaskDB,
)
from backoffice.models.tool import Tool, ToolCategory, ToolCategoryDB, ToolDB  # noqa: F401
from backoffice.models.tracking import TrackingAlertDB, TrackingMetricDB  # noqa: F401

__all__ = [
    # Admin models
    "Admin",
    "AdminRole",
    "AdminStatus",
    # Chatbot models
    "ChatbotResponse",
    # Domain models
    "DevelopmentRequest",
    "RequestStatus",
    "StorageStatus",
    "Event",
    "EventStatus",
    "Inscription",
    "Idea",
    "IdeaStatus",
    "Vote",
    "LoanItem",
    "LoanStatus",
    "ActivityType",
    "Member",
    "Tool",
    "ToolCategory",
]
