"""Database models package."""
from app.db.models.user import User
from app.db.models.event import Event, EventSetting, EventParticipant, EventParticipantRole, HOST_ROLES
from app.db.models.rsvp_request import (
    RSVPRequest,
    RSVPRequestStatus,
    DecisionAction,
    ACTIVE_STATUSES,
    PROCESSED_STATUSES,
)

__all__ = [
    "User",
    "Event",
    "EventSetting",
    "EventParticipant",
    "EventParticipantRole",
    "HOST_ROLES",
    "RSVPRequest",
    "RSVPRequestStatus",
    "DecisionAction",
    "ACTIVE_STATUSES",
    "PROCESSED_STATUSES",
]
