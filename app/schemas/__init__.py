from pydantic import BaseModel, Field
from typing import Generic, List, Optional, TypeVar
from uuid import UUID
from datetime import datetime
from enum import Enum
from app.db.models.rsvp_request import RSVPRequestStatus

T = TypeVar("T")


class RequesterProfileOut(BaseModel):
    """Public profile fields of the user behind an RSVP request."""
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    username: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    total_gamification_points: int = 0
    total_gamification_points_weekly: int = 0

    class Config:
        from_attributes = True


class RSVPRequestOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    status: RSVPRequestStatus
    responded_at: Optional[datetime] = None
    responded_by: Optional[UUID] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[RequesterProfileOut] = None

    class Config:
        from_attributes = True


class AdmissionOutcome(str, Enum):
    created = "created"
    not_required = "not_required"


class RSVPAdmissionOut(BaseModel):
    outcome: AdmissionOutcome
    message: str
    rsvp_request: Optional[RSVPRequestOut] = None


class RSVPDecisionIn(BaseModel):
    # Validated by the workflow so that malformed actions map to its own error taxonomy
    action: str = Field(..., description="Either 'Approved' or 'Rejected'")


class RSVPDecisionOut(BaseModel):
    message: str
    data: RSVPRequestOut


class PaginationMetadata(BaseModel):
    total_count: int
    current_page: int
    total_pages: int


class PaginatedResponse(BaseModel, Generic[T]):
    message: str
    data: List[T]
    pagination: PaginationMetadata


class ErrorOut(BaseModel):
    detail: str
    code: str
