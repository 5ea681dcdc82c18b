from sqlalchemy import Column, DateTime, ForeignKey, Enum, Index, Boolean, CheckConstraint, Uuid, false, func, text
import uuid
from sqlalchemy.orm import relationship
from app.db.session import Base
import enum


class RSVPRequestStatus(str, enum.Enum):
    Pending = "Pending"
    Approved = "Approved"
    Rejected = "Rejected"


class DecisionAction(str, enum.Enum):
    """Terminal statuses a host may move a pending request to."""
    Approved = "Approved"
    Rejected = "Rejected"

    @property
    def status(self) -> RSVPRequestStatus:
        return RSVPRequestStatus(self.value)


# Statuses that block a new request for the same (event, user) pair
ACTIVE_STATUSES = (RSVPRequestStatus.Pending, RSVPRequestStatus.Approved)
PROCESSED_STATUSES = (RSVPRequestStatus.Approved, RSVPRequestStatus.Rejected)


class RSVPRequest(Base):
    __tablename__ = "rsvp_requests"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(RSVPRequestStatus, name="rsvprequeststatus"), default=RSVPRequestStatus.Pending, nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    responded_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
    event = relationship("Event")

    __table_args__ = (
        # One live (pending or approved) request per user and event; rejected rows are history
        Index(
            'uq_rsvp_request_active',
            'event_id',
            'user_id',
            unique=True,
            postgresql_where=text("status IN ('Pending', 'Approved') AND NOT is_deleted"),
            sqlite_where=text("status IN ('Pending', 'Approved') AND NOT is_deleted"),
        ),
        CheckConstraint(
            "(status = 'Pending' AND responded_at IS NULL AND responded_by IS NULL)"
            " OR (status <> 'Pending' AND responded_at IS NOT NULL AND responded_by IS NOT NULL)",
            name='ck_rsvp_request_response_fields',
        ),
        Index('idx_rsvp_request_event_status', 'event_id', 'status'),
        Index('idx_rsvp_request_user', 'user_id'),
    )
