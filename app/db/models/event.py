from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum, Index, Uuid, false, func
import uuid
from sqlalchemy.orm import relationship
from app.db.session import Base
import enum


class EventParticipantRole(str, enum.Enum):
    Host = "Host"
    CoHost = "CoHost"
    Sponsor = "Sponsor"
    Speaker = "Speaker"
    Staff = "Staff"


# Participant roles allowed to administer RSVP requests
HOST_ROLES = (EventParticipantRole.Host, EventParticipantRole.CoHost)


class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    creator = relationship("User")
    settings = relationship("EventSetting", back_populates="event", uselist=False)

    __table_args__ = (
        Index('idx_event_created_by', 'created_by'),
    )


class EventSetting(Base):
    __tablename__ = "event_settings"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    is_rsvp_approval_required = Column(Boolean, nullable=False, default=False, server_default=false())
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="settings")

    __table_args__ = (
        Index('idx_event_setting_event', 'event_id'),
    )


class EventParticipant(Base):
    __tablename__ = "event_participants"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    role = Column(Enum(EventParticipantRole), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    event = relationship("Event")

    __table_args__ = (
        Index('idx_event_participant_event_user', 'event_id', 'user_id'),
    )
