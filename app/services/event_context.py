"""Event lookup and approval policy resolution."""
from dataclasses import dataclass
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import EventNotFound
from app.db.repositories import get_event as db_get_event, get_event_settings as db_get_event_settings


@dataclass(frozen=True)
class EventPolicy:
    """Read-only view of the event settings that govern RSVP admission."""
    event_id: uuid.UUID
    created_by: uuid.UUID
    approval_required: bool


class EventContextProvider:
    async def resolve(self, session: AsyncSession, event_id: uuid.UUID) -> EventPolicy:
        """
        Resolve an event and its approval policy.

        Raises:
            EventNotFound: If the event does not exist, is deleted, or has no settings
        """
        event = await db_get_event(session, event_id)
        if not event:
            raise EventNotFound()

        event_settings = await db_get_event_settings(session, event.id)
        if not event_settings:
            raise EventNotFound()

        return EventPolicy(
            event_id=event.id,
            created_by=event.created_by,
            approval_required=bool(event_settings.is_rsvp_approval_required),
        )
