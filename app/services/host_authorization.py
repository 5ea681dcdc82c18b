"""Host authorization for RSVP request administration."""
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories import get_event as db_get_event, get_host_participant as db_get_host_participant


class HostAuthorizationChecker:
    """
    Decides whether a user may administer RSVP requests for an event.

    A user is a host if they created the event or hold a live ``Host`` or
    ``CoHost`` participant role on it. Nothing is cached: both signals are
    read again on every call, inside the caller's transaction.
    """

    async def is_host(self, session: AsyncSession, user_id: uuid.UUID, event_id: uuid.UUID) -> bool:
        event = await db_get_event(session, event_id)
        if not event:
            return False

        if event.created_by == user_id:
            return True

        participant = await db_get_host_participant(session, event.id, user_id)
        return participant is not None
