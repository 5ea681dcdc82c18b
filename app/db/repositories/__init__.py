"""
Repository layer for database operations.

Provides async functions over events, participants and RSVP requests. Every
function works on the caller's session and never commits, rolls back or
begins a transaction: the workflow in ``app.services`` owns those boundaries.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
import uuid

from sqlalchemy import select, update, func, false
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, selectinload

from app.db.models.user import User
from app.db.models.event import Event, EventSetting, EventParticipant, HOST_ROLES
from app.db.models.rsvp_request import (
    RSVPRequest,
    RSVPRequestStatus,
    ACTIVE_STATUSES,
    PROCESSED_STATUSES,
)


async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Optional[Event]:
    """Retrieve a non-deleted event by ID."""
    q = select(Event).where(Event.id == event_id, Event.is_deleted == false())
    res = await db.execute(q)
    return res.scalars().first()


async def get_event_settings(db: AsyncSession, event_id: uuid.UUID) -> Optional[EventSetting]:
    q = select(EventSetting).where(
        EventSetting.event_id == event_id,
        EventSetting.is_deleted == false(),
    )
    res = await db.execute(q)
    return res.scalars().first()


async def get_host_participant(
    db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[EventParticipant]:
    """Return the user's live host or co-host participation in the event, if any."""
    q = select(EventParticipant).where(
        EventParticipant.event_id == event_id,
        EventParticipant.user_id == user_id,
        EventParticipant.role.in_(HOST_ROLES),
        EventParticipant.is_deleted == false(),
    )
    res = await db.execute(q)
    return res.scalars().first()


async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    q = select(User).where(User.id == user_id, User.is_deleted == false())
    res = await db.execute(q)
    return res.scalars().first()


async def find_active_request(
    db: AsyncSession, event_id: uuid.UUID, user_id: uuid.UUID, lock: bool = True
) -> Optional[RSVPRequest]:
    """
    Find the user's pending or approved request for an event.

    Args:
        db: Database session
        event_id: Event's UUID
        user_id: Requesting user's UUID
        lock: Acquire a row lock on the match for the rest of the transaction

    Returns:
        RSVPRequest object if found, None otherwise
    """
    q = select(RSVPRequest).where(
        RSVPRequest.event_id == event_id,
        RSVPRequest.user_id == user_id,
        RSVPRequest.status.in_(ACTIVE_STATUSES),
        RSVPRequest.is_deleted == false(),
    )
    if lock:
        q = q.with_for_update()
    res = await db.execute(q)
    return res.scalars().first()


async def create_rsvp_request(
    db: AsyncSession,
    event_id: uuid.UUID,
    user_id: uuid.UUID,
    status: RSVPRequestStatus = RSVPRequestStatus.Pending,
) -> RSVPRequest:
    """
    Insert a new RSVP request and flush it so constraint violations surface here.

    Raises:
        IntegrityError: If another live request for the pair was inserted concurrently
    """
    r = RSVPRequest(event_id=event_id, user_id=user_id, status=status, created_by=user_id)
    db.add(r)
    await db.flush()
    return r


async def find_pending_for_update(
    db: AsyncSession, event_id: uuid.UUID, request_id: uuid.UUID
) -> Optional[RSVPRequest]:
    """Fetch and lock the pending request ``request_id`` belonging to ``event_id``."""
    q = (
        select(RSVPRequest)
        .where(
            RSVPRequest.id == request_id,
            RSVPRequest.event_id == event_id,
            RSVPRequest.is_deleted == false(),
            RSVPRequest.status == RSVPRequestStatus.Pending,
        )
        .with_for_update()
    )
    res = await db.execute(q)
    return res.scalars().first()


async def transition_status(
    db: AsyncSession,
    request_id: uuid.UUID,
    new_status: RSVPRequestStatus,
    decider_id: uuid.UUID,
    now: datetime,
) -> bool:
    """
    Move a pending request to ``new_status``.

    The UPDATE only matches a row that is still pending, so of two racing
    transitions at most one can change the row.

    Returns:
        True if the row was transitioned, False if it was no longer pending
    """
    q = (
        update(RSVPRequest)
        .where(
            RSVPRequest.id == request_id,
            RSVPRequest.status == RSVPRequestStatus.Pending,
            RSVPRequest.is_deleted == false(),
        )
        .values(
            status=new_status,
            responded_at=now,
            responded_by=decider_id,
            updated_by=decider_id,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(q)
    return res.rowcount == 1


async def get_rsvp_request(db: AsyncSession, request_id: uuid.UUID) -> Optional[RSVPRequest]:
    """Re-read a request with its requester's profile, overwriting any stale state in the session."""
    q = (
        select(RSVPRequest)
        .where(RSVPRequest.id == request_id)
        .options(selectinload(RSVPRequest.user))
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def list_rsvp_requests_by_status(
    db: AsyncSession,
    event_id: uuid.UUID,
    statuses: Iterable[RSVPRequestStatus],
    order_by: tuple,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[int, List[RSVPRequest]]:
    """
    List an event's non-deleted requests in the given statuses.

    Rows whose requester has been deleted are left out of both the page and
    the total. Each returned request has ``user`` loaded.

    Returns:
        Tuple of (total_count, requests)
    """
    statuses = list(statuses)
    filters = (
        RSVPRequest.event_id == event_id,
        RSVPRequest.status.in_(statuses),
        RSVPRequest.is_deleted == false(),
        User.is_deleted == false(),
    )

    count_q = select(func.count(RSVPRequest.id)).join(RSVPRequest.user).where(*filters)
    total = (await db.execute(count_q)).scalar() or 0

    q = (
        select(RSVPRequest)
        .join(RSVPRequest.user)
        .where(*filters)
        .options(contains_eager(RSVPRequest.user))
        .order_by(*order_by)
        .limit(limit)
        .offset(offset)
    )
    res = await db.execute(q)
    return total, list(res.scalars().all())


async def list_pending_requests(
    db: AsyncSession, event_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> Tuple[int, List[RSVPRequest]]:
    """Pending requests, newest first."""
    return await list_rsvp_requests_by_status(
        db,
        event_id,
        (RSVPRequestStatus.Pending,),
        order_by=(RSVPRequest.created_at.desc(),),
        limit=limit,
        offset=offset,
    )


async def list_processed_requests(
    db: AsyncSession, event_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> Tuple[int, List[RSVPRequest]]:
    """Approved and rejected requests, most recently decided first."""
    return await list_rsvp_requests_by_status(
        db,
        event_id,
        PROCESSED_STATUSES,
        order_by=(RSVPRequest.responded_at.desc(), RSVPRequest.created_at.desc()),
        limit=limit,
        offset=offset,
    )
