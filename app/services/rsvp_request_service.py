"""
RSVP request admission workflow.

Users ask to join events that require host approval; hosts list the pending
and processed requests and approve or reject pending ones. Every operation
runs in a single transaction on the service's session and either completes
or raises an ``RSVPRequestError`` after that transaction has been rolled back.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import ceil
from typing import List, Optional, Tuple, Union
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    RSVPRequestError,
    InternalError,
    NotEventHost,
    RequestAlreadyPending,
    RequestAlreadyApproved,
    NoPendingRequest,
    InvalidDecision,
)
from app.core.logging import logger
from app.db.models.rsvp_request import RSVPRequest, RSVPRequestStatus, DecisionAction
from app.db.repositories import (
    find_active_request as db_find_active_request,
    create_rsvp_request as db_create_rsvp_request,
    find_pending_for_update as db_find_pending_for_update,
    transition_status as db_transition_status,
    get_rsvp_request as db_get_rsvp_request,
    list_pending_requests as db_list_pending_requests,
    list_processed_requests as db_list_processed_requests,
)
from app.db.session import transaction
from app.events import publisher
from app.services.event_context import EventContextProvider
from app.services.host_authorization import HostAuthorizationChecker

ACTIVE_REQUEST_INDEX = "uq_rsvp_request_active"


@dataclass
class AdmissionResult:
    """Outcome of a request for admission: either a new pending request or "not required"."""
    required: bool
    rsvp_request: Optional[RSVPRequest] = None


@dataclass
class RSVPRequestPage:
    items: List[RSVPRequest] = field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return ceil(self.total_count / self.page_size) if self.page_size else 0


def resolve_page_params(page=None, limit=None) -> Tuple[int, int]:
    """
    Normalise raw page/limit values.

    Missing, non-numeric or non-positive values fall back to page 1 and the
    configured default page size; the page size is capped at the configured maximum.
    """
    def _positive_int(value, default: int) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        return number if number > 0 else default

    page = _positive_int(page, 1)
    limit = _positive_int(limit, settings.RSVP_REQUESTS_DEFAULT_PAGE_SIZE)
    return page, min(limit, settings.RSVP_REQUESTS_MAX_PAGE_SIZE)


def _is_active_request_violation(error: IntegrityError) -> bool:
    message = str(error.orig)
    # PostgreSQL names the index; SQLite reports the columns of the violated unique index
    return ACTIVE_REQUEST_INDEX in message or "unique constraint failed" in message.lower()


class RSVPRequestService:
    """
    Service layer for RSVP request admission.

    Composes the event context provider and host authorization checker with
    the RSVP request repository, owning the transaction boundary of every
    operation.
    """

    def __init__(
        self,
        session: AsyncSession,
        event_context: Optional[EventContextProvider] = None,
        host_checker: Optional[HostAuthorizationChecker] = None,
    ):
        self.session = session
        self.event_context = event_context or EventContextProvider()
        self.host_checker = host_checker or HostAuthorizationChecker()

    @asynccontextmanager
    async def _operation(self, name: str, event_id, actor_id):
        """Log each failure once and turn persistence errors into ``InternalError``."""
        try:
            yield
        except RSVPRequestError as e:
            logger.warning(f"{name} failed for event {event_id} by user {actor_id}: {e.code}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"{name} failed for event {event_id} by user {actor_id}: {e!r}")
            raise InternalError() from e

    async def _require_host(self, user_id: uuid.UUID, event_id: uuid.UUID) -> None:
        if not await self.host_checker.is_host(self.session, user_id, event_id):
            raise NotEventHost()

    async def _duplicate_request_error(self, event_id: uuid.UUID, user_id: uuid.UUID) -> RSVPRequestError:
        """Classify a lost insert race by reading the request that won it."""
        async with transaction(self.session):
            existing = await db_find_active_request(self.session, event_id, user_id, lock=False)
        if existing and existing.status == RSVPRequestStatus.Approved:
            return RequestAlreadyApproved()
        return RequestAlreadyPending()

    async def _publish(self, routing_key: str, payload: dict) -> None:
        # The operation is already committed; a broker outage only costs the notification
        try:
            await publisher.publish_event(routing_key, {"type": routing_key, **payload})
        except Exception as e:
            logger.error(f"Failed to publish {routing_key} for RSVP request {payload.get('rsvp_request_id')}: {e}")

    async def request_admission(self, event_id: uuid.UUID, requester_id: uuid.UUID) -> AdmissionResult:
        """
        Ask to join an event on behalf of ``requester_id``.

        Returns:
            AdmissionResult with the new pending request, or with
            ``required=False`` when the event does not require approval

        Raises:
            EventNotFound: If the event or its settings do not exist
            RequestAlreadyPending: If the user already has a pending request
            RequestAlreadyApproved: If the user's request was already approved
        """
        async with self._operation("request_admission", event_id, requester_id):
            try:
                async with transaction(self.session):
                    policy = await self.event_context.resolve(self.session, event_id)
                    if not policy.approval_required:
                        logger.debug(f"RSVP approval not required for event {event_id}")
                        return AdmissionResult(required=False)

                    existing = await db_find_active_request(self.session, policy.event_id, requester_id)
                    if existing:
                        if existing.status == RSVPRequestStatus.Approved:
                            raise RequestAlreadyApproved()
                        raise RequestAlreadyPending()

                    rsvp_request = await db_create_rsvp_request(self.session, policy.event_id, requester_id)
                    request_id = rsvp_request.id
            except IntegrityError as e:
                if not _is_active_request_violation(e):
                    raise
                raise await self._duplicate_request_error(event_id, requester_id) from e

            async with transaction(self.session):
                rsvp_request = await db_get_rsvp_request(self.session, request_id)

        logger.info(f"RSVP request {request_id} created for event {event_id} by user {requester_id}")
        await self._publish(
            "rsvp_request.created",
            {"rsvp_request_id": str(request_id), "event_id": str(event_id), "user_id": str(requester_id)},
        )
        return AdmissionResult(required=True, rsvp_request=rsvp_request)

    async def list_pending(self, event_id: uuid.UUID, requester_id: uuid.UUID, page=None, limit=None) -> RSVPRequestPage:
        """Page through an event's pending requests, newest first. Hosts only."""
        page, limit = resolve_page_params(page, limit)
        async with self._operation("list_pending", event_id, requester_id):
            async with transaction(self.session):
                await self._require_host(requester_id, event_id)
                total, items = await db_list_pending_requests(
                    self.session, event_id, limit=limit, offset=(page - 1) * limit
                )
        return RSVPRequestPage(items=items, total_count=total, current_page=page, page_size=limit)

    async def list_processed(self, event_id: uuid.UUID, requester_id: uuid.UUID, page=None, limit=None) -> RSVPRequestPage:
        """Page through an event's approved and rejected requests, latest decision first. Hosts only."""
        page, limit = resolve_page_params(page, limit)
        async with self._operation("list_processed", event_id, requester_id):
            async with transaction(self.session):
                await self._require_host(requester_id, event_id)
                total, items = await db_list_processed_requests(
                    self.session, event_id, limit=limit, offset=(page - 1) * limit
                )
        return RSVPRequestPage(items=items, total_count=total, current_page=page, page_size=limit)

    async def decide(
        self,
        event_id: uuid.UUID,
        request_id: uuid.UUID,
        action: Union[DecisionAction, str],
        decider_id: uuid.UUID,
    ) -> RSVPRequest:
        """
        Approve or reject a pending request.

        The pending row is locked before it is transitioned, and the
        transition itself only matches a still-pending row, so concurrent
        decisions on one request yield exactly one success.

        Raises:
            InvalidDecision: If ``action`` is not ``Approved`` or ``Rejected``
            NotEventHost: If ``decider_id`` is not a host of the event
            NoPendingRequest: If no pending request ``request_id`` exists for the event
        """
        async with self._operation("decide", event_id, decider_id):
            try:
                action = DecisionAction(action)
            except ValueError:
                raise InvalidDecision() from None

            async with transaction(self.session):
                await self._require_host(decider_id, event_id)

                pending = await db_find_pending_for_update(self.session, event_id, request_id)
                if not pending:
                    raise NoPendingRequest()

                now = datetime.now(timezone.utc)
                transitioned = await db_transition_status(self.session, pending.id, action.status, decider_id, now)
                if not transitioned:
                    raise NoPendingRequest()

            async with transaction(self.session):
                rsvp_request = await db_get_rsvp_request(self.session, request_id)

        logger.info(f"RSVP request {request_id} for event {event_id} {action.value.lower()} by user {decider_id}")
        await self._publish(
            f"rsvp_request.{action.value.lower()}",
            {
                "rsvp_request_id": str(request_id),
                "event_id": str(event_id),
                "user_id": str(rsvp_request.user_id),
                "decided_by": str(decider_id),
            },
        )
        return rsvp_request
