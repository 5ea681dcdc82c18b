from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from app.auth import get_current_user
from app.core.config import settings
from app.db.models.user import User
from app.db.session import get_session
from app.schemas import (
    AdmissionOutcome,
    ErrorOut,
    PaginatedResponse,
    PaginationMetadata,
    RSVPAdmissionOut,
    RSVPDecisionIn,
    RSVPDecisionOut,
    RSVPRequestOut,
)
from app.services.rsvp_request_service import RSVPRequestService, RSVPRequestPage
from app.db.models.rsvp_request import DecisionAction

router = APIRouter(prefix="/rsvp-requests", tags=["rsvp-requests"])
limiter = Limiter(key_func=get_remote_address)

ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    409: {"model": ErrorOut},
}


def get_rsvp_request_service(session: AsyncSession = Depends(get_session)) -> RSVPRequestService:
    return RSVPRequestService(session)


def _page_response(result: RSVPRequestPage, empty_message: str) -> PaginatedResponse[RSVPRequestOut]:
    return PaginatedResponse[RSVPRequestOut](
        message=empty_message if not result.items else "RSVP requests retrieved successfully",
        data=[RSVPRequestOut.model_validate(r) for r in result.items],
        pagination=PaginationMetadata(
            total_count=result.total_count,
            current_page=result.current_page,
            total_pages=result.total_pages,
        ),
    )


@router.post(
    "/{event_id}",
    response_model=RSVPAdmissionOut,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
@limiter.limit(settings.RSVP_REQUEST_RATE_LIMIT)
async def send_rsvp_request(
    request: Request,
    event_id: UUID,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPRequestService = Depends(get_rsvp_request_service),
):
    """
    Ask to join an event that requires host approval.

    Responds 201 with the new pending request, or 200 with outcome
    ``not_required`` when anyone may RSVP without approval.
    """
    result = await rsvp_service.request_admission(event_id, user.id)
    if not result.required:
        body = RSVPAdmissionOut(
            outcome=AdmissionOutcome.not_required,
            message="RSVP request is not needed for this event",
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))
    return RSVPAdmissionOut(
        outcome=AdmissionOutcome.created,
        message="RSVP request sent successfully",
        rsvp_request=RSVPRequestOut.model_validate(result.rsvp_request),
    )


@router.get("/{event_id}/pending", response_model=PaginatedResponse[RSVPRequestOut], responses=ERROR_RESPONSES)
async def get_pending_rsvp_requests(
    event_id: UUID,
    page: Optional[str] = Query(None, description="Page number (1-indexed, default 1)"),
    limit: Optional[str] = Query(None, description="Items per page (default 20, max 100)"),
    user: User = Depends(get_current_user),
    rsvp_service: RSVPRequestService = Depends(get_rsvp_request_service),
):
    """List pending RSVP requests for an event. Event hosts only."""
    result = await rsvp_service.list_pending(event_id, user.id, page=page, limit=limit)
    return _page_response(result, "No pending RSVP requests")


@router.get("/{event_id}/processed", response_model=PaginatedResponse[RSVPRequestOut], responses=ERROR_RESPONSES)
async def get_processed_rsvp_requests(
    event_id: UUID,
    page: Optional[str] = Query(None, description="Page number (1-indexed, default 1)"),
    limit: Optional[str] = Query(None, description="Items per page (default 20, max 100)"),
    user: User = Depends(get_current_user),
    rsvp_service: RSVPRequestService = Depends(get_rsvp_request_service),
):
    """List approved and rejected RSVP requests for an event. Event hosts only."""
    result = await rsvp_service.list_processed(event_id, user.id, page=page, limit=limit)
    return _page_response(result, "No processed RSVP requests")


@router.put(
    "/{event_id}/approve-or-reject/{request_id}",
    response_model=RSVPDecisionOut,
    responses=ERROR_RESPONSES,
)
async def approve_or_reject_rsvp_request(
    event_id: UUID,
    request_id: UUID,
    payload: RSVPDecisionIn,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPRequestService = Depends(get_rsvp_request_service),
):
    """Approve or reject a pending RSVP request. Event hosts only."""
    rsvp_request = await rsvp_service.decide(event_id, request_id, payload.action, user.id)
    message = (
        "RSVP request approved successfully"
        if rsvp_request.status == DecisionAction.Approved.status
        else "RSVP request rejected successfully"
    )
    return RSVPDecisionOut(message=message, data=RSVPRequestOut.model_validate(rsvp_request))
