"""
Error taxonomy for the RSVP request admission workflow.

Every anticipated failure carries a stable machine-readable ``code`` that
clients branch on, a human readable ``message``, and the HTTP status it is
rendered with by the exception handler in ``app.main``.
"""
from typing import Optional
from app.core.config import settings


class RSVPRequestError(Exception):
    """Base class for classified admission workflow failures."""

    kind = "bad_request"
    code = "bad_request"
    message = "Bad request"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFoundError(RSVPRequestError):
    kind = "not_found"
    code = "not_found"
    message = "Resource not found"
    status_code = 404


class UnauthorizedError(RSVPRequestError):
    kind = "unauthorized"
    code = "unauthorized"
    message = "Not authorized"

    @property
    def status_code(self) -> int:
        return settings.HOST_AUTHORIZATION_FAILURE_STATUS


class ConflictError(RSVPRequestError):
    kind = "conflict"
    code = "conflict"
    message = "Conflict"
    status_code = 409


class BadRequestError(RSVPRequestError):
    kind = "bad_request"


class InternalError(RSVPRequestError):
    kind = "internal"
    code = "internal_error"
    message = "Something went wrong while processing the RSVP request"
    status_code = 500


class EventNotFound(NotFoundError):
    code = "event_not_found"
    message = "Event not found"


class NotEventHost(UnauthorizedError):
    code = "not_event_host"
    message = "Only event hosts can manage RSVP requests for this event"


class RequestAlreadyPending(ConflictError):
    code = "rsvp_request_already_pending"
    message = "Your RSVP request for this event is already pending"


class RequestAlreadyApproved(ConflictError):
    code = "rsvp_request_already_approved"
    message = "Your RSVP request for this event has already been approved"


class NoPendingRequest(ConflictError):
    code = "no_pending_rsvp_request"
    message = "No pending RSVP request matches this event and request id"


class InvalidDecision(BadRequestError):
    code = "invalid_rsvp_action"
    message = "Action must be either 'Approved' or 'Rejected'"
