"""Domain error taxonomy shared by services and routes."""
import logging

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for failures scoped to a single user action."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(DomainError):
    """Required input is missing or malformed."""

    status_code = 400


class InvalidTransition(DomainError):
    """A status change outside the allowed transition set."""

    status_code = 409

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{requested}'")
        self.entity = entity
        self.current = current
        self.requested = requested


class NotFound(DomainError):
    status_code = 404


class Forbidden(DomainError):
    status_code = 403


class RemoteCallFailure(DomainError):
    """The data store rejected or failed a call."""

    status_code = 503


def http_error(exc: DomainError) -> HTTPException:
    """Log a failed action and map it to the HTTP error surfaced to the user."""
    if isinstance(exc, RemoteCallFailure):
        logger.error("Remote call failed: %s", exc.message)
        return HTTPException(status_code=exc.status_code, detail="Service temporarily unavailable, please retry")
    logger.warning("%s: %s", type(exc).__name__, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.message)
