import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base class for errors raised by the service layer
    Each subclass maps to one HTTP status
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):  # type: ignore
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Malformed or insufficient input"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(ServiceError):
    """Referenced entity does not exist"""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"

    def __init__(self, message: str = None, missing_ids=None):  # type: ignore
        self.missing_ids = list(missing_ids or [])
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Caller's site scope does not include the target site"""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class ConflictResolutionFailedError(ServiceError):
    """The transactional write of a resolution failed and was rolled back"""

    default_message = "Failed to resolve conflict"


class DataIntegrityError(ServiceError):
    """Stored data is missing something every row should have"""

    default_message = "Data integrity error"


def custom_exception_handler(exc, context):
    """
    Render service errors and DRF errors as {"error": ...}

    DRF field validation errors keep their per-field detail under "detail".
    """
    if isinstance(exc, ServiceError):
        body = {"error": exc.message}
        if isinstance(exc, NotFoundError) and exc.missing_ids:
            body["missingIds"] = exc.missing_ids

        if exc.status_code >= 500:
            view = context.get("view")
            logger.error(f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}", exc_info=exc)

        return Response(body, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(detail, dict) and set(detail.keys()) == {"detail"}:
        response.data = {"error": str(detail["detail"])}
    else:
        response.data = {"error": "Invalid request", "detail": detail}

    return response
