"""DRF exception handler translating service errors into responses."""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from courses.exceptions import (
    Conflict,
    DependentRecordsExist,
    Forbidden,
    InvalidCredentials,
    InvalidState,
    NotFound,
    ServiceError,
    UploadFailed,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (InvalidState, status.HTTP_400_BAD_REQUEST),
    (UploadFailed, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: ServiceError) -> int:
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def service_exception_handler(exc, context):
    """Map service errors, defer to DRF, and hide anything unexpected."""
    if isinstance(exc, ServiceError):
        body = {"detail": exc.message, "code": exc.code}
        if isinstance(exc, ValidationFailed) and exc.errors:
            body["errors"] = exc.errors
        if isinstance(exc, DependentRecordsExist):
            body["feedback_count"] = exc.count
        if isinstance(exc, UploadFailed):
            logger.error("Image host failure: %s", exc.message, exc_info=exc.__cause__)
        return Response(body, status=status_for(exc))

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception("Unhandled error in %s", type(view).__name__ if view else "API view", exc_info=exc)
    return Response({"detail": "Server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
