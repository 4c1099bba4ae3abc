# portal/errors.py
"""
Portal error taxonomy.

Every error carries the HTTP status the exception handlers in
``portal.main`` translate it to. Messages are public: never put
provider or database text into them.
"""

from fastapi import status


class PortalError(Exception):
    """Base class for all errors surfaced as the ``{"error": ...}`` envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidArgument(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST


class GenerationFailed(PortalError):
    """The generation call failed or returned nothing usable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StructuredOutputError(GenerationFailed):
    """The model answered, but not with a JSON object."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class DependencyUnavailable(PortalError):
    """An outbound sink could not be reached. Logged, never returned to callers."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
