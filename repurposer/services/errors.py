"""Failures surfaced by the AI gateway and content services, with their HTTP status."""
from fastapi import status


class GatewayError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RateLimitExceeded(GatewayError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, window: str):
        super().__init__(f"Rate limit exceeded (per {window})")
        self.window = window  # "minute" | "day"


class RateLimitCheckUnavailable(GatewayError):
    """Quota counts could not be read. Infrastructure fault, safe to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Rate limit check unavailable"):
        super().__init__(message)


class ProviderError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY


class ContentNotFound(LookupError):
    def __init__(self, content_id: str):
        super().__init__(f"Content not found: {content_id}")
        self.content_id = content_id


class RevisionConflict(Exception):
    """Revision number kept colliding with concurrent revisions of the same lineage."""
