"""Domain error taxonomy.

Every error carries a stable ``code`` (the ``error`` field of the JSON body)
and the HTTP status the API maps it to.
"""
from typing import List, Optional


class TransitError(Exception):
    """Base class for errors surfaced to API clients."""
    code = "transit_error"
    status_code = 500
    default_message = "Unexpected transit error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class UpstreamUnavailable(TransitError):
    """Network failure or non-2xx response from a transit provider."""
    code = "upstream_unavailable"
    status_code = 503
    default_message = "Transit provider is unavailable"


class UpstreamRateLimited(TransitError):
    """Provider quota exhausted."""
    code = "upstream_rate_limited"
    status_code = 429
    default_message = "Transit provider rate limit reached"


class NoRouteFound(TransitError):
    """Provider returned no usable route or does not know a stop."""
    code = "no_route_found"
    status_code = 404
    default_message = "No route found between the given stops"


class ValidationFailed(TransitError):
    code = "validation_failed"
    status_code = 422
    default_message = "Journey validation failed"

    def __init__(self, message: Optional[str] = None, leg_ids: Optional[List[str]] = None):
        super().__init__(message)
        self.leg_ids = leg_ids or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.leg_ids:
            data["leg_ids"] = self.leg_ids
        return data


class Unauthorized(TransitError):
    code = "unauthorized"
    status_code = 401
    default_message = "Missing or invalid credentials"


class NotFound(TransitError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class InvalidStatusTransition(TransitError):
    code = "invalid_status_transition"
    status_code = 409
    default_message = "Status transition not allowed"
