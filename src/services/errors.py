"""Errors raised by the policy, store and directory services.

Each error carries the HTTP status the web layer answers with, so routes
never translate them by hand.
"""


class MetricsDashboardError(Exception):
    """Base class for caller-visible failures."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details is not None:
            payload['details'] = self.details
        return payload


class Unauthenticated(MetricsDashboardError):
    """No identity, or the presented one is invalid or expired."""
    status_code = 401
    code = "unauthenticated"


class Forbidden(MetricsDashboardError):
    """Valid identity, but its role or ownership does not allow the operation."""
    status_code = 403
    code = "forbidden"


class InvalidInput(MetricsDashboardError):
    status_code = 400
    code = "invalid_input"


class Conflict(MetricsDashboardError):
    """Uniqueness violation or an account that is already claimed."""
    status_code = 409
    code = "conflict"


class NotFound(MetricsDashboardError):
    """Target does not exist within the caller's scope."""
    status_code = 404
    code = "not_found"
