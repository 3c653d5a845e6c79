"""
Domain errors raised by the profile and card services.

Each error carries the HTTP status it maps to; a single exception handler in
app.main turns them into `{"error": message}` responses.
"""


class DashboardError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DashboardError):
    """Requested profile, card or active pointer does not exist"""
    status_code = 404


class ConflictError(DashboardError):
    """Operation conflicts with current state (e.g. deleting the active profile)"""
    status_code = 409


class BadRequestError(DashboardError):
    """Request is well-formed but names an id that cannot be stored"""
    status_code = 400
