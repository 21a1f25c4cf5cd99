# Overview: Error taxonomy shared by services and routes.

"""
Domain errors.

Every service raises one of these kinds so routes can map them to a status
code in one place. Backend errors (SQLAlchemyError) are not wrapped: they are
propagated verbatim and answered as 500 after a rollback.
"""


class RetailError(Exception):
    """Base class; the message is safe to show to the end user."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RetailError):
    """400-level input problem (domain rule failed before any write)."""
    status_code = 400


class PermissionDeniedError(RetailError):
    """Caller's role lacks rights for the requested operation."""
    status_code = 403


class NotFoundError(RetailError):
    """Referenced entity absent or outside the caller's scope."""
    status_code = 404


class ConflictError(RetailError):
    """409-level state conflict (illegal transition, duplicate active session)."""
    status_code = 409
