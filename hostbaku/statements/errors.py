"""
Errors raised by the statement services.

Each error carries the HTTP status the request boundary should answer with,
so route handlers never have to translate them one by one.
"""


class StatementError(Exception):
    """Base error with a client-safe message and status code."""
    status_code = 500
    default_message = 'Statement operation failed'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StatementError):
    status_code = 400
    default_message = 'Invalid request'


class DuplicatePeriod(StatementError):
    """A statement already exists for the requested property and month."""
    status_code = 400
    default_message = 'Statement already exists for this period'


class NotFound(StatementError):
    status_code = 404
    default_message = 'Not found'


class Forbidden(StatementError):
    status_code = 403
    default_message = 'Forbidden: Insufficient permissions'


class StorageFailure(StatementError):
    """Unexpected database failure. Message never includes driver details."""
    status_code = 500
    default_message = 'Storage operation failed'
