"""
Domain Errors

Every business-rule failure raised by a service is one of these.
The API layer maps them to HTTP responses in one place
(see shared.api.exception_handler).
"""


class DomainError(Exception):
    """Base class for errors that terminate a request with a structured body."""

    status_code = 400
    code = 'domain_error'
    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None, *, code: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)


class NotFound(DomainError):
    """Venue or booking id does not resolve."""

    status_code = 404
    code = 'not_found'
    default_message = 'Resource not found.'


class ValidationFailed(DomainError):
    """Malformed input or a violated scheduling rule."""

    status_code = 400
    code = 'validation_error'
    default_message = 'Validation failed.'


class SlotConflict(DomainError):
    """Requested slot is already occupied."""

    status_code = 409
    code = 'slot_conflict'
    default_message = 'Venue is not available for the selected time slot.'


class InvalidStatusTransition(DomainError):
    """Status change outside the whitelist."""

    status_code = 400
    code = 'invalid_status_transition'
    default_message = 'Invalid status transition.'
