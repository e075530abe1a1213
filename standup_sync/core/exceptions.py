# standup_sync/core/exceptions.py


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input is rejected before any remote call is made."""


class PermissionDeniedError(DomainError):
    """Raised when the caller lacks the admin claim for an action."""


class NotFoundError(DomainError, LookupError):
    """Raised when a session, employee or status document does not exist."""


class SessionStateError(DomainError):
    """Raised when a lifecycle action is not valid from the current status."""


class RemoteCallError(DomainError):
    """
    Raised when a callable function or the functions endpoint fails, or when
    its response does not match the expected schema.
    """
