class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class DraftNotFoundError(DomainError):
    """Exception raised when a draft id is not present in the queue."""

    pass


class InvalidDraftStateError(DomainError):
    """Exception raised when a draft operation does not fit its current status."""

    pass


class EmptyInputError(DomainError):
    """Exception raised when free-text input is blank after trimming."""

    pass
