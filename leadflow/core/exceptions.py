"""Custom exceptions for the LeadFlow application."""


class LeadFlowException(Exception):
    """Base exception for LeadFlow application."""

    pass


class ValidationError(LeadFlowException):
    """Raised when validation fails."""

    pass


class NotFoundError(LeadFlowException):
    """Raised when a resource is not found."""

    pass


class StageViolationError(LeadFlowException):
    """Raised when a journey stage transition would skip or repeat a stage.

    Callers usually treat this as "already advanced" rather than a hard failure.
    """

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(reason)
        self.stage = stage
        self.reason = reason


class CollaboratorError(LeadFlowException):
    """Raised when an external collaborator (email, identity) fails."""

    pass


class DatabaseError(LeadFlowException):
    """Raised when a database operation fails."""

    pass


class ConfigurationError(LeadFlowException):
    """Raised when configuration is invalid."""

    pass
