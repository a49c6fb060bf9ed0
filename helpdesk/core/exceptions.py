"""
Helpdesk error hierarchy.

Every exception carries the HTTP status the API answers with, so
services raise and the interfaces layer only renders.
"""

from typing import Optional, Any


class ApplicationException(Exception):
    """Root of every error the service raises on purpose."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """A business rule refused the operation."""


class RepositoryException(ApplicationException):
    """Storage layer could not satisfy a read or write."""

    status_code = 500


class ValidationException(ApplicationException):
    """Input was well-formed but not acceptable."""

    status_code = 422


class ConflictException(ApplicationException):
    """Exception when a write collides with existing state (e.g. duplicate email)."""

    status_code = 409


class ResourceNotFoundException(ApplicationException):
    """Entity is absent, or outside the caller's scope."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Settings or SLA configuration are unusable."""

    status_code = 500


class ExternalServiceException(ApplicationException):
    """A remote dependency failed or answered with an error."""

    status_code = 502

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class LLMException(ExternalServiceException):
    """Chat model call failed or returned unusable output."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("LLM Service", message, details)


class UnauthenticatedException(ApplicationException):
    """Missing, invalid or expired credential."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[dict] = None):
        super().__init__(message, details)


class ForbiddenException(DomainException):
    """Actor lacks permission for the requested action."""

    status_code = 403

    def __init__(self, action: str, role: Any, details: Optional[dict] = None):
        self.action = action
        self.role = getattr(role, "value", role)
        super().__init__(
            f"Role '{self.role}' is not permitted to {action}",
            details or {"action": action, "role": self.role}
        )


class InvalidAssigneeException(DomainException):
    """Assignment target is missing, inactive or not a staff user."""

    status_code = 422

    def __init__(self, assignee_id: Optional[str], reason: str, details: Optional[dict] = None):
        self.assignee_id = assignee_id
        self.reason = reason
        super().__init__(
            f"Cannot assign ticket to '{assignee_id}': {reason}",
            details or {"assignee_id": assignee_id, "reason": reason}
        )


class NoDeadlineException(DomainException):
    """SLA clock received no deadline."""

    status_code = 422

    def __init__(self, details: Optional[dict] = None):
        super().__init__("No SLA deadline", details)


class InvalidDeadlineException(DomainException):
    """SLA clock received a deadline it could not parse."""

    status_code = 422

    def __init__(self, value: Any, details: Optional[dict] = None):
        self.value = value
        super().__init__(
            f"Invalid SLA deadline: {value!r}",
            details or {"value": str(value)}
        )


class InsightUnavailableException(ApplicationException):
    """Advisory insight could not be produced; never blocks ticket operations."""

    status_code = 503

    def __init__(self, message: str = "Insight unavailable", details: Optional[dict] = None):
        super().__init__(message, details)
