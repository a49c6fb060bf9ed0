"""Framework-free building blocks shared by every context."""

from helpdesk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ConflictException,
    ResourceNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    LLMException,
    UnauthenticatedException,
    ForbiddenException,
    InvalidAssigneeException,
    NoDeadlineException,
    InvalidDeadlineException,
    InsightUnavailableException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ConflictException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "LLMException",
    "UnauthenticatedException",
    "ForbiddenException",
    "InvalidAssigneeException",
    "NoDeadlineException",
    "InvalidDeadlineException",
    "InsightUnavailableException",
]
