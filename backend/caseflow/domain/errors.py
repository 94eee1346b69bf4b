"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Actor's role may not execute the transition"""
    error_code = "PERMISSION_DENIED"


class TenantAccessError(AuthorizationError):
    """Actor does not belong to the requested tenant"""
    error_code = "TENANT_ACCESS_DENIED"


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class WorkflowValidationError(ValidationError):
    """Workflow definition validation failed"""
    error_code = "WORKFLOW_VALIDATION_ERROR"


class ConditionSyntaxError(WorkflowValidationError):
    """Transition condition expression could not be parsed"""
    error_code = "CONDITION_SYNTAX_ERROR"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class WorkflowNotFoundError(NotFoundError):
    """Workflow definition not found (or no active version)"""
    error_code = "WORKFLOW_NOT_FOUND"


class CaseNotFoundError(NotFoundError):
    """Case not found"""
    error_code = "CASE_NOT_FOUND"


# Engine Errors
class InvalidActionError(DomainError):
    """No transition matches the action from the case's current stage"""
    error_code = "INVALID_ACTION"
    http_status = 400


class TransitionConditionError(InvalidActionError):
    """Transition matched but its condition is not met by the case data"""
    error_code = "TRANSITION_CONDITION_NOT_MET"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class AutomationError(ExternalServiceError):
    """Automation endpoint call failed"""
    error_code = "AUTOMATION_FAILURE"
