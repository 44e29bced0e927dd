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
    """Credentials or session token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class UserNotFoundError(NotFoundError):
    """User or pending user not found"""
    error_code = "USER_NOT_FOUND"


class ApprovalNotFoundError(NotFoundError):
    """Approval not found"""
    error_code = "APPROVAL_NOT_FOUND"


class NotificationNotFoundError(NotFoundError):
    """Notification not found"""
    error_code = "NOTIFICATION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Duplicate unique key"""
    error_code = "CONFLICT"
    http_status = 409


class EmailInUseError(ConflictError):
    """Email already registered or awaiting approval"""
    error_code = "EMAIL_IN_USE"


class ConcurrencyError(DomainError):
    """Conditional update did not match the stored record"""
    error_code = "CONCURRENCY_CONFLICT"
    http_status = 409


# Lifecycle Errors
class StateError(DomainError):
    """Operation not valid for the current lifecycle state"""
    error_code = "INVALID_STATE"
    http_status = 409


class InvariantError(DomainError):
    """Action would violate a standing invariant"""
    error_code = "INVARIANT_VIOLATION"
    http_status = 409


class LastAdminError(InvariantError):
    """At least one approved admin must remain"""
    error_code = "LAST_ADMIN"


# Store Errors
class StoreError(DomainError):
    """Record store I/O failure"""
    error_code = "STORE_ERROR"
    http_status = 503
