"""
Custom Exceptions for QDesk

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any


class QDeskError(Exception):
    """Base exception for all QDesk errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(QDeskError):
    """Raised when a required field is missing or empty."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if field:
            details["field"] = field
        super().__init__(message, details, original_error)


class UnauthorizedError(QDeskError):
    """Raised when a bearer credential is missing or cannot be resolved."""

    def __init__(
        self,
        message: str = "unauthorized",
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error=original_error)


class NotFoundError(QDeskError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if resource:
            details["resource"] = resource
        if resource_id:
            details["id"] = resource_id
        super().__init__(message, details, original_error)


class DeliveryFailure(QDeskError):
    """
    Raised when a broadcast recipient cannot accept a frame.

    Swallowed by the broadcast router; never reaches an API caller.
    """

    def __init__(
        self,
        message: str,
        thread_id: Optional[str] = None,
        user_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if thread_id:
            details["thread_id"] = thread_id
        if user_id:
            details["user_id"] = user_id
        super().__init__(message, details, original_error)

