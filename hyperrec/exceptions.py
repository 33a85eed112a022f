"""Custom exceptions for HyperRec.

Defines specific exception types for better error handling and reporting.
The recommendation path converts all of these into fallback results; the
API layer maps them to HTTP responses where they can surface.
"""

from typing import Any, Dict, Optional


class HyperRecException(Exception):
    """Base exception for HyperRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ModelNotReadyError(HyperRecException):
    """Raised when the model is used before its first successful build."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Recommendation model is not built yet.",
            status_code=503,
            details=details,
        )


class UnknownProductError(HyperRecException):
    """Raised when a product id is absent from the catalog."""

    def __init__(self, product_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Product '{product_id}' not found.",
            status_code=404,
            details=details or {"product_id": product_id},
        )


class TransientLookupError(HyperRecException):
    """Raised when an external user or product read fails."""

    def __init__(self, resource: str, error: Exception):
        super().__init__(
            message=f"Failed to read {resource}: {str(error)}",
            status_code=502,
            details={
                "resource": resource,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class RefreshError(HyperRecException):
    """Raised when a model refresh fails to build a new generation."""

    def __init__(self, error: Exception):
        super().__init__(
            message=f"Model refresh failed: {str(error)}",
            status_code=503,
            details={
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
