"""Post Relation Error Handling Utilities

Exception classes for relation maintenance and content store access.
"""

from typing import Optional, Dict, Any


class RelationError(Exception):
    """Base exception for all relation-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize relation error.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StaleReferenceError(RelationError):
    """Raised when a stored ID no longer resolves to an existing item.

    The writer and readers never let this escape; it is used to label
    skipped operations in write results and audit reports.
    """

    pass


class InvalidTargetError(RelationError):
    """Raised when a back-link would be written to an empty target."""

    pass


class PartialWriteFailure(RelationError):
    """Raised when one of the metadata writes of a relation update fails.

    Earlier writes of the same update may already be applied.
    """

    pass


class StoreError(RelationError):
    """Raised when the content store rejects an operation."""

    pass


class TransientStoreError(StoreError):
    """Store failure that may succeed when retried (rate limits, 5xx, network)."""

    pass


class ValidationError(StoreError):
    """Raised when request data fails validation (HTTP 400)."""

    pass


class AuthenticationError(StoreError):
    """Raised when authentication fails or the credentials are invalid.

    Corresponds to HTTP 401 Unauthorized responses.
    """

    pass


class PermissionError(StoreError):
    """Raised when the user may not read or edit an item (HTTP 403)."""

    pass


class NotFoundError(StoreError):
    """Raised when requested item or route doesn't exist.

    Corresponds to HTTP 404 Not Found responses.
    """

    pass


class RateLimitError(TransientStoreError):
    """Raised when the host answers HTTP 429 Too Many Requests.

    Should rarely occur due to client-side rate limiting.
    """

    pass


class ServerError(TransientStoreError):
    """Raised when the host returns an error.

    Corresponds to HTTP 5xx responses (500, 502, 503, 504).
    """

    pass


def handle_http_error(status_code: int, response_text: str) -> RelationError:
    """Convert HTTP error response to appropriate exception.

    Args:
        status_code: HTTP status code
        response_text: Response body text

    Returns:
        Appropriate StoreError subclass instance
    """
    error_map = {
        400: ValidationError,
        401: AuthenticationError,
        403: PermissionError,
        404: NotFoundError,
        429: RateLimitError,
    }

    if status_code in error_map:
        error_class = error_map[status_code]
        return error_class(
            f"HTTP {status_code}: {response_text}",
            details={"status_code": status_code, "response": response_text}
        )

    if 500 <= status_code < 600:
        return ServerError(
            f"HTTP {status_code}: Server error - {response_text}",
            details={"status_code": status_code, "response": response_text}
        )

    return StoreError(
        f"HTTP {status_code}: Unexpected error - {response_text}",
        details={"status_code": status_code, "response": response_text}
    )
