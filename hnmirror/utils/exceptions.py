"""
HNMirror Custom Exceptions
=========================

Exception hierarchy for HNMirror with error codes, context information,
and user-friendly messages. The hierarchy mirrors the failure semantics of
an ingestion cycle:

- FetchError: feed or listing unreachable (fatal for the feed, tolerated
  per listing category)
- ParseError: feed yields no usable items (fatal)
- ValidationError: a single item is missing required fields (item skipped)
- PublishError: the sink rejected a submission (counted against the budget)
- CommentError: follow-up comment failed (logged only)
- ProcessingError: the cycle itself was aborted
"""

from typing import Optional, Dict, Any
from enum import Enum

import aiohttp


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Feed ingestion errors (F001-F099)
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_BAD_STATUS = "F005"
    FEED_EMPTY = "F006"
    FEED_MISSING_DATE = "F007"

    # Listing errors (L001-L099)
    LISTING_UNAVAILABLE = "L001"
    LISTING_ALL_FAILED = "L002"

    # Publishing errors (P001-P099)
    PUBLISH_REJECTED = "P001"
    PUBLISH_NO_ID = "P002"
    COMMENT_FAILED = "P003"
    COMMENT_NO_ID = "P004"
    ERROR_BUDGET_EXHAUSTED = "P010"
    CYCLE_CANCELLED = "P011"
    CYCLE_DEADLINE_EXCEEDED = "P012"
    CYCLE_ALREADY_RUNNING = "P013"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"

    # System errors (S001-S099)
    SYSTEM_PERMISSION_DENIED = "S002"


class HNMirrorError(Exception):
    """Base exception for all HNMirror errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize HNMirror error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _split_kwargs(kwargs: Dict[str, Any], *consumed: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in consumed}


class ConfigurationError(HNMirrorError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for HNMirrorError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_split_kwargs(kwargs, "context", "error_code", "user_message"),
        )


class FetchError(HNMirrorError):
    """A remote source (feed or listing) could not be read."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        """Initialize fetch error.

        Args:
            message: Error message
            source: URL or listing category that failed
            **kwargs: Additional arguments for HNMirrorError
        """
        context = kwargs.get("context", {})
        if source:
            context["source"] = source

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get("user_message", f"Fetch failed: {message}"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedFetchError(FetchError):
    """RSS feed fetching errors."""

    pass


class ListingFetchError(FetchError):
    """Existing-post listing errors."""

    def __init__(self, message: str, category: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.LISTING_UNAVAILABLE)
        super().__init__(message, source=category, **kwargs)


class ParseError(HNMirrorError):
    """Feed markup could not be turned into a usable feed."""

    def __init__(self, message: str, item_index: Optional[int] = None, **kwargs):
        """Initialize parse error.

        Args:
            message: Error message
            item_index: Index of the offending feed item, if any
            **kwargs: Additional arguments for HNMirrorError
        """
        context = kwargs.get("context", {})
        if item_index is not None:
            context["item_index"] = item_index

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_PARSE_ERROR),
            context=context,
            user_message=kwargs.get("user_message", f"Feed parsing failed: {message}"),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class ValidationError(HNMirrorError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for HNMirrorError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_REQUIRED_FIELD),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class PublishError(HNMirrorError):
    """The publishing sink rejected a post."""

    def __init__(self, message: str, title: Optional[str] = None, **kwargs):
        """Initialize publish error.

        Args:
            message: Error message
            title: Title of the item that failed to publish
            **kwargs: Additional arguments for HNMirrorError
        """
        context = kwargs.get("context", {})
        if title:
            context["title"] = title

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.PUBLISH_REJECTED),
            context=context,
            user_message=kwargs.get("user_message", "Post submission failed"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class CommentError(HNMirrorError):
    """Follow-up comment failed after a successful post."""

    def __init__(self, message: str, post_id: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if post_id:
            context["post_id"] = post_id

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.COMMENT_FAILED),
            context=context,
            user_message=kwargs.get("user_message", "Discussion comment failed"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class ProcessingError(HNMirrorError):
    """An ingestion cycle was aborted."""

    def __init__(self, message: str, stats: Optional[Any] = None, **kwargs):
        """Initialize processing error.

        Args:
            message: Error message
            stats: Cycle counters at the time of the abort
            **kwargs: Additional arguments for HNMirrorError
        """
        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.ERROR_BUDGET_EXHAUSTED),
            context=kwargs.get("context", {}),
            user_message=kwargs.get("user_message", "Processing cycle aborted"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )
        self.stats = stats


class CycleCancelledError(ProcessingError):
    """Cycle stopped between items by a cancellation signal or deadline."""

    pass


# Exception handling utilities


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> HNMirrorError:
    """Convert generic exceptions to HNMirror exceptions with proper logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        HNMirror exception with proper categorization
    """
    context = context or {}
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    if isinstance(exception, HNMirrorError):
        logger.error(f"Operation '{operation}' failed", extra=exception.to_dict())
        return exception

    elif isinstance(exception, (TimeoutError, aiohttp.ServerTimeoutError)):
        error = FetchError(
            message=f"Timeout during {operation}: {exception}",
            error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            context=context,
            user_message="Request timed out",
        )

    elif isinstance(exception, (ConnectionError, aiohttp.ClientError)):
        error = FetchError(
            message=f"Network error during {operation}: {exception}",
            error_code=ErrorCode.FEED_NETWORK_ERROR,
            context=context,
            user_message="Network connection failed",
        )

    elif isinstance(exception, PermissionError):
        error = HNMirrorError(
            message=f"Permission denied during {operation}: {exception}",
            error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            context=context,
            user_message="Access denied",
            recoverable=False,
        )

    else:
        error = HNMirrorError(
            message=f"Unexpected error during {operation}: {exception}",
            context=context,
            user_message="An unexpected error occurred",
            recoverable=True,
        )

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error


def is_retryable_error(exception: HNMirrorError) -> bool:
    """Check if an error is worth retrying on the next cycle."""
    if not exception.recoverable:
        return False

    retryable_codes = {
        ErrorCode.FEED_NETWORK_ERROR,
        ErrorCode.FEED_FETCH_TIMEOUT,
        ErrorCode.FEED_BAD_STATUS,
        ErrorCode.LISTING_UNAVAILABLE,
        ErrorCode.LISTING_ALL_FAILED,
        ErrorCode.ERROR_BUDGET_EXHAUSTED,
    }

    return exception.error_code in retryable_codes
