"""
BuildWatch Custom Exceptions
===========================

Exception hierarchy for BuildWatch with error codes, context information,
and operator-friendly messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Feed polling errors (F001-F099)
    FEED_FETCH_TIMEOUT = "F001"
    FEED_PARSE_ERROR = "F002"
    FEED_NETWORK_ERROR = "F003"
    FEED_HTTP_ERROR = "F004"

    # Content extraction errors (P001-P099)
    EXTRACTION_NO_LINKS = "P001"
    EXTRACTION_NO_CONTENT = "P002"
    EXTRACTION_NO_PULL_REFERENCE = "P003"
    EXTRACTION_INVALID_NUMBER = "P004"

    # GitHub enrichment errors (G001-G099)
    GITHUB_API_ERROR = "G001"
    GITHUB_NOT_FOUND = "G002"
    GITHUB_INVALID_RESPONSE = "G003"
    GITHUB_TIMEOUT = "G004"

    # Chat transport errors (T001-T099)
    CHAT_CONNECTION_FAILED = "T001"
    CHAT_SEND_FAILED = "T002"

    # System errors (S001-S099)
    SYSTEM_UNEXPECTED = "S001"


class BuildWatchError(Exception):
    """Base exception for all BuildWatch errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize BuildWatch error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: Operator-facing error message
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


class ConfigurationError(BuildWatchError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


class FeedError(BuildWatchError):
    """Feed polling and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for BuildWatchError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed polling failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class FeedFetchError(FeedError):
    """A single feed fetch failed; ends the polling loop."""

    pass


class EnrichmentError(BuildWatchError):
    """GitHub pull request lookup errors."""

    def __init__(self, message: str, pull_number: Optional[int] = None, **kwargs):
        context = kwargs.get("context", {})
        if pull_number is not None:
            context["pull_number"] = pull_number

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.GITHUB_API_ERROR),
            context=context,
            user_message=kwargs.get("user_message", "Pull request lookup failed"),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class ChatTransportError(BuildWatchError):
    """Chat transport connection and delivery errors."""

    def __init__(self, message: str, channel: Optional[str] = None, **kwargs):
        """Initialize chat transport error.

        Args:
            message: Error message
            channel: Target channel involved in the failure
            **kwargs: Additional arguments for BuildWatchError
        """
        context = kwargs.get("context", {})
        if channel:
            context["channel"] = channel

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CHAT_SEND_FAILED),
            context=context,
            user_message=kwargs.get("user_message", "Chat transport operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


# Exception handling utilities


def handle_exception(
    exception: BaseException,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> BuildWatchError:
    """Convert generic exceptions to BuildWatch exceptions with logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        BuildWatch exception with proper categorization
    """
    if isinstance(exception, BuildWatchError):
        logger.error(f"Operation '{operation}' failed: {exception}", extra=exception.to_dict())
        return exception

    context = dict(context or {})
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    error = BuildWatchError(
        message=f"Unexpected error during {operation}: {exception!r}",
        error_code=ErrorCode.SYSTEM_UNEXPECTED,
        context=context,
        user_message="An unexpected error occurred",
        recoverable=False,
    )

    logger.error(
        f"Operation '{operation}' failed: {exception!r}",
        exc_info=exception,
        extra=error.to_dict(),
    )
    return error
