"""
PodScraper Custom Exceptions
===========================

Exception hierarchy for PodScraper with error codes, context information
and user-friendly error messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"

    # Feed retrieval errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_FETCH_FAILED = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_BAD_STATUS = "F005"
    FEED_DECODE_ERROR = "F006"

    # Source list errors (S001-S099)
    SOURCE_LIST_UNREADABLE = "S001"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Output errors (O001-O099)
    OUTPUT_UNKNOWN_FORMAT = "O001"
    OUTPUT_WRITE_FAILED = "O002"

    # System errors (X001-X099)
    SYSTEM_PERMISSION_DENIED = "X001"
    SYSTEM_MEMORY_ERROR = "X002"


class PodScraperError(Exception):
    """Base exception for all PodScraper errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize PodScraper error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the run can continue past this error
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


class ConfigurationError(PodScraperError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for PodScraperError
        """
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


class FeedError(PodScraperError):
    """Feed retrieval and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for PodScraperError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class SourceListError(PodScraperError):
    """The feed list could not be read. Fatal for a run."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        """Initialize source list error.

        Args:
            message: Error message
            path: Path of the source list file
            **kwargs: Additional arguments for PodScraperError
        """
        context = kwargs.get("context", {})
        if path:
            context["path"] = path

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.SOURCE_LIST_UNREADABLE),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Cannot read feed list: {message}"
            ),
            recoverable=False,
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class ValidationError(PodScraperError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for PodScraperError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class RenderError(PodScraperError):
    """Output rendering and writing errors."""

    def __init__(self, message: str, output_path: Optional[str] = None, **kwargs):
        """Initialize render error.

        Args:
            message: Error message
            output_path: Destination file that could not be written
            **kwargs: Additional arguments for PodScraperError
        """
        context = kwargs.get("context", {})
        if output_path:
            context["output_path"] = output_path

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.OUTPUT_WRITE_FAILED),
            context=context,
            user_message=kwargs.get("user_message", f"Output failed: {message}"),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


# Exception handling utilities


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> PodScraperError:
    """Convert generic exceptions to PodScraper exceptions with proper logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        PodScraper exception with proper categorization
    """
    context = context or {}
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    if isinstance(exception, PodScraperError):
        logger.error(f"Operation '{operation}' failed", extra=exception.to_dict())
        return exception

    elif isinstance(exception, (ConnectionError, TimeoutError)):
        error = FeedError(
            message=f"Network error during {operation}: {str(exception)}",
            error_code=ErrorCode.FEED_NETWORK_ERROR,
            context=context,
            user_message="Network connection failed",
        )

    elif isinstance(exception, PermissionError):
        error = PodScraperError(
            message=f"Permission denied during {operation}: {str(exception)}",
            error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            context=context,
            user_message="Access denied",
            recoverable=False,
        )

    elif isinstance(exception, FileNotFoundError):
        error = SourceListError(
            message=f"Required file not found during {operation}: {str(exception)}",
            context=context,
            user_message="Feed list file missing",
        )

    elif isinstance(exception, MemoryError):
        error = PodScraperError(
            message=f"Memory exhausted during {operation}: {str(exception)}",
            error_code=ErrorCode.SYSTEM_MEMORY_ERROR,
            context=context,
            user_message="System resources exhausted",
        )

    else:
        error = PodScraperError(
            message=f"Unexpected error during {operation}: {str(exception)}",
            context=context,
            user_message="An unexpected error occurred",
        )

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, PodScraperError):
        return exception.user_message

    return "An unexpected error occurred."
