"""
PodScraper Input Validators
==========================

Validation utilities for feed URLs, media addresses, titles and file paths.
"""

import re
from urllib.parse import urlparse, urlunparse
from typing import Optional
from pathlib import Path

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = {'http', 'https'}

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate and normalize a feed URL.

        Args:
            url: URL to validate

        Returns:
            Normalized URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url"
            )

        url = url.strip()

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                "URL scheme must be http or https",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            path=parsed.path or '/',
            fragment=''
        ))

    @classmethod
    def is_absolute_http_url(cls, url: str) -> bool:
        """Check that a string is an absolute http(s) URL, without normalizing it."""
        if not url or not isinstance(url, str) or url != url.strip():
            return False
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme.lower() in cls.ALLOWED_SCHEMES and bool(parsed.netloc)


class ContentValidator:
    """Text sanitization utilities."""

    MAX_TITLE_LENGTH = 1000

    @classmethod
    def sanitize_title(cls, title: Optional[str]) -> Optional[str]:
        """Clean an episode title.

        Returns None when nothing printable is left, so callers can
        substitute their own placeholder.
        """
        if not title or not isinstance(title, str):
            return None

        title = cls._sanitize_text(title)
        if not title:
            return None

        return title[:cls.MAX_TITLE_LENGTH]

    @classmethod
    def _sanitize_text(cls, text: str) -> str:
        """Sanitize text content."""
        # Remove control characters
        text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

        # Normalize whitespace
        text = re.sub(r'\s+', ' ', text)

        return text.strip()


def validate_file_path(file_path: str, must_exist: bool = False) -> Path:
    """Validate file path.

    Args:
        file_path: File path to validate
        must_exist: Whether the file must already exist

    Returns:
        Validated Path object

    Raises:
        ValidationError: If path is invalid
    """
    if not file_path:
        raise ValidationError(
            "File path is required",
            error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            field_name="file_path"
        )

    try:
        path = Path(file_path).resolve()
    except (OSError, RuntimeError) as e:
        raise ValidationError(
            f"Invalid file path: {str(e)}",
            error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
            field_name="file_path"
        )

    if must_exist and not path.is_file():
        raise ValidationError(
            f"File does not exist: {file_path}",
            error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
            field_name="file_path"
        )

    return path
