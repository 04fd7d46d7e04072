"""
Centralized Exception Hierarchy for StudyDeck.

This module defines all custom exceptions used throughout StudyDeck.
All exceptions inherit from StudyDeckError for easy catching.

Each exception includes:
- user_message: Human-readable description of what went wrong
- why_it_happened: Explanation of the root cause
- how_to_fix: Actionable steps to resolve the issue
- error_code: Unique identifier for documentation lookup (e.g., "SD-STOR-001")

Usage
-----
    from studydeck.core.exceptions import StorageError, StudyDeckError

    try:
        await store.save(items)
    except StorageError as e:
        logger.error(f"Changes were not persisted: {e}")

Exception Hierarchy
-------------------
    StudyDeckError (base)
    ├── StorageError
    │   ├── StorageUnavailableError
    │   ├── MigrationError
    │   └── LegacyQuotaExceededError
    └── ValidationError
        ├── InvalidQualityError
        ├── ItemNotFoundError
        └── ConfigValidationError

Scheduling computation has no runtime failure mode; an out-of-range
quality is a caller contract violation and raises InvalidQualityError.
"""

from typing import Any, List, Optional
import builtins
import json
import re


def sanitize_path(path: str) -> str:
    """Mask user home directories in a path.

    Args:
        path: Original file path

    Returns:
        Path with the user-specific component replaced
    """
    if not path:
        return path

    patterns = [
        (r"[A-Za-z]:\\Users\\[^\\]+", r"<user-home>"),
        (r"/(?:home|Users)/[^/]+", r"<user-home>"),
    ]

    result = path
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result)
    return result


def sanitize_message(message: str) -> str:
    """Mask file paths under user home directories in an error message.

    Args:
        message: Original error message

    Returns:
        Sanitized message
    """
    if not message:
        return message

    patterns = [
        r"[A-Za-z]:\\Users\\[^\s\"']+",
        r"/(?:home|Users)/[^\s\"']+",
    ]

    result = message
    for pattern in patterns:
        result = re.sub(pattern, lambda m: sanitize_path(m.group(0)), result)
    return result


def get_root_cause(exc: BaseException) -> BaseException:
    """Extract the root cause from a chain of exceptions.

    Follows nested __cause__ and __context__ attributes to find
    the original error that started the chain.

    Args:
        exc: Exception to analyze

    Returns:
        Root cause exception (may be the same as input)
    """
    seen = set()
    current = exc

    while current is not None:
        if id(current) in seen:
            break
        seen.add(id(current))

        # Prefer explicit cause over implicit context
        if current.__cause__ is not None:
            current = current.__cause__
        elif current.__context__ is not None:
            current = current.__context__
        else:
            break

    return current


class StudyDeckError(Exception):
    """
    Base exception for all StudyDeck errors.

    Example
    -------
        try:
            items = await store.load()
        except StudyDeckError as e:
            logger.error(f"Deck failed: {e}")
            print(f"Fix: {e.how_to_fix}")
    """

    error_code: str = "SD-ERR-000"
    why_it_happened: str = "An unexpected error occurred"
    how_to_fix: List[str] = ["Check the error message for details"]

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        why_it_happened: Optional[str] = None,
        how_to_fix: Optional[List[str]] = None,
    ) -> None:
        """Initialize StudyDeckError with helpful information.

        Args:
            message: Human-readable error message
            error_code: Unique identifier (e.g., "SD-STOR-001")
            why_it_happened: Explanation of root cause
            how_to_fix: List of actionable fix suggestions
        """
        super().__init__(sanitize_message(message))

        if error_code is not None:
            self.error_code = error_code
        if why_it_happened is not None:
            self.why_it_happened = why_it_happened
        if how_to_fix is not None:
            self.how_to_fix = how_to_fix

    @property
    def user_message(self) -> str:
        """Get the user-friendly error message."""
        return str(self)

    def get_root_cause(self) -> BaseException:
        """Get the root cause of this exception chain."""
        return get_root_cause(self)


# ============================================================================
# Storage Exceptions
# ============================================================================


class StorageError(StudyDeckError):
    """
    Raised when deck storage operations fail.

    This can occur when:
    - The database file cannot be written
    - A transaction could not be committed
    - A stored record is corrupted
    """

    error_code = "SD-STOR-000"
    why_it_happened = (
        "A storage operation failed. The deck database may be locked "
        "by another process, corrupted, or the disk may be full"
    )
    how_to_fix = [
        "Check free disk space",
        "Ensure no other studydeck process is writing the same deck",
        "Retry the operation; your last saved deck is unchanged",
    ]


class StorageUnavailableError(StorageError):
    """
    Raised when the durable storage engine cannot be opened at all.

    Loading treats this as an empty deck; saving surfaces it so the
    caller can warn that changes were not persisted.
    """

    error_code = "SD-STOR-001"
    why_it_happened = (
        "The storage engine is not available in this environment or the "
        "database location is not accessible"
    )
    how_to_fix = [
        "Check that the data directory exists and is writable",
        "Set STUDYDECK_DATA_DIR to a writable location",
        "Use the in-memory backend for a throwaway session: "
        "STUDYDECK_STORAGE_BACKEND=memory",
    ]


class MigrationError(StorageError):
    """Raised when legacy deck data cannot be migrated."""

    error_code = "SD-STOR-002"
    why_it_happened = (
        "The legacy deck file exists but could not be read as a list of cards"
    )
    how_to_fix = [
        "Inspect the legacy deck file; it was left untouched",
        "Fix or remove the file, then run 'studydeck migrate' again",
    ]


class LegacyQuotaExceededError(StorageError):
    """Raised when data written to the legacy slot exceeds its capacity."""

    error_code = "SD-STOR-003"
    why_it_happened = "The legacy deck slot has a fixed capacity ceiling"
    how_to_fix = [
        "Use the durable deck store instead of the legacy slot",
        "Raise storage.legacy.max_bytes in studydeck.yaml",
    ]


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(StudyDeckError):
    """
    Raised when validation fails.

    This can occur when:
    - Configuration is invalid
    - Input data doesn't meet requirements
    """

    error_code = "SD-VAL-000"
    why_it_happened = "Validation failed for input data or configuration"
    how_to_fix = [
        "Check the error message for specific validation failures",
        "Review the expected format or value constraints",
    ]


class InvalidQualityError(ValidationError):
    """Raised when a recall quality outside 0-5 is passed to the scheduler."""

    error_code = "SD-VAL-001"
    why_it_happened = "Recall quality must be an integer between 0 and 5"
    how_to_fix = [
        "Map review buttons to qualities: Again=1, Hard=3, Good=4, Easy=5",
        "Check scheduler.rating_qualities in studydeck.yaml",
    ]

    def __init__(self, quality: Any) -> None:
        super().__init__(f"Quality must be 0-5, got {quality!r}")
        self.quality = quality


class ItemNotFoundError(ValidationError):
    """Raised when an item id does not exist in the deck."""

    error_code = "SD-VAL-002"
    why_it_happened = "No study item with the given id exists in the deck"
    how_to_fix = [
        "List items with 'studydeck search' to find the correct id",
    ]

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Study item not found: {item_id}")
        self.item_id = item_id


class ConfigValidationError(ValidationError):
    """
    Raised when configuration validation fails.

    Attributes
    ----------
    field : str
        The configuration field that failed validation
    value : any
        The invalid value
    """

    error_code = "SD-VAL-003"
    why_it_happened = (
        "A configuration value is invalid. "
        "The studydeck.yaml file may have incorrect settings"
    )
    how_to_fix = [
        "Check studydeck.yaml for syntax errors",
        "Verify the value type matches what's expected",
    ]

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


# ============================================================================
# Error Info Lookup
# ============================================================================


# Mapping from standard exceptions to helpful error info
STANDARD_ERROR_INFO: dict[type, dict[str, Any]] = {
    builtins.FileNotFoundError: {
        "error_code": "SD-FILE-001",
        "why_it_happened": "The specified file or directory could not be found",
        "how_to_fix": [
            "Check that the file path is correct",
            "Ensure you have read permissions for the file",
        ],
    },
    builtins.PermissionError: {
        "error_code": "SD-FILE-002",
        "why_it_happened": "You don't have permission to access this file",
        "how_to_fix": [
            "Check file permissions: ls -la <file>",
            "Ensure you own the file or have read/write access",
        ],
    },
    UnicodeDecodeError: {
        "error_code": "SD-FILE-003",
        "why_it_happened": "The import file is not UTF-8 encoded text",
        "how_to_fix": [
            "Re-save the file as UTF-8 (CSV UTF-8 in spreadsheet apps)",
        ],
    },
    json.JSONDecodeError: {
        "error_code": "SD-FILE-004",
        "why_it_happened": "A file that should contain JSON could not be parsed",
        "how_to_fix": [
            "Check the file for truncation or manual edits",
        ],
    },
    ValueError: {
        "error_code": "SD-VAL-900",
        "why_it_happened": "An invalid value was provided",
        "how_to_fix": [
            "Check the error message for the expected value format",
        ],
    },
    OSError: {
        "error_code": "SD-SYS-001",
        "why_it_happened": "A system-level error occurred",
        "how_to_fix": [
            "Check disk space and permissions",
        ],
    },
}


def get_error_info(exc: BaseException) -> dict[str, Any]:
    """Get helpful error information for any exception.

    Looks up the exception type in STANDARD_ERROR_INFO or extracts
    info from StudyDeckError subclasses.

    Args:
        exc: Exception to get info for

    Returns:
        Dict with error_code, why_it_happened, how_to_fix
    """
    if isinstance(exc, StudyDeckError):
        return {
            "error_code": exc.error_code,
            "why_it_happened": exc.why_it_happened,
            "how_to_fix": exc.how_to_fix,
        }

    exc_type = type(exc)
    if exc_type in STANDARD_ERROR_INFO:
        return STANDARD_ERROR_INFO[exc_type]

    for parent_type, info in STANDARD_ERROR_INFO.items():
        if isinstance(exc, parent_type):
            return info

    return {
        "error_code": "SD-ERR-999",
        "why_it_happened": "An unexpected error occurred",
        "how_to_fix": [
            "Check the error message for details",
            "Run again with --debug for a full traceback",
        ],
    }
