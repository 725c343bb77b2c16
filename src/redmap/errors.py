"""
Structured error types for redmap.

Every failure the mapper surfaces is a ``RedmapError`` carrying a category,
a retry hint, structured context, and the chained cause. Transport failures
from the key-value store are converted once, at the store adapter boundary,
into ``StoreError``; the engine then wraps them into operation-level errors
(``CreateFailedError``, ``GetFailedError``) whose default messages are the
short codes ``create_failed`` and ``get_failed``.

Manifesto:
    - **Typed hierarchy:** One subclass per failure the caller can act on
    - **Explicit retry semantics:** Each error knows if it's retryable
    - **Rich context:** Errors carry model name, key, and record id
    - **Error chaining:** The transport exception is always kept as cause

Architecture:
    ::

        RedmapError  (category, retryable, context, cause)
        ├── StoreError              STORAGE, retryable
        │   └── ConnectionFailedError   NETWORK
        ├── CreateFailedError       STORAGE  ("create_failed", cleanup)
        ├── GetFailedError          STORAGE  ("get_failed")
        ├── RecordNotFoundError     STORAGE
        ├── ValidationError         VALIDATION
        │   ├── UnsupportedFieldError
        │   └── InvalidKeyError
        └── ModelNotRegisteredError CONFIG

Examples:
    >>> err = GetFailedError(cause=ConnectionError("reset"))
    >>> err.message
    'get_failed'
    >>> err.with_context(model="profile", record_id="01H...").context.model
    'profile'

Tags:
    error-handling, exception-hierarchy, redis, redmap

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"           # Connection refused, DNS, socket reset
    STORAGE = "STORAGE"           # Store command failures
    VALIDATION = "VALIDATION"     # Unsupported field values, bad keys
    CONFIG = "CONFIG"             # Unregistered models, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


class CleanupStatus(str, Enum):
    """Outcome of the best-effort cleanup after a failed index append."""

    NOT_ATTEMPTED = "not_attempted"
    CLEANED_UP = "cleaned_up"
    CLEANUP_FAILED = "cleanup_failed"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        model: Registered model name the operation targeted
        key: Storage key being read or written
        record_id: Record identifier, when one was known
        metadata: Additional key-value pairs
    """

    model: str | None = None
    key: str | None = None
    record_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["model", "key", "record_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RedmapError(Exception):
    """
    Base exception for all redmap errors.

    Subclasses set ``default_category``, ``default_retryable`` and, where the
    error has a short code, ``default_message``.

    Examples:
        >>> error = RedmapError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    default_message: str = "redmap_error"

    def __init__(
        self,
        message: str | None = None,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RedmapError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreError("HSET failed").with_context(model="profile", key=key)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================


class StoreError(RedmapError):
    """A command sent to the key-value store failed."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True
    default_message = "store_error"


class ConnectionFailedError(StoreError):
    """The initial connection to the store could not be established."""

    default_category = ErrorCategory.NETWORK
    default_message = "connection_failed"


# =============================================================================
# OPERATION ERRORS
# =============================================================================


class CreateFailedError(RedmapError):
    """
    Inserting a new record failed.

    When the record hash was written but appending its id to the collection
    list failed, the engine attempts to remove the partial record before
    raising. ``cleanup`` records how that went so callers can detect an
    orphaned hash without a separate error path.
    """

    default_category = ErrorCategory.STORAGE
    default_message = "create_failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        cleanup: CleanupStatus = CleanupStatus.NOT_ATTEMPTED,
        cleanup_error: BaseException | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.cleanup = cleanup
        self.cleanup_error = cleanup_error

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["cleanup"] = self.cleanup.value
        if self.cleanup_error is not None:
            result["cleanup_error"] = str(self.cleanup_error)
        return result


class GetFailedError(RedmapError):
    """Fetching a record hash failed."""

    default_category = ErrorCategory.STORAGE
    default_message = "get_failed"


class RecordNotFoundError(RedmapError):
    """A strict lookup found no hash for the requested id."""

    default_category = ErrorCategory.STORAGE
    default_message = "not_found"


# =============================================================================
# VALIDATION / CONFIGURATION ERRORS
# =============================================================================


class ValidationError(RedmapError):
    """
    Caller supplied data the mapper cannot handle.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False
    default_message = "invalid"

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnsupportedFieldError(ValidationError):
    """A record field holds a value that has no flat string form."""


class InvalidKeyError(ValidationError):
    """A record key was requested without a record id."""


class ModelNotRegisteredError(RedmapError):
    """No model with this name is registered on the engine."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, name: str):
        self.model_name = name
        super().__init__(f"Model not registered: {name}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, RedmapError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "CleanupStatus",
    "ErrorContext",
    "RedmapError",
    "StoreError",
    "ConnectionFailedError",
    "CreateFailedError",
    "GetFailedError",
    "RecordNotFoundError",
    "ValidationError",
    "UnsupportedFieldError",
    "InvalidKeyError",
    "ModelNotRegisteredError",
    "is_retryable",
]
