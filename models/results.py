"""Result values returned across component boundaries."""

import functools
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from config.exceptions import NovelIDEError
from models.enums import EntityKind, TabKind, UsageType

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a store or session operation.

    Failures carry the error message and the details of the exception that
    caused them; nothing reachable through normal use raises past this point.
    """
    ok: bool
    error: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    value: Any = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: Exception) -> "OperationResult":
        details = dict(getattr(exc, "details", {}) or {})
        message = getattr(exc, "message", None) or str(exc)
        return cls(ok=False, error=message, details=details)


@dataclass(frozen=True)
class AutocompleteItem:
    """One suggestion; ephemeral, never persisted."""
    id: str
    name: str
    kind: EntityKind
    description: Optional[str] = None


@dataclass(frozen=True)
class EntityUsage:
    """One document that references an entity."""
    document_id: str
    document_kind: TabKind
    title: str
    usage_type: UsageType


def as_result(operation: str) -> Callable:
    """Decorate a store/session method so library errors become failed results.

    The wrapped method raises ``NovelIDEError`` subclasses internally; callers
    always get an ``OperationResult``. Successful return values are wrapped
    unless they already are a result.
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> OperationResult:
                try:
                    value = await func(*args, **kwargs)
                except NovelIDEError as e:
                    logger.warning("%s failed: %s", operation, e)
                    return OperationResult.failure(e)
                return value if isinstance(value, OperationResult) else OperationResult.success(value)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                value = func(*args, **kwargs)
            except NovelIDEError as e:
                logger.warning("%s failed: %s", operation, e)
                return OperationResult.failure(e)
            return value if isinstance(value, OperationResult) else OperationResult.success(value)

        return wrapper

    return decorator
