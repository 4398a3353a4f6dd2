"""Tagged results for callers that prefer values over exceptions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .exceptions import ReviewError


@dataclass(frozen=True)
class Result:
    """Success with a value, or failure with exactly one ReviewError."""

    ok: bool
    value: Any = None
    error: ReviewError | None = None

    @classmethod
    def success(cls, value: Any = True) -> Result:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ReviewError) -> Result:
        return cls(ok=False, error=error)

    @classmethod
    def capture(cls, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Result:
        """Run an operation, turning a ReviewError into a failed Result.

        Errors that are not ReviewErrors are bugs and propagate.
        """
        try:
            return cls.success(operation(*args, **kwargs))
        except ReviewError as e:
            return cls.failure(e)

    def unwrap(self) -> Any:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if self.error is None:
            return {"ok": True, "value": self.value}
        return {"ok": False, "error": self.error.to_dict()}
