"""
SoundPress v1 Stage Base Utilities.

Responsibilities:
- Call adapters so that every failure surfaces as the stage's error type

Invariants:
- Errors already of the stage's type pass through untouched
- Other exceptions are wrapped and chained, never swallowed
"""

from collections.abc import Callable
from typing import Any, TypeVar

from soundpress.errors import SoundPressError

T = TypeVar("T")


def call_adapter(
    error_cls: type[SoundPressError],
    action: str,
    fn: Callable[..., T],
    *args: Any,
) -> T:
    """
    Invoke an adapter method, converting foreign exceptions.

    Args:
        error_cls: Error type the calling stage reports (e.g., DecodeError)
        action: Short description for the error message (e.g., "decode")
        fn: Adapter callable
        *args: Positional arguments for fn

    Returns:
        Whatever fn returns.

    Raises:
        error_cls: If fn raised anything other than a SoundPressError.
    """
    try:
        return fn(*args)
    except SoundPressError:
        raise
    except Exception as e:
        raise error_cls(
            f"{action} adapter raised {type(e).__name__}: {e}",
            detail={"adapter": getattr(fn, "__qualname__", repr(fn)), "error": str(e)},
        ) from e
