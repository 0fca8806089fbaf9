from typing import Any, Iterable, TypeVar

T = TypeVar("T")


def ifnone(val: T | None, default: T) -> T:
    """``val`` unless it is None, in which case ``default``. Falsy values such as 0 or "" are kept."""
    return default if val is None else val


def first_not_none(vals: Iterable, default: Any = None):
    """The first item of ``vals`` that is not None, or ``default`` when there is none."""
    for item in vals:
        if item is not None:
            return item
    return default
