"""Decorators shared across FinDash."""

import functools
from typing import Any, TypeVar

T = TypeVar("T")


def singleton(cls: type[T]) -> type[T]:
    """
    Make ``cls()`` return one shared instance per process.

    ``Settings`` uses this so every router and service reads the same policy
    store. Tests point the shared instance at a temporary database by
    assigning its ``_db``, or drop it with ``Settings._clear()``.

    Not thread-safe; only the event loop thread constructs these.
    """
    instances: dict[type[Any], Any] = {}

    @functools.wraps(cls)
    def get_instance(*args: Any, **kwargs: Any) -> T:
        if cls not in instances:
            instances[cls] = cls(*args, **kwargs)
        return instances[cls]

    get_instance._instances = instances  # type: ignore
    get_instance._clear = instances.clear  # type: ignore

    return get_instance  # type: ignore
