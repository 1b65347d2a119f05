"""A cache cell that computes its value at most once."""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


class LazyCell(Generic[T]):
    """Hold a value that is computed on first access.

    Concurrent first callers wait on a lock for the single computation and
    then share its result; nobody observes a half-built value. If the
    factory raises, the cell stays empty and the next call tries again.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        """Initialize the cell with the function that computes its value."""
        self._factory = factory
        self._lock = Lock()
        self._value: object = _UNSET

    @property
    def initialized(self) -> bool:
        """Whether the value has been computed."""
        return self._value is not _UNSET

    def get(self) -> T:
        """Return the value, computing it if this is the first access."""
        value = self._value
        if value is _UNSET:
            with self._lock:
                value = self._value
                if value is _UNSET:
                    logger.debug("Computing lazy value with %r", self._factory)
                    value = self._factory()
                    self._value = value
        return value  # type: ignore[return-value]
