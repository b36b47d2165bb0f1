"""Deferred, at-most-once attribute evaluation.

Entry attributes such as a symlink's target or a file's contents may
require template rendering or decryption. They are stored as a Lazy value
that is in exactly one of three states and moves out of Unresolved on
first access only.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Unresolved(Generic[T]):
    """Value not computed yet."""

    compute: Callable[[], T]


@dataclass(frozen=True, slots=True)
class Resolved(Generic[T]):
    """Value computed successfully."""

    value: T


@dataclass(frozen=True, slots=True)
class Failed:
    """Computation raised; the exception is kept and re-raised on every read."""

    error: Exception


class Lazy(Generic[T]):
    """A value computed on first access and cached, failures included.

    Example:
        >>> link = Lazy(lambda: render("target.tmpl"))
        >>> link.get()  # renders once
        >>> link.get()  # returns the cached value
    """

    __slots__ = ("_state",)

    def __init__(self, compute: Callable[[], T]) -> None:
        self._state: Unresolved[T] | Resolved[T] | Failed = Unresolved(compute)

    @classmethod
    def of(cls, value: T) -> "Lazy[T]":
        """Create an already-resolved Lazy holding value."""
        lazy = cls.__new__(cls)
        lazy._state = Resolved(value)
        return lazy

    @property
    def state(self) -> Unresolved[T] | Resolved[T] | Failed:
        """Current state tag."""
        return self._state

    @property
    def is_resolved(self) -> bool:
        """Check if the computation has run (successfully or not)."""
        return not isinstance(self._state, Unresolved)

    def get(self) -> T:
        """Return the value, computing it on first call.

        Raises:
            Exception: Whatever the computation raised, the same exception
                object on every call.
        """
        state = self._state
        if isinstance(state, Unresolved):
            try:
                state = Resolved(state.compute())
            except Exception as e:  # cached and re-raised below
                state = Failed(e)
            # Dropping the Unresolved tag releases the computation
            self._state = state
        if isinstance(state, Failed):
            raise state.error
        return state.value
