"""First-transition-wins latch for terminal states."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class TerminalLatch(Generic[T]):
    """Holds an initial state until the first terminal transition.

    Only the first call to :meth:`trip` has an effect; later calls return
    ``False`` and leave the latched state untouched. All callbacks run on the
    event loop thread, so a plain attribute is enough as the guard.
    """

    __slots__ = ("_initial", "_state")

    def __init__(self, initial: T) -> None:
        self._initial = initial
        self._state = initial

    @property
    def state(self) -> T:
        return self._state

    @property
    def is_set(self) -> bool:
        return self._state is not self._initial

    def trip(self, state: T) -> bool:
        """Latch ``state`` if no terminal state was reached yet."""
        if state is self._initial:
            raise ValueError("cannot latch the initial state")
        if self.is_set:
            return False
        self._state = state
        return True

    def __repr__(self) -> str:
        return f"TerminalLatch(state={self._state!r})"
