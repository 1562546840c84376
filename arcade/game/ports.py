from __future__ import annotations

from typing import Callable, Hashable, Protocol

TimerCallback = Callable[[], None]


class Timer(Protocol):
    """Fires a callback once after a delay unless cancelled first."""

    def schedule(self, delay_ms: int, callback: TimerCallback) -> Hashable:
        ...

    def cancel(self, handle: Hashable) -> None:
        ...

    def cancel_all(self) -> None:
        ...


class HighScoreStore(Protocol):
    """Owns the single persisted high score. ``read`` returns 0 when never written."""

    def read(self) -> int:
        ...

    def write(self, score: int) -> None:
        ...
