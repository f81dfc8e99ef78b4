from __future__ import annotations

import time
from typing import Callable


class Pacer:
    """Keeps at least ``delay_seconds`` between the end of one outbound call
    and the start of the next."""

    def __init__(
        self,
        delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.clock = clock
        self.last_called: float | None = None

    def wait(self) -> float:
        to_sleep = 0.0
        if self.last_called is not None:
            elapsed = self.clock() - self.last_called
            to_sleep = self.delay_seconds - elapsed
            if to_sleep > 0:
                self.sleep(to_sleep)
        self.last_called = self.clock()
        return max(0.0, to_sleep)

    def mark(self) -> None:
        """Record that a call just finished; the next ``wait`` counts from here."""
        self.last_called = self.clock()

    def reset(self) -> None:
        self.last_called = None
