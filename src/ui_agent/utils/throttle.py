"""
Leading+trailing throttle for hover highlighting.

Nothing here runs on another thread: a throttled trailing call is only
stored, and the owner's event loop runs it by calling tick(). DOM backends
such as Playwright's sync API must stay on the thread that created them.
"""
import time
from typing import Any, Callable, Optional, Tuple


class Throttle:
    """
    Invoke `func` at most once per `wait` seconds.

    A call arriving after the window has elapsed runs immediately. A call
    arriving inside the window replaces any pending trailing call, which
    becomes due when the window ends; tick() runs it once due. The latest
    arguments always win.

    Args:
        func: Function to throttle
        wait: Window length in seconds
        clock: Monotonic time source
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.func = func
        self.wait = wait
        self._clock = clock
        self._last_call: Optional[float] = None
        self._pending: Optional[Tuple[tuple, dict]] = None

    def __call__(self, *args, **kwargs) -> None:
        now = self._clock()
        if self._last_call is None or now - self._last_call >= self.wait:
            self._pending = None
            self._run(now, args, kwargs)
        else:
            self._pending = (args, kwargs)

    def _run(self, now: float, args, kwargs) -> None:
        self._last_call = now
        self.func(*args, **kwargs)

    @property
    def deadline(self) -> Optional[float]:
        """Clock time at which the pending call becomes due, or None."""
        if self._pending is None:
            return None
        return self._last_call + self.wait

    def tick(self) -> bool:
        """Run the pending call if its window has ended. Returns True if it ran."""
        if self._pending is None:
            return False
        now = self._clock()
        if now < self.deadline:
            return False
        args, kwargs = self._pending
        self._pending = None
        self._run(now, args, kwargs)
        return True

    def cancel(self) -> None:
        """Drop any pending trailing call."""
        self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None
