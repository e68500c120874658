"""
Inter-call pacing for the write-back loop.

Each worker pauses for a fixed delay after every successful edit before it
takes its next post.  The pause goes through a :class:`threading.Event` so
a cancellation signal cuts it short instead of waiting it out.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional


class Pacer:
    """
    Fixed delay between the sequential calls made by one worker.

    ``delay_ms`` is the pause in milliseconds.  When ``cancel_event`` is
    given, the pause returns as soon as the event is set.  ``sleep_fn``
    replaces the wait entirely (tests pass a recorder here).
    """

    def __init__(
        self,
        delay_ms: int = 50,
        *,
        cancel_event: Optional[threading.Event] = None,
        sleep_fn: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.delay = max(0, int(delay_ms)) / 1000.0
        self._cancel = cancel_event or threading.Event()
        self._sleep_fn = sleep_fn

    def wait(self) -> None:
        if self.delay <= 0:
            return
        if self._sleep_fn is not None:
            self._sleep_fn(self.delay)
            return
        self._cancel.wait(self.delay)
