"""
Cancellable wait context for blocking polls.
"""

import logging
import threading
import time
from typing import Callable, Optional

from ..exceptions import WaitCancelledError

logger = logging.getLogger(__name__)


class WaitContext:
    """
    Cancellation signal for a blocking wait.

    A context is cancelled either explicitly through cancel() or when its
    optional deadline passes. Sleeping on a cancelled context raises
    WaitCancelledError straight away.
    """

    def __init__(self, deadline: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the context.

        Args:
            deadline: Absolute time (on ``clock``) after which the context is done
            clock: Monotonic clock used for deadlines and elapsed time
        """
        self.deadline = deadline
        self.clock = clock
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float,
                     clock: Callable[[], float] = time.monotonic) -> "WaitContext":
        """Create a context whose deadline is ``seconds`` from now on ``clock``."""
        return cls(deadline=clock() + seconds, clock=clock)

    def cancel(self) -> None:
        """Signal every wait on this context to stop."""
        logger.debug("Wait context cancelled")
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set() or self._deadline_passed()

    def now(self) -> float:
        return self.clock()

    def check(self) -> None:
        """Raise WaitCancelledError if the context is done."""
        if self._cancelled.is_set():
            raise WaitCancelledError("wait cancelled by caller")
        if self._deadline_passed():
            raise WaitCancelledError("wait context deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """
        Block for ``seconds`` or until the context is done.

        Raises:
            WaitCancelledError: If the context was cancelled or its deadline passed
        """
        self.check()
        if seconds <= 0:
            return

        if self.deadline is not None:
            seconds = min(seconds, max(self.deadline - self.clock(), 0))

        self._cancelled.wait(seconds)
        self.check()

    def _deadline_passed(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline
