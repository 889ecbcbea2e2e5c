"""Single-slot debounced task."""
import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Runs a callback once its inputs have been quiet for a delay.

    Holds at most one pending task. Scheduling again replaces the pending
    task instead of stacking another one.
    """

    def __init__(self, delay_seconds: float, scheduler: Any = None):
        """
        Initialize the debouncer.

        Args:
            delay_seconds: Quiet period before the callback runs
            scheduler: Object with asyncio's ``call_later(delay, callback, *args)``
                returning a handle with ``cancel()``. Defaults to the running
                asyncio event loop.
        """
        self.delay_seconds = delay_seconds
        self._scheduler = scheduler
        self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        """
        Run callback(*args) after the delay, replacing any pending call.

        A delay of zero or less runs the callback immediately.

        Raises:
            RuntimeError: If there is a delay but no scheduler was given
                and no asyncio event loop is running
        """
        self.cancel()

        if self.delay_seconds <= 0:
            callback(*args)
            return

        scheduler = self._scheduler
        if scheduler is None:
            try:
                scheduler = asyncio.get_running_loop()
            except RuntimeError:
                logger.error(
                    f"Cannot debounce by {self.delay_seconds}s: no scheduler and no running event loop"
                )
                raise RuntimeError(
                    "Debouncer needs a scheduler or a running asyncio event loop; "
                    "pass scheduler= or use a delay of 0"
                ) from None

        self._handle = scheduler.call_later(self.delay_seconds, self._fire, callback, args)

    def cancel(self) -> bool:
        """
        Cancel the pending call.

        Returns:
            True if a call was pending
        """
        handle: Optional[Any] = self._handle
        if handle is None:
            return False
        self._handle = None
        handle.cancel()
        return True

    def _fire(self, callback: Callable[..., Any], args: tuple) -> None:
        self._handle = None
        callback(*args)
