"""
Event Queue - Hands work from background threads to the main loop.

Everything that touches playback state runs on the main loop. Background
threads (HTTP requests, media downloads) post callables here; the loop drains
them once per frame, in the order they were posted.
"""
import queue
import logging
from typing import Callable, Optional

from ..utils import run_async

logger = logging.getLogger(__name__)


class EventQueue:
    """Thread-safe FIFO of callables executed on the main loop."""

    def __init__(self):
        self._queue: queue.Queue = queue.Queue()

    def post(self, fn: Callable, *args):
        """Schedule fn(*args) on the main loop. Safe from any thread."""
        self._queue.put((fn, args))

    def submit(self, fn: Callable, *args,
               on_done: Optional[Callable] = None,
               on_error: Optional[Callable[[Exception], None]] = None):
        """
        Run fn(*args) in a background thread and deliver its outcome on the
        main loop: on_done(result) or on_error(exception).
        """
        def task():
            try:
                result = fn(*args)
            except Exception as e:
                if on_error is None:
                    raise
                self.post(on_error, e)
                return
            if on_done is not None:
                self.post(on_done, result)

        task.__name__ = getattr(fn, '__name__', 'task')
        run_async(task)

    def drain(self, limit: Optional[int] = None) -> int:
        """Run queued callables. Returns how many ran."""
        processed = 0
        while limit is None or processed < limit:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                fn(*args)
            except Exception as e:
                logger.error(f'Event handler {getattr(fn, "__name__", fn)} failed: {e}', exc_info=True)
            processed += 1
        return processed

    def __len__(self) -> int:
        return self._queue.qsize()
