"""
Search Box - Debounced search input.

Typing restarts a short timer; the search fires once the user stops typing,
so every keystroke doesn't hit the service.
"""
import time
import logging
from typing import Callable, Optional

from ..config import SEARCH_DEBOUNCE

logger = logging.getLogger(__name__)


class SearchBox:
    """Holds the query being typed and fires on_search after a pause."""

    def __init__(self, on_search: Callable[[str], None],
                 debounce: float = SEARCH_DEBOUNCE,
                 clock: Callable[[], float] = time.monotonic):
        self.on_search = on_search
        self.debounce = debounce
        self._clock = clock
        self.query = ''
        self.active = False
        self._deadline: Optional[float] = None
        self._last_sent: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def open(self):
        self.active = True

    def close(self):
        self.active = False

    def type(self, text: str):
        if not text or not text.isprintable():
            return
        self.query += text
        self._schedule()

    def backspace(self):
        if self.query:
            self.query = self.query[:-1]
            self._schedule()

    def clear(self):
        self.query = ''
        self._schedule()

    def reset(self):
        """Forget the query and the last search, e.g. after the view changed elsewhere."""
        self.query = ''
        self._last_sent = None
        self._deadline = None

    def update(self):
        """Fire the search if the debounce window has passed. Call every frame."""
        if self._deadline is None or self._clock() < self._deadline:
            return
        self._deadline = None
        if self.query == self._last_sent:
            return
        self._last_sent = self.query
        logger.debug(f'Search: {self.query!r}')
        self.on_search(self.query)

    def _schedule(self):
        self._deadline = self._clock() + self.debounce
