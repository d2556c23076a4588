"""
Audio Output - The media sink capability the playback controller drives.

A backend implements load/play/pause/seek/set_volume and raises lifecycle
events to its subscribers. Events are always raised from pump() on the main
loop, one at a time, in the order they happened.
"""
import time
import logging
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Iterable

from ..errors import PlaybackError, UnplayableSource
from ..config import TIME_UPDATE_INTERVAL

logger = logging.getLogger(__name__)


class OutputListener:
    """Receives AudioOutput lifecycle events. Override what you need."""

    def on_time_update(self, current: float, duration: float):
        pass

    def on_metadata_loaded(self, duration: float):
        pass

    def on_ended(self):
        pass

    def on_error(self, error: PlaybackError):
        pass


class AudioOutput(ABC):
    """A single streamable media sink."""

    def __init__(self):
        self._listeners: List[OutputListener] = []

    def subscribe(self, listener: OutputListener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: OutputListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @abstractmethod
    def load(self, source: str):
        """Assign a new source. Supersedes any load still in progress."""

    @abstractmethod
    def play(self):
        """Start or resume playback (deferred until the source is ready)."""

    @abstractmethod
    def pause(self):
        pass

    @abstractmethod
    def seek(self, seconds: float):
        pass

    @abstractmethod
    def set_volume(self, volume: float):
        """Set volume in [0, 1]."""

    def pump(self):
        """Do periodic work and raise pending events. Call once per frame."""

    def close(self):
        """Release backend resources."""

    # Event fan-out (copy the list: a handler may subscribe/unsubscribe)

    def _emit_time_update(self, current: float, duration: float):
        for listener in list(self._listeners):
            listener.on_time_update(current, duration)

    def _emit_metadata_loaded(self, duration: float):
        for listener in list(self._listeners):
            listener.on_metadata_loaded(duration)

    def _emit_ended(self):
        for listener in list(self._listeners):
            listener.on_ended()

    def _emit_error(self, error: PlaybackError):
        logger.warning(f'Output error: {error}')
        for listener in list(self._listeners):
            listener.on_error(error)


class NullAudioOutput(AudioOutput):
    """
    Silent output with a simulated clock (mock mode and tests).

    Sources listed in `unplayable` are rejected on load, like a missing file.
    """

    def __init__(self, durations: Optional[Dict[str, float]] = None,
                 default_duration: float = 30.0, unplayable: Iterable[str] = ()):
        super().__init__()
        self.source: Optional[str] = None
        self.position = 0.0
        self.duration = 0.0
        self.playing = False
        self.volume = 1.0
        self.unplayable = set(unplayable)
        self._durations = dict(durations or {})
        self._default_duration = default_duration
        self._metadata_pending = False
        self._since_update = 0.0
        self._last_pump: Optional[float] = None

    def load(self, source: str):
        if not source or source in self.unplayable:
            raise UnplayableSource(source or 'empty source')
        self.source = source
        self.position = 0.0
        self.duration = self._durations.get(source, self._default_duration)
        self.playing = False
        self._metadata_pending = True
        logger.debug(f'Mock load: {source} ({self.duration:.0f}s)')

    def play(self):
        if self.source is None:
            raise UnplayableSource('nothing loaded')
        if self.position >= self.duration:
            self.position = 0.0  # Finished: start over
        self.playing = True

    def pause(self):
        self.playing = False

    def seek(self, seconds: float):
        self.position = max(0.0, min(self.duration, seconds))
        self._since_update = TIME_UPDATE_INTERVAL  # Report the jump on next tick

    def set_volume(self, volume: float):
        self.volume = volume

    def pump(self):
        now = time.monotonic()
        dt = 0.0 if self._last_pump is None else now - self._last_pump
        self._last_pump = now
        self.tick(dt)

    def tick(self, dt: float):
        """Advance the simulated clock by dt seconds."""
        if self._metadata_pending:
            self._metadata_pending = False
            self._emit_metadata_loaded(self.duration)

        if not self.playing:
            return

        self.position = min(self.duration, self.position + dt)
        self._since_update += dt
        if self._since_update >= TIME_UPDATE_INTERVAL:
            self._since_update = 0.0
            self._emit_time_update(self.position, self.duration)

        if self.position >= self.duration:
            self.playing = False
            self._emit_ended()
