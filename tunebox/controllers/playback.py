"""
Playback Controller - Owns playback state and drives the audio output.

States:
- IDLE: nothing loaded
- LOADING: source assigned, waiting for metadata
- PLAYING / PAUSED

User commands and output events are applied one at a time on the main loop.
Output failures never escape: the controller falls back to IDLE (load failed)
or PAUSED (play failed), remembers the error in last_error and tells
subscribers. Nothing is retried automatically.
"""
import random
import logging
from typing import Optional, List, Callable, Iterable, Set

from ..api.output import AudioOutput, OutputListener
from ..api.catalog import CatalogClient
from ..models import Track, PlaybackState, PlayerStatus, RepeatMode, Direction, VolumeTier
from ..errors import PlaybackError, EmptyPlaylist, InvalidSeekTarget
from ..config import RESTART_THRESHOLD, VOLUME_STEP
from ..utils import run_async, clamp
from .volume import VolumeController

logger = logging.getLogger(__name__)

ChangeCallback = Callable[['PlaybackController'], None]
ErrorCallback = Callable[[PlaybackError], None]


class PlaybackController(OutputListener):
    """Playback state machine for one listening session."""

    def __init__(self, output: AudioOutput, catalog: CatalogClient,
                 dispatch: Callable = run_async,
                 rng: Optional[random.Random] = None,
                 restart_threshold: float = RESTART_THRESHOLD):
        """
        Args:
            output: AudioOutput to drive (this controller subscribes to it)
            catalog: CatalogClient used for play reports and favorite updates
            dispatch: fire-and-forget runner for side calls (run_async by default)
            rng: random source for shuffle
            restart_threshold: seconds after which "previous" restarts the track
        """
        self.output = output
        self.catalog = catalog
        self.state = PlaybackState()
        self.volume = VolumeController(output, self.state)
        self.playlist: List[Track] = []
        self.favorite_ids: Set[int] = set()
        self.restart_threshold = restart_threshold
        self.last_error: Optional[PlaybackError] = None

        self._dispatch = dispatch
        self._rng = rng or random.Random()
        self._status = PlayerStatus.IDLE
        self._current_track: Optional[Track] = None
        self._position = 0.0
        self._duration: Optional[float] = None
        self._progress = 0.0
        self._change_callbacks: List[ChangeCallback] = []
        self._error_callbacks: List[ErrorCallback] = []

        output.subscribe(self)
        self.volume.init()

    # ============================================
    # SUBSCRIPTIONS
    # ============================================

    def subscribe(self, on_change: Optional[ChangeCallback] = None,
                  on_error: Optional[ErrorCallback] = None):
        """Register for state-change and error notifications."""
        if on_change:
            self._change_callbacks.append(on_change)
        if on_error:
            self._error_callbacks.append(on_error)

    def close(self):
        self.output.unsubscribe(self)
        self._change_callbacks.clear()
        self._error_callbacks.clear()

    def _notify(self):
        for callback in list(self._change_callbacks):
            callback(self)

    def _report(self, error: PlaybackError):
        self.last_error = error
        logger.warning(f'Playback error: {error}')
        for callback in list(self._error_callbacks):
            callback(error)
        self._notify()

    # ============================================
    # READ-ONLY VIEW
    # ============================================

    @property
    def status(self) -> PlayerStatus:
        return self._status

    @property
    def current_track(self) -> Optional[Track]:
        return self._current_track

    @property
    def current_index(self) -> Optional[int]:
        return self.state.current_index

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def position(self) -> float:
        """Last reported elapsed seconds."""
        return self._position

    @property
    def duration(self) -> Optional[float]:
        """Last known duration in seconds, None until the output reports one."""
        return self._duration

    @property
    def progress(self) -> float:
        """Fraction of the track played, 0.0-1.0."""
        return self._progress

    @property
    def volume_tier(self) -> VolumeTier:
        return self.volume.tier

    @property
    def is_favorite(self) -> bool:
        track = self._current_track
        return track is not None and track.id in self.favorite_ids

    # ============================================
    # PLAYLIST VIEW
    # ============================================

    def replace_playlist(self, tracks: Iterable[Track]):
        """
        Swap in a new playlist view. The current index follows the current
        track into the new list, or is cleared if the track is not in it.
        """
        self.playlist = list(tracks)
        index = None
        if self._current_track is not None:
            current_id = self._current_track.id
            index = next((i for i, t in enumerate(self.playlist) if t.id == current_id), None)
        self.state.current_index = index
        logger.info(f'Playlist: {len(self.playlist)} tracks, current index {index}')
        self._notify()

    def set_favorites(self, tracks: Iterable[Track]):
        self.favorite_ids = {t.id for t in tracks}
        self._notify()

    def toggle_favorite(self, track: Optional[Track] = None) -> Optional[bool]:
        """Flip favorite status (current track by default). Returns the new status."""
        track = track or self._current_track
        if track is None:
            return None

        if track.id in self.favorite_ids:
            self.favorite_ids.discard(track.id)
            self._dispatch(self.catalog.remove_favorite, track.id)
            favorite = False
        else:
            self.favorite_ids.add(track.id)
            self._dispatch(self.catalog.add_favorite, track.id)
            favorite = True
        logger.info(f'Favorite {track.title}: {favorite}')
        self._notify()
        return favorite

    # ============================================
    # TRANSPORT
    # ============================================

    def select_track(self, index: int):
        """Load the track at index and start it (optimistic autoplay)."""
        if not self.playlist:
            self._report(EmptyPlaylist('nothing to select'))
            return
        if not 0 <= index < len(self.playlist):
            raise IndexError(f'Track index {index} out of range (0-{len(self.playlist) - 1})')

        track = self.playlist[index]
        self.state.current_index = index
        self._current_track = track
        self._position = 0.0
        self._duration = None
        self._progress = 0.0
        self._status = PlayerStatus.LOADING
        self.state.is_playing = True
        logger.info(f'Select [{index + 1}/{len(self.playlist)}]: {track.artist} - {track.title}')

        try:
            self.output.load(track.source)
        except PlaybackError as e:
            self._status = PlayerStatus.IDLE
            self.state.is_playing = False
            self._report(e)
            return

        try:
            self.output.play()
        except PlaybackError as e:
            self._status = PlayerStatus.PAUSED
            self.state.is_playing = False
            self._report(e)
            return

        self._dispatch(self._record_play, track.id)
        self._notify()

    def toggle_play_pause(self):
        if self._status is PlayerStatus.IDLE:
            return

        if self.state.is_playing:
            try:
                self.output.pause()
            except PlaybackError as e:
                self._report(e)
                return
            self.state.is_playing = False
            if self._status is not PlayerStatus.LOADING:
                self._status = PlayerStatus.PAUSED
            logger.info('Paused')
        else:
            try:
                self.output.play()
            except PlaybackError as e:
                self.state.is_playing = False
                self._status = PlayerStatus.PAUSED
                self._report(e)
                return
            self.state.is_playing = True
            if self._status is not PlayerStatus.LOADING:
                self._status = PlayerStatus.PLAYING
            logger.info('Resumed')
        self._notify()

    def advance(self, direction: Direction):
        """Move to the next/previous track (see RepeatMode/shuffle rules)."""
        count = len(self.playlist)
        if count == 0:
            self._report(EmptyPlaylist(f'cannot skip {direction.name.lower()}'))
            return

        current = self.state.current_index
        if direction is Direction.NEXT:
            if self.state.shuffle:
                index = self._rng.randrange(count)
            else:
                index = 0 if current is None else (current + 1) % count
        else:
            if (self._status is not PlayerStatus.IDLE
                    and self._position > self.restart_threshold):
                self._restart_current()
                return
            index = count - 1 if current is None else (current - 1 + count) % count

        self.select_track(index)

    def next(self):
        self.advance(Direction.NEXT)

    def previous(self):
        self.advance(Direction.PREVIOUS)

    def seek_to_fraction(self, fraction: float):
        """Scrub to a fraction of the track using the last known duration."""
        if self._status is PlayerStatus.IDLE or not self._duration:
            self._report(InvalidSeekTarget('duration not known yet'))
            return

        fraction = clamp(fraction)
        target = fraction * self._duration
        try:
            self.output.seek(target)
        except PlaybackError as e:
            self._report(e)
            return
        self._position = target
        self._progress = fraction
        self._notify()

    def _restart_current(self):
        try:
            self.output.seek(0)
        except PlaybackError as e:
            self._report(e)
            return
        self._position = 0.0
        self._progress = 0.0
        logger.info('Restarting current track')
        self._notify()

    def _record_play(self, track_id: int):
        if not self.catalog.record_play(track_id):
            logger.debug(f'Play of track {track_id} not recorded')

    # ============================================
    # MODES & VOLUME
    # ============================================

    def toggle_shuffle(self):
        self.state.shuffle = not self.state.shuffle
        logger.info(f'Shuffle: {self.state.shuffle}')
        self._notify()

    def cycle_repeat_mode(self):
        self.state.repeat_mode = self.state.repeat_mode.next()
        logger.info(f'Repeat: {self.state.repeat_mode.value}')
        self._notify()

    def set_volume(self, volume: float):
        self._apply_volume(self.volume.set, volume)

    def step_volume(self, steps: int = 1):
        self._apply_volume(self.volume.step, steps * VOLUME_STEP)

    def toggle_mute(self):
        self._apply_volume(self.volume.toggle_mute)

    def _apply_volume(self, fn, *args):
        try:
            fn(*args)
        except PlaybackError as e:
            self._report(e)
            return
        self._notify()

    # ============================================
    # OUTPUT EVENTS
    # ============================================

    def on_time_update(self, current: float, duration: float):
        self._position = max(0.0, current)
        if duration and duration > 0:
            self._duration = duration
            self._progress = clamp(current / duration)
        else:
            self._progress = 0.0
        self._notify()

    def on_metadata_loaded(self, duration: float):
        self._duration = duration if duration and duration > 0 else None
        if self._status is PlayerStatus.LOADING:
            self._status = PlayerStatus.PLAYING if self.state.is_playing else PlayerStatus.PAUSED
        logger.debug(f'Metadata loaded: duration={self._duration}')
        self._notify()

    def on_ended(self):
        if self._current_track is None:
            return

        mode = self.state.repeat_mode
        current = self.state.current_index
        count = len(self.playlist)

        if mode is RepeatMode.ONE:
            try:
                self.output.seek(0)
                self.output.play()
            except PlaybackError as e:
                self.state.is_playing = False
                self._status = PlayerStatus.PAUSED
                self._report(e)
                return
            self._position = 0.0
            self._progress = 0.0
            self.state.is_playing = True
            self._status = PlayerStatus.PLAYING
            self._notify()
            return

        if count and (mode is RepeatMode.ALL or (current is not None and current < count - 1)):
            self.advance(Direction.NEXT)
            return

        logger.info('End of playlist')
        self.state.is_playing = False
        self._status = PlayerStatus.PAUSED
        self._notify()

    def on_error(self, error: PlaybackError):
        if self._status is PlayerStatus.LOADING:
            self._status = PlayerStatus.IDLE
        elif self._status is not PlayerStatus.IDLE:
            self._status = PlayerStatus.PAUSED
        self.state.is_playing = False
        self._report(error)
