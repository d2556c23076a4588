"""
Pygame Audio Output - pygame.mixer.music backend.

Remote sources are downloaded into a local cache first (the mixer only
streams from files); the cache keeps the most recently played files.
Durations are read from the file tags with mutagen. Each load() bumps a
generation counter; downloads that finish for an older generation are
dropped, so the latest load always wins.
"""
import time
import hashlib
import logging
from functools import partial
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

import mutagen
import pygame
import requests

from .output import AudioOutput
from ..errors import UnplayableSource
from ..handlers.events import EventQueue
from ..config import DOWNLOAD_TIMEOUT, TIME_UPDATE_INTERVAL, MEDIA_CACHE_MAX_FILES

logger = logging.getLogger(__name__)


class PygameAudioOutput(AudioOutput):
    """Plays one track at a time through pygame.mixer.music."""

    def __init__(self, events: EventQueue, cache_dir: Path,
                 session: Optional[requests.Session] = None,
                 max_cached: int = MEDIA_CACHE_MAX_FILES):
        super().__init__()
        self.events = events
        self.cache_dir = cache_dir
        self.max_cached = max_cached
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.session = session or requests.Session()

        self._generation = 0
        self._ready = False      # Current source is loaded into the mixer
        self._started = False    # music.play() issued for the current source
        self._playing = False
        self._want_play = False  # play() arrived before the source was ready
        self._offset = 0.0       # Track position where get_pos() restarted from 0
        self._duration = 0.0
        self._last_update = 0.0

        if not pygame.mixer.get_init():
            pygame.mixer.init()

    # ============================================
    # COMMANDS
    # ============================================

    def load(self, source: str):
        if not source:
            raise UnplayableSource('empty source')

        self._generation += 1
        generation = self._generation
        self._reset()
        pygame.mixer.music.stop()

        if urlparse(source).scheme in ('http', 'https'):
            logger.info(f'Fetching {source}')
        elif not Path(source).is_file():
            raise UnplayableSource(f'file not found: {source}')

        # Download and tag reading run in the background; activation happens on a drain
        self.events.submit(
            self._prepare, source, generation,
            on_done=partial(self._on_ready, generation),
            on_error=partial(self._on_fetch_failed, generation),
        )

    def play(self):
        self._want_play = True
        if not self._ready or self._playing:
            return
        try:
            if self._started:
                pygame.mixer.music.unpause()
            else:
                self._start(self._offset)
        except pygame.error as e:
            self._want_play = False
            raise UnplayableSource(str(e)) from e
        self._playing = True

    def pause(self):
        self._want_play = False
        if self._playing:
            pygame.mixer.music.pause()
            self._playing = False

    def seek(self, seconds: float):
        if not self._ready:
            return
        seconds = max(0.0, seconds)
        was_playing = self._playing
        try:
            self._start(seconds)
            if not was_playing:
                pygame.mixer.music.pause()
                self._playing = False
        except pygame.error as e:
            raise UnplayableSource(f'seek failed: {e}') from e
        self._last_update = 0.0

    def set_volume(self, volume: float):
        pygame.mixer.music.set_volume(volume)

    def close(self):
        self._generation += 1
        self._reset()
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
            pygame.mixer.music.unload()

    # ============================================
    # MAIN LOOP
    # ============================================

    @property
    def position(self) -> float:
        """Elapsed seconds in the current track."""
        if not self._started:
            return self._offset
        return self._offset + max(0, pygame.mixer.music.get_pos()) / 1000

    def pump(self):
        if not self._playing:
            return

        if not pygame.mixer.music.get_busy():
            logger.debug('Track ended')
            self._playing = False
            self._started = False
            self._offset = 0.0
            self._emit_time_update(self._duration, self._duration)
            self._emit_ended()
            return

        now = time.monotonic()
        if now - self._last_update >= TIME_UPDATE_INTERVAL:
            self._last_update = now
            self._emit_time_update(self.position, self._duration)

    # ============================================
    # INTERNALS
    # ============================================

    def _reset(self):
        self._ready = False
        self._started = False
        self._playing = False
        self._want_play = False
        self._offset = 0.0
        self._duration = 0.0

    def _start(self, position: float):
        pygame.mixer.music.play(start=position)
        self._offset = position
        self._started = True
        self._playing = True

    def _cache_path(self, url: str) -> Path:
        digest = hashlib.sha1(url.encode('utf-8')).hexdigest()[:16]
        suffix = Path(urlparse(url).path).suffix or '.audio'
        return self.cache_dir / f'{digest}{suffix}'

    def _prepare(self, source: str, generation: int) -> Tuple[Path, float]:
        """Resolve source to a local file and read its duration (background thread)."""
        if urlparse(source).scheme in ('http', 'https'):
            path = self._fetch(source, generation)
        else:
            path = Path(source)
        return path, self._probe_duration(path)

    def _fetch(self, url: str, generation: int) -> Path:
        """Download url into the cache. Each generation writes its own temp file."""
        path = self._cache_path(url)
        if path.exists():
            logger.debug(f'Cache hit: {path.name}')
            path.touch()
            return path

        temp_path = path.with_name(f'{path.name}.{generation}.part')
        try:
            with self.session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as resp:
                resp.raise_for_status()
                with open(temp_path, 'wb') as f:
                    for chunk in resp.iter_content(chunk_size=64 * 1024):
                        f.write(chunk)
            temp_path.replace(path)
        finally:
            temp_path.unlink(missing_ok=True)
        logger.info(f'Downloaded {url} -> {path.name}')
        self._evict_cache(keep=path)
        return path

    def _evict_cache(self, keep: Path):
        """Remove the least recently used downloads beyond max_cached."""
        files = [p for p in self.cache_dir.iterdir()
                 if p.is_file() and p.suffix != '.part' and p != keep]
        excess = len(files) + 1 - self.max_cached
        if excess <= 0:
            return

        files.sort(key=lambda p: p.stat().st_mtime)
        for old in files[:excess]:
            try:
                old.unlink()
                logger.debug(f'Evicted {old.name}')
            except OSError as e:
                logger.warning(f'Could not evict {old.name}: {e}')

    def _on_fetch_failed(self, generation: int, error: Exception):
        if generation != self._generation:
            return
        self._emit_error(UnplayableSource(str(error)))

    def _on_ready(self, generation: int, prepared: Tuple[Path, float]):
        path, duration = prepared
        if generation != self._generation:
            logger.debug(f'Dropping superseded load: {path.name}')
            return

        try:
            pygame.mixer.music.load(str(path))
        except pygame.error as e:
            self._emit_error(UnplayableSource(f'{path.name}: {e}'))
            return

        self._ready = True
        self._duration = duration
        self._emit_metadata_loaded(self._duration)

        if self._want_play:
            try:
                self._start(0.0)
            except pygame.error as e:
                self._want_play = False
                self._emit_error(UnplayableSource(str(e)))

    @staticmethod
    def _probe_duration(path: Path) -> float:
        """Track length in seconds from the file's tags, 0.0 when unknown."""
        try:
            audio = mutagen.File(str(path))
        except (mutagen.MutagenError, OSError) as e:
            logger.debug(f'Could not read duration of {path.name}: {e}')
            return 0.0
        if audio is None or getattr(audio, 'info', None) is None:
            return 0.0
        return float(getattr(audio.info, 'length', 0.0) or 0.0)
