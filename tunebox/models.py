"""
TuneBox Data Models - Core data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urljoin

from .config import DEFAULT_VOLUME, VOLUME_LABELS, VOLUME_LOW_THRESHOLD


def _resolve(base_url: Optional[str], path: Optional[str]) -> Optional[str]:
    """Resolve a server-relative path (e.g. /uploads/songs/x.mp3) to a URL."""
    if not path:
        return None
    if not base_url or path.startswith(('http://', 'https://')):
        return path
    return urljoin(base_url.rstrip('/') + '/', path.lstrip('/'))


@dataclass(frozen=True)
class Track:
    """A single playable song from the catalog."""
    id: int
    title: str
    artist: str
    source: str
    duration: float = 0.0
    album: Optional[str] = None
    artwork: Optional[str] = None
    genre: Optional[str] = None
    play_count: int = 0

    @classmethod
    def from_api(cls, data: dict, base_url: Optional[str] = None) -> 'Track':
        """Build a Track from the service's song JSON."""
        try:
            duration = max(0.0, float(data.get('duration') or 0))
        except (TypeError, ValueError):
            duration = 0.0
        return cls(
            id=data['id'],
            title=data.get('title') or 'Unknown title',
            artist=data.get('artist') or 'Unknown artist',
            source=_resolve(base_url, data.get('file_path')) or '',
            duration=duration,
            album=data.get('album') or None,
            artwork=_resolve(base_url, data.get('artwork_path')),
            genre=data.get('genre') or None,
            play_count=int(data.get('play_count') or 0),
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive match on title, artist, album or genre."""
        needle = query.strip().lower()
        fields = (self.title, self.artist, self.album, self.genre)
        return any(needle in f.lower() for f in fields if f)


@dataclass
class PlaylistSummary:
    """A user playlist as listed by the service (tracks fetched separately)."""
    id: int
    name: str
    description: Optional[str] = None
    is_public: bool = False


@dataclass
class User:
    """The signed-in account."""
    id: int
    username: str
    role: str = 'listener'
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.username


class RepeatMode(Enum):
    OFF = 'off'
    ALL = 'all'
    ONE = 'one'

    def next(self) -> 'RepeatMode':
        """Cycle OFF -> ALL -> ONE -> OFF."""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


class PlayerStatus(Enum):
    IDLE = 'idle'        # No track loaded
    LOADING = 'loading'  # Source assigned, not yet playable
    PLAYING = 'playing'
    PAUSED = 'paused'


class Direction(Enum):
    NEXT = 1
    PREVIOUS = -1


class VolumeTier(Enum):
    MUTED = 'muted'
    LOW = 'low'
    FULL = 'full'

    @classmethod
    def for_volume(cls, volume: float) -> 'VolumeTier':
        if volume <= 0:
            return cls.MUTED
        if volume < VOLUME_LOW_THRESHOLD:
            return cls.LOW
        return cls.FULL

    @property
    def label(self) -> str:
        """Indicator text shown next to the volume percentage."""
        return VOLUME_LABELS[self.value]


@dataclass
class PlaybackState:
    """
    Session-local playback state. Owned and mutated only by PlaybackController.
    """
    current_index: Optional[int] = None
    is_playing: bool = False
    shuffle: bool = False
    repeat_mode: RepeatMode = RepeatMode.OFF
    volume: float = DEFAULT_VOLUME
    muted_prior_volume: Optional[float] = None
