"""
Render Context - Bundles all state needed for rendering.
"""
from dataclasses import dataclass
from typing import Optional, List

from ..models import Track, PlayerStatus, RepeatMode, VolumeTier


@dataclass
class RenderContext:
    """All state needed to render a frame."""
    tracks: List[Track]
    selected_index: int
    current_index: Optional[int]
    current_track: Optional[Track]
    status: PlayerStatus
    is_playing: bool
    position: float
    duration: Optional[float]
    progress: float
    shuffle: bool
    repeat_mode: RepeatMode
    volume: float
    volume_tier: VolumeTier
    is_favorite: bool
    view_title: str
    user_label: Optional[str] = None
    search_query: str = ''
    search_active: bool = False
    error_message: Optional[str] = None
