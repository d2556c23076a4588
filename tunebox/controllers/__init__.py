"""
TuneBox Controllers - Playback and volume state.
"""
from .playback import PlaybackController
from .volume import VolumeController

__all__ = ['PlaybackController', 'VolumeController']
