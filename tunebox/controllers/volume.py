"""
Volume Controller - Volume level, mute memory and the indicator tier.
"""
import logging

from ..api.output import AudioOutput
from ..models import PlaybackState, VolumeTier
from ..config import DEFAULT_VOLUME
from ..utils import clamp

logger = logging.getLogger(__name__)


class VolumeController:
    """Applies volume changes to the output and mirrors them in PlaybackState."""

    def __init__(self, output: AudioOutput, state: PlaybackState):
        """
        Args:
            output: AudioOutput that receives the level
            state: PlaybackState shared with the playback controller
        """
        self.output = output
        self.state = state

    @property
    def tier(self) -> VolumeTier:
        return VolumeTier.for_volume(self.state.volume)

    def init(self):
        """Push the initial level to the output."""
        self.output.set_volume(self.state.volume)

    def set(self, volume: float) -> float:
        """Clamp to [0, 1] and apply. State only changes if the output accepted it."""
        volume = clamp(volume)
        self.output.set_volume(volume)
        self.state.volume = volume
        logger.debug(f'Volume: {volume:.2f} ({self.tier.value})')
        return volume

    def step(self, delta: float) -> float:
        return self.set(round(self.state.volume + delta, 2))

    def toggle_mute(self) -> float:
        """Mute remembering the level, or restore it (DEFAULT_VOLUME if none)."""
        if self.state.volume > 0:
            prior = self.state.volume
            self.set(0.0)
            self.state.muted_prior_volume = prior
            logger.info(f'Volume: muted (was {prior:.2f})')
        else:
            restore = self.state.muted_prior_volume
            self.set(DEFAULT_VOLUME if restore is None else restore)
            logger.info(f'Volume: unmuted ({self.state.volume:.2f})')
        return self.state.volume
