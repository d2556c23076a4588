"""
Tests for VolumeController and the volume indicator tier.
"""
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tunebox.controllers.volume import VolumeController
from tunebox.errors import UnplayableSource
from tunebox.models import PlaybackState, VolumeTier


@pytest.fixture
def volume(output):
    controller = VolumeController(output, PlaybackState())
    controller.init()
    return controller


class TestVolumeTier:
    """Tests for the three-state indicator."""

    @pytest.mark.parametrize('level,tier', [
        (0.0, VolumeTier.MUTED),
        (-0.1, VolumeTier.MUTED),
        (0.01, VolumeTier.LOW),
        (0.49, VolumeTier.LOW),
        (0.5, VolumeTier.FULL),
        (1.0, VolumeTier.FULL),
    ])
    def test_for_volume(self, level, tier):
        assert VolumeTier.for_volume(level) is tier

    def test_labels(self):
        assert VolumeTier.MUTED.label == 'muted'
        assert VolumeTier.LOW.label == 'vol'
        assert VolumeTier.FULL.label == 'VOL'


class TestVolumeController:
    """Tests for setting, stepping and muting."""

    def test_init_pushes_default(self, volume, output):
        assert output.volume == 0.7
        assert volume.tier is VolumeTier.FULL

    def test_set_clamps(self, volume, output):
        assert volume.set(1.7) == 1.0
        assert volume.set(-3) == 0.0
        assert output.volume == 0.0
        assert volume.tier is VolumeTier.MUTED

    def test_step_rounds(self, volume):
        for _ in range(3):
            volume.step(0.1)
        assert volume.state.volume == 1.0

        volume.step(-0.1)
        assert volume.state.volume == 0.9

    def test_mute_and_restore(self, volume, output):
        volume.set(0.42)

        volume.toggle_mute()
        assert volume.state.volume == 0.0
        assert volume.tier is VolumeTier.MUTED

        volume.toggle_mute()
        assert volume.state.volume == 0.42
        assert output.volume == 0.42

    def test_restore_without_memory(self, volume):
        volume.set(0.0)
        assert volume.toggle_mute() == 0.7

    def test_rejected_change_leaves_state(self, volume, output):
        output.fail_on.add('set_volume')

        with pytest.raises(UnplayableSource):
            volume.set(0.1)
        assert volume.state.volume == 0.7
