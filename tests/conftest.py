"""
Pytest configuration and shared fixtures for TuneBox tests.
"""
import random
import logging
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tunebox.api.catalog import CatalogClient
from tunebox.api.output import AudioOutput
from tunebox.controllers.playback import PlaybackController
from tunebox.errors import UnplayableSource
from tunebox.models import Track


def run_sync(fn, *args):
    """Dispatcher that runs side calls inline, logging failures like run_async."""
    try:
        fn(*args)
    except Exception as e:
        logging.getLogger(__name__).warning(f'Task {fn.__name__} failed: {e}', exc_info=True)


class RecordingOutput(AudioOutput):
    """AudioOutput that records commands and lets tests raise its events."""

    def __init__(self):
        super().__init__()
        self.commands = []
        self.fail_on = set()
        self.source = None
        self.volume = None

    def _record(self, name, *args):
        self.commands.append((name,) + args)
        if name in self.fail_on:
            raise UnplayableSource(f'{name} rejected')

    def load(self, source):
        self._record('load', source)
        self.source = source

    def play(self):
        self._record('play')

    def pause(self):
        self._record('pause')

    def seek(self, seconds):
        self._record('seek', seconds)

    def set_volume(self, volume):
        self._record('set_volume', volume)
        self.volume = volume

    def names(self):
        return [command[0] for command in self.commands]

    # Event helpers

    def finish_loading(self, duration=200.0):
        self._emit_metadata_loaded(duration)

    def report_time(self, current, duration=200.0):
        self._emit_time_update(current, duration)

    def end(self):
        self._emit_ended()

    def fail(self, error=None):
        self._emit_error(error or UnplayableSource('decode error'))


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after each test."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tracks():
    """Three tracks: A, B, C."""
    return [
        Track(id=1, title='A', artist='Artist 1', album='First', duration=180,
              source='http://music.test/uploads/songs/a.mp3'),
        Track(id=2, title='B', artist='Artist 2', album='Second', duration=200,
              source='http://music.test/uploads/songs/b.mp3'),
        Track(id=3, title='C', artist='Artist 3', duration=220,
              source='http://music.test/uploads/songs/c.mp3'),
    ]


@pytest.fixture
def output():
    return RecordingOutput()


@pytest.fixture
def catalog(tracks):
    """Catalog double with the CatalogClient interface."""
    mock = MagicMock(spec=CatalogClient)
    mock.list_tracks.return_value = list(tracks)
    mock.search.return_value = [tracks[1]]
    mock.list_favorites.return_value = [tracks[2]]
    mock.playlist_tracks.return_value = [tracks[2], tracks[0]]
    mock.record_play.return_value = True
    return mock


@pytest.fixture
def controller(output, catalog, tracks):
    """Controller with the three-track playlist loaded, nothing playing."""
    player = PlaybackController(output, catalog, dispatch=run_sync, rng=random.Random(1234))
    player.replace_playlist(tracks)
    output.commands.clear()
    return player


@pytest.fixture
def playing(controller, output):
    """Controller playing track A (index 0) with metadata loaded."""
    controller.select_track(0)
    output.finish_loading(180.0)
    output.commands.clear()
    return controller
