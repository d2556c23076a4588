"""
Tests for PygameAudioOutput - load superseding, deferred play, end of track.

pygame is replaced with a mock so no audio device is needed.
"""
import os
import pytest
import requests
from pathlib import Path
from unittest.mock import patch, MagicMock

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tunebox.api.mixer import PygameAudioOutput
from tunebox.api.output import OutputListener
from tunebox.errors import UnplayableSource
from tunebox.handlers.events import EventQueue


class FakePygameError(Exception):
    pass


class Recorder(OutputListener):
    def __init__(self):
        self.events = []

    def on_time_update(self, current, duration):
        self.events.append(('time', current, duration))

    def on_metadata_loaded(self, duration):
        self.events.append(('metadata', duration))

    def on_ended(self):
        self.events.append(('ended',))

    def on_error(self, error):
        self.events.append(('error', error))


def inline(fn, *args):
    fn(*args)


def _raise(error):
    def hook():
        raise error
    return hook


class FakeDownload:
    """Streaming response that can run a hook between chunks."""

    def __init__(self, chunks, during=None):
        self.chunks = chunks
        self.during = during

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size):
        for i, chunk in enumerate(self.chunks):
            if i == 1 and self.during:
                self.during()
            yield chunk


@pytest.fixture
def fake_pygame():
    fake = MagicMock()
    fake.error = FakePygameError
    fake.mixer.get_init.return_value = True
    fake.mixer.music.get_busy.return_value = True
    fake.mixer.music.get_pos.return_value = 0
    with patch('tunebox.api.mixer.pygame', fake):
        yield fake


@pytest.fixture(autouse=True)
def tags():
    """Tag reader reporting a 123 second track."""
    with patch('tunebox.api.mixer.mutagen.File') as read_tags:
        read_tags.return_value.info.length = 123.0
        yield read_tags


@pytest.fixture
def events():
    with patch('tunebox.handlers.events.run_async', side_effect=inline):
        yield EventQueue()


@pytest.fixture
def mixer_output(fake_pygame, events, temp_dir):
    output = PygameAudioOutput(events, temp_dir / 'media', session=MagicMock())
    recorder = Recorder()
    output.subscribe(recorder)
    output.recorder = recorder
    return output


@pytest.fixture
def song(temp_dir):
    path = temp_dir / 'song.mp3'
    path.write_bytes(b'ID3')
    return path


class TestLoad:
    """Tests for loading sources."""

    def test_local_file_ready_on_drain(self, mixer_output, events, fake_pygame, song):
        mixer_output.load(str(song))
        assert mixer_output.recorder.events == []

        events.drain()

        fake_pygame.mixer.music.load.assert_called_once_with(str(song))
        assert mixer_output.recorder.events == [('metadata', 123.0)]

    def test_play_before_ready_is_deferred(self, mixer_output, events, fake_pygame, song):
        mixer_output.load(str(song))
        mixer_output.play()
        fake_pygame.mixer.music.play.assert_not_called()

        events.drain()

        fake_pygame.mixer.music.play.assert_called_once_with(start=0.0)

    def test_latest_load_wins(self, mixer_output, events, fake_pygame, song, temp_dir):
        other = temp_dir / 'other.mp3'
        other.write_bytes(b'ID3')

        mixer_output.load(str(song))
        mixer_output.load(str(other))
        events.drain()

        fake_pygame.mixer.music.load.assert_called_once_with(str(other))
        assert mixer_output.recorder.events == [('metadata', 123.0)]

    def test_missing_file(self, mixer_output, temp_dir):
        with pytest.raises(UnplayableSource):
            mixer_output.load(str(temp_dir / 'nope.mp3'))

    def test_undecodable_file(self, mixer_output, events, fake_pygame, song):
        fake_pygame.mixer.music.load.side_effect = FakePygameError('unknown format')

        mixer_output.load(str(song))
        events.drain()

        kind, error = mixer_output.recorder.events[0]
        assert kind == 'error'
        assert isinstance(error, UnplayableSource)

    def test_unknown_duration(self, mixer_output, events, tags, song):
        tags.return_value = None

        mixer_output.load(str(song))
        events.drain()

        assert mixer_output.recorder.events == [('metadata', 0.0)]


class TestRemoteSources:
    """Tests for downloading remote sources."""

    URL = 'http://music.test/uploads/songs/a.mp3'

    def test_cached_download_is_reused(self, mixer_output, events, fake_pygame):
        cached = mixer_output._cache_path(self.URL)
        cached.write_bytes(b'ID3')

        mixer_output.load(self.URL)
        events.drain()

        mixer_output.session.get.assert_not_called()
        fake_pygame.mixer.music.load.assert_called_once_with(str(cached))

    def test_download_failure_reported(self, mixer_output, events):
        mixer_output.session.get.side_effect = requests.ConnectionError('offline')

        mixer_output.load(self.URL)
        events.drain()

        kind, error = mixer_output.recorder.events[0]
        assert kind == 'error'
        assert isinstance(error, UnplayableSource)

    def test_same_url_loaded_twice_while_downloading(self, mixer_output, events, fake_pygame):
        """A reload of a track still downloading wins without an error."""
        first = FakeDownload([b'ID3', b'part-two'], during=lambda: mixer_output.load(self.URL))
        second = FakeDownload([b'ID3', b'again'])
        mixer_output.session.get.side_effect = [first, second]

        mixer_output.load(self.URL)
        events.drain()

        cached = mixer_output._cache_path(self.URL)
        assert mixer_output.recorder.events == [('metadata', 123.0)]
        fake_pygame.mixer.music.load.assert_called_once_with(str(cached))
        assert cached.exists()
        assert list(mixer_output.cache_dir.glob('*.part')) == []

    def test_interrupted_download_leaves_no_temp_file(self, mixer_output, events):
        broken = FakeDownload([b'ID3', b'rest'], during=_raise(requests.ConnectionError('reset')))
        mixer_output.session.get.return_value = broken

        mixer_output.load(self.URL)
        events.drain()

        assert mixer_output.recorder.events[0][0] == 'error'
        assert list(mixer_output.cache_dir.iterdir()) == []

    def test_cache_evicts_least_recent(self, mixer_output, events):
        mixer_output.max_cached = 2
        cache = mixer_output.cache_dir
        for name, stamp in (('old.mp3', 1000), ('recent.mp3', 2000)):
            (cache / name).write_bytes(b'ID3')
            os.utime(cache / name, (stamp, stamp))
        mixer_output.session.get.return_value = FakeDownload([b'ID3'])

        mixer_output.load(self.URL)
        events.drain()

        names = sorted(p.name for p in cache.iterdir())
        assert names == sorted(['recent.mp3', mixer_output._cache_path(self.URL).name])


class TestPlayback:
    """Tests for transport and end of track."""

    @pytest.fixture
    def started(self, mixer_output, events, song):
        mixer_output.load(str(song))
        mixer_output.play()
        events.drain()
        mixer_output.recorder.events.clear()
        return mixer_output

    def test_pause_and_resume(self, started, fake_pygame):
        started.pause()
        fake_pygame.mixer.music.pause.assert_called_once()

        started.play()
        fake_pygame.mixer.music.unpause.assert_called_once()

    def test_seek_keeps_paused(self, started, fake_pygame):
        started.pause()
        started.seek(42.0)

        fake_pygame.mixer.music.play.assert_called_with(start=42.0)
        assert fake_pygame.mixer.music.pause.call_count == 2
        assert started.position == 42.0

    def test_play_error_raises(self, mixer_output, events, fake_pygame, song):
        mixer_output.load(str(song))
        events.drain()
        fake_pygame.mixer.music.play.side_effect = FakePygameError('device busy')

        with pytest.raises(UnplayableSource):
            mixer_output.play()

    def test_end_of_track(self, started, fake_pygame):
        fake_pygame.mixer.music.get_busy.return_value = False

        started.pump()

        assert started.recorder.events == [('time', 123.0, 123.0), ('ended',)]

    def test_time_updates(self, started, fake_pygame):
        fake_pygame.mixer.music.get_pos.return_value = 1500

        started.pump()

        assert started.recorder.events == [('time', 1.5, 123.0)]

    def test_set_volume(self, mixer_output, fake_pygame):
        mixer_output.set_volume(0.4)
        fake_pygame.mixer.music.set_volume.assert_called_once_with(0.4)
