"""
Tests for ViewLoader - background view loading, stale results, favorites.
"""
import pytest
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tunebox.errors import CatalogError
from tunebox.handlers.events import EventQueue
from tunebox.handlers.views import ViewLoader
from tunebox.models import PlaylistSummary


def inline(fn, *args):
    fn(*args)


@pytest.fixture
def events():
    with patch('tunebox.handlers.events.run_async', side_effect=inline):
        yield EventQueue()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def shown():
    return []


@pytest.fixture
def views(events, catalog, controller, messages, shown):
    return ViewLoader(events, catalog, controller,
                      on_shown=lambda: shown.append(True), on_error=messages.append)


class TestViews:
    """Tests for switching views."""

    def test_results_arrive_on_drain(self, views, events, controller, catalog, tracks):
        """The catalog is queried off the main loop; the playlist changes on drain."""
        controller.replace_playlist([])

        views.show_all()
        assert controller.playlist == []

        events.drain()
        catalog.list_tracks.assert_called_once_with()
        assert controller.playlist == tracks
        assert views.title == 'All songs'

    def test_search(self, views, events, controller, catalog, tracks, shown):
        views.search('  b ')
        events.drain()

        catalog.search.assert_called_once_with('b')
        assert controller.playlist == [tracks[1]]
        assert views.title == 'Search: b'
        assert shown == [True]

    def test_blank_search_shows_all(self, views, events, catalog):
        views.search('   ')
        events.drain()

        catalog.search.assert_not_called()
        catalog.list_tracks.assert_called_once_with()

    def test_stale_result_dropped(self, views, events, controller, tracks, shown):
        """Only the newest request may replace the playlist."""
        views.search('b')
        views.show_favorites()
        events.drain()

        assert controller.playlist == [tracks[2]]
        assert views.title == 'Favorites'
        assert shown == [True]

    def test_favorites_refresh_marks(self, views, events, controller, tracks):
        views.show_favorites()
        events.drain()

        assert controller.favorite_ids == {tracks[2].id}

    def test_refresh_favorites_keeps_view(self, views, events, controller, tracks):
        views.refresh_favorites()
        events.drain()

        assert controller.favorite_ids == {tracks[2].id}
        assert controller.playlist == tracks

    def test_playlists_cycle(self, views, events, controller, catalog, tracks):
        catalog.list_playlists.return_value = [
            PlaylistSummary(id=4, name='Morning'),
            PlaylistSummary(id=9, name='Evening'),
        ]

        views.show_next_playlist()
        events.drain()
        assert views.title == 'Playlist: Morning'
        catalog.playlist_tracks.assert_called_with(4)
        assert controller.playlist == [tracks[2], tracks[0]]

        views.show_next_playlist()
        events.drain()
        assert views.title == 'Playlist: Evening'
        catalog.playlist_tracks.assert_called_with(9)
        catalog.list_playlists.assert_called_once_with()

    def test_no_playlists(self, views, events, catalog, messages):
        catalog.list_playlists.return_value = []

        views.show_next_playlist()
        events.drain()

        assert messages == ['No playlists yet']

    def test_service_failure_keeps_view(self, views, events, controller, catalog, tracks, messages):
        catalog.search.side_effect = CatalogError('GET /api/songs/search/x returned 500')

        views.search('x')
        events.drain()

        assert controller.playlist == tracks
        assert messages == ['Could not reach the music service']
