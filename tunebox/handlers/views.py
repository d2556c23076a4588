"""
View Loader - Fetches track lists in the background and shows the newest one.

All songs, search results, favorites and playlists come from the catalog
service. Requests run off the main loop; when a result arrives it replaces
the player's playlist, unless a newer request was made in the meantime.
"""
import logging
from functools import partial
from typing import Callable, List, Optional

from ..api.catalog import CatalogClient
from ..controllers.playback import PlaybackController
from ..models import PlaylistSummary, Track
from .events import EventQueue

logger = logging.getLogger(__name__)


class ViewLoader:
    """Switches the playlist between catalog views."""

    def __init__(self, events: EventQueue, catalog: CatalogClient, player: PlaybackController,
                 on_shown: Optional[Callable[[], None]] = None,
                 on_error: Optional[Callable[[str], None]] = None):
        """
        Args:
            events: EventQueue that delivers results on the main loop
            catalog: CatalogClient to fetch from
            player: PlaybackController whose playlist is replaced
            on_shown: called after a view replaced the playlist
            on_error: called with a user-facing message when a request fails
        """
        self.events = events
        self.catalog = catalog
        self.player = player
        self.on_shown = on_shown
        self.on_error = on_error
        self.title = 'All songs'

        self._seq = 0  # Only the newest request may replace the view
        self._playlists: List[PlaylistSummary] = []
        self._playlist_cursor = -1

    # ============================================
    # VIEWS
    # ============================================

    def show_all(self):
        self._request('All songs', self.catalog.list_tracks)

    def search(self, query: str):
        """Show search results; a blank query shows all songs."""
        query = query.strip()
        if query:
            self._request(f'Search: {query}', self.catalog.search, query)
        else:
            self.show_all()

    def show_favorites(self):
        self._request('Favorites', self.catalog.list_favorites, favorites=True)

    def show_next_playlist(self):
        """Cycle through the user's playlists (fetched on first use)."""
        if not self._playlists:
            self.events.submit(self.catalog.list_playlists,
                               on_done=self._on_playlists, on_error=self._on_failed)
            return
        self._playlist_cursor = (self._playlist_cursor + 1) % len(self._playlists)
        playlist = self._playlists[self._playlist_cursor]
        self._request(f'Playlist: {playlist.name}', self.catalog.playlist_tracks, playlist.id)

    def refresh_favorites(self):
        """Reload the favorite marks without changing the view."""
        self.events.submit(self.catalog.list_favorites,
                           on_done=self.player.set_favorites, on_error=self._on_failed)

    # ============================================
    # RESULTS
    # ============================================

    def _request(self, title: str, fn, *args, favorites: bool = False):
        self._seq += 1
        self.title = title
        self.events.submit(fn, *args,
                           on_done=partial(self._show, self._seq, favorites),
                           on_error=self._on_failed)

    def _show(self, seq: int, favorites: bool, tracks: List[Track]):
        if seq != self._seq:
            logger.debug('Dropping stale track list')
            return
        if favorites:
            self.player.set_favorites(tracks)
        self.player.replace_playlist(tracks)
        if self.on_shown:
            self.on_shown()

    def _on_playlists(self, playlists: List[PlaylistSummary]):
        self._playlists = playlists
        if not playlists:
            self._message('No playlists yet')
            return
        self.show_next_playlist()

    def _on_failed(self, error: Exception):
        logger.error(f'Service request failed: {error}')
        self._message('Could not reach the music service')

    def _message(self, text: str):
        if self.on_error:
            self.on_error(text)
