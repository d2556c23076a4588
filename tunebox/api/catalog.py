"""
Catalog Client - REST client for the music service.

Handles:
- Sign-in and the current user
- Song listing and search
- Play reporting (best effort)
- Favorites and playlists
"""
import logging
from typing import Optional, List
from urllib.parse import quote

import requests

from ..models import Track, PlaylistSummary, User
from ..errors import CatalogError
from ..config import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class CatalogClient:
    """
    Catalog service backed by the music service's HTTP API.

    Fetch operations raise CatalogError so callers can keep their current
    view; fire-and-forget operations return a bool and never raise.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, mock_mode: bool = False):
        self.base_url = base_url.rstrip('/')
        self.mock_mode = mock_mode
        self.session = requests.Session()
        self.session.headers['Accept'] = 'application/json'
        self.user: Optional[User] = None
        self._mock_favorites: set = set()
        if token:
            self.set_token(token)

    # ============================================
    # AUTH
    # ============================================

    def set_token(self, token: Optional[str]):
        """Use a bearer token for authenticated requests."""
        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'
        else:
            self.session.headers.pop('Authorization', None)

    @property
    def authenticated(self) -> bool:
        return self.mock_mode or 'Authorization' in self.session.headers

    def login(self, username: str, password: str) -> Optional[User]:
        """Sign in with username (or email) and password. Returns the user or None."""
        if self.mock_mode:
            self.user = User(id=1, username=username, role='listener')
            return self.user

        try:
            resp = self.session.post(
                f'{self.base_url}/api/auth/login',
                json={'username': username, 'password': password},
                timeout=REQUEST_TIMEOUT,
            )
            if not resp.ok:
                logger.warning(f'Login failed for {username}: {resp.status_code}')
                return None
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f'Login error: {e}', exc_info=True)
            return None

        self.set_token(data.get('token'))
        self.user = self._user_from_api(data.get('user') or {})
        logger.info(f'Signed in as {self.user.username} ({self.user.role})')
        return self.user

    def current_user(self) -> Optional[User]:
        """Fetch the signed-in user, or None if the token is missing or rejected."""
        if self.mock_mode:
            return self.user
        if not self.authenticated:
            return None

        try:
            resp = self.session.get(f'{self.base_url}/api/auth/me', timeout=REQUEST_TIMEOUT)
            if not resp.ok:
                logger.warning(f'Token rejected: {resp.status_code}')
                self.set_token(None)
                return None
            self.user = self._user_from_api(resp.json().get('user') or {})
            return self.user
        except (requests.RequestException, ValueError) as e:
            logger.error(f'Auth check failed: {e}', exc_info=True)
            return None

    # ============================================
    # SONGS
    # ============================================

    def list_tracks(self) -> List[Track]:
        """All songs, newest first."""
        if self.mock_mode:
            return self._load_mock_data()
        return self._get_tracks('/api/songs')

    def search(self, query: str) -> List[Track]:
        """Songs whose title, artist, album or genre contain the query."""
        query = query.strip()
        if not query:
            return []
        if self.mock_mode:
            return [t for t in self._load_mock_data() if t.matches(query)]
        return self._get_tracks(f'/api/songs/search/{quote(query, safe="")}')

    def record_play(self, track_id: int) -> bool:
        """Report a play (increments play count, adds to recently played)."""
        if self.mock_mode:
            return True
        if not self.authenticated:
            logger.debug(f'Not signed in, play of {track_id} not recorded')
            return False

        try:
            resp = self.session.post(
                f'{self.base_url}/api/songs/{track_id}/play',
                timeout=REQUEST_TIMEOUT,
            )
            logger.debug(f'Record play {track_id}: {resp.status_code}')
            return resp.ok
        except requests.RequestException as e:
            logger.warning(f'Record play failed for {track_id}: {e}')
            return False

    # ============================================
    # FAVORITES
    # ============================================

    def list_favorites(self) -> List[Track]:
        if self.mock_mode:
            return [t for t in self._load_mock_data() if t.id in self._mock_favorites]
        return self._get_tracks('/api/favorites')

    def add_favorite(self, track_id: int) -> bool:
        return self._set_favorite(track_id, True)

    def remove_favorite(self, track_id: int) -> bool:
        return self._set_favorite(track_id, False)

    def _set_favorite(self, track_id: int, favorite: bool) -> bool:
        if self.mock_mode:
            if favorite:
                self._mock_favorites.add(track_id)
            else:
                self._mock_favorites.discard(track_id)
            return True

        method = 'POST' if favorite else 'DELETE'
        try:
            resp = self.session.request(
                method,
                f'{self.base_url}/api/favorites/{track_id}',
                timeout=REQUEST_TIMEOUT,
            )
            if not resp.ok:
                logger.warning(f'{method} favorite {track_id} failed: {resp.status_code} {resp.text}')
            return resp.ok
        except requests.RequestException as e:
            logger.error(f'Favorite update error for {track_id}: {e}', exc_info=True)
            return False

    # ============================================
    # PLAYLISTS
    # ============================================

    def list_playlists(self) -> List[PlaylistSummary]:
        if self.mock_mode:
            return [PlaylistSummary(id=1, name='Demo mix', description='Mock playlist')]

        data = self._get_json('/api/playlists')
        return [
            PlaylistSummary(
                id=item['id'],
                name=item.get('name', ''),
                description=item.get('description'),
                is_public=bool(item.get('is_public')),
            )
            for item in data
            if isinstance(item, dict) and 'id' in item
        ]

    def playlist_tracks(self, playlist_id: int) -> List[Track]:
        """Songs of a playlist in playlist order."""
        if self.mock_mode:
            return self._load_mock_data()[:3]
        return self._get_tracks(f'/api/playlists/{playlist_id}/songs')

    # ============================================
    # HELPERS
    # ============================================

    def _get_json(self, path: str):
        try:
            resp = self.session.get(f'{self.base_url}{path}', timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise CatalogError(f'GET {path} failed: {e}') from e
        if not resp.ok:
            raise CatalogError(f'GET {path} returned {resp.status_code}')
        try:
            return resp.json()
        except ValueError as e:
            raise CatalogError(f'GET {path} returned invalid JSON') from e

    def _get_tracks(self, path: str) -> List[Track]:
        data = self._get_json(path)
        if not isinstance(data, list):
            raise CatalogError(f'GET {path} did not return a list')

        tracks = []
        for item in data:
            try:
                tracks.append(Track.from_api(item, self.base_url))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f'Skipping malformed song from {path}: {e}')
        logger.debug(f'Loaded {len(tracks)} tracks from {path}')
        return tracks

    @staticmethod
    def _user_from_api(data: dict) -> User:
        return User(
            id=data.get('id', 0),
            username=data.get('username', ''),
            role=data.get('role', 'listener'),
            display_name=data.get('display_name'),
            email=data.get('email'),
        )

    def _load_mock_data(self) -> List[Track]:
        """Demo catalog for UI testing."""
        return [
            Track(id=1, title='Come Together', artist='The Beatles', album='Abbey Road',
                  genre='Rock', duration=259, source='mock://1'),
            Track(id=2, title='Time', artist='Pink Floyd', album='Dark Side of the Moon',
                  genre='Rock', duration=413, source='mock://2'),
            Track(id=3, title='Dreams', artist='Fleetwood Mac', album='Rumours',
                  genre='Pop', duration=257, source='mock://3'),
            Track(id=4, title='Back in Black', artist='AC/DC', album='Back in Black',
                  genre='Rock', duration=255, source='mock://4'),
            Track(id=5, title='Billie Jean', artist='Michael Jackson', album='Thriller',
                  genre='Pop', duration=294, source='mock://5'),
        ]
