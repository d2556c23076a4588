"""
TuneBox Application - Main application class.
"""
import time
import signal
import logging
from typing import Optional

import pygame

from .config import (
    SCREEN_WIDTH, SCREEN_HEIGHT,
    API_URL, API_TOKEN, API_USERNAME, API_PASSWORD,
    MEDIA_CACHE_DIR, MOCK_MODE,
    FPS_PLAYING, FPS_IDLE, ERROR_DISPLAY_TIME,
)
from .models import User, PlayerStatus
from .errors import PlaybackError
from .api import CatalogClient, NullAudioOutput
from .api.mixer import PygameAudioOutput
from .controllers import PlaybackController
from .handlers import EventQueue, SearchBox, ViewLoader
from .ui import ImageCache, Renderer, RenderContext
from .utils import run_async

logger = logging.getLogger(__name__)


class TuneBox:
    """Main TuneBox application."""

    def __init__(self, fullscreen: bool = False):
        pygame.init()
        pygame.display.set_caption('TuneBox')

        flags = pygame.FULLSCREEN if fullscreen else 0
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT), flags)
        self.clock = pygame.time.Clock()
        pygame.mouse.set_visible(not fullscreen)

        self._init_components()

    def _init_components(self):
        """Initialize all application components."""
        self.mock_mode = MOCK_MODE
        self.events = EventQueue()
        self.catalog = CatalogClient(API_URL, token=API_TOKEN, mock_mode=self.mock_mode)

        if self.mock_mode:
            durations = {t.source: t.duration for t in self.catalog.list_tracks()}
            self.output = NullAudioOutput(durations=durations)
        else:
            self.output = PygameAudioOutput(self.events, MEDIA_CACHE_DIR)

        self.player = PlaybackController(self.output, self.catalog, dispatch=run_async)
        self.player.subscribe(on_error=self._on_player_error)

        self.views = ViewLoader(self.events, self.catalog, self.player,
                                on_shown=self._on_view_shown, on_error=self._show_error)
        self.search_box = SearchBox(self.views.search)
        self.image_cache = ImageCache()
        self.renderer = Renderer(self.screen, self.image_cache)

        self.user: Optional[User] = None
        self.selected_index = 0
        self.error_message: Optional[str] = None
        self._error_until = 0.0
        self.running = True

    # ============================================
    # LIFECYCLE
    # ============================================

    def _handle_signal(self, signum, frame):
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        sig_name = 'SIGTERM' if signum == signal.SIGTERM else 'SIGINT'
        logger.info(f'Received {sig_name}, shutting down...')
        self.running = False

    def start(self):
        """Start the application."""
        logger.info('Starting TuneBox...')
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

        if self.mock_mode:
            logger.info('Running in MOCK MODE')
        self._sign_in()
        self.views.show_all()

        logger.info('Entering main loop...')
        while self.running:
            self.events.drain()
            self.output.pump()
            self.search_box.update()
            self._handle_events()

            if self.error_message and time.monotonic() > self._error_until:
                self.error_message = None

            self.renderer.draw(self._render_context())
            pygame.display.flip()

            playing = self.player.status in (PlayerStatus.PLAYING, PlayerStatus.LOADING)
            self.clock.tick(FPS_PLAYING if playing or self.search_box.active else FPS_IDLE)

        logger.info('Shutting down...')
        self.player.close()
        self.output.close()
        pygame.quit()
        logger.info('TuneBox stopped')

    def _render_context(self) -> RenderContext:
        player = self.player
        return RenderContext(
            tracks=player.playlist,
            selected_index=self.selected_index,
            current_index=player.current_index,
            current_track=player.current_track,
            status=player.status,
            is_playing=player.is_playing,
            position=player.position,
            duration=player.duration,
            progress=player.progress,
            shuffle=player.state.shuffle,
            repeat_mode=player.state.repeat_mode,
            volume=player.state.volume,
            volume_tier=player.volume_tier,
            is_favorite=player.is_favorite,
            view_title=self.views.title,
            user_label=self.user.label if self.user else None,
            search_query=self.search_box.query,
            search_active=self.search_box.active,
            error_message=self.error_message,
        )

    # ============================================
    # SERVICE CALLS (results arrive via the event queue)
    # ============================================

    def _sign_in(self):
        if API_USERNAME and API_PASSWORD:
            self.events.submit(self.catalog.login, API_USERNAME, API_PASSWORD,
                               on_done=self._on_signed_in, on_error=self._on_sign_in_failed)
        elif self.catalog.authenticated:
            self.events.submit(self.catalog.current_user,
                               on_done=self._on_signed_in, on_error=self._on_sign_in_failed)
        else:
            logger.info('Not signed in: plays and favorites will not be saved')

    def _on_signed_in(self, user: Optional[User]):
        if user is None:
            self._show_error('Sign-in failed')
            return
        self.user = user
        logger.info(f'User: {user.label}')
        self.views.refresh_favorites()

    def _on_sign_in_failed(self, error: Exception):
        logger.error(f'Sign-in request failed: {error}')
        self._show_error('Could not reach the music service')

    def _on_view_shown(self):
        current = self.player.current_index
        self.selected_index = current if current is not None else 0

    def _on_player_error(self, error: PlaybackError):
        self._show_error(str(error))

    def _show_error(self, message: str):
        self.error_message = message
        self._error_until = time.monotonic() + ERROR_DISPLAY_TIME

    # ============================================
    # INPUT
    # ============================================

    def _handle_events(self):
        """Handle pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if self.search_box.active:
                    self._handle_search_key(event.key)
                else:
                    self._handle_key(event.key)
            elif event.type == pygame.TEXTINPUT and self.search_box.active:
                self.search_box.type(event.text)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._handle_click(event.pos)
            elif event.type == pygame.MOUSEWHEEL:
                self._move_selection(-event.y)

    def _handle_search_key(self, key):
        if key in (pygame.K_ESCAPE, pygame.K_RETURN, pygame.K_TAB):
            self.search_box.close()
            pygame.key.stop_text_input()
        elif key == pygame.K_BACKSPACE:
            self.search_box.backspace()

    def _handle_key(self, key):
        """Handle keyboard input."""
        player = self.player
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            player.toggle_play_pause()
        elif key == pygame.K_RETURN:
            if player.playlist:
                player.select_track(self.selected_index)
        elif key == pygame.K_UP:
            self._move_selection(-1)
        elif key == pygame.K_DOWN:
            self._move_selection(1)
        elif key in (pygame.K_RIGHT, pygame.K_n):
            player.next()
            self._follow_current()
        elif key in (pygame.K_LEFT, pygame.K_p):
            player.previous()
            self._follow_current()
        elif key == pygame.K_s:
            player.toggle_shuffle()
        elif key == pygame.K_r:
            player.cycle_repeat_mode()
        elif key == pygame.K_m:
            player.toggle_mute()
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            player.step_volume(1)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            player.step_volume(-1)
        elif key == pygame.K_f:
            player.toggle_favorite()
        elif key == pygame.K_TAB:
            self.search_box.open()
            pygame.key.start_text_input()
        elif key == pygame.K_1:
            self.search_box.reset()
            self.views.show_all()
        elif key == pygame.K_2:
            self.search_box.reset()
            self.views.show_favorites()
        elif key == pygame.K_3:
            self.search_box.reset()
            self.views.show_next_playlist()

    def _handle_click(self, pos):
        fraction = self.renderer.fraction_at(pos)
        if fraction is not None:
            self.player.seek_to_fraction(fraction)
            return

        index = self.renderer.row_at(pos)
        if index is not None and index < len(self.player.playlist):
            self.selected_index = index
            self.player.select_track(index)

    def _move_selection(self, delta: int):
        count = len(self.player.playlist)
        if count:
            self.selected_index = max(0, min(count - 1, self.selected_index + delta))

    def _follow_current(self):
        if self.player.current_index is not None:
            self.selected_index = self.player.current_index
