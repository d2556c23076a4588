"""
Renderer - Draws the track list and the now-playing bar.
"""
import logging
from typing import Optional

import pygame

from .context import RenderContext
from .helpers import format_duration, truncate, draw_aa_rounded_rect, draw_aa_circle
from .image_cache import ImageCache
from ..models import PlayerStatus, RepeatMode
from ..config import (
    SCREEN_WIDTH, SCREEN_HEIGHT, COLORS, MARGIN,
    ARTWORK_SIZE, PLAYER_BAR_HEIGHT, LIST_ROW_HEIGHT, PROGRESS_BAR_HEIGHT,
)

logger = logging.getLogger(__name__)

HEADER_HEIGHT = 56
REPEAT_LABELS = {RepeatMode.OFF: 'repeat off', RepeatMode.ALL: 'repeat all', RepeatMode.ONE: 'repeat one'}


class Renderer:
    """Handles all drawing for the TuneBox UI."""

    def __init__(self, screen: pygame.Surface, image_cache: ImageCache):
        self.screen = screen
        self.image_cache = image_cache

        self.font_large = pygame.font.Font(None, 36)
        self.font_medium = pygame.font.Font(None, 28)
        self.font_small = pygame.font.Font(None, 22)

        # Hit rectangles (updated during draw)
        self.progress_rect: Optional[pygame.Rect] = None
        self.list_top = HEADER_HEIGHT
        self.list_first_index = 0

    def draw(self, ctx: RenderContext):
        self.screen.fill(COLORS['bg_primary'])
        self._draw_header(ctx)
        self._draw_list(ctx)
        self._draw_player_bar(ctx)
        if ctx.error_message:
            self._draw_toast(ctx.error_message)

    def row_at(self, pos) -> Optional[int]:
        """Track index under a screen position, if any."""
        x, y = pos
        list_bottom = SCREEN_HEIGHT - PLAYER_BAR_HEIGHT
        if not self.list_top <= y < list_bottom:
            return None
        return self.list_first_index + (y - self.list_top) // LIST_ROW_HEIGHT

    def fraction_at(self, pos) -> Optional[float]:
        """Seek fraction for a click on the progress bar, if the click hit it."""
        if not self.progress_rect:
            return None
        hit = self.progress_rect.inflate(0, 16)
        if not hit.collidepoint(pos):
            return None
        return (pos[0] - self.progress_rect.x) / max(1, self.progress_rect.width)

    # ============================================
    # SECTIONS
    # ============================================

    def _draw_header(self, ctx: RenderContext):
        pygame.draw.rect(self.screen, COLORS['bg_secondary'], (0, 0, SCREEN_WIDTH, HEADER_HEIGHT))
        title = self.font_large.render(ctx.view_title, True, COLORS['text_primary'])
        self.screen.blit(title, (MARGIN, (HEADER_HEIGHT - title.get_height()) // 2))

        if ctx.search_active or ctx.search_query:
            box = pygame.Rect(SCREEN_WIDTH // 2 - 40, 12, 260, HEADER_HEIGHT - 24)
            border = COLORS['accent'] if ctx.search_active else COLORS['bg_elevated']
            draw_aa_rounded_rect(self.screen, border, box, 8)
            draw_aa_rounded_rect(self.screen, COLORS['bg_primary'], box.inflate(-4, -4), 6)
            text = ctx.search_query + ('|' if ctx.search_active else '')
            label = self.font_small.render(truncate(self.font_small, text, box.width - 16), True, COLORS['text_primary'])
            self.screen.blit(label, (box.x + 8, box.centery - label.get_height() // 2))

        if ctx.user_label:
            user = self.font_small.render(ctx.user_label, True, COLORS['text_secondary'])
            self.screen.blit(user, (SCREEN_WIDTH - MARGIN - user.get_width(), (HEADER_HEIGHT - user.get_height()) // 2))

    def _draw_list(self, ctx: RenderContext):
        list_height = SCREEN_HEIGHT - PLAYER_BAR_HEIGHT - HEADER_HEIGHT
        visible = max(1, list_height // LIST_ROW_HEIGHT)

        if not ctx.tracks:
            empty = self.font_medium.render('No songs available', True, COLORS['text_muted'])
            self.screen.blit(empty, (MARGIN, HEADER_HEIGHT + MARGIN))
            self.list_first_index = 0
            return

        # Keep the selection in view
        first = min(max(0, ctx.selected_index - visible // 2), max(0, len(ctx.tracks) - visible))
        self.list_first_index = first

        for row, index in enumerate(range(first, min(len(ctx.tracks), first + visible))):
            track = ctx.tracks[index]
            y = HEADER_HEIGHT + row * LIST_ROW_HEIGHT
            if index == ctx.selected_index:
                pygame.draw.rect(self.screen, COLORS['bg_elevated'], (0, y, SCREEN_WIDTH, LIST_ROW_HEIGHT))

            color = COLORS['accent'] if index == ctx.current_index else COLORS['text_primary']
            number = self.font_small.render(str(index + 1), True, COLORS['text_muted'])
            self.screen.blit(number, (MARGIN, y + 10))

            name = truncate(self.font_medium, f'{track.title} · {track.artist}', SCREEN_WIDTH // 2)
            self.screen.blit(self.font_medium.render(name, True, color), (MARGIN + 40, y + 8))

            album = truncate(self.font_small, track.album or '-', SCREEN_WIDTH // 4)
            self.screen.blit(self.font_small.render(album, True, COLORS['text_secondary']),
                             (SCREEN_WIDTH * 2 // 3, y + 10))

            length = self.font_small.render(format_duration(track.duration), True, COLORS['text_secondary'])
            self.screen.blit(length, (SCREEN_WIDTH - MARGIN - length.get_width(), y + 10))

    def _draw_player_bar(self, ctx: RenderContext):
        top = SCREEN_HEIGHT - PLAYER_BAR_HEIGHT
        pygame.draw.rect(self.screen, COLORS['bg_secondary'], (0, top, SCREEN_WIDTH, PLAYER_BAR_HEIGHT))

        track = ctx.current_track
        artwork = self.image_cache.get(track.artwork if track else None, ARTWORK_SIZE)
        self.screen.blit(artwork, (MARGIN, top + (PLAYER_BAR_HEIGHT - ARTWORK_SIZE) // 2))

        text_x = MARGIN * 2 + ARTWORK_SIZE
        text_width = SCREEN_WIDTH - text_x - MARGIN
        if track:
            title = truncate(self.font_large, track.title, text_width - 40)
            self.screen.blit(self.font_large.render(title, True, COLORS['text_primary']), (text_x, top + 14))
            artist = truncate(self.font_medium, track.artist, text_width)
            self.screen.blit(self.font_medium.render(artist, True, COLORS['text_secondary']), (text_x, top + 46))
            if ctx.is_favorite:
                draw_aa_circle(self.screen, COLORS['accent'], (SCREEN_WIDTH - MARGIN - 8, top + 26), 6)
        else:
            idle = self.font_medium.render('Nothing playing', True, COLORS['text_muted'])
            self.screen.blit(idle, (text_x, top + 24))

        # Progress bar
        bar_y = top + 80
        self.progress_rect = pygame.Rect(text_x + 50, bar_y, text_width - 100, PROGRESS_BAR_HEIGHT)
        draw_aa_rounded_rect(self.screen, COLORS['bg_elevated'], self.progress_rect, PROGRESS_BAR_HEIGHT // 2)
        filled = int(self.progress_rect.width * ctx.progress)
        if filled > 0:
            draw_aa_rounded_rect(self.screen, COLORS['accent'],
                                 (self.progress_rect.x, bar_y, filled, PROGRESS_BAR_HEIGHT), PROGRESS_BAR_HEIGHT // 2)

        elapsed = self.font_small.render(format_duration(ctx.position), True, COLORS['text_secondary'])
        self.screen.blit(elapsed, (text_x, bar_y - 5))
        total = self.font_small.render(format_duration(ctx.duration or 0), True, COLORS['text_secondary'])
        self.screen.blit(total, (self.progress_rect.right + 10, bar_y - 5))

        # Status line
        status = {
            PlayerStatus.IDLE: 'stopped',
            PlayerStatus.LOADING: 'loading…',
            PlayerStatus.PLAYING: 'playing',
            PlayerStatus.PAUSED: 'paused',
        }[ctx.status]
        flags = [status, REPEAT_LABELS[ctx.repeat_mode]]
        if ctx.shuffle:
            flags.append('shuffle')
        flags.append(f'{ctx.volume_tier.label} {int(round(ctx.volume * 100))}%')
        line = self.font_small.render('  ·  '.join(flags), True, COLORS['text_muted'])
        self.screen.blit(line, (text_x, top + PLAYER_BAR_HEIGHT - 26))

    def _draw_toast(self, message: str):
        label = self.font_medium.render(truncate(self.font_medium, message, SCREEN_WIDTH - 80), True,
                                        COLORS['text_primary'])
        box = label.get_rect(center=(SCREEN_WIDTH // 2, SCREEN_HEIGHT - PLAYER_BAR_HEIGHT - 30)).inflate(32, 16)
        draw_aa_rounded_rect(self.screen, COLORS['error'], box, 10)
        self.screen.blit(label, label.get_rect(center=box.center))
