"""
UI Helpers - Formatting and drawing utilities for pygame.
"""
import pygame
import pygame.gfxdraw


def format_duration(seconds: float) -> str:
    """Format seconds as m:ss."""
    seconds = max(0, int(seconds or 0))
    return f'{seconds // 60}:{seconds % 60:02d}'


def truncate(font: pygame.font.Font, text: str, max_width: int) -> str:
    """Shorten text with an ellipsis so it fits max_width pixels."""
    if font.size(text)[0] <= max_width:
        return text
    while text and font.size(text + '…')[0] > max_width:
        text = text[:-1]
    return text + '…'


def draw_aa_circle(surface: pygame.Surface, color: tuple, center: tuple, radius: int):
    """Draw an anti-aliased filled circle."""
    cx, cy = int(center[0]), int(center[1])
    r = int(radius)
    pygame.gfxdraw.aacircle(surface, cx, cy, r, color)
    pygame.gfxdraw.filled_circle(surface, cx, cy, r, color)


def draw_aa_rounded_rect(surface: pygame.Surface, color: tuple, rect: tuple, radius: int):
    """Draw an anti-aliased rounded rectangle using circles for corners."""
    x, y, w, h = rect
    r = min(radius, w // 2, h // 2)
    if r <= 0:
        pygame.draw.rect(surface, color, rect)
        return

    pygame.draw.rect(surface, color, (x + r, y, w - 2 * r, h))
    pygame.draw.rect(surface, color, (x, y + r, w, h - 2 * r))

    corners = [
        (x + r, y + r),
        (x + w - r - 1, y + r),
        (x + r, y + h - r - 1),
        (x + w - r - 1, y + h - r - 1),
    ]
    for cx, cy in corners:
        draw_aa_circle(surface, color, (cx, cy), r)
