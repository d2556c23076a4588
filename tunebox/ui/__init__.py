"""
TuneBox UI - Rendering and visual components.
"""
from .helpers import (
    format_duration,
    draw_aa_circle,
    draw_aa_rounded_rect,
)
from .image_cache import ImageCache
from .renderer import Renderer
from .context import RenderContext

__all__ = [
    'format_duration',
    'draw_aa_circle',
    'draw_aa_rounded_rect',
    'ImageCache',
    'Renderer',
    'RenderContext',
]
