"""
Image Cache - Downloads and caches track artwork.
"""
import time
import logging
import threading
from io import BytesIO
from typing import Optional, Dict

import pygame
import requests
from PIL import Image, ImageDraw

from .helpers import draw_aa_rounded_rect
from ..config import COLORS, ARTWORK_SIZE, IMAGE_CACHE_MAX_SIZE, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def round_corners(img: Image.Image, radius: int) -> Image.Image:
    """Apply rounded corners to a PIL image with transparency."""
    mask = Image.new('L', img.size, 0)
    draw = ImageDraw.Draw(mask)
    draw.rounded_rectangle([(0, 0), (img.size[0] - 1, img.size[1] - 1)], radius=radius, fill=255)
    result = Image.new('RGBA', img.size, (0, 0, 0, 0))
    result.paste(img, (0, 0), mask)
    return result


class ImageCache:
    """
    Artwork surfaces keyed by URL and size.

    get() never blocks: unknown URLs start a background download and a
    placeholder is returned until the surface is ready.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.cache: Dict[str, pygame.Surface] = {}
        self._access_times: Dict[str, float] = {}
        self._decoded: Dict[str, Image.Image] = {}  # Filled by download threads
        self._lock = threading.Lock()
        self.loading: set = set()
        self.failed: set = set()

    def get_placeholder(self, size: int) -> pygame.Surface:
        cache_key = f'_placeholder_{size}'
        if cache_key not in self.cache:
            placeholder = pygame.Surface((size, size), pygame.SRCALPHA)
            draw_aa_rounded_rect(placeholder, COLORS['bg_elevated'], (0, 0, size, size), max(6, size // 12))
            self.cache[cache_key] = placeholder
        return self.cache[cache_key]

    def get(self, url: Optional[str], size: int = ARTWORK_SIZE) -> pygame.Surface:
        """Get artwork for url at size, or a placeholder while it loads."""
        if not url or url in self.failed:
            return self.get_placeholder(size)

        cache_key = f'{url}_{size}'
        if cache_key in self.cache:
            self._access_times[cache_key] = time.time()
            return self.cache[cache_key]

        # Surfaces are created on the main thread from images decoded in the background
        with self._lock:
            img = self._decoded.pop(cache_key, None)
            if img is None:
                if url.startswith(('http://', 'https://')) and url not in self.loading:
                    self.loading.add(url)
                    threading.Thread(target=self._download, args=(url, size, cache_key), daemon=True).start()
                return self.get_placeholder(size)

        self._evict_if_needed()
        surface = pygame.image.fromstring(img.tobytes(), img.size, 'RGBA')
        self.cache[cache_key] = surface
        self._access_times[cache_key] = time.time()
        return surface

    def _evict_if_needed(self):
        """Evict least recently used entries if the cache is too large."""
        if len(self.cache) <= IMAGE_CACHE_MAX_SIZE:
            return
        evictable = sorted(
            (key for key in self.cache if not key.startswith('_')),
            key=lambda key: self._access_times.get(key, 0),
        )
        for key in evictable[:10]:
            del self.cache[key]
            self._access_times.pop(key, None)
        logger.debug(f'Evicted {min(10, len(evictable))} cached images')

    def _download(self, url: str, size: int, cache_key: str):
        """Download and decode artwork in background."""
        try:
            resp = self.session.get(url, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            img = Image.open(BytesIO(resp.content)).convert('RGBA')
            img = img.resize((size, size), Image.Resampling.LANCZOS)
            img = round_corners(img, max(6, size // 12))
            with self._lock:
                self._decoded[cache_key] = img
        except (requests.RequestException, OSError) as e:
            logger.warning(f'Error downloading artwork {url}: {e}')
            with self._lock:
                self.failed.add(url)
        finally:
            with self._lock:
                self.loading.discard(url)
