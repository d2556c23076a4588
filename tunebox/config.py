"""
TuneBox Configuration - All constants and settings.
"""
import os
import sys
from pathlib import Path

# ============================================
# SCREEN & DISPLAY
# ============================================

SCREEN_WIDTH = 800
SCREEN_HEIGHT = 480
FPS_PLAYING = 20
FPS_IDLE = 5

# ============================================
# NETWORK ENDPOINTS
# ============================================

API_URL = os.environ.get('TUNEBOX_API_URL', 'http://localhost:3000').rstrip('/')
API_TOKEN = os.environ.get('TUNEBOX_TOKEN')
API_USERNAME = os.environ.get('TUNEBOX_USERNAME')
API_PASSWORD = os.environ.get('TUNEBOX_PASSWORD')

REQUEST_TIMEOUT = 5  # Catalog / auth requests
DOWNLOAD_TIMEOUT = 30  # Media downloads can be large

# ============================================
# PATHS
# ============================================

CACHE_DIR = Path(os.environ.get('TUNEBOX_CACHE_DIR', Path.home() / '.tunebox' / 'cache'))
MEDIA_CACHE_DIR = CACHE_DIR / 'media'

# Logging directory
LOG_DIR = Path.home() / '.tunebox' / 'logs'
LOG_FILE = LOG_DIR / 'tunebox.log'
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5MB per file
LOG_BACKUP_COUNT = 10

# ============================================
# COMMAND LINE FLAGS
# ============================================

MOCK_MODE = '--mock' in sys.argv or '-m' in sys.argv
FULLSCREEN = '--fullscreen' in sys.argv or '-f' in sys.argv

# ============================================
# COLORS
# ============================================

COLORS = {
    'bg_primary': (18, 18, 18),
    'bg_secondary': (30, 30, 30),
    'bg_elevated': (44, 44, 44),
    'accent': (29, 185, 84),
    'text_primary': (255, 255, 255),
    'text_secondary': (170, 170, 170),
    'text_muted': (100, 100, 100),
    'error': (232, 80, 80),
}

# ============================================
# LAYOUT
# ============================================

ARTWORK_SIZE = 96
PLAYER_BAR_HEIGHT = 128
LIST_ROW_HEIGHT = 36
PROGRESS_BAR_HEIGHT = 6
MARGIN = 16

# ============================================
# PLAYBACK
# ============================================

DEFAULT_VOLUME = 0.7  # Initial volume and unmute fallback
VOLUME_STEP = 0.1
RESTART_THRESHOLD = 3.0  # Previous restarts the track after this many seconds
TIME_UPDATE_INTERVAL = 0.25  # Seconds between progress events

VOLUME_LOW_THRESHOLD = 0.5  # Below this the indicator shows the "low" tier

VOLUME_LABELS = {
    'muted': 'muted',
    'low': 'vol',
    'full': 'VOL',
}

# ============================================
# TIMING
# ============================================

SEARCH_DEBOUNCE = 0.3  # Seconds of typing silence before searching
ERROR_DISPLAY_TIME = 4.0  # Seconds an error toast stays visible
IMAGE_CACHE_MAX_SIZE = 100
MEDIA_CACHE_MAX_FILES = 50  # Downloaded tracks kept on disk
