#!/usr/bin/env python3
"""
TuneBox - Desktop player for the music streaming service

Usage:
    python -m tunebox              # Windowed
    python -m tunebox --fullscreen # Fullscreen
    python -m tunebox --mock       # Mock mode (no server, no sound)

Environment:
    TUNEBOX_API_URL                    Service base URL (default http://localhost:3000)
    TUNEBOX_TOKEN                      Bearer token from a previous sign-in
    TUNEBOX_USERNAME/TUNEBOX_PASSWORD  Sign in at startup
    TUNEBOX_LOG_LEVEL                  DEBUG, INFO, ...
"""
import os
import sys
import platform
import logging
from logging.handlers import RotatingFileHandler

from .config import (
    SCREEN_WIDTH, SCREEN_HEIGHT,
    API_URL, MOCK_MODE, FULLSCREEN,
    LOG_DIR, LOG_FILE, LOG_MAX_BYTES, LOG_BACKUP_COUNT,
)


def setup_logging():
    """Configure logging with console and rotating file handler."""
    level_name = os.environ.get('TUNEBOX_LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)

    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )
    file_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG))
    root.addHandler(console)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
        root.addHandler(file_handler)
        root.info(f'Logging to: {LOG_FILE}')
    except OSError as e:
        root.warning(f'Could not create log file: {e}')

    # Quiet down noisy libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)


def main():
    """Entry point for TuneBox."""
    setup_logging()

    logger = logging.getLogger(__name__)
    logger.info(f'Python: {sys.version.split()[0]} on {platform.system()} {platform.release()}')
    if MOCK_MODE:
        logger.info('Mode: MOCK (UI testing)')
    else:
        logger.info(f'Service: {API_URL}')
    logger.info(f'Screen: {SCREEN_WIDTH}x{SCREEN_HEIGHT}, fullscreen={FULLSCREEN}')

    print()
    print('Controls:')
    print('   Space     Play/Pause')
    print('   Enter     Play selected song')
    print('   ↑ ↓       Move selection')
    print('   → / N     Next track')
    print('   ← / P     Previous track (restarts after 3s)')
    print('   S / R     Shuffle / Repeat mode')
    print('   M  + -    Mute / Volume')
    print('   F         Favorite current song')
    print('   Tab       Search')
    print('   1 2 3     All songs / Favorites / Playlists')
    print('   Esc       Quit')
    print()

    # Import here so --help style usage doesn't need a display
    from .app import TuneBox

    app = TuneBox(fullscreen=FULLSCREEN)
    app.start()


if __name__ == '__main__':
    main()
