"""
TuneBox Errors - Recoverable playback and catalog failures.
"""


class PlaybackError(Exception):
    """Base class for non-fatal playback errors shown to the user."""

    message = 'Playback error'

    def __init__(self, detail: str = ''):
        self.detail = detail
        super().__init__(f'{self.message}: {detail}' if detail else self.message)


class UnplayableSource(PlaybackError):
    """The audio output rejected a load or play command."""

    message = 'Cannot play this track'


class EmptyPlaylist(PlaybackError):
    """A navigation command was issued with no tracks available."""

    message = 'No tracks available'


class InvalidSeekTarget(PlaybackError):
    """A seek was requested before the track duration was known."""

    message = 'Cannot seek yet'


class CatalogError(Exception):
    """The music service could not be reached or returned bad data."""
