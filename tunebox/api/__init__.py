"""
TuneBox API modules - External service integrations.
"""
from .catalog import CatalogClient
from .output import AudioOutput, OutputListener, NullAudioOutput

__all__ = ['CatalogClient', 'AudioOutput', 'OutputListener', 'NullAudioOutput']
