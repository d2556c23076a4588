"""
TuneBox - Player client for the music streaming service.
"""
__version__ = '0.1.0'
