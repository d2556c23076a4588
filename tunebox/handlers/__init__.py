"""
TuneBox Handlers - Event delivery, input and view loading.
"""
from .events import EventQueue
from .search import SearchBox
from .views import ViewLoader

__all__ = ['EventQueue', 'SearchBox', 'ViewLoader']
