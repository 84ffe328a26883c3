"""Development collector - receives envelopes over HTTP."""

from .app import create_app, run
from .store import EventStore

__all__ = [
    "create_app",
    "run",
    "EventStore",
]
