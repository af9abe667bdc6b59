"""Reference recording server.

A small aiohttp application implementing the recording API the client
talks to, backed by an in-memory store.
"""

from pygeorec.server.app import create_app
from pygeorec.server.store import PositionStore, StoredPosition

__all__ = ["PositionStore", "StoredPosition", "create_app"]
