"""Database package."""

from .db import configure_engine, get_session, init_db
from .gateway import PersistenceGateway
from .models import StoredValue

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "PersistenceGateway",
    "StoredValue",
]
