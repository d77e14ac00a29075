from .base import Base, async_engine, async_session_factory, create_tables, dispose_engine, get_db
from .document import Document

__all__ = [
    "Base",
    "async_engine",
    "async_session_factory",
    "get_db",
    "create_tables",
    "dispose_engine",
    "Document",
]
