# src/accountlink/db/__init__.py

"""
Lightweight DB package init.

Models are not re-exported here to avoid circular imports.
Import them directly from accountlink.db.models.
"""

from .session import Base, create_engine, create_session_factory, get_db, test_connection

__all__ = ["Base", "create_engine", "create_session_factory", "get_db", "test_connection"]
