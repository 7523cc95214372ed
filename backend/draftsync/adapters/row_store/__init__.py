"""Row store adapters: PostgreSQL via SQLAlchemy and an in-memory fake."""

from draftsync.adapters.row_store.fake import InMemoryRowStore
from draftsync.adapters.row_store.sqlalchemy import SqlAlchemyRowStore

__all__ = ["InMemoryRowStore", "SqlAlchemyRowStore"]
