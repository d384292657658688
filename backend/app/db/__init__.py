from app.db.base import Base, TimestampMixin
from app.db.session import Database, get_db

__all__ = ["Base", "TimestampMixin", "Database", "get_db"]
