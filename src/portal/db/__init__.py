"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for users/sessions, the category hierarchy,
  and contents with their pages
"""

from portal.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
