"""SQLite persistence for logs, recipes and profiles."""

from mealcoach.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
