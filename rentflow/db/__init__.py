"""
Database init - Exports for routes and services
"""

from .base import Base, TimestampMixin
from rentflow.database import engine, SessionLocal, get_db

__all__ = ["Base", "TimestampMixin", "engine", "SessionLocal", "get_db"]
