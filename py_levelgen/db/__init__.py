"""
Database utilities and models.

This package provides:
- SQLAlchemy models for generated levels and generation jobs
- Database connection management
"""

from .connection import Database, db
from .models import Base, GenerationJob, Level

__all__ = ['Database', 'db', 'Base', 'GenerationJob', 'Level']
