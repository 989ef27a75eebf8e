"""
Database models package - SQLAlchemy ORM models
"""

from .talk import Talk, Transcript

__all__ = [
    "Talk",
    "Transcript",
]
