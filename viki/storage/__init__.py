"""File-backed JSON storage"""

from .storage import Storage

__all__ = ["Storage"]
