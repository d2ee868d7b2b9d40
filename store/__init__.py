"""
Store package.

Public API:
- Store: the abstract persistence boundary
- InMemoryStore: dict-backed implementation
"""
from .base import Store
from .memory import InMemoryStore

__all__ = ["Store", "InMemoryStore"]
