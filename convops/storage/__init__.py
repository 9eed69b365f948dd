"""Storage layer - Firestore and in-memory implementations."""

from convops.storage.base import StorageBackend
from convops.storage.firestore import FirestoreStorage
from convops.storage.memory import InMemoryStorage

__all__ = ["StorageBackend", "FirestoreStorage", "InMemoryStorage"]
