"""RecordStorePort — abstract interface for per-user record persistence.

Tables used by the backend: audio_files, transcriptions, feedback, settings.
Every record is owned by a user id; callers never see another user's records.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class RecordStorePort(ABC):
    @abstractmethod
    def insert(self, table: str, user_id: str, record: dict[str, Any]) -> str:
        """Insert a record. Returns the new record id."""

    @abstractmethod
    def patch(self, table: str, user_id: str, record_id: str, fields: dict[str, Any]) -> None:
        """Update fields of an existing record. Raises KeyError if not found."""

    @abstractmethod
    def get(self, table: str, user_id: str, record_id: str) -> Optional[dict[str, Any]]:
        """Return a record by id, or None."""

    @abstractmethod
    def query(self, table: str, user_id: str, **filters: Any) -> list[dict[str, Any]]:
        """Return the user's records matching all filters, newest first."""
