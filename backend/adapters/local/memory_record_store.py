"""InMemoryRecordStore — process-local record store (no persistence)."""

import threading
import time
import uuid
from typing import Any, Optional

from ports.record_store import RecordStorePort


class InMemoryRecordStore(RecordStorePort):
    """Keeps records in dicts keyed by table. Lost on restart."""

    def __init__(self):
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def insert(self, table: str, user_id: str, record: dict[str, Any]) -> str:
        record_id = uuid.uuid4().hex[:12]
        stored = dict(record, id=record_id, user_id=user_id, created_at=time.time())
        with self._lock:
            self._tables.setdefault(table, {})[record_id] = stored
        return record_id

    def patch(self, table: str, user_id: str, record_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            record = self._tables.get(table, {}).get(record_id)
            if record is None or record["user_id"] != user_id:
                raise KeyError(f"{table}/{record_id} not found")
            protected = {"id", "user_id", "created_at"}
            record.update({k: v for k, v in fields.items() if k not in protected})

    def get(self, table: str, user_id: str, record_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            record = self._tables.get(table, {}).get(record_id)
            if record is None or record["user_id"] != user_id:
                return None
            return dict(record)

    def query(self, table: str, user_id: str, **filters: Any) -> list[dict[str, Any]]:
        with self._lock:
            records = [
                dict(r) for r in self._tables.get(table, {}).values()
                if r["user_id"] == user_id
                and all(r.get(k) == v for k, v in filters.items())
            ]
        records.reverse()
        return records
