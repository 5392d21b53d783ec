"""JsonFileKeyStore — maps API keys to user ids from a JSON file.

File format: {"keys": [{"key": "...", "user_id": "...", "name": "...", "active": true}]}
Entries without a user_id fall back to their name. The file is re-read on
every lookup so keys can be revoked without a restart.
"""

import json
import logging
from typing import Optional

from ports.key_store import KeyStorePort

logger = logging.getLogger(__name__)


class JsonFileKeyStore(KeyStorePort):
    def __init__(self, keys_file: str = "/data/api-keys.json"):
        self._keys_file = keys_file

    def _active_entries(self) -> dict[str, dict]:
        try:
            with open(self._keys_file) as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load keys file {self._keys_file}: {e}")
            return {}
        return {
            entry["key"]: entry
            for entry in data.get("keys", [])
            if entry.get("key") and entry.get("active", True)
        }

    def get_user_id(self, key: str) -> Optional[str]:
        entry = self._active_entries().get(key)
        if entry is None:
            return None
        return entry.get("user_id") or entry.get("name")
