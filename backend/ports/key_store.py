"""KeyStorePort — resolves a bearer API key to the user that owns it."""

from abc import ABC, abstractmethod
from typing import Optional


class KeyStorePort(ABC):
    @abstractmethod
    def get_user_id(self, key: str) -> Optional[str]:
        """Return the stable user id for an active key, or None."""
