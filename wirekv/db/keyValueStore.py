from typing import Dict, Optional
import threading
from logging import getLogger
from wirekv.db.keyValueDBInterface import KeyValueDBInterface

logger = getLogger(__name__)


class KeyValueStore(KeyValueDBInterface):
    """In-memory byte store shared by every connection of a server."""

    def __init__(self):
        self._db: Dict[bytes, bytes] = {}
        self._db_lock = threading.RLock()
        logger.info("KeyValueStore Initialized...")

    def set(self, key, value):
        # Own the bytes so callers can't mutate stored entries afterwards
        key, value = bytes(key), bytes(value)
        with self._db_lock:
            self._db[key] = value

    def get(self, key):
        with self._db_lock:
            return self._db.get(bytes(key))

    def delete(self, key):
        with self._db_lock:
            return self._db.pop(bytes(key), None) is not None

    def __len__(self):
        with self._db_lock:
            return len(self._db)

    def __contains__(self, key):
        with self._db_lock:
            return bytes(key) in self._db


_default_store: Optional[KeyValueStore] = None
_store_factory_lock = threading.Lock()


def get_key_value_store() -> KeyValueStore:
    """Get or create the process-wide store"""
    global _default_store
    with _store_factory_lock:
        if _default_store is None:
            _default_store = KeyValueStore()
        return _default_store


def dispose_key_value_store():
    """Drop the process-wide store so the next call starts empty"""
    global _default_store
    with _store_factory_lock:
        _default_store = None
