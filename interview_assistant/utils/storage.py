"""
Key-value persistence for the Interview Assistant.

The application state is stored as a handful of JSON-compatible values under
fixed keys. Any backend that can get, set and delete a value by key works.
"""
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

import pymongo
from pymongo.mongo_client import MongoClient

from interview_assistant.utils.config import get_storage_config

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal persistence port used by the interview store."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key`` or ``default``."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""


class InMemoryStore(KeyValueStore):
    """Process-local store, mainly for tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        # Round-trip through JSON so callers never share mutable state with the store
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All keys in a single JSON document on disk, rewritten atomically on every change."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        logger.info(f"JSON store initialized at {path}")

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt state file {self.path}: {e}. Starting from an empty state.")
            return {}

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


class MongoKeyValueStore(KeyValueStore):
    """Keys stored as documents in a MongoDB collection."""

    def __init__(
        self,
        connection_uri: str,
        database_name: str = "interview_assistant_db",
        collection_name: str = "app_state",
        client: Optional[MongoClient] = None
    ):
        """
        Initialize the MongoDB-backed store.

        Args:
            connection_uri: MongoDB connection URI
            database_name: Name of the database
            collection_name: Name of the collection holding the state documents
            client: Optional pre-built client (used by tests)
        """
        self.client = client or MongoClient(connection_uri)
        self.collection = self.client[database_name][collection_name]
        self.collection.create_index([("key", pymongo.ASCENDING)], unique=True)
        logger.info(f"Mongo store initialized for {database_name}.{collection_name}")

    def get(self, key: str, default: Any = None) -> Any:
        document = self.collection.find_one({"key": key})
        if document is None:
            return default
        return document.get("value", default)

    def set(self, key: str, value: Any) -> None:
        self.collection.update_one(
            {"key": key},
            {"$set": {"value": value, "updated_at": datetime.now()}},
            upsert=True,
        )

    def delete(self, key: str) -> None:
        self.collection.delete_one({"key": key})


def create_store(config: Optional[Dict[str, Any]] = None) -> KeyValueStore:
    """Build the store selected by the storage configuration."""
    cfg = config or get_storage_config()
    provider = cfg.get("provider", "json")
    if provider == "memory":
        return InMemoryStore()
    if provider == "json":
        return JsonFileStore(cfg.get("path", "data/interview_assistant.json"))
    if provider == "mongodb":
        return MongoKeyValueStore(
            cfg.get("uri", "mongodb://localhost:27017/"),
            database_name=cfg.get("database", "interview_assistant_db"),
            collection_name=cfg.get("collection", "app_state"),
        )
    raise ValueError(f"Unknown storage provider: {provider}")
