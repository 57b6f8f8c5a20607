"""
Key-value persistence collaborators.

Services never talk to a backend directly: they are handed a KeyValueStore
and read/write whole JSON documents by string key. Keys are namespaced with
the application id so several apps can share one directory or bucket.
"""

import os
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import StorageError

logger = logging.getLogger(__name__)

APP_ID = 'smartExpenseTracker'

# Well-known document keys
EXPENSES_KEY = 'expenses'
BUDGETS_KEY = 'budgets'


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder for Decimal and datetime objects."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def dumps(value: Any) -> str:
    """Serialize a value to JSON, raising StorageError if it cannot be."""
    try:
        return json.dumps(value, cls=DecimalEncoder)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Value is not JSON serializable: {str(e)}")


def loads(payload: str, key: str) -> Any:
    """Deserialize a stored JSON payload."""
    try:
        return json.loads(payload)
    except ValueError as e:
        logger.error(f"Corrupt payload for key {key}: {e}")
        raise StorageError(f"Failed to decode stored value for {key}: {str(e)}")


class KeyValueStore(ABC):
    """
    Abstract key-value store holding JSON documents.

    load returns None when nothing is stored under the key. Every failure
    surfaces as StorageError; nothing is retried.
    """

    def __init__(self, app_id: str = APP_ID):
        self.app_id = app_id

    def namespaced(self, key: str) -> str:
        return f"{self.app_id}-{key}"

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key; removing an absent key is not an error."""


class InMemoryStore(KeyValueStore):
    """Process-local store, mainly for tests and demos."""

    def __init__(self, app_id: str = APP_ID):
        super().__init__(app_id)
        self._data: Dict[str, str] = {}

    def load(self, key: str) -> Optional[Any]:
        payload = self._data.get(self.namespaced(key))
        if payload is None:
            return None
        return loads(payload, key)

    def save(self, key: str, value: Any) -> None:
        # Stored as JSON text so callers never share mutable state with the store
        self._data[self.namespaced(key)] = dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(self.namespaced(key), None)


class JsonFileStore(KeyValueStore):
    """Store keeping one JSON file per key in a local directory."""

    def __init__(self, directory: str, app_id: str = APP_ID):
        super().__init__(app_id)
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{self.namespaced(key)}.json"

    def load(self, key: str) -> Optional[Any]:
        target = self._path(key)
        if not target.exists():
            return None
        try:
            with target.open('r', encoding='utf-8') as handle:
                payload = handle.read()
        except OSError as e:
            logger.error(f"Error reading {target}: {e}")
            raise StorageError(f"Failed to read {key}: {str(e)}")
        return loads(payload, key)

    def save(self, key: str, value: Any) -> None:
        target = self._path(key)
        payload = dumps(value)
        tmp_target = target.parent / f"{target.name}.tmp"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tmp_target.open('w', encoding='utf-8') as handle:
                handle.write(payload)
            os.replace(tmp_target, target)
        except OSError as e:
            logger.error(f"Error writing {target}: {e}")
            raise StorageError(f"Failed to write {key}: {str(e)}")

    def remove(self, key: str) -> None:
        target = self._path(key)
        try:
            target.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Error removing {target}: {e}")
            raise StorageError(f"Failed to remove {key}: {str(e)}")


def create_store(backend: Optional[str] = None) -> KeyValueStore:
    """
    Build the store selected by configuration.

    Args:
        backend: 'memory', 'file' or 's3' (default: STORAGE_BACKEND env var, else 'file')

    Returns:
        Configured key-value store

    Raises:
        StorageError: If the backend is unknown or misconfigured
    """
    backend = (backend or os.environ.get('STORAGE_BACKEND', 'file')).lower()

    if backend == 'memory':
        return InMemoryStore()

    if backend == 'file':
        return JsonFileStore(os.environ.get('STORAGE_DIR', 'data'))

    if backend == 's3':
        from .s3 import S3Store

        bucket = os.environ.get('EXPENSE_TRACKER_BUCKET')
        if not bucket:
            raise StorageError("EXPENSE_TRACKER_BUCKET is required for the s3 backend")
        return S3Store(bucket, prefix=os.environ.get('EXPENSE_TRACKER_PREFIX', ''))

    raise StorageError(f"Unknown storage backend: {backend}")
