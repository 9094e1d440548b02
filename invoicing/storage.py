"""
Record Store Module

Boundary implementation of the persistence collaborator. Records are stored
as plain dictionaries keyed by table and record id; Decimal values are stored
as strings so that the persisted form of a monetary amount is exact.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
import json
import threading


class StorageInterface(ABC):
    """Abstract interface for record stores"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a row"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a row, or None if absent"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all rows of a table"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Delete a row"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find rows whose columns equal all given filter values"""
        pass

    def exists(self, table: str, record_id: str) -> bool:
        return self.load(table, record_id) is not None

    def count(self, table: str) -> int:
        return len(self.load_all(table))


def _copy_row(row: Dict[str, Any]) -> Dict[str, Any]:
    # Round-trip through JSON: detaches the row and turns Decimal into str
    return json.loads(json.dumps(row, default=str))


class InMemoryStorage(StorageInterface):
    """In-memory record store for tests and examples"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._data.setdefault(table, {})[record_id] = _copy_row(data)

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._data.get(table, {}).get(record_id)
            return _copy_row(row) if row is not None else None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [_copy_row(row) for row in self._data.get(table, {}).values()]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            rows = self._data.get(table, {})
            if record_id in rows:
                del rows[record_id]
                return True
            return False

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            results = []
            for row in self._data.get(table, {}).values():
                if all(key in row and row[key] == value for key, value in filters.items()):
                    results.append(_copy_row(row))
            return results
