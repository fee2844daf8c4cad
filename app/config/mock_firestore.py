"""
In-process stand-in for the Firestore client, used when USE_MOCK_DB is set
and by the test suite.

Only the part of the client API the services rely on is implemented:
collection/document references, where/order_by/offset/limit/select queries,
stream/get and count() aggregations. Documents are deep-copied on the way in
and out so callers never share state with the store. When a path is given the
whole store is written to JSON after every mutation.
"""

import copy
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import NotFound

logger = logging.getLogger(__name__)

_MISSING = object()

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"


def _get_field(data: Dict[str, Any], field_path: str) -> Any:
    value: Any = data
    for part in field_path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _set_field(data: Dict[str, Any], field_path: str, value: Any) -> None:
    parts = field_path.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    if value is firestore.DELETE_FIELD:
        target.pop(parts[-1], None)
    else:
        target[parts[-1]] = value


def _resolve_sentinels(data: Dict[str, Any]) -> Dict[str, Any]:
    # Copies as it goes; sentinels are compared by identity and must not be copied
    resolved = {}
    for key, value in data.items():
        if value is firestore.SERVER_TIMESTAMP:
            value = datetime.now(timezone.utc)
        elif value is firestore.DELETE_FIELD:
            pass
        elif isinstance(value, dict):
            value = _resolve_sentinels(value)
        else:
            value = copy.deepcopy(value)
        resolved[key] = value
    return resolved


def _matches(value: Any, op: str, expected: Any) -> bool:
    if value is _MISSING:
        return False
    try:
        if op == "==":
            return value == expected
        if op == "!=":
            return value != expected
        if op == "<":
            return value is not None and value < expected
        if op == "<=":
            return value is not None and value <= expected
        if op == ">":
            return value is not None and value > expected
        if op == ">=":
            return value is not None and value >= expected
        if op == "in":
            return value in expected
        if op == "not-in":
            return value not in expected
        if op == "array-contains":
            return isinstance(value, list) and expected in value
        if op == "array-contains-any":
            return isinstance(value, list) and any(v in value for v in expected)
    except TypeError:
        # Firestore never matches across incompatible types
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


def _encode(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return {"__datetime__": obj.isoformat()}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _decode(obj: Dict[str, Any]) -> Any:
    if set(obj) == {"__datetime__"}:
        return datetime.fromisoformat(obj["__datetime__"])
    return obj


class MockDocumentSnapshot:
    def __init__(self, reference: "MockDocumentReference", data: Optional[Dict[str, Any]]):
        self.reference = reference
        self._data = data

    @property
    def id(self) -> str:
        return self.reference.id

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str) -> Any:
        if self._data is None:
            return None
        value = _get_field(self._data, field_path)
        if value is _MISSING:
            raise KeyError(f"'{field_path}' is not contained in the data")
        return copy.deepcopy(value)


class MockDocumentReference:
    def __init__(self, store: "MockFirestore", collection_name: str, doc_id: str):
        self._store = store
        self._collection_name = collection_name
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self._collection_name}/{self.id}"

    @property
    def parent(self) -> "MockCollectionReference":
        return self._store.collection(self._collection_name)

    def get(self) -> MockDocumentSnapshot:
        with self._store.lock:
            data = self._store.documents(self._collection_name).get(self.id)
            return MockDocumentSnapshot(self, copy.deepcopy(data))

    def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        with self._store.lock:
            documents = self._store.documents(self._collection_name)
            incoming = _resolve_sentinels(data)
            if merge and self.id in documents:
                for key, value in incoming.items():
                    _set_field(documents[self.id], key, value)
            else:
                documents[self.id] = incoming
            self._store.persist()

    def update(self, field_updates: Dict[str, Any]) -> None:
        with self._store.lock:
            documents = self._store.documents(self._collection_name)
            if self.id not in documents:
                raise NotFound(f"No document to update: {self.path}")
            for key, value in _resolve_sentinels(field_updates).items():
                _set_field(documents[self.id], key, value)
            self._store.persist()

    def delete(self) -> None:
        with self._store.lock:
            self._store.documents(self._collection_name).pop(self.id, None)
            self._store.persist()


class MockAggregationResult:
    def __init__(self, alias: str, value: int):
        self.alias = alias
        self.value = value


class MockAggregationQuery:
    def __init__(self, query: "MockQuery", alias: Optional[str]):
        self._query = query
        self._alias = alias or "count"

    def get(self) -> List[List[MockAggregationResult]]:
        total = sum(1 for _ in self._query._matching())
        return [[MockAggregationResult(self._alias, total)]]


class MockQuery:
    def __init__(
        self,
        store: "MockFirestore",
        collection_name: str,
        filters: Tuple = (),
        orders: Tuple = (),
        offset_value: int = 0,
        limit_value: Optional[int] = None,
    ):
        self._store = store
        self._collection_name = collection_name
        self._filters = filters
        self._orders = orders
        self._offset = offset_value
        self._limit = limit_value

    def _copy(self, **changes) -> "MockQuery":
        params = {
            "filters": self._filters,
            "orders": self._orders,
            "offset_value": self._offset,
            "limit_value": self._limit,
        }
        params.update(changes)
        return MockQuery(self._store, self._collection_name, **params)

    def where(self, field_path: Optional[str] = None, op_string: Optional[str] = None,
              value: Any = None, *, filter: Any = None) -> "MockQuery":
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + ((field_path, op_string, value),))

    def order_by(self, field_path: str, direction: str = ASCENDING) -> "MockQuery":
        return self._copy(orders=self._orders + ((field_path, direction),))

    def offset(self, num_to_skip: int) -> "MockQuery":
        return self._copy(offset_value=num_to_skip)

    def limit(self, count: int) -> "MockQuery":
        return self._copy(limit_value=count)

    def select(self, field_paths: List[str]) -> "MockQuery":
        # Projection only trims payloads; full documents are fine here
        return self

    def count(self, alias: Optional[str] = None) -> MockAggregationQuery:
        return MockAggregationQuery(self._copy(offset_value=0, limit_value=None), alias)

    def _matching(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        with self._store.lock:
            items = [
                (doc_id, copy.deepcopy(data))
                for doc_id, data in self._store.documents(self._collection_name).items()
            ]

        items = [
            (doc_id, data) for doc_id, data in items
            if all(_matches(_get_field(data, f), op, v) for f, op, v in self._filters)
        ]

        # Ordering on a field drops documents that lack it, as Firestore does
        for field_path, _ in self._orders:
            items = [(doc_id, data) for doc_id, data in items if _get_field(data, field_path) is not _MISSING]
        for field_path, direction in reversed(self._orders):
            items.sort(
                key=lambda item: (_get_field(item[1], field_path) is not None, _get_field(item[1], field_path)),
                reverse=(direction == DESCENDING),
            )

        items = items[self._offset:]
        if self._limit is not None:
            items = items[:self._limit]
        return iter(items)

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        for doc_id, data in self._matching():
            ref = MockDocumentReference(self._store, self._collection_name, doc_id)
            yield MockDocumentSnapshot(ref, data)

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, store: "MockFirestore", name: str):
        super().__init__(store, name)
        self.id = name

    def document(self, document_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self._store, self._collection_name, document_id or uuid.uuid4().hex[:20])


class MockFirestore:
    """Dictionary-backed Firestore client replacement."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.lock = threading.RLock()
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                self._data = json.load(f, object_hook=_decode)
            logger.info(f"[MOCK FIRESTORE] Loaded {sum(len(c) for c in self._data.values())} documents from {path}")

    def documents(self, collection_name: str) -> Dict[str, Dict[str, Any]]:
        return self._data.setdefault(collection_name, {})

    def collection(self, name: str) -> MockCollectionReference:
        return MockCollectionReference(self, name)

    def collections(self) -> List[MockCollectionReference]:
        return [MockCollectionReference(self, name) for name in self._data]

    def persist(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, default=_encode, indent=2)


_mock_db: Optional[MockFirestore] = None


def get_mock_db(path: Optional[str] = None) -> MockFirestore:
    """Get or create the process-wide MockFirestore instance."""
    global _mock_db
    if _mock_db is None:
        _mock_db = MockFirestore(path)
    return _mock_db
