# conftest.py
"""
Shared pytest fixtures.

`fake_db` is a small in-memory stand-in for the Firestore client so service
classes can be exercised without the emulator. It understands documents,
subcollections, simple queries, transactions/batches and the Increment,
ArrayUnion, ArrayRemove and SERVER_TIMESTAMP transforms. Transaction and
batch writes are buffered and only applied on commit.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from firebase_admin import firestore
from google.api_core.exceptions import Conflict, NotFound
from google.cloud.firestore_v1 import transforms


def _split(path: str) -> List[str]:
    return [part for part in path.split(".") if part]


def _get_path(data: Optional[dict], field_path: str) -> Any:
    current: Any = data
    for part in _split(field_path):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def _has_path(data: dict, field_path: str) -> bool:
    current: Any = data
    for part in _split(field_path):
        if not isinstance(current, dict) or part not in current:
            return False
        current = current[part]
    return True


def _apply_value(target: dict, field_path: str, value: Any) -> None:
    parts = _split(field_path)
    parent = target
    for part in parts[:-1]:
        parent = parent.setdefault(part, {})
    key = parts[-1]
    current = parent.get(key)

    if value is transforms.DELETE_FIELD:
        parent.pop(key, None)
    elif value is transforms.SERVER_TIMESTAMP:
        parent[key] = datetime.now(timezone.utc)
    elif isinstance(value, transforms.Increment):
        parent[key] = (current or 0) + value.value
    elif isinstance(value, transforms.ArrayUnion):
        merged = list(current or [])
        for item in value.values:
            if item not in merged:
                merged.append(item)
        parent[key] = merged
    elif isinstance(value, transforms.ArrayRemove):
        parent[key] = [item for item in (current or []) if item not in value.values]
    else:
        parent[key] = copy.deepcopy(value)


class FakeSnapshot:
    def __init__(self, reference: "FakeDocumentReference", data: Optional[dict]):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data) if data is not None else None

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str) -> Any:
        return _get_path(self._data, field_path)


class FakeDocumentReference:
    def __init__(self, db: "FakeFirestore", path: str):
        self._db = db
        self.path = path
        self.id = path.rsplit("/", 1)[-1]

    def collection(self, name: str) -> "FakeCollectionReference":
        return FakeCollectionReference(self._db, f"{self.path}/{name}")

    def get(self, transaction=None, field_paths=None) -> FakeSnapshot:
        return FakeSnapshot(self, self._db.docs.get(self.path))

    def set(self, data: dict, merge: bool = False) -> None:
        base = copy.deepcopy(self._db.docs.get(self.path, {})) if merge else {}
        for key, value in data.items():
            if merge and isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key].update(copy.deepcopy(value))
            else:
                _apply_value(base, key, value) if "." not in key else base.__setitem__(key, copy.deepcopy(value))
        self._db.docs[self.path] = base

    def create(self, data: dict) -> None:
        if self.path in self._db.docs:
            raise Conflict(f"Document already exists: {self.path}")
        self.set(data)

    def update(self, data: dict) -> None:
        if self.path not in self._db.docs:
            raise NotFound(f"No document to update: {self.path}")
        current = copy.deepcopy(self._db.docs[self.path])
        for key, value in data.items():
            _apply_value(current, key, value)
        self._db.docs[self.path] = current

    def delete(self) -> None:
        self._db.docs.pop(self.path, None)

    def __eq__(self, other):
        return isinstance(other, FakeDocumentReference) and other.path == self.path

    def __hash__(self):
        return hash(self.path)


_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a is not None and a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "not-in": lambda a, b: a is not None and a not in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
    "array_contains_any": lambda a, b: isinstance(a, list) and any(x in a for x in b),
}


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection_path: str, filters=(), orders=(), limit_to=None, cursor=None):
        self._db = db
        self._collection_path = collection_path
        self._filters = list(filters)
        self._orders = list(orders)
        self._limit = limit_to
        self._cursor = cursor

    def _copy(self, **changes) -> "FakeQuery":
        params = dict(
            filters=self._filters, orders=self._orders,
            limit_to=self._limit, cursor=self._cursor,
        )
        params.update(changes)
        return FakeQuery(self._db, self._collection_path, **params)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None) -> "FakeQuery":
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path: str, direction: str = "ASCENDING") -> "FakeQuery":
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count: int) -> "FakeQuery":
        return self._copy(limit_to=count)

    def start_after(self, document) -> "FakeQuery":
        return self._copy(cursor=document)

    def _documents(self):
        prefix = self._collection_path + "/"
        for path, data in self._db.docs.items():
            if path.startswith(prefix) and "/" not in path[len(prefix):]:
                yield FakeDocumentReference(self._db, path), data

    def _matches(self, ref: FakeDocumentReference, data: dict) -> bool:
        for field_path, op_string, value in self._filters:
            actual = ref.id if field_path == "__name__" else _get_path(data, field_path)
            if field_path == "__name__" and op_string == "in":
                value = [v.id if isinstance(v, FakeDocumentReference) else str(v).rsplit("/", 1)[-1] for v in value]
            if not _OPERATORS[op_string](actual, value):
                return False
        return True

    def _results(self) -> List[FakeSnapshot]:
        rows = [(ref, data) for ref, data in self._documents() if self._matches(ref, data)]
        for field_path, _ in self._orders:
            rows = [(ref, data) for ref, data in rows if _has_path(data, field_path)]
        rows.sort(key=lambda row: row[0].id)
        for field_path, direction in reversed(self._orders):
            rows.sort(key=lambda row: _get_path(row[1], field_path), reverse=(direction == "DESCENDING"))
        if self._cursor is not None:
            cursor_id = self._cursor.id if hasattr(self._cursor, "id") else self._cursor
            ids = [ref.id for ref, _ in rows]
            if cursor_id in ids:
                rows = rows[ids.index(cursor_id) + 1:]
        if self._limit is not None:
            rows = rows[:self._limit]
        return [FakeSnapshot(ref, data) for ref, data in rows]

    def stream(self, transaction=None):
        return iter(self._results())

    def get(self, transaction=None) -> List[FakeSnapshot]:
        return self._results()


class FakeCollectionReference(FakeQuery):
    def __init__(self, db: "FakeFirestore", path: str):
        super().__init__(db, path)
        self.id = path.rsplit("/", 1)[-1]

    def document(self, document_id: Optional[str] = None) -> FakeDocumentReference:
        return FakeDocumentReference(self._db, f"{self._collection_path}/{document_id or uuid.uuid4().hex}")

    def add(self, data: dict):
        ref = self.document()
        ref.set(data)
        return datetime.now(timezone.utc), ref


class FakeWriteBatch:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._writes = []
        self.committed = False

    def set(self, reference, data, merge=False):
        self._writes.append(lambda: reference.set(data, merge=merge))

    def create(self, reference, data):
        self._writes.append(lambda: reference.create(data))

    def update(self, reference, data):
        self._writes.append(lambda: reference.update(data))

    def delete(self, reference):
        self._writes.append(reference.delete)

    def commit(self):
        snapshot = copy.deepcopy(self._db.docs)
        try:
            for write in self._writes:
                write()
        except Exception:
            self._db.docs = snapshot
            raise
        self._writes = []
        self.committed = True


class FakeTransaction(FakeWriteBatch):
    def get(self, ref_or_query):
        if isinstance(ref_or_query, FakeDocumentReference):
            return iter([ref_or_query.get()])
        return ref_or_query.stream()


class FakeFirestore:
    def __init__(self):
        self.docs: Dict[str, dict] = {}

    def collection(self, name: str) -> FakeCollectionReference:
        return FakeCollectionReference(self, name)

    def document(self, path: str) -> FakeDocumentReference:
        return FakeDocumentReference(self, path)

    def transaction(self, **kwargs) -> FakeTransaction:
        return FakeTransaction(self)

    def batch(self) -> FakeWriteBatch:
        return FakeWriteBatch(self)

    # test helpers
    def seed(self, path: str, data: dict) -> None:
        self.docs[path] = copy.deepcopy(data)

    def read(self, path: str) -> Optional[dict]:
        data = self.docs.get(path)
        return copy.deepcopy(data) if data is not None else None


def fake_transactional(func):
    """Runs the body once and commits the buffered writes, like a conflict-free transaction."""
    def wrapper(transaction, *args, **kwargs):
        result = func(transaction, *args, **kwargs)
        transaction.commit()
        return result
    return wrapper


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firestore, "client", lambda *args, **kwargs: db)
    monkeypatch.setattr(firestore, "transactional", fake_transactional)
    return db


@pytest.fixture
def seed_users(fake_db):
    """Three readers with overlapping taste."""
    users = {
        "alice": {"uid": "alice", "email": "alice@example.com", "display_name": "Alice",
                  "favorite_genres": ["Mystery", "Fantasy"], "friends": []},
        "bob": {"uid": "bob", "email": "bob@example.com", "display_name": "Bob",
                "favorite_genres": ["Mystery"], "friends": []},
        "carol": {"uid": "carol", "email": "carol@example.com", "display_name": "Carol",
                  "favorite_genres": ["Romance"], "friends": []},
    }
    for uid, data in users.items():
        fake_db.seed(f"users/{uid}", data)
    return users
