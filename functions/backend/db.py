"""
Document store abstraction for Firestore, SQL and an in-memory test implementation.

Documents are plain dicts addressed by (collection, document id). Multi-step
read-modify-write operations go through `run_transaction`, which hands a
`Transaction` to a callback and commits its writes only if the callback
returns normally. As with Firestore, callbacks should do all reads before the
first write.
"""

from __future__ import annotations

import copy
import json
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, TypeVar

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import JSON, Column, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lobby.errors import NotFoundError

T = TypeVar("T")


class _DeleteField:
    def __repr__(self) -> str:
        return "DELETE_FIELD"

    # Stored documents are deep-copied; the sentinel must stay identical.
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


# Use as a value in `update` to remove the field.
DELETE_FIELD = _DeleteField()


def apply_update(data: dict, updates: dict) -> dict:
    merged = dict(data)
    for key, value in updates.items():
        if value is DELETE_FIELD:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def _matches(data: dict, field: str, value: Any) -> bool:
    return field in data and data[field] == value


def _sorted_docs(
    docs: list[tuple[str, dict]], order_by: str | None, descending: bool
) -> list[tuple[str, dict]]:
    if not order_by:
        return docs
    # Firestore leaves out documents that lack the ordering field.
    present = [(doc_id, data) for doc_id, data in docs if data.get(order_by) is not None]
    return sorted(present, key=lambda item: item[1][order_by], reverse=descending)


class Transaction(Protocol):
    """Reads and buffered writes inside `DocumentStore.run_transaction`."""

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        ...

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def add(self, collection: str, data: dict) -> str:
        ...


class DocumentStore(Protocol):
    """Interface for document access."""

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        ...

    def find(self, collection: str, field: str, value: Any) -> list[tuple[str, dict]]:
        ...

    def list(
        self, collection: str, order_by: str | None = None, descending: bool = False
    ) -> list[tuple[str, dict]]:
        ...

    def add(self, collection: str, data: dict) -> str:
        ...

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        ...


class _BufferedTransaction:
    """
    Transaction whose writes are held until commit.

    Reads see the transaction's own pending writes on top of `read_doc`.
    """

    def __init__(
        self,
        read_doc: Callable[[str, str], Optional[dict]],
        scan: Callable[[str], list[tuple[str, dict]]],
    ):
        self._read_doc = read_doc
        self._scan = scan
        # (collection, doc_id) -> new data, or None for a delete.
        self.pending: dict[tuple[str, str], Optional[dict]] = {}

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        key = (collection, doc_id)
        if key in self.pending:
            return copy.deepcopy(self.pending[key])
        return self._read_doc(collection, doc_id)

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        for doc_id, _ in self._scan(collection):
            data = self.get(collection, doc_id)
            if data is not None and _matches(data, field, value):
                return doc_id, data
        for (coll, doc_id), data in self.pending.items():
            if coll == collection and data is not None and _matches(data, field, value):
                return doc_id, copy.deepcopy(data)
        return None

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self.pending[(collection, doc_id)] = copy.deepcopy(data)

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        current = self.get(collection, doc_id)
        if current is None:
            raise NotFoundError(f"No document {collection}/{doc_id} to update.")
        self.pending[(collection, doc_id)] = apply_update(current, updates)

    def delete(self, collection: str, doc_id: str) -> None:
        self.pending[(collection, doc_id)] = None

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self._lock = threading.RLock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.collections.clear()

    def _docs(self, collection: str) -> dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def _read(self, collection: str, doc_id: str) -> Optional[dict]:
        data = self._docs(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def _scan(self, collection: str) -> list[tuple[str, dict]]:
        return [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in self._docs(collection).items()
        ]

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            return self._read(collection, doc_id)

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        found = self.find(collection, field, value)
        return found[0] if found else None

    def find(self, collection: str, field: str, value: Any) -> list[tuple[str, dict]]:
        with self._lock:
            return [
                (doc_id, data)
                for doc_id, data in self._scan(collection)
                if _matches(data, field, value)
            ]

    def list(
        self, collection: str, order_by: str | None = None, descending: bool = False
    ) -> list[tuple[str, dict]]:
        with self._lock:
            return _sorted_docs(self._scan(collection), order_by, descending)

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self._docs(collection)[doc_id] = copy.deepcopy(data)

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        with self._lock:
            current = self._docs(collection).get(doc_id)
            if current is None:
                raise NotFoundError(f"No document {collection}/{doc_id} to update.")
            self._docs(collection)[doc_id] = apply_update(
                current, copy.deepcopy(updates)
            )

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._docs(collection).pop(doc_id, None)

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        with self._lock:
            transaction = _BufferedTransaction(self._read, self._scan)
            result = fn(transaction)
            for (collection, doc_id), data in transaction.pending.items():
                if data is None:
                    self._docs(collection).pop(doc_id, None)
                else:
                    self._docs(collection)[doc_id] = data
            return result


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _json_object_hook(obj: dict) -> Any:
    if set(obj) == {"__datetime__"}:
        return datetime.fromisoformat(obj["__datetime__"])
    return obj


def _dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False)


def _loads(value: str) -> Any:
    return json.loads(value, object_hook=_json_object_hook)


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Every document is one JSON row; queries filter and sort in Python.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
            json_serializer=_dumps,
            json_deserializer=_loads,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _rows(self, session: Session, collection: str) -> list[DocumentRow]:
        stmt = select(DocumentRow).where(DocumentRow.collection == collection)
        return list(session.execute(stmt).scalars())

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            return copy.deepcopy(row.data) if row else None

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        found = self.find(collection, field, value)
        return found[0] if found else None

    def find(self, collection: str, field: str, value: Any) -> list[tuple[str, dict]]:
        return [
            (doc_id, data)
            for doc_id, data in self.list(collection)
            if _matches(data, field, value)
        ]

    def list(
        self, collection: str, order_by: str | None = None, descending: bool = False
    ) -> list[tuple[str, dict]]:
        with self.Session() as session:
            docs = [
                (row.doc_id, copy.deepcopy(row.data))
                for row in self._rows(session, collection)
            ]
        return _sorted_docs(docs, order_by, descending)

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        with self.Session() as session:
            session.merge(DocumentRow(collection=collection, doc_id=doc_id, data=data))
            session.commit()

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                raise NotFoundError(f"No document {collection}/{doc_id} to update.")
            row.data = apply_update(row.data, updates)
            session.commit()

    def delete(self, collection: str, doc_id: str) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if row:
                session.delete(row)
                session.commit()

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        with self.Session() as session:

            def read_doc(collection: str, doc_id: str) -> Optional[dict]:
                stmt = (
                    select(DocumentRow)
                    .where(
                        DocumentRow.collection == collection,
                        DocumentRow.doc_id == doc_id,
                    )
                    .with_for_update()
                )
                row = session.execute(stmt).scalar_one_or_none()
                return copy.deepcopy(row.data) if row else None

            def scan(collection: str) -> list[tuple[str, dict]]:
                return [
                    (row.doc_id, copy.deepcopy(row.data))
                    for row in self._rows(session, collection)
                ]

            transaction = _BufferedTransaction(read_doc, scan)
            try:
                result = fn(transaction)
                for (collection, doc_id), data in transaction.pending.items():
                    row = session.get(DocumentRow, (collection, doc_id))
                    if data is None:
                        if row:
                            session.delete(row)
                    elif row:
                        row.data = data
                    else:
                        session.add(
                            DocumentRow(collection=collection, doc_id=doc_id, data=data)
                        )
                session.commit()
            except Exception:
                session.rollback()
                raise
            return result


class _FirestoreTransaction:
    def __init__(self, client, transaction):
        self._client = client
        self._transaction = transaction

    def _ref(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._ref(collection, doc_id).get(transaction=self._transaction)
        return snapshot.to_dict() if snapshot.exists else None

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        query = (
            self._client.collection(collection)
            .where(filter=FieldFilter(field, "==", value))
            .limit(1)
        )
        for snapshot in self._transaction.get(query):
            return snapshot.id, snapshot.to_dict()
        return None

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self._transaction.set(self._ref(collection, doc_id), data)

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        self._transaction.update(
            self._ref(collection, doc_id), _to_firestore_updates(updates)
        )

    def delete(self, collection: str, doc_id: str) -> None:
        self._transaction.delete(self._ref(collection, doc_id))

    def add(self, collection: str, data: dict) -> str:
        ref = self._client.collection(collection).document()
        self._transaction.set(ref, data)
        return ref.id


def _to_firestore_updates(updates: dict) -> dict:
    return {
        key: (firestore.DELETE_FIELD if value is DELETE_FIELD else value)
        for key, value in updates.items()
    }


class FirestoreDocumentStore:
    """Firestore implementation on top of the initialized firebase_admin app."""

    def __init__(self, client=None):
        self.client = client or firestore.client()

    def _ref(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._ref(collection, doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def find_one(
        self, collection: str, field: str, value: Any
    ) -> Optional[tuple[str, dict]]:
        found = self._query(collection, field, value, limit=1)
        return found[0] if found else None

    def find(self, collection: str, field: str, value: Any) -> list[tuple[str, dict]]:
        return self._query(collection, field, value)

    def _query(
        self, collection: str, field: str, value: Any, limit: int | None = None
    ) -> list[tuple[str, dict]]:
        query = self.client.collection(collection).where(
            filter=FieldFilter(field, "==", value)
        )
        if limit:
            query = query.limit(limit)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]

    def list(
        self, collection: str, order_by: str | None = None, descending: bool = False
    ) -> list[tuple[str, dict]]:
        query = self.client.collection(collection)
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]

    def add(self, collection: str, data: dict) -> str:
        _, ref = self.client.collection(collection).add(data)
        return ref.id

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self._ref(collection, doc_id).set(data)

    def update(self, collection: str, doc_id: str, updates: dict) -> None:
        self._ref(collection, doc_id).update(_to_firestore_updates(updates))

    def delete(self, collection: str, doc_id: str) -> None:
        self._ref(collection, doc_id).delete()

    def run_transaction(self, fn: Callable[[Transaction], T]) -> T:
        @firestore.transactional
        def _run(transaction):
            return fn(_FirestoreTransaction(self.client, transaction))

        return _run(self.client.transaction())
