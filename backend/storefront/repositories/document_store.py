import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from uuid import uuid4

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.db import SessionLocal
from storefront.models.document import Document

log = logging.getLogger(__name__)

ASC = "asc"
DESC = "desc"

_RANGE_OPS = ("<", "<=", ">", ">=")
_OPS = ("==",) + _RANGE_OPS

Filter = Tuple[str, str, Any]
OrderBy = Tuple[str, str]


class StoreError(Exception):
    """Generic data-access failure. Never retried by the store."""
    pass


class NotFound(StoreError):
    pass


class FailedPrecondition(StoreError):
    """The query needs a composite index that has not been registered."""
    pass


class InvalidQuery(StoreError):
    pass


@dataclass
class DocumentSnapshot:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.data, "id": self.id}


def _field(name: str):
    return func.json_extract(Document.data, f'$."{name}"')


def _compare(column, op: str, value):
    if op == "==":
        return column.is_(None) if value is None else column == value
    if op == "<":
        return column < value
    if op == "<=":
        return column <= value
    if op == ">":
        return column > value
    return column >= value


class DocumentStore:
    """
    Collection/document store persisted as JSON rows in the `documents` table.

    Every call opens its own short-lived session, so each write is a single
    atomic commit and calls may be issued concurrently from worker threads.
    Query semantics follow a managed document database: equality filters,
    range filters on the leading order-by field, "start after" cursors and a
    hard limit. Combining an equality filter with an order-by on a different
    field is refused with FailedPrecondition unless a composite index for it
    has been registered.
    """

    def __init__(self, session_factory=None, composite_indexes: Optional[Iterable[str]] = None):
        self.session_factory = session_factory or SessionLocal
        if composite_indexes is None:
            composite_indexes = settings.COMPOSITE_INDEXES
        self.composite_indexes = set(composite_indexes)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except StoreError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            log.error("document store failure: %s", e)
            raise StoreError(str(e)) from e
        finally:
            session.close()

    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        with self._session() as s:
            doc = s.get(Document, (collection, doc_id))
            if doc is None:
                return None
            return DocumentSnapshot(doc.id, dict(doc.data or {}))

    def add(self, collection: str, record: Dict[str, Any]) -> str:
        doc_id = uuid4().hex
        self.set(collection, doc_id, record)
        return doc_id

    def set(self, collection: str, doc_id: str, record: Dict[str, Any]) -> None:
        data = {k: v for k, v in record.items() if k != "id"}
        with self._session() as s:
            doc = s.get(Document, (collection, doc_id))
            if doc is None:
                s.add(Document(collection=collection, id=doc_id, data=data))
            else:
                doc.data = data

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        with self._session() as s:
            doc = s.get(Document, (collection, doc_id))
            if doc is None:
                raise NotFound(f"{collection}/{doc_id} not found")
            # reassign so the JSON column is flagged dirty
            doc.data = {**(doc.data or {}), **{k: v for k, v in partial.items() if k != "id"}}

    def delete(self, collection: str, doc_id: str) -> None:
        with self._session() as s:
            doc = s.get(Document, (collection, doc_id))
            if doc is not None:
                s.delete(doc)

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        start_after: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """
        Run a filtered, ordered scan over one collection.

        start_after holds the order-by values of the last seen document
        followed by its id; the id is always the final ascending tie-breaker.
        """
        filters = list(filters)
        order_by = list(order_by)
        self._check_query(collection, filters, order_by)

        stmt = select(Document).where(Document.collection == collection)
        for name, op, value in filters:
            stmt = stmt.where(_compare(_field(name), op, value))

        if start_after is not None:
            stmt = stmt.where(self._after(order_by, list(start_after)))

        ordering = []
        for name, direction in order_by:
            column = _field(name)
            ordering.append(column.desc() if direction == DESC else column.asc())
        ordering.append(Document.id.asc())
        stmt = stmt.order_by(*ordering)

        if limit is not None:
            if limit < 1:
                raise InvalidQuery("limit must be positive")
            stmt = stmt.limit(limit)

        with self._session() as s:
            rows = s.execute(stmt).scalars().all()
            return [DocumentSnapshot(r.id, dict(r.data or {})) for r in rows]

    def _check_query(self, collection: str, filters: List[Filter], order_by: List[OrderBy]):
        for name, op, _ in filters:
            if op not in _OPS:
                raise InvalidQuery(f"unsupported operator {op!r} on {name}")
        for name, direction in order_by:
            if direction not in (ASC, DESC):
                raise InvalidQuery(f"unsupported direction {direction!r} on {name}")

        range_fields = {name for name, op, _ in filters if op in _RANGE_OPS}
        if len(range_fields) > 1:
            raise InvalidQuery("range filters are limited to a single field")
        if range_fields and order_by and order_by[0][0] not in range_fields:
            raise InvalidQuery("first order-by must be on the range-filtered field")

        equality_fields = {name for name, op, _ in filters if op == "=="}
        for order_field, _ in order_by:
            for eq_field in equality_fields:
                if eq_field == order_field:
                    continue
                index = f"{collection}:{eq_field}:{order_field}"
                if index not in self.composite_indexes:
                    raise FailedPrecondition(
                        f"The query requires a composite index: {index}"
                    )

    def _after(self, order_by: List[OrderBy], position: List[Any]):
        if len(position) != len(order_by) + 1:
            raise InvalidQuery("start_after must carry one value per order-by plus the id")

        keys = [(_field(name), direction) for name, direction in order_by]
        keys.append((Document.id, ASC))

        clauses = []
        for i, (column, direction) in enumerate(keys):
            prefix = [_compare(c, "==", position[j]) for j, (c, _) in enumerate(keys[:i])]
            beyond = column > position[i] if direction == ASC else column < position[i]
            clauses.append(and_(*prefix, beyond))
        return or_(*clauses)
