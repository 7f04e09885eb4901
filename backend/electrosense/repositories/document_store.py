"""
Document-style access to the shop's tables.

Collections (`products`, `orders`, `categories`, `users`) are addressed by id;
documents cross this boundary as validated pydantic records. Multi-document
changes go through `DocumentStore.transaction`, which hands the callback a
`TransactionHandle` and commits everything it did as one unit. Products and
orders carry an optimistic version, so a transaction that writes a document
somebody else changed after it was read is aborted instead of overwriting.
"""
import operator
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from electrosense.db import SessionLocal
from electrosense.models.category import Category
from electrosense.models.document import plain_value
from electrosense.models.order import Order
from electrosense.models.product import Product
from electrosense.models.user import User
from electrosense.schemas.base import DocumentModel
from electrosense.schemas.category_schema import CategoryRecord
from electrosense.schemas.order_schema import OrderRecord
from electrosense.schemas.product_schema import ProductRecord
from electrosense.schemas.user_schema import UserRecord
from electrosense.utils.logging import get_logger
from electrosense.utils.transactions import (
    DocumentNotFound,
    StoreError,
    TransactionOrderError,
    atomic,
    describe_abort,
)

log = get_logger("store")

T = TypeVar("T")

Filter = Tuple[str, str, Any]

COLLECTIONS = {
    "products": (Product, ProductRecord),
    "orders": (Order, OrderRecord),
    "categories": (Category, CategoryRecord),
    "users": (User, UserRecord),
}

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda col, value: col.in_([plain_value(v) for v in value]),
    "startswith": lambda col, value: col.startswith(value, autoescape=True),
}


def new_id() -> str:
    return uuid4().hex[:20]


def _resolve(collection: str):
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}")


def _column(model, field: str):
    col = model.__table__.columns.get(field)
    if col is None or field == "version":
        raise ValueError(f"{model.__tablename__} has no field {field!r}")
    return getattr(model, field)


class TransactionHandle:
    """
    Operations issued inside one `DocumentStore.transaction` callback.

    Every `get` must happen before the first `update`/`set`/`delete`; reading
    after writing raises TransactionOrderError.
    """

    def __init__(self, session: Session):
        self.session = session
        self._rows: Dict[Tuple[str, str], Any] = {}
        self._writing = False

    def _row(self, collection: str, doc_id: str):
        model, _ = _resolve(collection)
        key = (collection, doc_id)
        if key not in self._rows:
            self._rows[key] = self.session.get(model, doc_id)
        return self._rows[key]

    def get(self, collection: str, doc_id: str):
        if self._writing:
            raise TransactionOrderError(
                f"read of {collection}/{doc_id} issued after a write in the same transaction"
            )
        _, record_cls = _resolve(collection)
        row = self._row(collection, doc_id)
        if row is None:
            return None
        return record_cls.from_document(row.to_document())

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Merge `fields` into an existing document."""
        self._writing = True
        row = self._row(collection, doc_id)
        if row is None:
            raise DocumentNotFound(collection, doc_id)
        row.apply_document(fields)

    def set(self, collection: str, doc_id: str, document) -> None:
        """Create the document, or replace the fields of an existing one."""
        self._writing = True
        model, _ = _resolve(collection)
        if isinstance(document, DocumentModel):
            values = document.to_document()
        else:
            values = dict(document)
        row = self._row(collection, doc_id)
        if row is None:
            row = model(id=doc_id)
            self.session.add(row)
            self._rows[(collection, doc_id)] = row
        row.apply_document(values)

    def delete(self, collection: str, doc_id: str) -> bool:
        self._writing = True
        row = self._row(collection, doc_id)
        if row is None:
            return False
        self.session.delete(row)
        self._rows[(collection, doc_id)] = None
        return True


class DocumentStore:
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def get(self, collection: str, doc_id: str):
        model, record_cls = _resolve(collection)
        with self.session_factory() as session:
            try:
                row = session.get(model, doc_id)
            except SQLAlchemyError as e:
                raise StoreError(describe_abort(e)) from e
            if row is None:
                return None
            return record_cls.from_document(row.to_document())

    def transaction(self, callback: Callable[[TransactionHandle], T]) -> T:
        """
        Run `callback(tx)` and commit everything it did atomically.

        Exceptions raised by the callback roll the whole unit back and
        propagate unchanged; failures of the store itself (including a stale
        optimistic version at commit) raise TransactionAborted. Nothing is
        retried here.
        """
        with self.session_factory() as session:
            with atomic(session):
                result = callback(TransactionHandle(session))
            return result

    def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List:
        model, record_cls = _resolve(collection)
        stmt = select(model)
        for field, op, value in filters or ():
            if op not in _OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
            stmt = stmt.where(_OPERATORS[op](_column(model, field), plain_value(value)))
        if order_by:
            col = _column(model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc(), model.id.asc())
        if limit:
            stmt = stmt.limit(limit)

        with self.session_factory() as session:
            try:
                rows = session.scalars(stmt).all()
            except SQLAlchemyError as e:
                log.error("query on %s failed: %s", collection, e)
                raise StoreError(describe_abort(e)) from e
            return [record_cls.from_document(row.to_document()) for row in rows]
