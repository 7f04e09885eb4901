from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError


class StoreError(Exception):
    pass


class DocumentNotFound(StoreError):
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} not found")


class TransactionAborted(StoreError):
    """The store refused to commit (contention, stale read, database failure)."""


class TransactionOrderError(RuntimeError):
    """A read was issued after a write inside the same transaction."""


def describe_abort(exc: SQLAlchemyError) -> str:
    if isinstance(exc, StaleDataError):
        return "a document read by this transaction was changed concurrently"
    if isinstance(exc, OperationalError):
        return f"store unavailable or busy: {exc.orig}"
    return f"store error: {exc}"


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Run the block as one atomic unit on `session`.
    A fresh session gets a normal transaction (commit on clean exit, rollback
    when the block raises); a session already in a transaction gets a SAVEPOINT.
    Database-level failures, including the commit itself, surface as
    TransactionAborted. Anything else raised by the block propagates unchanged.
    Usage:
        with atomic(db):
            ... DB work ...
    """
    if session.in_transaction():
        cm = session.begin_nested()
    else:
        cm = session.begin()
    try:
        with cm:
            yield session
    except SQLAlchemyError as e:
        raise TransactionAborted(describe_abort(e)) from e
