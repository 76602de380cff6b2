# Overview: Storage-level concurrency primitives shared by every stock mutation.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Acquire exclusive write intent on the rows a query returns, held until
    the surrounding transaction ends.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there begin_write_transaction()
    takes the database write lock up front and version_id columns catch any
    remaining lost update.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the unit of work as a write transaction.

    On SQLite this issues BEGIN IMMEDIATE (unless the connection is already
    inside a transaction) so the reads that decide a write are made under the
    same lock as the write. Other databases rely on lock_for_update().
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.dbapi_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work, rolling back on every failure.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Any other exception is re-raised after
    the rollback so no partial state survives a failed operation.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent write conflict (attempt %d/%d): %s", attempt + 1, attempts, exc.__class__.__name__
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc

