# Overview: Transaction helpers; every multi-step mutation runs inside run_in_transaction.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import IntegrityConflict
from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on=RETRYABLE_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default. Each attempt re-runs func
    from scratch after a rollback, so func must not carry state between
    attempts.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func as one all-or-nothing unit and commit.

    - Any exception rolls back every write made by func before propagating.
    - Lock/version conflicts and unique-key races (e.g. two transactions
      creating the same receipt counter) are retried from scratch.
    - A unique-key violation that survives the retries surfaces as
      IntegrityConflict.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    try:
        return run_with_retry(
            _op,
            attempts=attempts,
            backoff_base=backoff_base,
            retry_on=RETRYABLE_ERRORS + (IntegrityError,),
        )
    except IntegrityError as exc:
        raise IntegrityConflict() from exc
