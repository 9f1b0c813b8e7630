# fitcoach/utils/retry.py
"""
Unit-of-work helpers for the write paths.

A unit is a callable that stages rows on ``db.session`` and returns a result;
it never commits. ``run_in_transaction`` owns the commit, the rollback and the
bounded storage retry. ``resolve_conflicts`` owns the adjustment-race retry.
"""
import logging
import time

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from fitcoach.errors import PolicyConflict, StorageError
from fitcoach.extensions import db

logger = logging.getLogger(__name__)


def _is_transient(exc) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def run_in_transaction(unit):
    attempts = max(1, int(current_app.config.get("STORAGE_RETRY_ATTEMPTS", 3)))
    backoff = float(current_app.config.get("STORAGE_RETRY_BACKOFF_SECS", 0.1))

    for attempt in range(1, attempts + 1):
        try:
            result = unit()
            db.session.commit()
            return result
        except (StaleDataError, IntegrityError) as e:
            db.session.rollback()
            raise PolicyConflict() from e
        except DBAPIError as e:
            db.session.rollback()
            if not _is_transient(e):
                logger.error("Storage failure (not retried): %s", e)
                raise StorageError() from e
            if attempt == attempts:
                logger.error("Storage retries exhausted after %s attempts: %s", attempts, e)
                raise StorageError() from e
            delay = backoff * (2 ** (attempt - 1))
            logger.warning("Transient storage error (attempt %s/%s), retrying in %.2fs: %s",
                           attempt, attempts, delay, e)
            time.sleep(delay)
        except Exception:
            db.session.rollback()
            raise


def resolve_conflicts(unit, user_id=None):
    """
    Run ``unit(allow_adjustment)`` in a transaction, retrying once on a lost
    adjustment race. A second loss records the event without adjusting, so the
    caller sees the winner's adjustment instead of an error.
    """
    try:
        return run_in_transaction(lambda: unit(True))
    except PolicyConflict:
        logger.info("Adjustment race lost for user_id=%s, re-evaluating", user_id)

    try:
        return run_in_transaction(lambda: unit(True))
    except PolicyConflict:
        logger.warning("Adjustment race lost twice for user_id=%s, deferring to current adjustment", user_id)

    try:
        return run_in_transaction(lambda: unit(False))
    except PolicyConflict as e:
        raise StorageError() from e
