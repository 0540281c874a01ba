"""
Transaction boundary for ledger mutations.

Each mutation runs in one transaction. Writers lock the enrollment row
(SELECT ... FOR UPDATE where the database supports it) and bump its version;
a writer that validated against a stale snapshot fails the version check,
is rolled back and re-runs against fresh data.
"""
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from tenacity import Retrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_random

import config
from services.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)

CONFLICT_ERRORS = (StaleDataError, IntegrityError)


def bump_version(enrollment):
    enrollment.version = (enrollment.version or 0) + 1


def _log_retry(retry_state):
    exc = retry_state.outcome.exception()
    logger.warning(
        "Ledger write conflict (attempt %s): %s - retrying with fresh data",
        retry_state.attempt_number, exc.__class__.__name__,
    )


def run_in_transaction(db: Session, operation, *args, **kwargs):
    """Run operation(db, ...) and commit; roll back and retry on write conflicts."""

    def attempt():
        try:
            result = operation(db, *args, **kwargs)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return result

    retrying = Retrying(
        stop=stop_after_attempt(max(1, config.LEDGER_MAX_RETRIES)),
        retry=retry_if_exception_type(CONFLICT_ERRORS),
        wait=wait_random(0, 0.05),
        before_sleep=_log_retry,
    )
    try:
        return retrying(attempt)
    except RetryError as exc:
        cause = exc.last_attempt.exception()
        logger.error("Ledger write gave up after %s attempts: %s", exc.last_attempt.attempt_number, cause)
        raise ConcurrencyConflict("The ledger was changed by another request, please retry") from cause
