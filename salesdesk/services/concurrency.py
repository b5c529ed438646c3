# salesdesk/services/concurrency.py

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger("app.concurrency")


def run_with_retry(db: Session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of database work, retrying it on transient storage failures.

    ``func`` must perform the complete transaction (including its commit) so
    that a retry after rollback starts from a clean state. Only
    OperationalError (lock timeouts, deadlocks, dropped connections) is
    retried; every other exception propagates on the first attempt.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                f"Transient database error (attempt {attempt + 1}/{attempts}), "
                f"retrying in {delay:.2f}s: {exc.orig}"
            )
            time.sleep(delay)
