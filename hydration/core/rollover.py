"""Day rollover — which records fall out of the retention window.

The window is anchored to the *next* midnight rather than to now, so a
record survives for `retention_days` complete days.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from hydration.core.clock import next_midnight
from hydration.core.record_store import RecordStore

logger = logging.getLogger(__name__)


def rollover_cutoff(now: datetime, retention_days: float) -> datetime:
    """Records dated before the returned moment are expired."""
    return next_midnight(now) - timedelta(days=retention_days)


def purge_expired(store: RecordStore, now: datetime, retention_days: float) -> int:
    """Drop expired records from `store`; returns how many were removed."""
    cutoff = rollover_cutoff(now, retention_days)
    removed = store.purge_older_than(cutoff)
    logger.info(
        "Rollover at %s: cutoff %s, %d record(s) purged",
        now.isoformat(), cutoff.isoformat(), removed,
    )
    return removed
