"""Record store — ordered intake records plus the retention rule.

Records are kept in insertion order and never mutated; they are only
appended or removed. The store wraps the list owned by AppState, so the
engine's lock is what serializes access.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date, datetime

from hydration.core.clock import local_day
from hydration.core.errors import DuplicateRecordError, NotFoundError, ValidationError
from hydration.data.models import EPOCH_RECORD, HydrationRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Insertion-ordered collection of HydrationRecord."""

    def __init__(self, records: list[HydrationRecord] | None = None) -> None:
        self._records = records if records is not None else []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HydrationRecord]:
        return iter(tuple(self._records))

    def snapshot(self) -> tuple[HydrationRecord, ...]:
        """Copy of the current records for readers."""
        return tuple(self._records)

    def append(self, record: HydrationRecord) -> HydrationRecord:
        """Insert a record at the end.

        Raises ValidationError for a non-positive volume and
        DuplicateRecordError when the date or id is already taken; the
        caller perturbs the timestamp and tries again.
        """
        if record.volume <= 0:
            raise ValidationError(f"Volume must be positive, got {record.volume!r}")
        for existing in self._records:
            if existing.id == record.id:
                raise DuplicateRecordError(f"Record id {record.id} already stored")
            if existing.date == record.date:
                raise DuplicateRecordError(f"A record at {record.date.isoformat()} already exists")

        self._records.append(record)
        logger.debug("Record appended: %s %.0f mL", record.date.isoformat(), record.volume)
        return record

    def get(self, record_id: str) -> HydrationRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def remove(self, record: HydrationRecord) -> HydrationRecord:
        """Remove the first record matching date and volume."""
        for idx, existing in enumerate(self._records):
            if existing.date == record.date and existing.volume == record.volume:
                return self._records.pop(idx)
        raise NotFoundError(f"No record at {record.date.isoformat()} with {record.volume} mL")

    def remove_by_id(self, record_id: str) -> HydrationRecord:
        for idx, existing in enumerate(self._records):
            if existing.id == record_id:
                return self._records.pop(idx)
        raise NotFoundError(f"No record with id {record_id}")

    def records_on(
        self, day: date, reference: datetime | None = None,
    ) -> Iterator[HydrationRecord]:
        """Yield records whose date falls on `day`, in insertion order.

        `reference` supplies the zone that defines the day's boundaries.
        Each call returns a fresh generator.
        """
        for record in tuple(self._records):
            if local_day(record.date, reference) == day:
                yield record

    def purge_older_than(self, cutoff: datetime) -> int:
        """Remove every record dated strictly before `cutoff`."""
        kept = [r for r in self._records if r.date >= cutoff]
        removed = len(self._records) - len(kept)
        self._records[:] = kept
        if removed:
            logger.info("Purged %d record(s) older than %s", removed, cutoff.isoformat())
        return removed

    def clear(self) -> int:
        removed = len(self._records)
        self._records.clear()
        return removed

    def most_recent(self) -> HydrationRecord:
        """Latest record by date, or EPOCH_RECORD when the store is empty."""
        if not self._records:
            return EPOCH_RECORD
        return max(self._records, key=lambda r: r.date)
