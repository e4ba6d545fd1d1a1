"""Error taxonomy for the hydration engine.

None of these is fatal to the process. Validation and lookup errors are
raised to the caller with state unchanged; persistence and scheduling
errors are logged by the engine, which keeps its in-memory state.
"""

from __future__ import annotations


class HydrationError(Exception):
    """Base class for every error raised by the hydration engine."""


class ValidationError(HydrationError):
    """Raised for out-of-range settings or a non-positive volume."""


class InvalidAccentError(ValidationError):
    """Raised when an accent name is not one of the known colors."""


class DuplicateRecordError(HydrationError):
    """Raised when a record collides with an existing one."""


class NotFoundError(HydrationError):
    """Raised when a record to delete is not in the store."""


class PersistenceError(HydrationError):
    """Raised by a persistence adapter when load or save fails."""


class SchedulingError(HydrationError):
    """Raised by a notification adapter when it cannot schedule an alert."""
