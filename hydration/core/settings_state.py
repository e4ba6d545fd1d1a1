"""Settings state — validated access to the user's preferences."""

from __future__ import annotations

import logging

from hydration.core.errors import InvalidAccentError, ValidationError
from hydration.data.models import FACTORY_DEFAULTS, Accent, HydrationSettings

logger = logging.getLogger(__name__)


def parse_accent(value: Accent | str) -> Accent:
    """Return the Accent named by `value` (case-insensitive).

    Raises InvalidAccentError for anything that is not one of the nine colors.
    """
    if isinstance(value, Accent):
        return value
    try:
        return Accent(str(value).strip().lower())
    except ValueError:
        raise InvalidAccentError(f"Unknown accent color: {value!r}") from None


def coerce_accent(value: Accent | str) -> Accent:
    """Like parse_accent, but falls back to the default accent."""
    try:
        return parse_accent(value)
    except InvalidAccentError:
        logger.warning("Unknown accent %r, falling back to %s", value, FACTORY_DEFAULTS.accent.value)
        return FACTORY_DEFAULTS.accent


def clamp_interval(seconds: float) -> float:
    """Clamp to the allowed reminder window and round to a whole second."""
    bounded = min(max(seconds, FACTORY_DEFAULTS.min_reminder_interval), FACTORY_DEFAULTS.max_reminder_interval)
    return float(round(bounded))


class SettingsState:
    """Getters and validating setters over HydrationSettings."""

    def __init__(self, settings: HydrationSettings | None = None) -> None:
        self._settings = settings if settings is not None else HydrationSettings()

    @property
    def target(self) -> float:
        return self._settings.target

    def set_target(self, value: float) -> float:
        if value <= 0:
            raise ValidationError(f"Target must be positive, got {value!r}")
        self._settings.target = float(value)
        return self._settings.target

    @property
    def reminder_interval(self) -> float:
        return self._settings.reminder_interval

    def set_reminder_interval(self, seconds: float) -> float:
        self._settings.reminder_interval = clamp_interval(seconds)
        return self._settings.reminder_interval

    @property
    def accent(self) -> Accent:
        return self._settings.accent

    def set_accent(self, value: Accent | str) -> Accent:
        self._settings.accent = parse_accent(value)
        return self._settings.accent

    @property
    def retention_days(self) -> float:
        return self._settings.retention_days

    def set_retention_days(self, days: float) -> float:
        if days <= 0:
            raise ValidationError(f"Retention must be positive, got {days!r}")
        self._settings.retention_days = float(days)
        return self._settings.retention_days

    def restore_defaults(self) -> None:
        """Reset target, accent and interval. Retention is left alone."""
        self._settings.target = FACTORY_DEFAULTS.target
        self._settings.accent = FACTORY_DEFAULTS.accent
        self._settings.reminder_interval = FACTORY_DEFAULTS.reminder_interval
        logger.info("Settings restored to factory defaults")
