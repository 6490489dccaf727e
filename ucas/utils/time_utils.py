"""
Schedule helpers for off-hours windows.

Times are ``HH:MM`` strings on a 24-hour clock.  A window is described by the
moment compute is stopped (``stop_at``) and the moment it is started again
(``start_at``):

    stop 20:00, start 08:30  → wraps midnight → 12.5 h off per day
    stop 08:00, start 12:00  → same-day window →  4.0 h off per day
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Parse ``"HH:MM"`` into minutes since midnight, or ``None`` if invalid."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def daily_off_hours(
    stop_at: Optional[str],
    start_at: Optional[str],
    default: float = 12.0,
) -> float:
    """Hours per day a resource spends stopped.

    When ``start_at`` is not later than ``stop_at`` the window spans midnight
    (equal times mean a full day off).  Unparseable input falls back to
    ``default``.
    """
    stop = parse_hhmm(stop_at)
    start = parse_hhmm(start_at)
    if stop is None or start is None:
        logger.warning(
            "Unparseable off-hours window stop=%r start=%r; using %.1f h/day.",
            stop_at, start_at, default,
        )
        return default

    if start <= stop:
        off_minutes = MINUTES_PER_DAY - stop + start
    else:
        off_minutes = start - stop
    return off_minutes / 60.0
