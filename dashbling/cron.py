"""
cron.py

Cron syntax accepted for job schedules.

Five fields (minute hour day-of-month month day-of-week) or six fields with a
leading seconds field. Each field holds numbers, three-letter month or weekday
names, ``*``, lists, ranges and steps, checked against croniter. The croniter
extensions ``L``, ``W``, ``#``, ``?`` and ``H``, macros such as ``@daily`` and
the seven-field year form are rejected, as the host scheduler does not accept
them.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from croniter import croniter

UTC = timezone.utc
FIELD_COUNTS = (5, 6)
CRON_FIELD_RE = re.compile(r"^[0-9A-Za-z*,/\-]+$")
NAME_RE = re.compile(r"[A-Za-z]+")


def to_croniter_expression(expression: str) -> str:
    """Reorder a six-field expression so seconds come last, as croniter expects."""
    fields = expression.split()
    if len(fields) == 6:
        fields = fields[1:] + fields[:1]
    return " ".join(fields)


def _is_plain_field(field: str) -> bool:
    if not CRON_FIELD_RE.match(field):
        return False
    return all(len(name) == 3 for name in NAME_RE.findall(field))


def is_valid_cron(expression: Any) -> bool:
    if not isinstance(expression, str):
        return False
    fields = expression.split()
    if len(fields) not in FIELD_COUNTS:
        return False
    if not all(_is_plain_field(field) for field in fields):
        return False
    try:
        return bool(croniter.is_valid(to_croniter_expression(expression)))
    except (ValueError, TypeError):
        return False


def _ensure_aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def next_run_times(expression: str, count: int, start: Optional[datetime] = None) -> List[datetime]:
    """Return the next ``count`` fire times strictly after ``start`` (default: now, UTC)."""
    if not is_valid_cron(expression):
        raise ValueError(f'Invalid cron expression "{expression}".')
    cursor = _ensure_aware_utc(start or datetime.now(tz=UTC))
    iterator = croniter(to_croniter_expression(expression), cursor)
    runs: List[datetime] = []
    for _ in range(count):
        nxt = iterator.get_next(datetime)
        if nxt.tzinfo is None:
            nxt = nxt.replace(tzinfo=UTC)
        runs.append(nxt)
    return runs
