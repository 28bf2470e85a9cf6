#!/usr/bin/env python3
"""
Sample dashbling jobs.

Each job pushes a synthetic metric to the dashboard through the event handle
captured at startup.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

_send_event: Optional[Callable[..., Any]] = None


def on_start(send_event: Callable[..., Any]) -> None:
    global _send_event
    _send_event = send_event
    send_event("status", {"text": "sample project started"})


def _emit(widget_id: str, payload: Dict[str, Any]) -> None:
    if _send_event is None:
        return
    _send_event(widget_id, payload)


def report_orders() -> None:
    _emit("orders", {"count": random.randint(10, 250)})


def report_clock() -> None:
    _emit("clock", {"now": datetime.now(tz=timezone.utc).isoformat()})
