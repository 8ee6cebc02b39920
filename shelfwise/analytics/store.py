from __future__ import annotations

import time
from typing import Any

_events: list[dict[str, Any]] = []


def record_event(
    event_type: str,
    data: dict[str, Any],
    timestamp: float | None = None,
) -> None:
    _events.append({
        "type": event_type,
        "timestamp": time.time() if timestamp is None else timestamp,
        **data,
    })


def get_events(event_type: str | None = None) -> list[dict[str, Any]]:
    if event_type is None:
        return _events
    return [e for e in _events if e["type"] == event_type]


def clear_events() -> None:
    _events.clear()
