from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import pandas as pd

DEFAULT_EVENT = "question"
DEFAULT_PROPERTY = "question"

GRANULARITY_FREQ: dict[str, str] = {"day": "D", "week": "W", "month": "M"}


def _as_utc(now: datetime | pd.Timestamp | None) -> pd.Timestamp:
    """Naive UTC timestamp; event timestamps are epoch seconds."""
    ts = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def _window_start(end: pd.Timestamp, days: int) -> pd.Timestamp:
    return (end - pd.Timedelta(days=days)).normalize()


def _property_frame(
    events: Sequence[dict[str, Any]],
    event_type: str,
    prop: str,
    start: pd.Timestamp,
    end: pd.Timestamp,
) -> pd.DataFrame:
    """One row per (event time, property value) inside [start, end]."""
    rows = [
        {"timestamp": e["timestamp"], "value": e.get(prop)}
        for e in events
        if e.get("type") == event_type
    ]
    if not rows:
        return pd.DataFrame({
            "value": pd.Series(dtype=str),
            "time": pd.Series(dtype="datetime64[ns]"),
        })

    # List-valued properties (e.g. facet_keys) count once per element
    frame = pd.DataFrame(rows).explode("value", ignore_index=True)
    frame = frame[frame["value"].notna()]
    frame = frame.assign(
        value=frame["value"].astype(str).str.strip(),
        time=pd.to_datetime(frame["timestamp"].astype(float), unit="s"),
    )
    in_window = (frame["time"] >= start) & (frame["time"] <= end)
    return frame.loc[(frame["value"] != "") & in_window, ["value", "time"]]


def _rank_values(frame: pd.DataFrame, top: int) -> list[dict[str, Any]]:
    counts = (
        frame.groupby("value").size().reset_index(name="count")
        .sort_values(["count", "value"], ascending=[False, True], kind="mergesort")
        .head(top)
    )
    return [
        {"value": str(value), "count": int(count)}
        for value, count in zip(counts["value"], counts["count"])
    ]


def top_values(
    events: Sequence[dict[str, Any]],
    event_type: str = DEFAULT_EVENT,
    prop: str = DEFAULT_PROPERTY,
    days: int = 30,
    top: int = 10,
    now: datetime | pd.Timestamp | None = None,
) -> list[dict[str, Any]]:
    """Most frequent values of *prop* on *event_type* over the last *days*."""
    end = _as_utc(now)
    frame = _property_frame(events, event_type, prop, _window_start(end, days), end)
    return _rank_values(frame, top)


def timeseries(
    events: Sequence[dict[str, Any]],
    event_type: str = DEFAULT_EVENT,
    prop: str = DEFAULT_PROPERTY,
    days: int = 30,
    granularity: str = "day",
    top: int = 5,
    values: Sequence[str] | None = None,
    now: datetime | pd.Timestamp | None = None,
) -> dict[str, Any]:
    """
    Per-period counts for a set of property values.

    Explicit *values* take priority over the *top* most frequent ones.
    Every period of the window appears in every series, zero-filled.
    """
    if granularity not in GRANULARITY_FREQ:
        raise ValueError(f"Unknown granularity: {granularity!r}")
    freq = GRANULARITY_FREQ[granularity]

    end = _as_utc(now)
    start = _window_start(end, days)
    frame = _property_frame(events, event_type, prop, start, end)

    used: dict[str, Any] = {
        "event": event_type,
        "property": prop,
        "from": start.strftime("%Y-%m-%d"),
        "to": end.strftime("%Y-%m-%d"),
        "granularity": granularity,
    }
    chosen = list(dict.fromkeys(str(v).strip() for v in values or [] if str(v).strip()))
    if chosen:
        used["values"] = chosen
    else:
        chosen = [row["value"] for row in _rank_values(frame, top)]
        used["top"] = top

    periods = pd.period_range(start=start, end=end, freq=freq)
    dates = [p.start_time.strftime("%Y-%m-%d") for p in periods]

    subset = frame[frame["value"].isin(chosen)]
    if subset.empty:
        table = pd.DataFrame(0, index=periods, columns=chosen)
    else:
        table = (
            subset.assign(period=subset["time"].dt.to_period(freq))
            .groupby(["period", "value"]).size()
            .unstack(fill_value=0)
            .reindex(index=periods, columns=chosen, fill_value=0)
        )

    series = []
    for value in chosen:
        counts = [int(c) for c in table[value].tolist()]
        series.append({
            "value": value,
            "total": sum(counts),
            "points": [{"date": d, "count": c} for d, c in zip(dates, counts)],
        })

    return {"used": used, "dates": dates, "series": series}


def compute_analytics(events: Sequence[dict[str, Any]]) -> dict[str, Any]:
    recommends = [e for e in events if e["type"] == "recommend"]
    total = len(recommends)

    times = [r["response_time_ms"] for r in recommends if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    successes = sum(1 for r in recommends if r.get("ok"))
    relaxed = sum(1 for r in recommends if r.get("budget_relaxed"))

    domain_counter: Counter[str] = Counter()
    facet_counter: Counter[str] = Counter()
    reason_counter: Counter[str] = Counter()
    for r in recommends:
        domain_counter[r.get("domain_id") or "unknown"] += 1
        for key in r.get("facet_keys", []) or []:
            facet_counter[key] += 1
        if not r.get("ok"):
            reason_counter[r.get("reason") or "unknown"] += 1

    intent_counter: Counter[str] = Counter(
        e.get("intent") or "unknown" for e in events if e["type"] == "question"
    )

    return {
        "total_recommendations": total,
        "avg_response_time_ms": avg_time,
        "success_rate": round(successes / total * 100, 1) if total else 0.0,
        "budget_relaxed_rate": round(relaxed / total * 100, 1) if total else 0.0,
        "top_domains": [{"name": n, "count": c} for n, c in domain_counter.most_common(10)],
        "top_facets": [{"name": n, "count": c} for n, c in facet_counter.most_common(10)],
        "failure_reasons": dict(reason_counter),
        "questions_by_intent": dict(intent_counter),
    }
