from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Iterable


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _utc_ts() -> float:
    return time.time()


@dataclass(frozen=True)
class TraceEvent:
    event_id: str
    run_id: str
    created_at: float
    event_type: str
    payload: dict[str, Any]


class EventLog:
    """Append-only, in-process trace sink keyed by run id.

    Same surface as an event table: append, iterate in insertion order, fetch
    the latest event of a type. Payloads are stored as given (callers pass
    fresh dicts).
    """

    def __init__(self) -> None:
        self._events: list[TraceEvent] = []

    def append_event(self, run_id: str, event_type: str, payload: dict[str, Any]) -> str:
        event_id = _new_id("evt")
        self._events.append(
            TraceEvent(
                event_id=event_id,
                run_id=run_id,
                created_at=_utc_ts(),
                event_type=event_type,
                payload=payload,
            )
        )
        return event_id

    def iter_events(self, run_id: str, *, event_types: Iterable[str] | None = None) -> Iterable[TraceEvent]:
        wanted = set(event_types) if event_types is not None else None
        for ev in self._events:
            if ev.run_id != run_id:
                continue
            if wanted is not None and ev.event_type not in wanted:
                continue
            yield ev

    def get_latest_event(self, *, run_id: str, event_type: str) -> TraceEvent | None:
        for ev in reversed(self._events):
            if ev.run_id == run_id and ev.event_type == event_type:
                return ev
        return None

    def count_event_types(self, run_id: str) -> dict[str, int]:
        counts: dict[str, int] = {}
        for ev in self.iter_events(run_id):
            counts[ev.event_type] = counts.get(ev.event_type, 0) + 1
        return dict(sorted(counts.items()))

    def run_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for ev in self._events:
            seen.setdefault(ev.run_id, None)
        return list(seen)

    def clear(self, run_id: str | None = None) -> None:
        if run_id is None:
            self._events.clear()
            return
        self._events = [ev for ev in self._events if ev.run_id != run_id]
