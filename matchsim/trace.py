"""
Explainability side channel.

Model functions receive an optional ``TraceRecorder`` and call ``record`` after
computing their values. Nothing in the simulation reads traces back, and a
recorder never touches the match RNG, so the event log is identical with
tracing on, off or absent.
"""
from __future__ import annotations
import json
from collections import Counter
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

TRACE_TYPES = (
    'minute_context',
    'event_probability',
    'chance_evaluation',
    'foul_selection',
    'sub_candidate',
    'sub_executed',
    'energy_tick',
)

SEVERITIES = ('info', 'warning', 'critical')


@dataclass(frozen=True)
class AiTraceEvent:
    id: str
    type: str
    minute: int
    team: Optional[str]
    severity: str
    label: str
    summary: str
    tags: Tuple[str, ...] = ()
    inputs: Dict[str, Any] = field(default_factory=dict)
    computed: Dict[str, Any] = field(default_factory=dict)
    outcome: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['tags'] = list(self.tags)
        return d


class TraceRecorder:
    """
    Append-only collector of AI trace events.

    Args:
        enabled: When False, ``record`` is a no-op
        sink: Optional callback invoked with every recorded event
        max_events: Keep only the newest N events (None = unbounded)
    """

    def __init__(self, enabled: bool = True, sink: Optional[Callable[[AiTraceEvent], None]] = None,
                 max_events: Optional[int] = None) -> None:
        self.enabled = enabled
        self.sink = sink
        self.max_events = max_events
        self._events: List[AiTraceEvent] = []
        self._seq = 0

    def record(self, type: str, minute: int, *, team: Optional[str] = None, label: str = '',
               summary: str = '', severity: str = 'info', tags: Tuple[str, ...] = (),
               inputs: Optional[Dict[str, Any]] = None, computed: Optional[Dict[str, Any]] = None,
               outcome: Optional[Dict[str, Any]] = None) -> Optional[AiTraceEvent]:
        if not self.enabled:
            return None
        if type not in TRACE_TYPES:
            raise ValueError(f"unknown trace type {type!r}")
        if severity not in SEVERITIES:
            raise ValueError(f"unknown severity {severity!r}")
        self._seq += 1
        event = AiTraceEvent(
            id=f"{minute:03d}-{self._seq:05d}",
            type=type,
            minute=int(minute),
            team=team,
            severity=severity,
            label=label or type,
            summary=summary,
            tags=tuple(tags),
            inputs=dict(inputs or {}),
            computed=dict(computed or {}),
            outcome=dict(outcome or {}),
        )
        self._events.append(event)
        if self.max_events is not None and len(self._events) > self.max_events:
            del self._events[: len(self._events) - self.max_events]
        if self.sink is not None:
            self.sink(event)
        return event

    @property
    def events(self) -> List[AiTraceEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def query(self, *, minute: Optional[int] = None, team: Optional[str] = None, type: Optional[str] = None,
              minute_min: Optional[int] = None, minute_max: Optional[int] = None,
              search: str = '') -> List[AiTraceEvent]:
        """Filter by (minute, team, type), a minute range and a free-text search."""
        out = []
        for e in self._events:
            if minute is not None and e.minute != minute:
                continue
            if team is not None and e.team != team:
                continue
            if type is not None and e.type != type:
                continue
            if minute_min is not None and e.minute < minute_min:
                continue
            if minute_max is not None and e.minute > minute_max:
                continue
            if search and not _matches(e, search):
                continue
            out.append(e)
        return out

    def counts_by_type(self) -> Dict[str, int]:
        counts = {t: 0 for t in TRACE_TYPES}
        counts.update(Counter(e.type for e in self._events))
        return counts

    def counts_by_team(self) -> Dict[str, int]:
        counts = {'home': 0, 'away': 0, 'unknown': 0}
        for e in self._events:
            counts[e.team or 'unknown'] = counts.get(e.team or 'unknown', 0) + 1
        return counts

    def write_ndjson(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            for e in self._events:
                f.write(json.dumps(e.to_dict(), ensure_ascii=False, default=str) + '\n')
        return str(path)


def _matches(event: AiTraceEvent, search: str) -> bool:
    q = search.lower()
    if q in event.label.lower() or q in event.summary.lower():
        return True
    if any(q in t.lower() for t in event.tags):
        return True
    for section in (event.inputs, event.computed, event.outcome):
        for k, v in section.items():
            if q in str(k).lower() or q in str(v).lower():
                return True
    return False
