from __future__ import annotations
import json
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    GOAL = 'goal'
    OWN_GOAL = 'own_goal'
    PENALTY_SCORED = 'penalty_scored'
    PENALTY_MISSED = 'penalty_missed'
    CHANCE_MISSED = 'chance_missed'
    YELLOW_CARD = 'yellow_card'
    RED_CARD = 'red_card'
    SUBSTITUTION = 'substitution'
    INJURY = 'injury'
    SAVE = 'save'
    CORNER = 'corner'
    FREE_KICK = 'free_kick'
    OFFSIDE = 'offside'
    KICKOFF = 'kickoff'
    HALF_TIME = 'half_time'
    FULL_TIME = 'full_time'


# Event types that add a goal to the event's team
SCORING_TYPES = frozenset({EventType.GOAL, EventType.OWN_GOAL, EventType.PENALTY_SCORED})


@dataclass(frozen=True)
class MatchEvent:
    """One entry of the match log. Never modified once appended."""
    minute: int
    type: EventType
    team: str
    player_id: Optional[str] = None
    assist_player_id: Optional[str] = None
    description: Optional[str] = None
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['type'] = self.type.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'MatchEvent':
        return cls(
            minute=int(d['minute']),
            type=EventType(d['type']),
            team=d['team'],
            player_id=d.get('player_id'),
            assist_player_id=d.get('assist_player_id'),
            description=d.get('description'),
            seq=int(d.get('seq', 0)),
        )


class EventLog:
    """
    Append-only, minute-ordered event list.

    - ``seq`` grows by one per appended event.
    - An event whose minute is lower than the last one is rejected: the log is
      totally ordered by minute and causally ordered by append order within a
      minute.
    """

    def __init__(self, events: Optional[List[MatchEvent]] = None) -> None:
        self._events: List[MatchEvent] = events if events is not None else []

    def append(self, minute: int, type: EventType, team: str, *, player_id: Optional[str] = None,
               assist_player_id: Optional[str] = None, description: Optional[str] = None) -> MatchEvent:
        if self._events and minute < self._events[-1].minute:
            raise ValueError(f"event at minute {minute} after minute {self._events[-1].minute}")
        event = MatchEvent(minute=int(minute), type=type, team=team, player_id=player_id,
                           assist_player_id=assist_player_id, description=description,
                           seq=len(self._events) + 1)
        self._events.append(event)
        logger.debug("%s' %s %s %s", event.minute, event.team, event.type.value, event.description or '')
        return event

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self._events)

    def since(self, count: int) -> List[MatchEvent]:
        """Events appended after the first ``count``."""
        return list(self._events[count:])

    def dump(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]


def write_ndjson(events: Iterable[MatchEvent], path: str | Path) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        for e in events:
            f.write(json.dumps(e.to_dict(), ensure_ascii=False) + '\n')
    return str(path)
