"""Live match state owned and mutated by the match engine."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Set

from roster.player import Player
from roster.team import Team, Tactics
from matchsim.events import MatchEvent

SIDES = ('home', 'away')


class Phase(str, Enum):
    SCHEDULED = 'scheduled'
    FIRST_HALF = 'first_half'
    HALF_TIME = 'half_time'
    SECOND_HALF = 'second_half'
    FULL_TIME = 'full_time'

    @property
    def in_progress(self) -> bool:
        return self in (Phase.FIRST_HALF, Phase.HALF_TIME, Phase.SECOND_HALF)


def other_side(key: str) -> str:
    return 'away' if key == 'home' else 'home'


@dataclass
class SideState:
    """
    Live per-team overlay on top of the immutable roster.

    Attributes:
        key: 'home' or 'away'
        team: Squad (read-only)
        tactics: Match copy of the tactics; lineup changes via substitutions
        energy: Live energy 0-100 per lineup/bench player
        bookings: Bookings per player (0-2); 2 means sent off
        sent_off: Dismissed players
        substituted_off: Players replaced during the match
        came_on: Substitutes who entered the match
        subs_used: Substitutions made
        control: 'ai' (policy manages substitutions) or 'human'
    """
    key: str
    team: Team
    tactics: Tactics
    energy: Dict[str, float] = field(default_factory=dict)
    bookings: Dict[str, int] = field(default_factory=dict)
    sent_off: Dict[str, bool] = field(default_factory=dict)
    substituted_off: Set[str] = field(default_factory=set)
    came_on: Set[str] = field(default_factory=set)
    subs_used: int = 0
    control: str = 'ai'
    _players: Dict[str, Player] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._players = self.team.player_map()
        for pid in list(self.tactics.lineup) + list(self.tactics.substitutes):
            if pid not in self.energy and pid in self._players:
                self.energy[pid] = self._players[pid].energy

    def player(self, player_id: str) -> Player:
        return self._players[player_id]

    def lineup(self) -> List[Player]:
        """Everyone holding a lineup slot, dismissed players included."""
        return [self._players[pid] for pid in self.tactics.lineup]

    def on_pitch(self) -> List[Player]:
        return [p for p in self.lineup() if not self.sent_off.get(p.id, False)]

    def bench(self) -> List[Player]:
        return [self._players[pid] for pid in self.tactics.substitutes
                if pid not in self.came_on and pid not in self.substituted_off]

    def is_on_pitch(self, player_id: str) -> bool:
        return player_id in self.tactics.lineup and not self.sent_off.get(player_id, False)

    def sent_off_count(self) -> int:
        return sum(1 for v in self.sent_off.values() if v)

    def goalkeeper(self) -> Player | None:
        for p in self.on_pitch():
            if p.is_goalkeeper():
                return p
        return None

    def snapshot(self) -> Dict[str, Any]:
        return {
            'team': self.team.name,
            'formation': self.tactics.formation,
            'posture': self.tactics.posture,
            'lineup': list(self.tactics.lineup),
            'bench': [p.id for p in self.bench()],
            'energy': {pid: round(e, 2) for pid, e in self.energy.items()},
            'bookings': dict(self.bookings),
            'sent_off': [pid for pid, v in self.sent_off.items() if v],
            'subs_used': self.subs_used,
            'control': self.control,
        }


@dataclass
class LiveMatchState:
    minute: int
    home: SideState
    away: SideState
    phase: Phase = Phase.SCHEDULED
    home_score: int = 0
    away_score: int = 0
    possession: str = 'home'
    stoppage: int = 0
    regular_minutes: int = 90
    events: List[MatchEvent] = field(default_factory=list)

    @property
    def full_time_minute(self) -> int:
        return self.regular_minutes + self.stoppage

    def side(self, key: str) -> SideState:
        return self.home if key == 'home' else self.away

    def opponent(self, key: str) -> SideState:
        return self.away if key == 'home' else self.home

    def score_for(self, key: str) -> int:
        return self.home_score if key == 'home' else self.away_score

    def lead(self, key: str) -> int:
        """Goal difference from ``key``'s point of view."""
        return self.score_for(key) - self.score_for(other_side(key))

    def add_goal(self, key: str) -> None:
        if key == 'home':
            self.home_score += 1
        else:
            self.away_score += 1

    @property
    def is_finished(self) -> bool:
        return self.phase is Phase.FULL_TIME

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view for UI rendering and persistence."""
        return {
            'minute': self.minute,
            'phase': self.phase.value,
            'score': (self.home_score, self.away_score),
            'possession': self.possession,
            'stoppage': self.stoppage,
            'home': self.home.snapshot(),
            'away': self.away.snapshot(),
            'events': [e.to_dict() for e in self.events],
        }
