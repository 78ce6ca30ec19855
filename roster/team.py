"""Team and match tactics models."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from roster.player import Player

# Formation -> (DEF, MID, ATT) outfield lines
FORMATIONS: Dict[str, tuple] = {
    '4-4-2': (4, 4, 2),
    '4-3-3': (4, 3, 3),
    '4-2-3-1': (4, 5, 1),
    '3-5-2': (3, 5, 2),
    '4-5-1': (4, 5, 1),
    '5-3-2': (5, 3, 2),
    '5-4-1': (5, 4, 1),
    '3-4-3': (3, 4, 3),
}

POSTURES = ('defensive', 'balanced', 'attacking')

LINEUP_SIZE = 11


class TacticsError(ValueError):
    """Raised when tactics cannot be used to start a match."""


@dataclass
class Tactics:
    """
    Match tactics for one side.

    Attributes:
        formation: One of FORMATIONS, e.g. '4-3-3'
        posture: 'defensive' | 'balanced' | 'attacking'
        lineup: Starting player ids in formation order (exactly 11)
        substitutes: Bench player ids
    """
    formation: str = '4-3-3'
    posture: str = 'balanced'
    lineup: List[str] = field(default_factory=list)
    substitutes: List[str] = field(default_factory=list)

    def copy(self) -> 'Tactics':
        return Tactics(self.formation, self.posture, list(self.lineup), list(self.substitutes))

    def validate(self, squad: Optional[Iterable[Player]] = None) -> None:
        """Reject malformed tactics before kickoff.

        Checks lineup size and uniqueness, formation and posture names, that
        every id belongs to ``squad`` (when given), that bench and lineup do
        not overlap and that the lineup has exactly one goalkeeper.
        """
        if self.formation not in FORMATIONS:
            raise TacticsError(f"unknown formation {self.formation!r}")
        if self.posture not in POSTURES:
            raise TacticsError(f"unknown posture {self.posture!r}")
        if len(self.lineup) != LINEUP_SIZE:
            raise TacticsError(f"lineup must have {LINEUP_SIZE} players, got {len(self.lineup)}")
        if len(set(self.lineup)) != LINEUP_SIZE:
            raise TacticsError("lineup contains duplicate players")
        if len(set(self.substitutes)) != len(self.substitutes):
            raise TacticsError("bench contains duplicate players")
        overlap = set(self.lineup) & set(self.substitutes)
        if overlap:
            raise TacticsError(f"players both in lineup and on bench: {sorted(overlap)}")
        if squad is None:
            return
        by_id = {p.id: p for p in squad}
        missing = [pid for pid in list(self.lineup) + list(self.substitutes) if pid not in by_id]
        if missing:
            raise TacticsError(f"players not in squad: {missing}")
        keepers = [pid for pid in self.lineup if by_id[pid].is_goalkeeper()]
        if len(keepers) != 1:
            raise TacticsError(f"lineup must contain exactly one GK, got {len(keepers)}")


@dataclass
class Team:
    """
    A football club's squad.

    Attributes:
        id: Unique team id
        name: Display name
        players: Whole squad (starters and reserves)
        short_name: Optional 3-letter code
    """
    id: str
    name: str
    players: List[Player] = field(default_factory=list)
    short_name: str = ''

    def player_map(self) -> Dict[str, Player]:
        return {p.id: p for p in self.players}

    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_goalkeepers(self) -> List[Player]:
        return [p for p in self.players if p.is_goalkeeper()]

    def get_defenders(self) -> List[Player]:
        return [p for p in self.players if p.is_defender()]

    def get_midfielders(self) -> List[Player]:
        return [p for p in self.players if p.is_midfielder()]

    def get_attackers(self) -> List[Player]:
        return [p for p in self.players if p.is_attacker()]
