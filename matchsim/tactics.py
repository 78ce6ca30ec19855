from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from roster.team import FORMATIONS, Tactics, Team
from matchsim.attributes import overall

IMPACT_MIN = -0.2
IMPACT_MAX = 0.2
HINT_THRESHOLD = 0.02


def _clamp(x: float) -> float:
    return max(IMPACT_MIN, min(IMPACT_MAX, x))


@dataclass(frozen=True)
class TacticalImpact:
    possession: float = 0.0
    creation: float = 0.0
    prevention: float = 0.0

    def __add__(self, other: 'TacticalImpact') -> 'TacticalImpact':
        return TacticalImpact(
            _clamp(self.possession + other.possession),
            _clamp(self.creation + other.creation),
            _clamp(self.prevention + other.prevention),
        )


POSTURE_IMPACT: Dict[str, TacticalImpact] = {
    'defensive': TacticalImpact(-0.03, -0.06, 0.08),
    'balanced': TacticalImpact(0.0, 0.0, 0.0),
    'attacking': TacticalImpact(0.03, 0.08, -0.06),
}


def posture_impact(posture: str) -> TacticalImpact:
    return POSTURE_IMPACT.get(posture, POSTURE_IMPACT['balanced'])


def formation_matchup(formation: str, opponent_formation: str) -> TacticalImpact:
    """Impact of line numbers against the opponent's lines."""
    d, m, a = FORMATIONS[formation]
    od, om, oa = FORMATIONS[opponent_formation]
    return TacticalImpact(
        _clamp((m - om) * 0.012 + (d - oa) * 0.006 + (a - od) * 0.004),
        _clamp((a - od) * 0.018 + (m - om) * 0.008),
        _clamp((d - oa) * 0.018 + (m - om) * 0.006),
    )


def tactical_impact(tactics: Tactics, opponent: Tactics) -> TacticalImpact:
    return posture_impact(tactics.posture) + formation_matchup(tactics.formation, opponent.formation)


def half_time_hints(own_score: int, opponent_score: int, tactics: Tactics, opponent: Tactics) -> Dict:
    """Qualitative hints for the half-time screen; no numbers leak out."""
    diff = own_score - opponent_score
    situation = 'winning' if diff > 0 else ('losing' if diff < 0 else 'drawing')
    impact = formation_matchup(tactics.formation, opponent.formation)

    hints: List[str] = []
    for value, area in ((impact.creation, 'attack'), (impact.prevention, 'defence'),
                        (impact.possession, 'midfield')):
        if value >= HINT_THRESHOLD:
            hints.append(f'{area}_favourable')
        elif value <= -HINT_THRESHOLD:
            hints.append(f'{area}_under_pressure')
    return {
        'situation': situation,
        'goal_difference': abs(diff),
        'posture_hints': {'defensive': 'increases_prevention', 'balanced': 'neutral',
                          'attacking': 'increases_creation'},
        'formation_matchup_hints': hints or ['neutral'],
    }


def default_tactics(team: Team, formation: str = '4-3-3', posture: str = 'balanced',
                    bench_size: int = 7) -> Tactics:
    """Best XI for ``formation`` by overall rating plus the best remaining bench.

    Lines short of specialists are filled with the best remaining outfield
    players, so any squad with a goalkeeper and 11+ players gives valid tactics.
    """
    d, m, a = FORMATIONS[formation]
    ranked = sorted(team.players, key=lambda p: (-overall(p), p.id))
    chosen: List[str] = []

    def take(position: Optional[str], n: int) -> None:
        for p in ranked:
            if n <= 0:
                return
            if p.id in chosen:
                continue
            if position is None and p.is_goalkeeper():
                continue
            if position is None or p.position == position:
                chosen.append(p.id)
                n -= 1

    take('GK', 1)
    for pos, n in (('DEF', d), ('MID', m), ('ATT', a)):
        before = len(chosen)
        take(pos, n)
        take(None, n - (len(chosen) - before))
    bench = [p.id for p in ranked if p.id not in chosen][:bench_size]
    return Tactics(formation=formation, posture=posture, lineup=chosen, substitutes=bench)
