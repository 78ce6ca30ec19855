from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Dict, Optional

from roster.player import Player
from matchsim.attributes import foul_propensity
from matchsim.config import EngineConfig, get_config
from matchsim.state import SideState
from matchsim.trace import TraceRecorder
from matchsim.utils import clamp, weighted_choice

YELLOW = 'yellow'
SECOND_YELLOW = 'second_yellow'
RED = 'red'


@dataclass(frozen=True)
class FoulDecision:
    fouler: Player
    severity: str  # 'yellow' | 'second_yellow' | 'red'
    weight: float
    red_probability: float

    @property
    def is_sending_off(self) -> bool:
        return self.severity in (SECOND_YELLOW, RED)


def maybe_foul(defending: SideState, minute: int, rng: random.Random,
               config: Optional[EngineConfig] = None,
               trace: Optional[TraceRecorder] = None) -> Optional[FoulDecision]:
    """
    Pick the fouler among the defending side's eligible players and the card.

    A player who already holds a booking always gets ``second_yellow`` (a
    sending-off). Otherwise a rare direct red is possible, scaled by how far the
    fouler's weight sits above the side's mean. Returns None when nobody is
    eligible; the caller then logs an uncarded free kick.
    """
    cfg = config or get_config()
    eligible = defending.on_pitch()
    weights = [
        foul_propensity(p, defending.energy.get(p.id, p.energy), defending.bookings.get(p.id, 0), minute, cfg)
        for p in eligible
    ]
    draw = weighted_choice(rng, eligible, weights, key=lambda p: p.id)
    if draw is None:
        if trace is not None:
            trace.record('foul_selection', minute, team=defending.key, severity='warning',
                         label='Foul selection', summary='no eligible fouler, uncarded foul',
                         inputs={'eligible': 0}, outcome={'fouler': None})
        return None

    fouler = draw.chosen
    weight = weights[eligible.index(fouler)]
    mean_w = sum(weights) / len(weights)
    p_red = clamp(cfg.num('discipline.direct_red_base') * weight / mean_w, 0.0, cfg.num('discipline.direct_red_max'))
    roll = rng.random()
    booked = defending.bookings.get(fouler.id, 0)
    if booked >= 1:
        severity = SECOND_YELLOW
    elif roll < p_red:
        severity = RED
    else:
        severity = YELLOW

    if trace is not None:
        weight_map: Dict[str, float] = {p.id: round(w, 4) for p, w in zip(eligible, weights)}
        trace.record(
            'foul_selection', minute, team=defending.key,
            label='Foul selection',
            summary=f"{fouler.display_name} fouls, {severity}",
            severity='critical' if severity != YELLOW else 'info',
            tags=('discipline', severity),
            inputs={'eligible': len(eligible), 'bookings': booked},
            computed={'weights': weight_map, 'probabilities': draw.probabilities,
                      'fouler_roll': round(draw.roll, 6), 'red_probability': round(p_red, 6),
                      'severity_roll': round(roll, 6)},
            outcome={'fouler': fouler.id, 'severity': severity},
        )
    return FoulDecision(fouler=fouler, severity=severity, weight=weight, red_probability=p_red)


def apply_booking(side: SideState, decision: FoulDecision) -> int:
    """Update bookings/sent-off for ``decision``; returns the new booking count.

    Any sending-off leaves the player at 2 bookings, so bookings == 2 exactly
    when the player is sent off.
    """
    pid = decision.fouler.id
    if decision.is_sending_off:
        side.bookings[pid] = 2
        side.sent_off[pid] = True
    else:
        side.bookings[pid] = side.bookings.get(pid, 0) + 1
    return side.bookings[pid]
