"""Pure mappings from player attributes and live state to propensities."""
from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional

from roster.player import Player
from matchsim.config import EngineConfig, get_config

# Position weights for the overall rating
POSITION_WEIGHTS: Dict[str, Dict[str, int]] = {
    'GK': {'reflexes': 3, 'handling': 3, 'diving': 3, 'positioning': 2, 'composure': 1},
    'DEF': {'tackling': 3, 'heading': 2, 'strength': 2, 'positioning': 2, 'speed': 1},
    'MID': {'passing': 3, 'vision': 2, 'stamina': 2, 'dribbling': 1, 'positioning': 1, 'tackling': 1},
    'ATT': {'shooting': 3, 'positioning': 2, 'dribbling': 2, 'speed': 2, 'composure': 1},
}

# (energy, penalty) breakpoints, descending energy
ENERGY_PENALTY_CURVE = ((85.0, 0.0), (70.0, 0.06), (55.0, 0.16), (40.0, 0.28), (0.0, 0.40))


def overall(player: Player) -> float:
    """Position-weighted overall rating (1-99)."""
    weights = POSITION_WEIGHTS[player.position]
    total = sum(player.attr(a) * w for a, w in weights.items())
    return total / sum(weights.values())


def energy_penalty(energy: float) -> float:
    """Fractional performance penalty for live energy (0 when fresh, 0.4 when empty)."""
    if energy >= ENERGY_PENALTY_CURVE[0][0]:
        return 0.0
    for (hi_e, hi_p), (lo_e, lo_p) in zip(ENERGY_PENALTY_CURVE, ENERGY_PENALTY_CURVE[1:]):
        if energy >= lo_e:
            t = (hi_e - energy) / (hi_e - lo_e)
            return hi_p + t * (lo_p - hi_p)
    return ENERGY_PENALTY_CURVE[-1][1]


def effective_rating(player: Player, energy: float) -> float:
    return overall(player) * (1.0 - energy_penalty(energy))


def finishing_quality(player: Player) -> float:
    return (2 * player.attr('shooting') + player.attr('composure') + player.attr('positioning')) / 4.0


def goalkeeping_quality(player: Player) -> float:
    return (player.attr('reflexes') + player.attr('diving') + player.attr('handling')) / 3.0


def defensive_rating(player: Player) -> float:
    return (2 * player.attr('tackling') + player.attr('positioning') + player.attr('strength')) / 4.0


def creativity(player: Player) -> float:
    return (player.attr('passing') + player.attr('vision')) / 2.0


def composite_ability(player: Player) -> float:
    """Ability used by the tactical substitution rule: overall nudged by form."""
    return overall(player) + (player.form - 70.0) * 0.1


def foul_propensity(player: Player, energy: float, bookings: int, minute: int,
                    config: Optional[EngineConfig] = None) -> float:
    """
    Weight of ``player`` in the fouler draw.

    Grows with aggression, with lack of composure, with energy deficit, with
    bookings already held and with match lateness. Always > 0.
    """
    cfg = config or get_config()
    aggression = player.attr('aggression') / 100.0
    rashness = 1.0 - player.attr('composure') / 100.0
    deficit = (100.0 - max(0.0, min(100.0, energy))) / 100.0
    lateness = max(0, min(minute, 90)) / 90.0
    return (
        (1.0 + cfg.num('discipline.aggression_weight') * aggression)
        * (1.0 + cfg.num('discipline.composure_weight') * rashness)
        * (1.0 + cfg.num('discipline.energy_weight') * deficit)
        * (1.0 + cfg.num('discipline.booking_weight') * bookings)
        * (1.0 + cfg.num('discipline.lateness_weight') * lateness)
    )


def team_strength(players: Iterable[Player], energies: Mapping[str, float], posture: str,
                  sent_off_count: int = 0, config: Optional[EngineConfig] = None) -> float:
    """Mean effective rating of the players on the pitch, adjusted for posture and dismissals."""
    cfg = config or get_config()
    ratings = [effective_rating(p, energies.get(p.id, p.energy)) for p in players]
    if not ratings:
        return 50.0
    bonus = float(cfg.get(f'strength.posture_bonus.{posture}', 0.0))
    return sum(ratings) / len(ratings) + bonus - cfg.num('strength.red_card_penalty') * sent_off_count


def average_energy_penalty(players: Iterable[Player], energies: Mapping[str, float]) -> float:
    vals = [energy_penalty(energies.get(p.id, p.energy)) for p in players]
    return sum(vals) / len(vals) if vals else 0.0
