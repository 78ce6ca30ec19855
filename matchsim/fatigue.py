from __future__ import annotations
from typing import Dict, Optional

from roster.player import Player
from matchsim.config import EngineConfig, get_config
from matchsim.state import SideState
from matchsim.trace import TraceRecorder


def _age_mult(age: int, cfg: EngineConfig) -> float:
    # 1.0 up to the pivot age, linear after it, capped
    pivot = cfg.num('fatigue.age_pivot')
    if age <= pivot:
        return 1.0
    return min(cfg.num('fatigue.age_cap'), 1.0 + (age - pivot) * cfg.num('fatigue.age_slope'))


def _stamina_mult(stamina: float, cfg: EngineConfig) -> float:
    # good stamina drains less, clamped to [0.8, 1.2]
    mult = 1.0 - (stamina - cfg.num('fatigue.stamina_pivot')) / cfg.num('fatigue.stamina_scale')
    return max(0.8, min(1.2, mult))


def drain_per_minute(player: Player, posture: str, position: Optional[str] = None,
                     config: Optional[EngineConfig] = None) -> float:
    """Live energy lost per minute on the pitch (0-100 scale)."""
    cfg = config or get_config()
    pos = position or player.position
    pos_mult = float(cfg.get(f'fatigue.posture_position_mult.{posture}.{pos}', 1.0))
    drain = (
        cfg.num('fatigue.base_drain_per_min')
        * pos_mult
        * _age_mult(player.age, cfg)
        * _stamina_mult(player.attr('stamina'), cfg)
    )
    if pos == 'GK':
        drain *= cfg.num('fatigue.gk_mult')
    return drain


def decay(player: Player, minutes_played: float, posture: str, position: Optional[str] = None, *,
          energy: Optional[float] = None, config: Optional[EngineConfig] = None) -> float:
    """
    Energy after ``minutes_played`` minutes on the pitch.

    Pure and deterministic. Starts from ``energy`` (or the player's baseline)
    and never goes below 0.
    """
    start = player.energy if energy is None else energy
    start = max(0.0, min(100.0, start))
    if minutes_played <= 0:
        return start
    return max(0.0, start - drain_per_minute(player, posture, position, config) * minutes_played)


def apply_energy_tick(side: SideState, minute: int, config: Optional[EngineConfig] = None,
                      trace: Optional[TraceRecorder] = None) -> Dict[str, float]:
    """Drain one minute of energy for every on-pitch, non-dismissed player of ``side``.

    Bench, substituted-off and sent-off players are left untouched.
    Returns the per-player drain applied.
    """
    cfg = config or get_config()
    posture = side.tactics.posture
    applied: Dict[str, float] = {}
    for p in side.on_pitch():
        before = side.energy.get(p.id, p.energy)
        after = decay(p, 1, posture, energy=before, config=cfg)
        side.energy[p.id] = after
        applied[p.id] = round(before - after, 4)
    if trace is not None and applied:
        lowest = min(applied, key=lambda pid: (side.energy[pid], pid))
        trace.record(
            'energy_tick', minute, team=side.key,
            label='Energy tick',
            summary=f"{len(applied)} players drained, lowest {side.energy[lowest]:.1f}",
            inputs={'posture': posture, 'players': len(applied)},
            computed={'drain': applied},
            outcome={'lowest_player_id': lowest, 'lowest_energy': round(side.energy[lowest], 2)},
        )
    return applied


def apply_recovery(side: SideState, amount: float) -> None:
    """Explicit recovery rule (half-time), a no-op unless ``amount`` > 0."""
    if amount <= 0:
        return
    for p in side.on_pitch():
        side.energy[p.id] = min(100.0, side.energy.get(p.id, p.energy) + amount)


def apply_knock(side: SideState, player_id: str, amount: float) -> float:
    """Energy lost to an in-match knock; returns the new energy."""
    new_e = max(0.0, side.energy.get(player_id, 0.0) - max(0.0, amount))
    side.energy[player_id] = new_e
    return new_e


def post_match_drain(minutes_played: float, posture: str, age: int, position: str,
                     config: Optional[EngineConfig] = None) -> float:
    """Baseline energy the season layer subtracts after a match, in [0, 100]."""
    cfg = config or get_config()
    minutes_factor = max(0.0, min(1.0, minutes_played / 90.0))
    posture_mult = {'defensive': 0.85, 'balanced': 1.0, 'attacking': 1.2}.get(posture, 1.0)
    position_mult = cfg.num('fatigue.gk_mult') if position == 'GK' else 1.0
    drain = (cfg.num('fatigue.post_match_drain_per_90') * minutes_factor * posture_mult
             * _age_mult(age, cfg) * position_mult)
    return max(0.0, min(100.0, round(drain, 1)))
