"""
AI substitution policy.

Candidate reasons are tried in priority order (fatigue, protect_lead,
tactical); the first reason with a qualifying pair wins. Within a reason the
most extreme pair is chosen, ties broken by (outgoing id, incoming id), so no
RNG is consumed here.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from roster.player import Player
from matchsim.attributes import composite_ability, defensive_rating
from matchsim.config import EngineConfig, get_config
from matchsim.events import EventLog, EventType, MatchEvent
from matchsim.state import LiveMatchState, SideState
from matchsim.trace import TraceRecorder
from matchsim.utils import pick_extreme

logger = logging.getLogger(__name__)

REASONS = ('fatigue', 'protect_lead', 'tactical')
MANUAL = 'manual'

Pair = Tuple[Player, Player]


@dataclass(frozen=True)
class SubstitutionDecision:
    reason: str
    outgoing: Player
    incoming: Player
    outgoing_energy: float
    incoming_energy: float
    score: float


def _compatible(out_p: Player, in_p: Player) -> bool:
    # keepers only swap with keepers
    return out_p.is_goalkeeper() == in_p.is_goalkeeper()


def _pairs(side: SideState, accept: Callable[[Player, Player], bool]) -> List[Pair]:
    return [(o, i) for o in side.on_pitch() for i in side.bench() if _compatible(o, i) and accept(o, i)]


def _fatigue_pairs(side: SideState, cfg: EngineConfig) -> Tuple[List[Pair], Callable[[Pair], float]]:
    threshold = cfg.num('subs.fatigue_threshold')
    gap = cfg.num('subs.fatigue_energy_gap')

    def accept(o: Player, i: Player) -> bool:
        e_out, e_in = side.energy[o.id], side.energy[i.id]
        return o.position == i.position and e_out < threshold and e_in - e_out >= gap

    # widest energy gap wins
    return _pairs(side, accept), lambda pr: side.energy[pr[1].id] - side.energy[pr[0].id]


def _protect_lead_pairs(side: SideState, cfg: EngineConfig) -> Tuple[List[Pair], Callable[[Pair], float]]:
    threshold = cfg.num('subs.fatigue_threshold')

    def accept(o: Player, i: Player) -> bool:
        if o.position not in ('ATT', 'MID') or i.position not in ('DEF', 'MID'):
            return False
        e_out, e_in = side.energy[o.id], side.energy[i.id]
        return e_in >= threshold and e_in >= e_out and defensive_rating(i) > defensive_rating(o)

    def score(pr: Pair) -> float:
        o, i = pr
        return (defensive_rating(i) - defensive_rating(o)) + (side.energy[i.id] - side.energy[o.id])

    return _pairs(side, accept), score


def _tactical_pairs(side: SideState, cfg: EngineConfig) -> Tuple[List[Pair], Callable[[Pair], float]]:
    threshold = cfg.num('subs.fatigue_threshold')
    delta = cfg.num('subs.tactical_min_delta')

    def accept(o: Player, i: Player) -> bool:
        return (o.position == i.position
                and side.energy[o.id] >= threshold and side.energy[i.id] >= threshold
                and composite_ability(i) - composite_ability(o) > delta)

    return _pairs(side, accept), lambda pr: composite_ability(pr[1]) - composite_ability(pr[0])


def evaluate(side: SideState, lead: int, minute: int, config: Optional[EngineConfig] = None,
             trace: Optional[TraceRecorder] = None) -> Optional[SubstitutionDecision]:
    """
    Decide whether ``side`` should make a substitution this minute.

    Args:
        side: Side to evaluate (only AI-controlled sides are considered)
        lead: Goal difference from the side's point of view
        minute: Current match minute

    Returns:
        The chosen substitution, or None
    """
    cfg = config or get_config()
    if side.control != 'ai':
        return None
    if minute < cfg.num('subs.earliest_minute'):
        return None
    if side.subs_used >= cfg.num('match.max_subs') or not side.bench():
        return None

    reasons = [('fatigue', _fatigue_pairs)]
    if lead >= cfg.num('subs.protect_lead_margin') and minute >= cfg.num('subs.protect_lead_minute'):
        reasons.append(('protect_lead', _protect_lead_pairs))
    if minute >= cfg.num('subs.tactical_minute'):
        reasons.append(('tactical', _tactical_pairs))

    for reason, finder in reasons:
        pairs, score = finder(side, cfg)
        if not pairs:
            continue
        best = pick_extreme(pairs, score, key=lambda pr: (pr[0].id, pr[1].id))
        out_p, in_p = best
        decision = SubstitutionDecision(
            reason=reason, outgoing=out_p, incoming=in_p,
            outgoing_energy=side.energy[out_p.id], incoming_energy=side.energy[in_p.id],
            score=score(best),
        )
        if trace is not None:
            trace.record(
                'sub_candidate', minute, team=side.key, label='Substitution candidates',
                summary=f"{reason}: {len(pairs)} pair(s), best {out_p.display_name} -> {in_p.display_name}",
                tags=(reason,),
                inputs={'reason': reason, 'lead': lead, 'subs_used': side.subs_used},
                computed={'pairs': [{'out': o.id, 'in': i.id, 'score': round(score((o, i)), 4)}
                                    for o, i in sorted(pairs, key=lambda pr: (pr[0].id, pr[1].id))]},
                outcome={'outgoingPlayerId': out_p.id, 'incomingPlayerId': in_p.id},
            )
        return decision
    return None


def check_substitution(side: SideState, out_id: str, in_id: str, max_subs: int) -> Optional[str]:
    """Reason a swap is not allowed, or None when it is."""
    if side.subs_used >= max_subs:
        return 'substitution limit reached'
    if not side.is_on_pitch(out_id):
        return f"player {out_id} is not on the pitch"
    if in_id not in {p.id for p in side.bench()}:
        return f"player {in_id} is not available on the bench"
    if not _compatible(side.player(out_id), side.player(in_id)):
        return 'goalkeepers can only be replaced by goalkeepers'
    return None


def apply_substitution(state: LiveMatchState, side_key: str, decision: SubstitutionDecision, minute: int,
                       log: EventLog, trace: Optional[TraceRecorder] = None,
                       config: Optional[EngineConfig] = None) -> Optional[MatchEvent]:
    """Execute ``decision``: swap the lineup slot, update counters and log the event.

    The decision is re-checked against the live state; a stale one is dropped
    (None) rather than raised.
    """
    cfg = config or get_config()
    side = state.side(side_key)
    out_p, in_p = decision.outgoing, decision.incoming
    problem = check_substitution(side, out_p.id, in_p.id, int(cfg.num('match.max_subs')))
    if problem is not None:
        logger.debug("dropping %s substitution for %s: %s", decision.reason, side_key, problem)
        if trace is not None:
            trace.record('sub_executed', minute, team=side_key, severity='warning', label='Substitution',
                         summary=f"not executed: {problem}",
                         inputs={'outgoingPlayerId': out_p.id, 'incomingPlayerId': in_p.id},
                         outcome={'success': False, 'reason': decision.reason, 'error': problem})
        return None

    slot = side.tactics.lineup.index(out_p.id)
    side.tactics.lineup[slot] = in_p.id
    if in_p.id in side.tactics.substitutes:
        side.tactics.substitutes.remove(in_p.id)
    side.substituted_off.add(out_p.id)
    side.came_on.add(in_p.id)
    side.subs_used += 1

    tag = "" if decision.reason == MANUAL else f" [ai_reason:{decision.reason}]"
    event = log.append(
        minute, EventType.SUBSTITUTION, side_key, player_id=in_p.id, assist_player_id=out_p.id,
        description=(f"Substitution {side.team.name}: {in_p.display_name} replaces "
                     f"{out_p.display_name}{tag}"),
    )
    logger.debug("%s' %s substitution (%s): %s -> %s", minute, side_key, decision.reason, out_p.id, in_p.id)
    if trace is not None:
        trace.record(
            'sub_executed', minute, team=side_key, label='Substitution',
            summary=f"{in_p.display_name} replaces {out_p.display_name} ({decision.reason})",
            tags=(decision.reason,),
            inputs={'outgoingPlayerId': out_p.id, 'incomingPlayerId': in_p.id,
                    'outgoingEnergy': round(decision.outgoing_energy, 2),
                    'incomingEnergy': round(decision.incoming_energy, 2)},
            computed={'score': round(decision.score, 4), 'subs_used': side.subs_used},
            outcome={'success': True, 'reason': decision.reason},
        )
    return event
