"""
Per-minute event roll.

Draw order within a minute is fixed (possession, trigger, category, then the
category's own draws) so that the same seed and inputs replay the same log.
"""
from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from roster.player import Player
from matchsim import attributes
from matchsim.config import EngineConfig, get_config
from matchsim.discipline import FoulDecision, SECOND_YELLOW, maybe_foul
from matchsim.events import EventType
from matchsim.state import LiveMatchState, SideState, other_side
from matchsim.tactics import TacticalImpact, tactical_impact
from matchsim.trace import TraceRecorder
from matchsim.utils import clamp, clamp01, weighted_choice

CATEGORIES = ('chance', 'card', 'set_piece', 'save', 'injury')


@dataclass(frozen=True)
class PlannedEvent:
    type: EventType
    team: str
    player_id: Optional[str] = None
    assist_player_id: Optional[str] = None
    description: Optional[str] = None


@dataclass
class EventOutcome:
    """What the roll decided; the match engine applies it to the state."""
    category: str
    side: str
    events: List[PlannedEvent] = field(default_factory=list)
    goal_for: Optional[str] = None
    foul: Optional[FoulDecision] = None
    foul_side: Optional[str] = None
    injured: Optional[Tuple[str, str]] = None


@dataclass(frozen=True)
class MinuteContext:
    acting: str
    home_strength: float
    away_strength: float
    home_impact: TacticalImpact
    away_impact: TacticalImpact

    def strength(self, key: str) -> float:
        return self.home_strength if key == 'home' else self.away_strength

    def impact(self, key: str) -> TacticalImpact:
        return self.home_impact if key == 'home' else self.away_impact


def side_strength(side: SideState, cfg: EngineConfig) -> float:
    return attributes.team_strength(side.on_pitch(), side.energy, side.tactics.posture,
                                    side.sent_off_count(), cfg)


def _outfield(side: SideState) -> List[Player]:
    players = [p for p in side.on_pitch() if not p.is_goalkeeper()]
    return players or side.on_pitch()


def _pick_shooter(side: SideState, rng: random.Random) -> Optional[Player]:
    pool = [p for p in side.on_pitch() if p.position in ('ATT', 'MID')] or _outfield(side)
    draw = weighted_choice(rng, pool, [p.attr('shooting') + p.attr('positioning') for p in pool],
                           key=lambda p: p.id)
    return draw.chosen if draw else None


def _pick_assister(side: SideState, scorer: Optional[Player], rng: random.Random) -> Optional[Player]:
    pool = [p for p in _outfield(side) if scorer is None or p.id != scorer.id]
    draw = weighted_choice(rng, pool, [attributes.creativity(p) for p in pool], key=lambda p: p.id)
    return draw.chosen if draw else None


def pick_penalty_taker(side: SideState) -> Optional[Player]:
    """Best finisher on the pitch; ties go to the lower id. No RNG."""
    pool = side.on_pitch()
    if not pool:
        return None
    return sorted(pool, key=lambda p: (-attributes.finishing_quality(p), p.id))[0]


def _name(p: Optional[Player]) -> str:
    return p.display_name if p is not None else 'Unknown'


def possession_share(state: LiveMatchState, cfg: EngineConfig, neutral_venue: bool = False
                     ) -> Tuple[float, float, MinuteContext]:
    """Home possession probability (raw, clamped) for this minute."""
    hs = side_strength(state.home, cfg)
    aws = side_strength(state.away, cfg)
    hi = tactical_impact(state.home.tactics, state.away.tactics)
    ai = tactical_impact(state.away.tactics, state.home.tactics)
    raw = 0.5 + (hs - aws) / cfg.num('possession.strength_divisor') + hi.possession - ai.possession
    if not neutral_venue:
        raw += cfg.num('possession.home_bonus')
    clamped = clamp(raw, cfg.num('possession.min'), cfg.num('possession.max'))
    return raw, clamped, MinuteContext('home', hs, aws, hi, ai)


def category_weights(state: LiveMatchState, ctx: MinuteContext, cfg: EngineConfig) -> Dict[str, float]:
    acting = ctx.acting
    weights = {c: float(cfg.get(f'probability.category_weights.{c}', 0.0)) for c in CATEGORIES}
    ratio = clamp(ctx.strength(acting) / max(1.0, ctx.strength(other_side(acting))), 0.75, 1.25)
    weights['chance'] *= (1.0 + ctx.impact(acting).creation) * ratio
    lead = state.lead(acting)
    if lead < 0:
        weights['chance'] *= 1.0 + cfg.num('probability.trailing_chance_bias') * min(-lead, 2)
    elif lead > 0:
        bias = 1.0 + cfg.num('probability.leading_card_bias') * min(lead, 2)
        weights['card'] *= bias
        weights['set_piece'] *= bias
    return weights


def conversion_probability(state: LiveMatchState, ctx: MinuteContext, cfg: EngineConfig,
                           neutral_venue: bool = False) -> Tuple[float, float, Dict[str, float]]:
    """Open-play conversion (raw, clamped, inputs)."""
    acting = ctx.acting
    att, dfn = state.side(acting), state.opponent(acting)
    att_fatigue = attributes.average_energy_penalty(att.on_pitch(), att.energy)
    def_fatigue = attributes.average_energy_penalty(dfn.on_pitch(), dfn.energy)
    home_bonus = cfg.num('conversion.home_bonus') if (acting == 'home' and not neutral_venue) else 0.0
    w = cfg.num('conversion.fatigue_weight')
    raw = (
        cfg.num('conversion.base')
        + (ctx.strength(acting) - ctx.strength(other_side(acting))) / 100.0 * cfg.num('conversion.strength_scale')
        + ctx.impact(acting).creation
        - ctx.impact(other_side(acting)).prevention
        + home_bonus
        - w * att_fatigue
        + w * def_fatigue
    )
    clamped = clamp(raw, cfg.num('conversion.min'), cfg.num('conversion.max'))
    inputs = {
        'attack_strength': round(ctx.strength(acting), 3),
        'defense_strength': round(ctx.strength(other_side(acting)), 3),
        'attack_fatigue_penalty': round(att_fatigue, 4),
        'defense_fatigue_penalty': round(def_fatigue, 4),
        'home_bonus': home_bonus,
    }
    return raw, clamped, inputs


def penalty_probability(taker: Player, keeper: Optional[Player], cfg: EngineConfig) -> Tuple[float, float]:
    gk_quality = attributes.goalkeeping_quality(keeper) if keeper is not None else 30.0
    raw = cfg.num('penalty.base') + (attributes.finishing_quality(taker) - gk_quality) * cfg.num('penalty.skill_scale')
    return raw, clamp(raw, cfg.num('penalty.min'), cfg.num('penalty.max'))


def roll_minute(state: LiveMatchState, rng: random.Random, config: Optional[EngineConfig] = None,
                trace: Optional[TraceRecorder] = None, *, neutral_venue: bool = False) -> Optional[EventOutcome]:
    """
    Decide whether something notable happens this minute and what.

    Sets ``state.possession`` for the minute; everything else is left to the
    caller, which appends the planned events in order.
    """
    cfg = config or get_config()
    minute = state.minute

    poss_raw, poss, ctx = possession_share(state, cfg, neutral_venue)
    poss_roll = rng.random()
    acting = 'home' if poss_roll < poss else 'away'
    ctx = MinuteContext(acting, ctx.home_strength, ctx.away_strength, ctx.home_impact, ctx.away_impact)
    state.possession = acting
    if trace is not None:
        trace.record(
            'minute_context', minute, team=acting, label='Minute context',
            summary=f"{acting} in possession ({poss:.2f} home share)",
            inputs={'home_strength': round(ctx.home_strength, 3), 'away_strength': round(ctx.away_strength, 3),
                    'score': (state.home_score, state.away_score), 'neutral_venue': neutral_venue},
            computed={'home_possession_raw': round(poss_raw, 6), 'home_possession': round(poss, 6),
                      'roll': round(poss_roll, 6)},
            outcome={'possession': acting},
        )

    att = state.side(acting)
    dfn = state.opponent(acting)
    rate = float(cfg.get(f'probability.posture_rate_mult.{att.tactics.posture}', 1.0))
    late = cfg.num('probability.late_mult') if minute >= cfg.num('probability.late_minute') else 1.0
    trigger_raw = cfg.num('probability.event_per_minute') * rate * late
    trigger = clamp01(trigger_raw)
    trigger_roll = rng.random()
    triggered = trigger_roll < trigger

    weights: Dict[str, float] = {}
    outcome: Optional[EventOutcome] = None
    category_draw = None
    if triggered:
        weights = category_weights(state, ctx, cfg)
        category_draw = weighted_choice(rng, list(weights), list(weights.values()))
        if category_draw is not None:
            category = category_draw.chosen
            if category == 'chance':
                outcome = _resolve_chance(state, ctx, rng, cfg, trace, neutral_venue)
            elif category == 'card':
                outcome = _resolve_card(state, ctx, rng, cfg, trace)
            elif category == 'set_piece':
                outcome = _resolve_set_piece(att, dfn, rng, cfg)
            elif category == 'save':
                outcome = _resolve_save(att, dfn, rng)
            else:
                outcome = _resolve_injury(att, rng)

    if trace is not None:
        trace.record(
            'event_probability', minute, team=acting, label='Event probability',
            summary=(f"{outcome.category}: {', '.join(e.type.value for e in outcome.events)}"
                     if outcome else 'nothing notable'),
            inputs={'posture': att.tactics.posture, 'lead': state.lead(acting),
                    'rate_mult': rate, 'late_mult': late},
            computed={'trigger_raw': round(trigger_raw, 6), 'trigger': round(trigger, 6),
                      'trigger_roll': round(trigger_roll, 6),
                      'category_weights': {k: round(v, 6) for k, v in weights.items()},
                      'category_probabilities': ({k: round(v, 6) for k, v in category_draw.probabilities.items()}
                                                 if category_draw else {}),
                      'category_roll': round(category_draw.roll, 6) if category_draw else None},
            outcome={'triggered': triggered, 'category': outcome.category if outcome else None,
                     'events': [e.type.value for e in outcome.events] if outcome else []},
        )
    return outcome


def _resolve_chance(state: LiveMatchState, ctx: MinuteContext, rng: random.Random, cfg: EngineConfig,
                    trace: Optional[TraceRecorder], neutral_venue: bool) -> EventOutcome:
    acting = ctx.acting
    att, dfn = state.side(acting), state.opponent(acting)
    team_name = att.team.name
    keeper = dfn.goalkeeper()
    out = EventOutcome(category='chance', side=acting)

    kind_roll = rng.random()
    pen_share = cfg.num('probability.chance_penalty_share')
    og_share = cfg.num('probability.chance_own_goal_share')

    if kind_roll < pen_share:
        taker = pick_penalty_taker(att)
        raw, p = penalty_probability(taker, keeper, cfg) if taker else (0.0, 0.0)
        roll = rng.random()
        scored = taker is not None and roll < p
        if scored:
            out.goal_for = acting
            out.events.append(PlannedEvent(EventType.PENALTY_SCORED, acting, taker.id,
                                           description=f"PENALTY! {_name(taker)} scores for {team_name}!"))
        else:
            out.events.append(PlannedEvent(EventType.PENALTY_MISSED, acting, taker.id if taker else None,
                                           description=f"Penalty missed by {_name(taker)}!"))
        _trace_chance(trace, state.minute, acting, 'penalty', raw, p, roll,
                      'penalty_scored' if scored else 'penalty_missed',
                      {'taker': taker.id if taker else None, 'keeper': keeper.id if keeper else None})
        return out

    if kind_roll < pen_share + og_share:
        pool = _outfield(dfn)
        draw = weighted_choice(rng, pool, [101 - p.attr('composure') for p in pool], key=lambda p: p.id)
        culprit = draw.chosen if draw else None
        out.goal_for = acting
        out.events.append(PlannedEvent(EventType.OWN_GOAL, acting, culprit.id if culprit else None,
                                       description=f"OWN GOAL! {_name(culprit)} turns it into the wrong net. {team_name} score!"))
        _trace_chance(trace, state.minute, acting, 'own_goal', og_share, og_share, kind_roll, 'own_goal',
                      {'culprit': culprit.id if culprit else None})
        return out

    raw, p, inputs = conversion_probability(state, ctx, cfg, neutral_venue)
    shooter = _pick_shooter(att, rng)
    roll = rng.random()
    save_cut = p + (1.0 - p) * cfg.num('conversion.save_share')
    if roll < p:
        assister = None
        if rng.random() < cfg.num('conversion.assist_prob'):
            assister = _pick_assister(att, shooter, rng)
        out.goal_for = acting
        out.events.append(PlannedEvent(EventType.GOAL, acting, shooter.id if shooter else None,
                                       assister.id if assister else None,
                                       description=f"GOAL! {_name(shooter)} scores for {team_name}!"))
        result = 'goal'
    elif roll < save_cut:
        out.events.append(PlannedEvent(EventType.SAVE, dfn.key, keeper.id if keeper else None,
                                       description=f"Great save by {_name(keeper)} to deny {_name(shooter)}!"))
        result = 'save'
    else:
        out.events.append(PlannedEvent(EventType.CHANCE_MISSED, acting, shooter.id if shooter else None,
                                       description=f"{_name(shooter)} misses a chance!"))
        result = 'chance_missed'
    inputs['shooter'] = shooter.id if shooter else None
    _trace_chance(trace, state.minute, acting, 'open_play', raw, p, roll, result, inputs,
                  extra={'save_cut': round(save_cut, 6)})
    return out


def _trace_chance(trace: Optional[TraceRecorder], minute: int, team: str, chance_type: str, raw: float,
                  clamped: float, roll: float, result: str, inputs: Dict, extra: Optional[Dict] = None) -> None:
    if trace is None:
        return
    computed = {'raw_probability': round(raw, 6), 'probability': round(clamped, 6), 'roll': round(roll, 6)}
    computed.update(extra or {})
    trace.record('chance_evaluation', minute, team=team, label='Chance evaluation',
                 summary=f"{chance_type}: {result} ({clamped:.2f})", tags=(chance_type,),
                 inputs=dict(inputs, chance_type=chance_type), computed=computed,
                 outcome={'result': result})


def _resolve_card(state: LiveMatchState, ctx: MinuteContext, rng: random.Random, cfg: EngineConfig,
                  trace: Optional[TraceRecorder]) -> EventOutcome:
    acting = ctx.acting
    att, dfn = state.side(acting), state.opponent(acting)
    out = EventOutcome(category='card', side=acting)
    decision = maybe_foul(dfn, state.minute, rng, cfg, trace)
    if decision is None:
        out.events.append(PlannedEvent(EventType.FREE_KICK, acting,
                                       description=f"Foul, free kick for {att.team.name}"))
        return out
    fouler = decision.fouler
    out.foul = decision
    out.foul_side = dfn.key
    out.events.append(PlannedEvent(EventType.FREE_KICK, acting,
                                   description=f"Foul by {fouler.display_name}, free kick for {att.team.name}"))
    if decision.severity == SECOND_YELLOW:
        out.events.append(PlannedEvent(EventType.RED_CARD, dfn.key, fouler.id,
                                       description=f"Second yellow! {fouler.display_name} is sent off!"))
    elif decision.is_sending_off:
        out.events.append(PlannedEvent(EventType.RED_CARD, dfn.key, fouler.id,
                                       description=f"RED CARD! {fouler.display_name} is sent off!"))
    else:
        out.events.append(PlannedEvent(EventType.YELLOW_CARD, dfn.key, fouler.id,
                                       description=f"Yellow card for {fouler.display_name}"))
    return out


def _resolve_set_piece(att: SideState, dfn: SideState, rng: random.Random, cfg: EngineConfig) -> EventOutcome:
    out = EventOutcome(category='set_piece', side=att.key)
    name = att.team.name
    roll = rng.random()
    corner_share = cfg.num('set_piece.corner_share')
    fk_share = cfg.num('set_piece.free_kick_share')
    if roll < corner_share + fk_share:
        corner = roll < corner_share
        rate = cfg.num('set_piece.corner_goal_rate' if corner else 'set_piece.free_kick_goal_rate')
        if rng.random() < rate:
            pool = _outfield(att)
            attr = 'heading' if corner else 'shooting'
            draw = weighted_choice(rng, pool, [p.attr(attr) for p in pool], key=lambda p: p.id)
            scorer = draw.chosen if draw else None
            out.goal_for = att.key
            how = 'from the corner' if corner else 'direct from the free kick'
            out.events.append(PlannedEvent(EventType.GOAL, att.key, scorer.id if scorer else None,
                                           description=f"GOAL! {_name(scorer)} scores {how} for {name}!"))
        elif corner:
            out.events.append(PlannedEvent(EventType.CORNER, att.key, description=f"Corner kick for {name}"))
        else:
            out.events.append(PlannedEvent(EventType.FREE_KICK, att.key,
                                           description=f"Free kick in a dangerous position for {name}"))
    else:
        out.events.append(PlannedEvent(EventType.OFFSIDE, att.key, description=f"{name} caught offside"))
    return out


def _resolve_save(att: SideState, dfn: SideState, rng: random.Random) -> EventOutcome:
    shooter = _pick_shooter(att, rng)
    keeper = dfn.goalkeeper()
    out = EventOutcome(category='save', side=att.key)
    out.events.append(PlannedEvent(EventType.SAVE, dfn.key, keeper.id if keeper else None,
                                   description=f"Great save by {_name(keeper)} from {_name(shooter)}!"))
    return out


def _resolve_injury(att: SideState, rng: random.Random) -> EventOutcome:
    pool = att.on_pitch()
    draw = weighted_choice(rng, pool, [110.0 - att.energy.get(p.id, p.energy) for p in pool], key=lambda p: p.id)
    out = EventOutcome(category='injury', side=att.key)
    if draw is None:
        return out
    victim = draw.chosen
    out.injured = (att.key, victim.id)
    out.events.append(PlannedEvent(EventType.INJURY, att.key, victim.id,
                                   description=f"{victim.display_name} is down injured"))
    return out
