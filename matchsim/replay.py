"""
Rebuild match state from an event log.

A presentation layer can keep its own view of the match by folding events as
they arrive; the engine's state remains the source of truth and the two agree
after every event.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Sequence, Tuple

from matchsim.events import EventType, MatchEvent, SCORING_TYPES
from matchsim.state import Phase


@dataclass(frozen=True)
class ReplaySnapshot:
    minute: int = 0
    phase: Phase = Phase.SCHEDULED
    home_score: int = 0
    away_score: int = 0
    lineups: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    bookings: Dict[str, Dict[str, int]] = field(default_factory=dict)
    sent_off: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    subs_used: Dict[str, int] = field(default_factory=dict)

    @property
    def score(self) -> Tuple[int, int]:
        return self.home_score, self.away_score


def initial_snapshot(home_lineup: Sequence[str], away_lineup: Sequence[str]) -> ReplaySnapshot:
    return ReplaySnapshot(
        lineups={'home': tuple(home_lineup), 'away': tuple(away_lineup)},
        bookings={'home': {}, 'away': {}},
        sent_off={'home': (), 'away': ()},
        subs_used={'home': 0, 'away': 0},
    )


def reduce_event(snap: ReplaySnapshot, event: MatchEvent) -> ReplaySnapshot:
    """Return the snapshot after ``event``; ``snap`` is left untouched."""
    t = event.type
    team = event.team
    changes: Dict = {'minute': event.minute}

    if t is EventType.KICKOFF:
        changes['phase'] = Phase.FIRST_HALF
    elif t is EventType.HALF_TIME:
        changes['phase'] = Phase.HALF_TIME
    elif t is EventType.FULL_TIME:
        changes['phase'] = Phase.FULL_TIME
    elif snap.phase is Phase.HALF_TIME and event.minute > snap.minute:
        # substitutions made during the interval keep the half-time minute
        changes['phase'] = Phase.SECOND_HALF

    if t in SCORING_TYPES:
        key = 'home_score' if team == 'home' else 'away_score'
        changes[key] = getattr(snap, key) + 1
    elif t in (EventType.YELLOW_CARD, EventType.RED_CARD) and event.player_id is not None:
        bookings = {k: dict(v) for k, v in snap.bookings.items()}
        side = bookings.setdefault(team, {})
        if t is EventType.RED_CARD:
            side[event.player_id] = 2
            sent = dict(snap.sent_off)
            sent[team] = tuple(sent.get(team, ())) + (event.player_id,)
            changes['sent_off'] = sent
        else:
            side[event.player_id] = side.get(event.player_id, 0) + 1
        changes['bookings'] = bookings
    elif t is EventType.SUBSTITUTION:
        lineups = dict(snap.lineups)
        lineups[team] = tuple(event.player_id if pid == event.assist_player_id else pid
                              for pid in lineups.get(team, ()))
        subs = dict(snap.subs_used)
        subs[team] = subs.get(team, 0) + 1
        changes['lineups'] = lineups
        changes['subs_used'] = subs

    return replace(snap, **changes)


def replay(events: Iterable[MatchEvent], home_lineup: Sequence[str], away_lineup: Sequence[str]) -> ReplaySnapshot:
    snap = initial_snapshot(home_lineup, away_lineup)
    for e in events:
        snap = reduce_event(snap, e)
    return snap
