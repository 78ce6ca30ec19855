"""Match statistics derived from the event log alone."""
from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from matchsim.events import EventType, MatchEvent, SCORING_TYPES


@dataclass(frozen=True)
class PlayerLine:
    player_id: str
    team: str
    appearances: int = 0
    minutes: int = 0
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TeamStats:
    # Shots
    shots: int = 0
    shots_on_target: int = 0
    goals: int = 0

    # Set pieces
    corners: int = 0
    free_kicks: int = 0
    penalties: int = 0
    offsides: int = 0

    # Goalkeeping
    saves: int = 0

    # Discipline
    cards_yellow: int = 0
    cards_red: int = 0

    substitutions: int = 0
    injuries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _end_minute(events: Sequence[MatchEvent]) -> int:
    for e in reversed(events):
        if e.type is EventType.FULL_TIME:
            return e.minute
    return events[-1].minute if events else 0


def player_lines(events: Iterable[MatchEvent], home_lineup: Sequence[str],
                 away_lineup: Sequence[str]) -> Dict[str, PlayerLine]:
    """
    Per-player lines for one match.

    Starters play from minute 0; a substitute from the minute they came on.
    Playing time ends when the player is substituted off, sent off, or at the
    final event. Own goals are not credited to the player who scored them.
    """
    events = list(events)
    end = _end_minute(events)
    entered: Dict[str, int] = {}
    left: Dict[str, int] = {}
    team_of: Dict[str, str] = {}
    counts: Dict[str, Dict[str, int]] = {}

    for key, lineup in (('home', home_lineup), ('away', away_lineup)):
        for pid in lineup:
            entered[pid] = 0
            team_of[pid] = key

    def bump(pid: Optional[str], team: str, stat: str) -> None:
        if pid is None:
            return
        team_of.setdefault(pid, team)
        counts.setdefault(pid, {})
        counts[pid][stat] = counts[pid].get(stat, 0) + 1

    for e in events:
        if e.type in (EventType.GOAL, EventType.PENALTY_SCORED):
            bump(e.player_id, e.team, 'goals')
            bump(e.assist_player_id, e.team, 'assists')
        elif e.type is EventType.YELLOW_CARD:
            bump(e.player_id, e.team, 'yellow_cards')
        elif e.type is EventType.RED_CARD:
            bump(e.player_id, e.team, 'red_cards')
            if e.player_id is not None:
                left.setdefault(e.player_id, e.minute)
        elif e.type is EventType.SUBSTITUTION:
            if e.player_id is not None:
                entered.setdefault(e.player_id, e.minute)
                team_of.setdefault(e.player_id, e.team)
            if e.assist_player_id is not None:
                left.setdefault(e.assist_player_id, e.minute)

    lines: Dict[str, PlayerLine] = {}
    for pid in sorted(set(entered) | set(counts)):
        c = counts.get(pid, {})
        played = pid in entered
        minutes = max(0, left.get(pid, end) - entered[pid]) if played else 0
        lines[pid] = PlayerLine(
            player_id=pid, team=team_of[pid], appearances=1 if played else 0, minutes=minutes,
            goals=c.get('goals', 0), assists=c.get('assists', 0),
            yellow_cards=c.get('yellow_cards', 0), red_cards=c.get('red_cards', 0),
        )
    return lines


def merge_season(season: Mapping[str, PlayerLine], lines: Mapping[str, PlayerLine]) -> Dict[str, PlayerLine]:
    """Add one match's lines to season totals; returns a new mapping."""
    merged = dict(season)
    for pid, line in lines.items():
        prev = merged.get(pid)
        if prev is None:
            merged[pid] = line
            continue
        merged[pid] = replace(
            prev,
            appearances=prev.appearances + line.appearances,
            minutes=prev.minutes + line.minutes,
            goals=prev.goals + line.goals,
            assists=prev.assists + line.assists,
            yellow_cards=prev.yellow_cards + line.yellow_cards,
            red_cards=prev.red_cards + line.red_cards,
        )
    return merged


def season_from_matches(matches: Iterable[Mapping[str, PlayerLine]]) -> Dict[str, PlayerLine]:
    """Recompute season totals from scratch; same input, same totals."""
    season: Dict[str, PlayerLine] = {}
    for lines in matches:
        season = merge_season(season, lines)
    return season


def team_stats(events: Iterable[MatchEvent]) -> Dict[str, TeamStats]:
    """Team stat block for both sides. A save counts as an on-target shot for the other side."""
    stats = {'home': TeamStats(), 'away': TeamStats()}
    for e in events:
        if e.team not in stats:
            continue
        own = stats[e.team]
        other = stats['away' if e.team == 'home' else 'home']
        t = e.type
        if t in SCORING_TYPES:
            own.goals += 1
            if t is not EventType.OWN_GOAL:
                own.shots += 1
                own.shots_on_target += 1
            if t is EventType.PENALTY_SCORED:
                own.penalties += 1
        elif t is EventType.PENALTY_MISSED:
            own.shots += 1
            own.penalties += 1
        elif t is EventType.CHANCE_MISSED:
            own.shots += 1
        elif t is EventType.SAVE:
            own.saves += 1
            other.shots += 1
            other.shots_on_target += 1
        elif t is EventType.CORNER:
            own.corners += 1
        elif t is EventType.FREE_KICK:
            own.free_kicks += 1
        elif t is EventType.OFFSIDE:
            own.offsides += 1
        elif t is EventType.YELLOW_CARD:
            own.cards_yellow += 1
        elif t is EventType.RED_CARD:
            own.cards_red += 1
        elif t is EventType.SUBSTITUTION:
            own.substitutions += 1
        elif t is EventType.INJURY:
            own.injuries += 1
    return stats


def top_scorers(lines: Mapping[str, PlayerLine], limit: int = 10) -> List[PlayerLine]:
    ranked = sorted(lines.values(), key=lambda l: (-l.goals, -l.assists, l.player_id))
    return [l for l in ranked if l.goals > 0][:limit]
