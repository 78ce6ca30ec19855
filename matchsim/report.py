"""
Final match report assembled from a finished (or running) engine.

API: build_report(engine) -> dict, export(engine, out_dir) -> paths
"""
from __future__ import annotations
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from matchsim.events import EventType, write_ndjson
from matchsim.state import SideState
from matchsim.stats import player_lines, team_stats

if TYPE_CHECKING:
    from matchsim.match import MatchEngine

KEY_EVENT_TYPES = frozenset({
    EventType.GOAL, EventType.OWN_GOAL, EventType.PENALTY_SCORED, EventType.PENALTY_MISSED,
    EventType.RED_CARD, EventType.SUBSTITUTION, EventType.HALF_TIME, EventType.FULL_TIME,
})


def build_report(engine: 'MatchEngine') -> Dict[str, Any]:
    st = engine.state
    events = list(st.events)
    home, away = st.home.team, st.away.team

    def name_of(side: SideState, pid: Optional[str]) -> Optional[str]:
        if pid is None:
            return None
        p = side.team.get_player(pid)
        return p.display_name if p is not None else pid

    goals: List[Dict[str, Any]] = []
    for e in events:
        if e.type in (EventType.GOAL, EventType.PENALTY_SCORED, EventType.OWN_GOAL):
            side = st.side(e.team)
            scorer_side = st.opponent(e.team) if e.type is EventType.OWN_GOAL else side
            goals.append({
                'team': e.team,
                'minute': e.minute,
                'type': e.type.value,
                'scorer': name_of(scorer_side, e.player_id),
                'assist': name_of(side, e.assist_player_id),
            })

    total_ticks = sum(engine.possession_ticks.values())
    pos_home = round(100 * engine.possession_ticks['home'] / max(1, total_ticks), 1)

    def build_player_stats(side: SideState) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for pid in sorted(side.energy):
            p = side.player(pid)
            out.append({
                'id': p.id,
                'name': p.display_name,
                'position': p.position,
                'energy': round(side.energy[pid], 2),
                'bookings': side.bookings.get(pid, 0),
                'sent_off': bool(side.sent_off.get(pid, False)),
                'on_pitch': side.is_on_pitch(pid),
            })
        return out

    lines = player_lines(events, engine.starting_lineups['home'], engine.starting_lineups['away'])
    tstats = team_stats(events)
    return {
        'home': home.name,
        'away': away.name,
        'score': (st.home_score, st.away_score),
        'home_score': st.home_score,
        'away_score': st.away_score,
        'phase': st.phase.value,
        'minute': st.minute,
        'stoppage': st.stoppage,
        'possession': {'home': pos_home, 'away': round(100 - pos_home, 1) if total_ticks else 0.0},
        'goals': goals,
        'substitutions': list(engine.substitutions),
        'stats': {k: v.to_dict() for k, v in tstats.items()},
        'lineups': {
            'home': {'starting': list(engine.starting_lineups['home']), 'final': list(st.home.tactics.lineup)},
            'away': {'starting': list(engine.starting_lineups['away']), 'final': list(st.away.tactics.lineup)},
        },
        'player_stats': {
            'home': build_player_stats(st.home),
            'away': build_player_stats(st.away),
        },
        'player_lines': {pid: line.to_dict() for pid, line in lines.items()},
        'events': [e.to_dict() for e in events],
    }


def export(engine: 'MatchEngine', out_dir: str | Path = 'out', seed: Optional[int | str] = None) -> Dict[str, str]:
    """Write the JSON report and the NDJSON event log; returns their paths."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    sid = str(seed) if seed is not None else 'na'
    report_path = out / f"match_{sid}.json"
    report_path.write_text(json.dumps(build_report(engine), ensure_ascii=False, indent=2), encoding='utf-8')
    ndjson_path = write_ndjson(engine.state.events, out / f"match_{sid}.ndjson")
    return {'report': str(report_path), 'events': ndjson_path}
