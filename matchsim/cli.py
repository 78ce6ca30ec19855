from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from roster.generator import generate_team
from roster.loader import load_teams
from roster.team import Team, Tactics
from matchsim.config import ConfigError, EngineConfig, load_config
from matchsim.events import write_ndjson
from matchsim.match import MatchEngine, MatchSetupError
from matchsim.report import KEY_EVENT_TYPES
from matchsim.trace import TraceRecorder

logger = logging.getLogger(__name__)

DEFAULT_TEAMS = (('home-fc', 'Home FC'), ('away-utd', 'Away United'))


def print_match_report(report: Dict, *, timeline_mode: str = 'all', timeline_limit: int = 120) -> None:
    home, away = report['home'], report['away']
    print("\n" + "=" * 70)
    print(f"MATCH REPORT: {home} vs {away}")
    print("=" * 70 + "\n")
    print(f"FINAL SCORE: {home} {report['home_score']} - {report['away_score']} {away}\n")

    names = {'home': home, 'away': away}
    if report['goals']:
        print("GOALS:")
        for g in report['goals']:
            assist = f" (assist: {g['assist']})" if g['assist'] else ""
            suffix = {'own_goal': ' (og)', 'penalty_scored': ' (pen)'}.get(g['type'], '')
            print(f"   {names[g['team']]}: {g['minute']}' {g['scorer']}{suffix}{assist}")
    else:
        print("GOALS: none")

    st = report['stats']
    print("\nSTATS:")
    print(f"   Possession:\n      {home}: {report['possession']['home']}%\n      {away}: {report['possession']['away']}%")
    print(f"\n   Shots:\n      {home}: {st['home']['shots']} ({st['home']['shots_on_target']} on target)"
          f"\n      {away}: {st['away']['shots']} ({st['away']['shots_on_target']} on target)")
    print(f"\n   Set pieces:\n      Corners: {home}: {st['home']['corners']}  |  {away}: {st['away']['corners']}\n"
          f"      Free kicks: {home}: {st['home']['free_kicks']}  |  {away}: {st['away']['free_kicks']}\n"
          f"      Penalties: {home}: {st['home']['penalties']}  |  {away}: {st['away']['penalties']}")
    print(f"\n   Cards:\n      Yellow: {home}: {st['home']['cards_yellow']}  |  {away}: {st['away']['cards_yellow']}\n"
          f"      Red: {home}: {st['home']['cards_red']}  |  {away}: {st['away']['cards_red']}")

    subs = report.get('substitutions') or []
    if subs:
        print("\nSUBSTITUTIONS:")
        for s in subs:
            print(f"   {s['minute']}' {names[s['team']]}: {s['out']} -> {s['in']} ({s.get('reason', '')})")

    timeline = report['events']
    key_types = {t.value for t in KEY_EVENT_TYPES}
    if timeline_mode == 'key':
        timeline = [e for e in timeline if e['type'] in key_types]
        title = "TIMELINE (key events)"
    elif timeline_mode == 'last':
        timeline = timeline[-max(1, int(timeline_limit)):]
        title = f"TIMELINE (last {max(1, int(timeline_limit))})"
    else:
        title = "TIMELINE (full)"
    if timeline:
        print(f"\n{title}:")
        for e in timeline:
            print(f"   {e['minute']}' {e['description'] or e['type']}")

    print("\n" + "=" * 80 + "\n")


def _pick_teams(args: argparse.Namespace) -> Tuple[Team, Optional[Tactics], Team, Optional[Tactics]]:
    if not args.roster:
        home = generate_team(DEFAULT_TEAMS[0][0], DEFAULT_TEAMS[0][1], seed=1)
        away = generate_team(DEFAULT_TEAMS[1][0], DEFAULT_TEAMS[1][1], seed=2)
        return home, None, away, None
    teams = load_teams(args.roster)
    if len(teams) < 2:
        raise SystemExit(f"[ERROR] {args.roster}: need at least two teams")
    names: List[str] = list(teams)
    home_name = args.home or names[0]
    away_name = args.away or next(n for n in names if n != home_name)
    for n in (home_name, away_name):
        if n not in teams:
            raise SystemExit(f"[ERROR] team {n!r} not found in {args.roster}")
    home, home_tactics = teams[home_name]
    away, away_tactics = teams[away_name]
    return home, home_tactics, away, away_tactics


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog='matchsim', description='Simulate a football match minute by minute.')
    p.add_argument('--roster', type=str, help='JSON/YAML roster file (default: generated teams)')
    p.add_argument('--home', type=str, help='Home team name from the roster file')
    p.add_argument('--away', type=str, help='Away team name from the roster file')
    p.add_argument('--seed', type=int)
    p.add_argument('--config', type=str, help='YAML overrides for engine constants')
    p.add_argument('--neutral', action='store_true', help='Neutral venue (no home advantage)')
    p.add_argument('--verbose', action='store_true')
    p.add_argument('--timeline', type=str, default='all', choices=['all', 'key', 'last'])
    p.add_argument('--timeline-limit', type=int, default=120, help="Event limit for 'last'")
    p.add_argument(
        '--save-json',
        dest='save_json',
        type=lambda v: str(v).lower() not in ('0', 'false', 'no'),
        default=True,
        help='Write the JSON report (default True)',
    )
    p.add_argument('--json-path', type=str, default=str(Path('out') / 'last_report.json'))
    p.add_argument('--events-ndjson', type=str, help='Write the event log as NDJSON')
    p.add_argument('--trace-ndjson', type=str, help='Record decision traces and write them as NDJSON')
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        config = load_config(args.config) if args.config else EngineConfig()
    except ConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    home, home_tactics, away, away_tactics = _pick_teams(args)
    trace = TraceRecorder() if args.trace_ndjson else None
    try:
        engine = MatchEngine(home, away, home_tactics, away_tactics, seed=args.seed, config=config,
                             trace=trace, neutral_venue=args.neutral)
    except MatchSetupError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    print(f"\nMATCH: {home.name} vs {away.name}\n")
    report = engine.simulate()
    print_match_report(report, timeline_mode=args.timeline, timeline_limit=args.timeline_limit)

    if args.save_json:
        out_path = Path(args.json_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding='utf-8')
        logger.info("report written to %s", out_path)
    if args.events_ndjson:
        write_ndjson(engine.events, args.events_ndjson)
    if trace is not None:
        trace.write_ndjson(args.trace_ndjson)
    return 0


if __name__ == '__main__':
    sys.exit(main())
