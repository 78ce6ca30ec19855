from __future__ import annotations
import argparse
import csv
from pathlib import Path
from typing import Dict, List, Optional

from roster.generator import generate_team
from roster.loader import load_teams
from matchsim.config import EngineConfig, load_config
from matchsim.match import MatchEngine


def default_teams() -> Dict[str, tuple]:
    return {
        'Home FC': (generate_team('home-fc', 'Home FC', seed=1), None),
        'Away United': (generate_team('away-utd', 'Away United', seed=2), None),
    }


def simulate_many(n: int = 200, team_a: Optional[str] = None, team_b: Optional[str] = None, *,
                  roster: Optional[str] = None, config: Optional[EngineConfig] = None) -> List[Dict]:
    teams = load_teams(roster) if roster else default_teams()
    if team_a is None:
        team_a = list(teams.keys())[0]
    if team_b is None:
        team_b = next((k for k in teams.keys() if k != team_a), team_a)
    (A, ta), (B, tb) = teams[team_a], teams[team_b]
    cfg = config or EngineConfig()

    results: List[Dict] = []
    for seed in range(n):
        rep = MatchEngine(A, B, ta, tb, seed=seed, config=cfg).simulate()
        st = rep['stats']
        results.append({
            'seed': seed,
            'score_a': rep['home_score'],
            'score_b': rep['away_score'],
            'shots_a': st['home']['shots'],
            'shots_b': st['away']['shots'],
            'on_a': st['home']['shots_on_target'],
            'on_b': st['away']['shots_on_target'],
            'pos_a': rep['possession']['home'],
            'pos_b': rep['possession']['away'],
            'corners_a': st['home']['corners'],
            'corners_b': st['away']['corners'],
            'yellows_a': st['home']['cards_yellow'],
            'yellows_b': st['away']['cards_yellow'],
            'reds_a': st['home']['cards_red'],
            'reds_b': st['away']['cards_red'],
            'subs_a': st['home']['substitutions'],
            'subs_b': st['away']['substitutions'],
        })
    return results


def write_csv(rows: List[Dict], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        return
    with path.open('w', encoding='utf-8', newline='') as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)


if __name__ == '__main__':
    ap = argparse.ArgumentParser()
    ap.add_argument('-n', type=int, default=200)
    ap.add_argument('--roster', type=str)
    ap.add_argument('--config', type=str)
    ap.add_argument('--out', type=str, default=str(Path(__file__).resolve().parents[1] / 'reports' / 'batch_stats.csv'))
    args = ap.parse_args()
    data = simulate_many(n=args.n, roster=args.roster, config=load_config(args.config) if args.config else None)
    write_csv(data, Path(args.out))
    print(f"Wrote {len(data)} rows to {args.out}")
