from __future__ import annotations

from roster.generator import generate_team
from matchsim.events import EventType, MatchEvent
from matchsim.match import MatchEngine
from matchsim.stats import merge_season, player_lines, season_from_matches, team_stats, top_scorers


def _events():
    return [
        MatchEvent(0, EventType.KICKOFF, 'home', seq=1),
        MatchEvent(12, EventType.GOAL, 'home', player_id='h9', assist_player_id='h8', seq=2),
        MatchEvent(30, EventType.OWN_GOAL, 'away', player_id='h4', seq=3),
        MatchEvent(40, EventType.YELLOW_CARD, 'away', player_id='a5', seq=4),
        MatchEvent(45, EventType.HALF_TIME, 'home', seq=5),
        MatchEvent(60, EventType.SUBSTITUTION, 'home', player_id='h12', assist_player_id='h9', seq=6),
        MatchEvent(70, EventType.RED_CARD, 'away', player_id='a5', seq=7),
        MatchEvent(80, EventType.PENALTY_SCORED, 'home', player_id='h12', seq=8),
        MatchEvent(85, EventType.SAVE, 'away', player_id='a1', seq=9),
        MatchEvent(90, EventType.FULL_TIME, 'home', seq=10),
    ]


HOME = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'h7', 'h8', 'h9', 'h10', 'h11']
AWAY = ['a1', 'a2', 'a3', 'a4', 'a5', 'a6', 'a7', 'a8', 'a9', 'a10', 'a11']


def test_player_lines_from_events():
    lines = player_lines(_events(), HOME, AWAY)
    assert lines['h9'].goals == 1 and lines['h9'].minutes == 60
    assert lines['h8'].assists == 1
    assert lines['h12'].goals == 1 and lines['h12'].minutes == 30 and lines['h12'].appearances == 1
    assert lines['h4'].goals == 0
    assert lines['a5'].yellow_cards == 1 and lines['a5'].red_cards == 1 and lines['a5'].minutes == 70
    assert lines['a1'].minutes == 90
    assert len(lines) == 23


def test_team_stats_block():
    stats = team_stats(_events())
    assert stats['home'].goals == 2
    assert stats['away'].goals == 1
    assert stats['home'].shots_on_target == 3
    assert stats['away'].saves == 1
    assert stats['home'].penalties == 1
    assert stats['away'].cards_yellow == 1 and stats['away'].cards_red == 1
    assert stats['home'].substitutions == 1


def test_merge_season_is_pure_and_recomputation_is_idempotent():
    m1 = player_lines(_events(), HOME, AWAY)
    m2 = player_lines(_events(), HOME, AWAY)
    season = merge_season({}, m1)
    before = dict(season)
    merged = merge_season(season, m2)
    assert season == before
    assert merged['h12'].goals == 2
    assert merged['h1'].appearances == 2 and merged['h1'].minutes == 180
    assert season_from_matches([m1, m2]) == season_from_matches([m1, m2]) == merged
    assert [l.player_id for l in top_scorers(merged)][:2] == ['h12', 'h9']


def test_player_lines_match_engine_totals():
    home, away = generate_team('sh', 'Stats Home', seed=3), generate_team('sa', 'Stats Away', seed=4)
    eng = MatchEngine(home, away, seed=44)
    eng.simulate()
    lines = player_lines(eng.events, eng.starting_lineups['home'], eng.starting_lineups['away'])
    home_goals = sum(l.goals for l in lines.values() if l.team == 'home')
    own_goals_for_home = sum(1 for e in eng.events if e.type is EventType.OWN_GOAL and e.team == 'home')
    assert home_goals + own_goals_for_home == eng.state.home_score
    assert sum(l.appearances for l in lines.values() if l.team == 'home') == 11 + eng.state.home.subs_used
