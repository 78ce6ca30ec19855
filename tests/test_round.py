from __future__ import annotations

import pytest

from roster.generator import generate_team
from matchsim.config import EngineConfig
from matchsim.match import MatchEngine
from matchsim.round import Fixture, MatchRound, fixture_seed
from matchsim.trace import TraceRecorder


def _fixtures():
    teams = [generate_team(f"t{i}", f"Team {i}", seed=i) for i in range(4)]
    return [Fixture('f1', teams[0], teams[1]), Fixture('f2', teams[2], teams[3])]


def test_fixtures_are_independent_of_the_rest_of_the_round():
    cfg = EngineConfig()
    fixtures = _fixtures()
    full = MatchRound(fixtures, seed=5, config=cfg).simulate_all(max_workers=2)
    alone = MatchRound(fixtures[:1], seed=5, config=cfg).simulate_all()
    assert full['f1']['events'] == alone['f1']['events']

    direct = MatchEngine(fixtures[1].home, fixtures[1].away, seed=fixture_seed(5, 'f2'), config=cfg).simulate()
    assert full['f2']['events'] == direct['events']


def test_lockstep_stepping_matches_whole_simulation():
    cfg = EngineConfig()
    stepped = MatchRound(_fixtures(), seed=8, config=cfg)
    while not stepped.finished:
        stepped.step_all()
    whole = MatchRound(_fixtures(), seed=8, config=cfg).simulate_all(max_workers=1)
    for fid, eng in stepped.engines.items():
        assert [e.to_dict() for e in eng.events] == whole[fid]['events']


def test_human_fixture_pauses_at_half_time_and_stays_manual():
    fixtures = _fixtures()
    rnd = MatchRound(fixtures, seed=2, human_team_id='t1',
                     trace_factory=lambda fid: TraceRecorder() if fid == 'f1' else None)
    assert rnd.human_fixture == 'f1'
    human = rnd.engine('f1')
    assert human.state.away.control == 'human'
    assert human.state.home.control == 'ai'
    assert human.trace is not None and rnd.engine('f2').trace is None

    rnd.play_until_pause_or_end()
    assert human.is_paused and human.state.minute == 45
    assert not rnd.finished

    rnd.resume()
    rnd.play_until_pause_or_end()
    assert rnd.finished
    assert human.state.away.subs_used == 0


def test_duplicate_fixture_ids_are_rejected():
    f = _fixtures()
    with pytest.raises(ValueError):
        MatchRound([f[0], f[0]])
