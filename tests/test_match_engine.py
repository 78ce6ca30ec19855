from __future__ import annotations
from collections import Counter

import pytest

from roster.generator import generate_team
from matchsim.config import EngineConfig
from matchsim.events import EventType
from matchsim.match import MatchEngine
from matchsim.state import Phase
from matchsim.trace import TraceRecorder


def _teams():
    return generate_team('home', 'Home FC', seed=1), generate_team('away', 'Away United', seed=2)


def test_default_match_runs_to_a_single_full_time_at_90():
    home, away = _teams()
    eng = MatchEngine(home, away, seed=7)
    report = eng.simulate()

    assert eng.state.phase is Phase.FULL_TIME
    types = [e.type for e in eng.events]
    assert types[0] is EventType.KICKOFF and eng.events[0].minute == 0
    assert types.count(EventType.FULL_TIME) == 1
    assert types.count(EventType.HALF_TIME) == 1
    assert eng.events[-1].type is EventType.FULL_TIME and eng.events[-1].minute == 90
    assert next(e for e in eng.events if e.type is EventType.HALF_TIME).minute == 45
    assert len(eng.starting_lineups['home']) == len(eng.starting_lineups['away']) == 11
    assert report['score'] == (eng.state.home_score, eng.state.away_score)


def test_events_are_ordered_and_sequenced():
    home, away = _teams()
    eng = MatchEngine(home, away, seed=3)
    eng.simulate()
    minutes = [e.minute for e in eng.events]
    assert minutes == sorted(minutes)
    assert [e.seq for e in eng.events] == list(range(1, len(eng.events) + 1))


def test_same_seed_same_match():
    home, away = _teams()
    a = MatchEngine(home, away, seed=99)
    b = MatchEngine(home, away, seed=99)
    a.simulate()
    b.simulate()
    assert [e.to_dict() for e in a.events] == [e.to_dict() for e in b.events]
    assert a.state.snapshot() == b.state.snapshot()


def test_tracing_does_not_change_the_match():
    home, away = _teams()
    plain = MatchEngine(home, away, seed=17)
    traced = MatchEngine(home, away, seed=17, trace=TraceRecorder())
    disabled = MatchEngine(home, away, seed=17, trace=TraceRecorder(enabled=False))
    for eng in (plain, traced, disabled):
        eng.simulate()
    assert plain.log.dump() == traced.log.dump() == disabled.log.dump()
    assert traced.trace.counts_by_type()['minute_context'] == 90
    assert disabled.trace.events == []


def test_score_matches_scoring_events():
    home, away = _teams()
    for seed in range(8):
        eng = MatchEngine(home, away, seed=seed)
        eng.simulate()
        goals = Counter(e.team for e in eng.events
                        if e.type in (EventType.GOAL, EventType.OWN_GOAL, EventType.PENALTY_SCORED))
        assert (goals['home'], goals['away']) == (eng.state.home_score, eng.state.away_score)


def test_booking_and_dismissal_invariants_hold():
    home, away = _teams()
    cfg = EngineConfig.from_overrides({'probability': {'category_weights': {'card': 2.0}}})
    for seed in range(10):
        eng = MatchEngine(home, away, seed=seed, config=cfg)
        eng.simulate()
        for key in ('home', 'away'):
            side = eng.state.side(key)
            reds = Counter(e.player_id for e in eng.events if e.type is EventType.RED_CARD and e.team == key)
            yellows = Counter(e.player_id for e in eng.events if e.type is EventType.YELLOW_CARD and e.team == key)
            for pid in side.energy:
                sent = side.sent_off.get(pid, False)
                assert (side.bookings.get(pid, 0) == 2) == sent == (reds[pid] == 1)
                assert reds[pid] <= 1
                assert yellows[pid] <= 1
            assert not any(side.is_on_pitch(pid) for pid in reds)


def test_substitution_bound_and_counter():
    home, away = _teams()
    for seed in range(10):
        eng = MatchEngine(home, away, seed=seed)
        eng.simulate()
        for key in ('home', 'away'):
            side = eng.state.side(key)
            subs = [e for e in eng.events if e.type is EventType.SUBSTITUTION and e.team == key]
            assert side.subs_used == len(subs) <= 5
            assert len(set(e.player_id for e in subs)) == len(subs)
            assert not side.came_on & side.substituted_off


def test_energy_only_decreases_and_bench_is_frozen():
    home, away = _teams()
    eng = MatchEngine(home, away, seed=12)
    eng.step()
    prev = {k: dict(eng.state.side(k).energy) for k in ('home', 'away')}
    while not eng.is_finished:
        eng.step()
        for key in ('home', 'away'):
            side = eng.state.side(key)
            for pid, energy in side.energy.items():
                assert 0.0 <= energy <= 100.0
                assert energy <= prev[key][pid]
                if pid in side.tactics.substitutes and pid not in side.came_on:
                    assert energy == prev[key][pid]
            prev[key] = dict(side.energy)


def test_step_after_full_time_is_a_no_op():
    home, away = _teams()
    eng = MatchEngine(home, away, seed=1)
    eng.simulate()
    n = len(eng.events)
    assert eng.step() == []
    assert len(eng.events) == n
    assert eng.state.minute == 90


def test_half_time_pause_and_resume():
    home, away = _teams()
    eng = MatchEngine(home, away, seed=4, pause_at_half_time=True)
    snaps = list(eng.iter_minutes())
    assert snaps[-1]['phase'] == 'half_time'
    assert eng.is_paused
    assert eng.step() == []
    assert eng.state.minute == 45
    hints = eng.half_time_hints('home')
    assert hints['situation'] in ('winning', 'drawing', 'losing')

    eng.resume_from_half_time()
    eng.step()
    assert eng.state.minute == 46
    assert eng.state.phase is Phase.SECOND_HALF


def test_stoppage_time_extends_the_match():
    home, away = _teams()
    cfg = EngineConfig.from_overrides({'match': {'stoppage_min': 2, 'stoppage_max': 5}})
    eng = MatchEngine(home, away, seed=8, config=cfg)
    eng.simulate()
    assert 2 <= eng.state.stoppage <= 5
    assert eng.events[-1].minute == 90 + eng.state.stoppage


def test_neutral_venue_removes_home_advantage():
    home, away = _teams()
    hosted = MatchEngine(home, away, seed=30, trace=TraceRecorder())
    neutral = MatchEngine(home, away, seed=30, trace=TraceRecorder(), neutral_venue=True)
    for eng in (hosted, neutral):
        eng.step()
        eng.step()
    [h] = hosted.trace.query(type='minute_context')
    [n] = neutral.trace.query(type='minute_context')
    assert h.computed['home_possession_raw'] - n.computed['home_possession_raw'] == pytest.approx(0.08, abs=1e-5)
