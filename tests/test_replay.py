from __future__ import annotations

from roster.generator import generate_team
from matchsim.config import EngineConfig
from matchsim.events import EventType, MatchEvent
from matchsim.match import MatchEngine
from matchsim.replay import initial_snapshot, reduce_event, replay
from matchsim.state import Phase


def test_replay_agrees_with_engine_after_every_tick():
    home, away = generate_team('rh', 'Replay Home', seed=1), generate_team('ra', 'Replay Away', seed=2)
    cfg = EngineConfig.from_overrides({'probability': {'category_weights': {'card': 1.0}}})
    eng = MatchEngine(home, away, seed=23, config=cfg)
    snap = initial_snapshot(eng.starting_lineups['home'], eng.starting_lineups['away'])
    while not eng.is_finished:
        for e in eng.step():
            snap = reduce_event(snap, e)
        st = eng.state
        assert snap.score == (st.home_score, st.away_score)
        for key in ('home', 'away'):
            side = st.side(key)
            assert list(snap.lineups[key]) == side.tactics.lineup
            assert snap.bookings[key] == side.bookings
            assert set(snap.sent_off[key]) == {pid for pid, v in side.sent_off.items() if v}
            assert snap.subs_used[key] == side.subs_used
    assert snap.phase is Phase.FULL_TIME
    assert replay(eng.events, eng.starting_lineups['home'], eng.starting_lineups['away']) == snap


def test_reduce_event_does_not_mutate_its_input():
    snap = initial_snapshot(['a', 'b'], ['c', 'd'])
    after = reduce_event(snap, MatchEvent(10, EventType.SUBSTITUTION, 'home', player_id='x', assist_player_id='a'))
    after = reduce_event(after, MatchEvent(11, EventType.YELLOW_CARD, 'away', player_id='c'))
    after = reduce_event(after, MatchEvent(12, EventType.RED_CARD, 'away', player_id='c'))
    after = reduce_event(after, MatchEvent(13, EventType.OWN_GOAL, 'home', player_id='d'))
    assert snap.lineups['home'] == ('a', 'b')
    assert snap.bookings == {'home': {}, 'away': {}}
    assert after.lineups['home'] == ('x', 'b')
    assert after.subs_used['home'] == 1
    assert after.bookings['away'] == {'c': 2}
    assert after.sent_off['away'] == ('c',)
    assert after.score == (1, 0)


def test_half_time_substitution_keeps_replay_at_half_time():
    home, away = generate_team('ph', 'Paused Home', seed=3), generate_team('pa', 'Paused Away', seed=4)
    eng = MatchEngine(home, away, seed=31, home_control='human', pause_at_half_time=True)
    list(eng.iter_minutes())
    assert eng.is_paused
    side = eng.state.home
    out_id = next(p.id for p in side.on_pitch() if not p.is_goalkeeper())
    in_id = next(p.id for p in side.bench() if not p.is_goalkeeper())
    eng.substitute('home', out_id, in_id)

    snap = replay(eng.events, eng.starting_lineups['home'], eng.starting_lineups['away'])
    assert eng.state.phase is Phase.HALF_TIME
    assert snap.phase is Phase.HALF_TIME
    assert list(snap.lineups['home']) == side.tactics.lineup

    eng.resume_from_half_time()
    while not eng.step():
        pass
    snap = replay(eng.events, eng.starting_lineups['home'], eng.starting_lineups['away'])
    assert snap.phase is eng.state.phase
    assert snap.phase in (Phase.SECOND_HALF, Phase.FULL_TIME)
