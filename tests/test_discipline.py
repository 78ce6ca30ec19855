from __future__ import annotations
import random

from roster.generator import generate_team
from roster.team import Tactics
from matchsim.config import EngineConfig
from matchsim.discipline import RED, SECOND_YELLOW, YELLOW, apply_booking, maybe_foul
from matchsim.state import SideState
from matchsim.tactics import default_tactics
from matchsim.trace import TraceRecorder


def _side(lineup_size: int = 11) -> SideState:
    team = generate_team('disc', 'Discipline FC', seed=4)
    tactics = default_tactics(team)
    if lineup_size != 11:
        tactics = Tactics(lineup=tactics.lineup[:lineup_size], substitutes=[])
    return SideState(key='away', team=team, tactics=tactics)


def test_booked_player_selected_again_is_sent_off():
    cfg = EngineConfig()
    side = _side(lineup_size=1)
    pid = side.tactics.lineup[0]
    side.bookings[pid] = 1
    for seed in range(20):
        decision = maybe_foul(side, 60, random.Random(seed), cfg)
        assert decision.fouler.id == pid
        assert decision.severity == SECOND_YELLOW
        assert decision.is_sending_off

    apply_booking(side, decision)
    assert side.bookings[pid] == 2
    assert side.sent_off[pid] is True
    assert side.on_pitch() == []


def test_no_eligible_player_degrades_to_uncarded_foul():
    cfg = EngineConfig()
    side = _side(lineup_size=1)
    side.sent_off[side.tactics.lineup[0]] = True
    trace = TraceRecorder()
    rng = random.Random(0)
    state = rng.getstate()
    assert maybe_foul(side, 30, rng, cfg, trace) is None
    assert rng.getstate() == state
    [event] = trace.events
    assert event.type == 'foul_selection'
    assert event.severity == 'warning'


def test_unbooked_fouler_gets_yellow_or_direct_red():
    cfg = EngineConfig()
    side = _side()
    severities = set()
    for seed in range(300):
        decision = maybe_foul(side, 50, random.Random(seed), cfg)
        severities.add(decision.severity)
        assert decision.red_probability <= cfg.num('discipline.direct_red_max')
    assert severities <= {YELLOW, RED}
    assert YELLOW in severities


def test_direct_red_when_red_probability_saturates():
    cfg = EngineConfig.from_overrides({'discipline': {'direct_red_base': 100.0, 'direct_red_max': 1.0}})
    side = _side()
    decision = maybe_foul(side, 50, random.Random(1), cfg)
    assert decision.severity == RED
    apply_booking(side, decision)
    assert side.bookings[decision.fouler.id] == 2
    assert side.sent_off[decision.fouler.id]


def test_yellow_adds_one_booking():
    side = _side()
    cfg = EngineConfig.from_overrides({'discipline': {'direct_red_base': 0.0}})
    decision = maybe_foul(side, 10, random.Random(2), cfg)
    assert decision.severity == YELLOW
    assert apply_booking(side, decision) == 1
    assert not side.sent_off.get(decision.fouler.id, False)


def test_foul_selection_trace_is_recorded():
    trace = TraceRecorder()
    decision = maybe_foul(_side(), 70, random.Random(9), EngineConfig(), trace)
    [event] = trace.query(type='foul_selection')
    assert event.outcome['fouler'] == decision.fouler.id
    assert set(event.computed['weights']) == set(_side().tactics.lineup)
