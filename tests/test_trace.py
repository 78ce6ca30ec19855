from __future__ import annotations
import json

import pytest

from matchsim.trace import TraceRecorder


def test_record_and_query():
    trace = TraceRecorder()
    trace.record('minute_context', 1, team='home', label='Minute context', summary='home in possession')
    trace.record('event_probability', 1, team='home', summary='nothing notable')
    trace.record('foul_selection', 7, team='away', summary='Nowak fouls, yellow', tags=('discipline',),
                 severity='info', outcome={'fouler': 'a4'})
    assert [e.id for e in trace.events] == ['001-00001', '001-00002', '007-00003']
    assert len(trace.query(minute=1)) == 2
    assert len(trace.query(team='away')) == 1
    assert len(trace.query(type='foul_selection', minute_min=5, minute_max=10)) == 1
    assert len(trace.query(search='nowak')) == 1
    assert len(trace.query(search='discipline')) == 1
    assert trace.query(minute_max=0) == []
    assert trace.counts_by_type()['minute_context'] == 1
    assert trace.counts_by_type()['sub_executed'] == 0
    assert trace.counts_by_team() == {'home': 2, 'away': 1, 'unknown': 0}


def test_unknown_type_or_severity_is_rejected():
    trace = TraceRecorder()
    with pytest.raises(ValueError):
        trace.record('mood_swing', 3)
    with pytest.raises(ValueError):
        trace.record('energy_tick', 3, severity='loud')


def test_disabled_recorder_records_nothing():
    seen = []
    trace = TraceRecorder(enabled=False, sink=seen.append)
    assert trace.record('energy_tick', 1) is None
    assert trace.events == [] and seen == []


def test_sink_and_ring_buffer():
    seen = []
    trace = TraceRecorder(sink=seen.append, max_events=2)
    for minute in range(1, 5):
        trace.record('energy_tick', minute, team='home')
    assert len(seen) == 4
    assert [e.minute for e in trace.events] == [3, 4]
    trace.clear()
    assert trace.events == []


def test_write_ndjson(tmp_path):
    trace = TraceRecorder()
    trace.record('sub_executed', 60, team='home', inputs={'outgoingPlayerId': 'h9', 'incomingPlayerId': 'h14'},
                 outcome={'success': True, 'reason': 'fatigue'})
    path = trace.write_ndjson(tmp_path / 'trace.ndjson')
    [line] = open(path, encoding='utf-8').read().splitlines()
    obj = json.loads(line)
    assert obj['type'] == 'sub_executed'
    assert obj['inputs']['outgoingPlayerId'] == 'h9'
