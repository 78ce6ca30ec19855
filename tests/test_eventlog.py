from __future__ import annotations
import json
from pathlib import Path

import pytest

from matchsim.events import EventLog, EventType, MatchEvent, write_ndjson


def test_append_assigns_sequence_numbers():
    log = EventLog()
    a = log.append(0, EventType.KICKOFF, 'home')
    b = log.append(3, EventType.CORNER, 'away', description='Corner kick for Away')
    c = log.append(3, EventType.GOAL, 'away', player_id='a9')
    assert [e.seq for e in (a, b, c)] == [1, 2, 3]
    assert len(log) == 3
    assert log.since(1) == [b, c]


def test_minutes_never_go_backwards():
    log = EventLog()
    log.append(10, EventType.OFFSIDE, 'home')
    with pytest.raises(ValueError):
        log.append(9, EventType.CORNER, 'home')
    assert len(log) == 1


def test_event_is_immutable_and_serialisable():
    e = MatchEvent(12, EventType.YELLOW_CARD, 'away', player_id='a4', seq=5)
    with pytest.raises(AttributeError):
        e.minute = 13
    d = e.to_dict()
    assert d['type'] == 'yellow_card'
    assert MatchEvent.from_dict(json.loads(json.dumps(d))) == e


def test_write_ndjson_is_ordered(tmp_path):
    log = EventLog()
    log.append(0, EventType.KICKOFF, 'home')
    log.append(45, EventType.HALF_TIME, 'home')
    log.append(90, EventType.FULL_TIME, 'home')
    path = write_ndjson(log, tmp_path / 'out' / 'events.ndjson')
    rows = [json.loads(x) for x in Path(path).read_text(encoding='utf-8').splitlines()]
    assert [r['seq'] for r in rows] == [1, 2, 3]
    assert [r['minute'] for r in rows] == [0, 45, 90]
