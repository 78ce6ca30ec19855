from __future__ import annotations
import json

import pytest

from roster.generator import generate_team
from matchsim import cli
from matchsim.events import EventType
from matchsim.match import MatchEngine
from matchsim.report import build_report, export


def _engine(seed: int = 6) -> MatchEngine:
    return MatchEngine(generate_team('rh', 'Report Home', seed=1), generate_team('ra', 'Report Away', seed=2),
                       seed=seed)


def test_build_report_is_json_ready():
    eng = _engine()
    report = eng.simulate()
    json.dumps(report)
    assert report['home'] == 'Report Home'
    assert report['phase'] == 'full_time'
    assert report['home_score'] == eng.state.home_score
    assert report['possession']['home'] + report['possession']['away'] == pytest.approx(100.0)
    assert len(report['goals']) == eng.state.home_score + eng.state.away_score
    assert len(report['lineups']['home']['starting']) == 11
    assert report['events'] == eng.log.dump()
    assert report['stats']['home']['substitutions'] == eng.state.home.subs_used
    assert build_report(eng) == report


def test_export_writes_report_and_events(tmp_path):
    eng = _engine(8)
    eng.simulate()
    paths = export(eng, tmp_path, seed=8)
    rows = [json.loads(x) for x in open(paths['events'], encoding='utf-8').read().splitlines()]
    assert rows[0]['type'] == EventType.KICKOFF.value
    assert rows[-1]['type'] == EventType.FULL_TIME.value
    assert json.loads(open(paths['report'], encoding='utf-8').read())['away'] == 'Report Away'


def test_cli_runs_a_match_and_writes_outputs(tmp_path, capsys):
    report_path = tmp_path / 'report.json'
    events_path = tmp_path / 'events.ndjson'
    trace_path = tmp_path / 'trace.ndjson'
    code = cli.main(['--seed', '3', '--json-path', str(report_path), '--events-ndjson', str(events_path),
                     '--trace-ndjson', str(trace_path), '--timeline', 'key'])
    assert code == 0
    out = capsys.readouterr().out
    assert 'MATCH REPORT: Home FC vs Away United' in out
    report = json.loads(report_path.read_text(encoding='utf-8'))
    assert report['phase'] == 'full_time'
    assert events_path.read_text(encoding='utf-8').count('\n') == len(report['events'])
    assert trace_path.exists()


def test_cli_is_deterministic_per_seed(tmp_path):
    a, b = tmp_path / 'a.json', tmp_path / 'b.json'
    cli.main(['--seed', '11', '--json-path', str(a)])
    cli.main(['--seed', '11', '--json-path', str(b)])
    assert json.loads(a.read_text(encoding='utf-8')) == json.loads(b.read_text(encoding='utf-8'))


def test_cli_reports_a_bad_config(tmp_path, capsys):
    bad = tmp_path / 'bad.yml'
    bad.write_text("unknown_section: 1\n", encoding='utf-8')
    assert cli.main(['--config', str(bad), '--save-json', 'no']) == 2
    assert 'unknown config sections' in capsys.readouterr().err
