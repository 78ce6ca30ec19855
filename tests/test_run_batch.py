from __future__ import annotations
import csv

from scripts.run_batch import simulate_many, write_csv


def test_simulate_many_rows_follow_seeds():
    rows = simulate_many(3)
    assert [r['seed'] for r in rows] == [0, 1, 2]
    for r in rows:
        assert r['shots_a'] >= r['on_a'] >= 0
        assert r['subs_a'] <= 5 and r['subs_b'] <= 5
        assert abs(r['pos_a'] + r['pos_b'] - 100.0) < 0.2
    assert simulate_many(3) == rows


def test_write_csv(tmp_path):
    rows = simulate_many(2)
    out = tmp_path / 'nested' / 'batch.csv'
    write_csv(rows, out)
    with out.open(encoding='utf-8', newline='') as f:
        read = list(csv.DictReader(f))
    assert len(read) == 2
    assert read[1]['seed'] == '1'


def test_write_csv_skips_empty(tmp_path):
    out = tmp_path / 'empty.csv'
    write_csv([], out)
    assert not out.exists()
