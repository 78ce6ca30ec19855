from __future__ import annotations

import pytest

from matchsim import config as config_mod
from matchsim.config import DEFAULTS, ConfigError, EngineConfig, get_config, load_config, merge


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch):
    monkeypatch.setattr(config_mod, '_GLOBAL_CONFIG', None)


def test_defaults_and_dotted_lookup():
    cfg = EngineConfig()
    assert cfg.num('subs.fatigue_threshold') == 45.0
    assert cfg.get('fatigue.posture_position_mult.attacking.ATT') == 1.25
    assert cfg.get('nope.missing', 'fallback') == 'fallback'
    with pytest.raises(KeyError):
        cfg.num('nope.missing')


def test_merge_does_not_mutate_inputs():
    a = {'x': {'y': 1, 'z': 2}}
    b = {'x': {'y': 5}}
    out = merge(a, b)
    assert out == {'x': {'y': 5, 'z': 2}}
    assert a == {'x': {'y': 1, 'z': 2}}


def test_overrides_leave_defaults_alone():
    cfg = EngineConfig.from_overrides({'match': {'max_subs': 3}})
    assert cfg.num('match.max_subs') == 3
    assert DEFAULTS['match']['max_subs'] == 5
    assert EngineConfig().num('match.max_subs') == 5


def test_load_config_merges_yaml(tmp_path):
    path = tmp_path / 'engine_config.yml'
    path.write_text("subs:\n  fatigue_threshold: 40\nmatch:\n  stoppage_max: 4\n", encoding='utf-8')
    cfg = load_config(str(path))
    assert cfg.num('subs.fatigue_threshold') == 40
    assert cfg.num('subs.fatigue_energy_gap') == 15
    assert cfg.num('match.stoppage_max') == 4
    assert get_config() is cfg


def test_missing_file_means_defaults(tmp_path):
    cfg = load_config(str(tmp_path / 'absent.yml'))
    assert cfg.data == DEFAULTS


@pytest.mark.parametrize('text', [
    "weather:\n  rain: true\n",
    "- just\n- a list\n",
    "subs: [unclosed\n",
])
def test_bad_config_files_are_rejected(tmp_path, text):
    path = tmp_path / 'bad.yml'
    path.write_text(text, encoding='utf-8')
    with pytest.raises(ConfigError):
        load_config(str(path))
