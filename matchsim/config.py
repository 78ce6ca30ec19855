from __future__ import annotations
import copy
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml


class ConfigError(ValueError):
    """Raised for an unusable engine configuration file."""


DEFAULTS: Dict[str, Any] = {
    'match': {
        'regular_minutes': 90,
        'half_time_minute': 45,
        'stoppage_min': 0,
        'stoppage_max': 0,
        'max_subs': 5,
    },
    'possession': {
        'home_bonus': 0.08,
        'strength_divisor': 200.0,
        'min': 0.2,
        'max': 0.8,
    },
    'probability': {
        'event_per_minute': 0.15,
        'late_minute': 75,
        'late_mult': 1.10,
        'posture_rate_mult': {'defensive': 0.92, 'balanced': 1.0, 'attacking': 1.08},
        'category_weights': {
            'chance': 0.40,
            'card': 0.18,
            'set_piece': 0.22,
            'save': 0.12,
            'injury': 0.03,
        },
        # trailing side leans to chances, leading side to cards and set pieces
        'trailing_chance_bias': 0.15,
        'leading_card_bias': 0.10,
        'chance_penalty_share': 0.08,
        'chance_own_goal_share': 0.03,
    },
    'conversion': {
        'base': 0.30,
        'strength_scale': 0.2,
        'home_bonus': 0.05,
        'fatigue_weight': 0.5,
        'min': 0.05,
        'max': 0.60,
        'save_share': 0.45,
        'assist_prob': 0.70,
    },
    'penalty': {
        'base': 0.78,
        'skill_scale': 0.006,
        'min': 0.55,
        'max': 0.92,
    },
    'set_piece': {
        'corner_share': 0.50,
        'free_kick_share': 0.35,
        'corner_goal_rate': 0.03,
        'free_kick_goal_rate': 0.05,
    },
    'strength': {
        'posture_bonus': {'defensive': -3.0, 'balanced': 0.0, 'attacking': 3.0},
        'red_card_penalty': 8.0,
    },
    'discipline': {
        'aggression_weight': 1.5,
        'composure_weight': 1.0,
        'energy_weight': 1.0,
        'booking_weight': 0.5,
        'lateness_weight': 0.4,
        'direct_red_base': 0.04,
        'direct_red_max': 0.12,
    },
    'fatigue': {
        'base_drain_per_min': 0.14,
        'posture_position_mult': {
            'attacking': {'GK': 1.0, 'DEF': 1.05, 'MID': 1.15, 'ATT': 1.25},
            'balanced': {'GK': 1.0, 'DEF': 1.0, 'MID': 1.0, 'ATT': 1.0},
            'defensive': {'GK': 1.0, 'DEF': 1.2, 'MID': 1.05, 'ATT': 0.9},
        },
        'gk_mult': 0.6,
        'age_pivot': 24,
        'age_slope': 0.25 / 9,
        'age_cap': 1.35,
        'stamina_pivot': 60.0,
        'stamina_scale': 200.0,
        'post_match_drain_per_90': 12.0,
        'halftime_recovery': 0.0,
        'injury_knock': 20.0,
    },
    'subs': {
        'earliest_minute': 46,
        'max_per_minute': 1,
        'fatigue_threshold': 45.0,
        'fatigue_energy_gap': 15.0,
        'protect_lead_minute': 70,
        'protect_lead_margin': 1,
        'tactical_minute': 60,
        'tactical_min_delta': 8.0,
    },
}


@dataclass
class EngineConfig:
    data: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULTS))

    def get(self, path: str, default: Any = None) -> Any:
        cur: Any = self.data
        for part in path.split('.'):
            if isinstance(cur, dict) and part in cur:
                cur = cur[part]
            else:
                return default
        return cur

    def num(self, path: str) -> float:
        """Numeric lookup that must exist in the merged config."""
        value = self.get(path)
        if value is None:
            raise KeyError(path)
        return float(value)

    @classmethod
    def from_overrides(cls, overrides: Optional[Dict[str, Any]] = None) -> 'EngineConfig':
        return cls(data=merge(DEFAULTS, overrides or {}))


def merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``b`` over ``a`` without mutating either."""
    out = copy.deepcopy(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


_GLOBAL_CONFIG: Optional[EngineConfig] = None


def load_config(path: str = 'engine_config.yml') -> EngineConfig:
    global _GLOBAL_CONFIG
    cfg = EngineConfig()
    if os.path.exists(path):
        with open(path, 'r', encoding='utf-8') as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"cannot parse {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path} must contain a mapping")
        unknown = sorted(set(loaded) - set(DEFAULTS))
        if unknown:
            raise ConfigError(f"unknown config sections in {path}: {unknown}")
        cfg.data = merge(DEFAULTS, loaded)
    _GLOBAL_CONFIG = cfg
    return cfg


def get_config() -> EngineConfig:
    global _GLOBAL_CONFIG
    if _GLOBAL_CONFIG is None:
        _GLOBAL_CONFIG = load_config()
    return _GLOBAL_CONFIG
