"""Roster file loading (JSON or YAML)."""
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from roster.player import Player
from roster.team import Team, Tactics


def _player_from_dict(p: Dict[str, Any]) -> Player:
    return Player(
        id=str(p.get('id', '0')),
        name=p.get('name', 'Anon'),
        position=p.get('position', 'MID'),
        age=int(p.get('age', 26)),
        attributes=p.get('attributes', {}) or {},
        energy=float(p.get('energy', 100.0)),
        form=float(p.get('form', 70.0)),
        nickname=p.get('nickname'),
    )


def load_teams(path: str | Path) -> Dict[str, Tuple[Team, Optional[Tactics]]]:
    """Load ``{"teams": [...]}`` from a .json/.yml file.

    Returns:
        Mapping team name -> (Team, Tactics or None when the file has none)
    """
    path = Path(path)
    text = path.read_text(encoding='utf-8')
    if path.suffix.lower() in ('.yml', '.yaml'):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    teams: Dict[str, Tuple[Team, Optional[Tactics]]] = {}
    for t in data.get('teams', []):
        name = t.get('name', 'Unknown Team')
        players = [_player_from_dict(p) for p in t.get('players', [])]
        team = Team(id=str(t.get('id', name)), name=name, players=players, short_name=t.get('short_name', ''))
        tactics = None
        raw = t.get('tactics')
        if raw:
            tactics = Tactics(
                formation=raw.get('formation', '4-3-3'),
                posture=raw.get('posture', 'balanced'),
                lineup=[str(x) for x in raw.get('lineup', [])],
                substitutes=[str(x) for x in raw.get('substitutes', [])],
            )
        teams[name] = (team, tactics)
    return teams
