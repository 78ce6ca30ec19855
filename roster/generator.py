"""Deterministic squad generation for quick simulations and tests."""
from __future__ import annotations
import random
from typing import Dict, List, Optional

from roster.player import Player
from roster.team import Team

ROLE_IMPORTANT_ATTRIBUTES: Dict[str, List[str]] = {
    'GK': ['reflexes', 'handling', 'diving', 'positioning'],
    'DEF': ['tackling', 'heading', 'strength', 'positioning'],
    'MID': ['passing', 'vision', 'stamina', 'dribbling'],
    'ATT': ['shooting', 'dribbling', 'speed', 'positioning'],
}

CATEGORIES: Dict[str, List[str]] = {
    'physical': ['speed', 'strength', 'stamina'],
    'technical': ['shooting', 'passing', 'dribbling', 'heading', 'tackling'],
    'mental': ['positioning', 'vision', 'composure', 'aggression'],
    'goalkeeping': ['reflexes', 'handling', 'diving'],
}

FIRST_NAMES = ["John", "James", "David", "Carlos", "Juan", "Luis", "Piotr", "Marek", "Tomas", "Andre"]
LAST_NAMES = ["Smith", "Garcia", "Nowak", "Silva", "Kowalski", "Rossi", "Muller", "Santos", "Dubois"]

# Starting XI (4-3-3) followed by the bench
DEFAULT_SQUAD = ['GK', 'DEF', 'DEF', 'DEF', 'DEF', 'MID', 'MID', 'MID', 'ATT', 'ATT', 'ATT',
                 'GK', 'DEF', 'DEF', 'MID', 'MID', 'ATT', 'ATT']


def generate_player(rng: random.Random, player_id: str, position: str, *, base: int = 65,
                    name: Optional[str] = None, energy: float = 100.0) -> Player:
    """Generate one player whose role attributes sit above ``base``.

    Args:
        rng: Source of randomness (never the global RNG)
        player_id: Id for the new player
        position: GK/DEF/MID/ATT
        base: Centre of the attribute distribution
        name: Optional fixed name
        energy: Baseline energy

    Returns:
        A new Player
    """
    if name is None:
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
    important = ROLE_IMPORTANT_ATTRIBUTES[position]

    def rating(attr: str) -> int:
        lo, hi = (base, base + 15) if attr in important else (base - 15, base + 5)
        return max(1, min(99, rng.randint(lo, hi)))

    attributes = {cat: {a: rating(a) for a in names} for cat, names in CATEGORIES.items()}
    return Player(id=player_id, name=name, position=position, age=rng.randint(19, 34),
                  attributes=attributes, energy=energy)


def generate_team(team_id: str, name: str, *, seed: int = 0, base: int = 65,
                  squad: Optional[List[str]] = None) -> Team:
    """Generate a full squad; the first 11 entries form a valid 4-3-3 XI."""
    rng = random.Random(f"{team_id}:{seed}")
    positions = squad or DEFAULT_SQUAD
    players = [
        generate_player(rng, f"{team_id}-{i:02d}", pos, base=base)
        for i, pos in enumerate(positions)
    ]
    return Team(id=team_id, name=name, players=players, short_name=name[:3].upper())
