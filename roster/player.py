"""Football player model."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

POSITIONS = ('GK', 'DEF', 'MID', 'ATT')

# Category each attribute lives in; used for flat lookups.
ATTRIBUTE_CATEGORIES: Dict[str, str] = {
    'speed': 'physical', 'strength': 'physical', 'stamina': 'physical',
    'shooting': 'technical', 'passing': 'technical', 'dribbling': 'technical',
    'heading': 'technical', 'tackling': 'technical',
    'positioning': 'mental', 'vision': 'mental', 'composure': 'mental', 'aggression': 'mental',
    'reflexes': 'goalkeeping', 'handling': 'goalkeeping', 'diving': 'goalkeeping',
}

DEFAULT_ATTRIBUTE = 50


def normalize_position(pos: Optional[str]) -> str:
    p = (pos or 'MID').upper()
    if p == 'FWD':
        return 'ATT'
    if p not in POSITIONS:
        raise ValueError(f"unknown position {pos!r}")
    return p


@dataclass(frozen=True)
class Player:
    """
    A footballer as seen by the match engine.

    Attributes:
        id: Unique player id
        name: Full name
        position: GK/DEF/MID/ATT ('FWD' is accepted and normalised to ATT)
        age: Age in years, drives the fatigue age multiplier
        attributes: Ratings 1-99 grouped by category
            ({'physical': {}, 'technical': {}, 'mental': {}, 'goalkeeping': {}})
        energy: Baseline energy 0-100 carried into the match
        form: Recent form 1-100
        nickname: Optional display name
    """
    id: str
    name: str
    position: str = 'MID'
    age: int = 26
    attributes: Dict[str, Dict[str, int]] = field(default_factory=dict)
    energy: float = 100.0
    form: float = 70.0
    nickname: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'id', str(self.id))
        object.__setattr__(self, 'position', normalize_position(self.position))
        object.__setattr__(self, 'energy', max(0.0, min(100.0, float(self.energy))))

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def display_name(self) -> str:
        return self.nickname or self.name

    def get_attribute(self, category: str, attribute_name: str) -> int:
        """Return one attribute, falling back to the neutral 50."""
        cat = self.attributes.get(category) or {}
        return int(cat.get(attribute_name, DEFAULT_ATTRIBUTE))

    def attr(self, attribute_name: str) -> int:
        """Flat lookup by attribute name (category resolved automatically)."""
        category = ATTRIBUTE_CATEGORIES.get(attribute_name)
        if category is None:
            raise KeyError(attribute_name)
        return self.get_attribute(category, attribute_name)

    def is_goalkeeper(self) -> bool:
        return self.position == 'GK'

    def is_defender(self) -> bool:
        return self.position == 'DEF'

    def is_midfielder(self) -> bool:
        return self.position == 'MID'

    def is_attacker(self) -> bool:
        return self.position == 'ATT'
