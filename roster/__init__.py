"""Squad data consumed read-only by the match engine."""
from roster.player import Player, normalize_position
from roster.team import Team, Tactics, TacticsError, FORMATIONS, POSTURES

__all__ = ['Player', 'Team', 'Tactics', 'TacticsError', 'FORMATIONS', 'POSTURES', 'normalize_position']
