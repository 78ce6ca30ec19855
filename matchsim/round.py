"""
A round of fixtures played side by side.

Each fixture gets its own engine and RNG stream (seeded from the round seed and
the fixture id), so results do not depend on how the round is scheduled.
Rosters are shared read-only between engines.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from roster.team import Team, Tactics
from matchsim.config import EngineConfig, get_config
from matchsim.events import MatchEvent
from matchsim.match import MatchEngine
from matchsim.trace import TraceRecorder

logger = logging.getLogger(__name__)


@dataclass
class Fixture:
    id: str
    home: Team
    away: Team
    home_tactics: Optional[Tactics] = None
    away_tactics: Optional[Tactics] = None


def fixture_seed(round_seed: int | str, fixture_id: str) -> str:
    return f"{round_seed}:{fixture_id}"


class MatchRound:
    """
    Args:
        fixtures: Fixtures of the round (ids must be unique)
        seed: Round seed
        config: Shared engine configuration (read-only during play)
        human_team_id: Team whose side is manually controlled and pauses at half time
        human_tactics: Tactics for the human team, if not set on the fixture
        trace_factory: Called with a fixture id to build that fixture's recorder
    """

    def __init__(self, fixtures: List[Fixture], *, seed: int | str = 0, config: Optional[EngineConfig] = None,
                 human_team_id: Optional[str] = None, human_tactics: Optional[Tactics] = None,
                 trace_factory: Optional[Callable[[str], Optional[TraceRecorder]]] = None) -> None:
        ids = [f.id for f in fixtures]
        if len(set(ids)) != len(ids):
            raise ValueError('fixture ids must be unique')
        self.seed = seed
        self.config = config or get_config()
        self.human_team_id = human_team_id
        self.fixtures = list(fixtures)
        self.engines: Dict[str, MatchEngine] = {}
        for fx in self.fixtures:
            home_human = human_team_id is not None and fx.home.id == human_team_id
            away_human = human_team_id is not None and fx.away.id == human_team_id
            home_tactics = fx.home_tactics or (human_tactics if home_human else None)
            away_tactics = fx.away_tactics or (human_tactics if away_human else None)
            self.engines[fx.id] = MatchEngine(
                fx.home, fx.away, home_tactics, away_tactics,
                seed=fixture_seed(seed, fx.id),
                config=self.config,
                trace=trace_factory(fx.id) if trace_factory is not None else None,
                home_control='human' if home_human else 'ai',
                away_control='human' if away_human else 'ai',
                pause_at_half_time=home_human or away_human,
            )

    @property
    def human_fixture(self) -> Optional[str]:
        for fx in self.fixtures:
            if self.human_team_id in (fx.home.id, fx.away.id):
                return fx.id
        return None

    def engine(self, fixture_id: str) -> MatchEngine:
        return self.engines[fixture_id]

    def step_all(self) -> Dict[str, List[MatchEvent]]:
        """Advance every running, unpaused fixture by one tick."""
        return {fid: eng.step() for fid, eng in self.engines.items()
                if not eng.is_finished and not eng.is_paused}

    @property
    def finished(self) -> bool:
        return all(eng.is_finished for eng in self.engines.values())

    def resume(self) -> None:
        for eng in self.engines.values():
            if eng.is_paused:
                eng.resume_from_half_time()

    def play_until_pause_or_end(self) -> None:
        while not self.finished:
            if not self.step_all():
                break

    def simulate_all(self, max_workers: Optional[int] = None) -> Dict[str, Dict[str, Any]]:
        """Run every fixture to full time and return the reports by fixture id."""
        if max_workers == 1 or len(self.engines) <= 1:
            return {fid: eng.simulate() for fid, eng in self.engines.items()}
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {fid: pool.submit(eng.simulate) for fid, eng in self.engines.items()}
            reports = {fid: fut.result() for fid, fut in futures.items()}
        logger.debug("round %s: %d fixtures simulated", self.seed, len(reports))
        return reports
