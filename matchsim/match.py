from __future__ import annotations
import logging
import random
from typing import Any, Dict, Iterator, List, Optional

from roster.team import Team, Tactics, TacticsError
from matchsim.config import EngineConfig, get_config
from matchsim.discipline import apply_booking
from matchsim.events import EventLog, EventType, MatchEvent, SCORING_TYPES
from matchsim.fatigue import apply_energy_tick, apply_knock, apply_recovery
from matchsim.probability import EventOutcome, roll_minute
from matchsim.report import build_report
from matchsim.state import SIDES, LiveMatchState, Phase, SideState
from matchsim.substitutions import MANUAL, SubstitutionDecision, apply_substitution, check_substitution, evaluate
from matchsim.tactics import default_tactics, half_time_hints
from matchsim.trace import TraceRecorder
from matchsim.utils import make_rng

logger = logging.getLogger(__name__)

CONTROLS = ('ai', 'human')


class MatchSetupError(ValueError):
    """The match cannot start with the given teams or tactics."""


class SubstitutionError(ValueError):
    """A requested (manual) substitution breaks the substitution rules."""


class MatchEngine:
    """
    Minute-by-minute match state machine.

    The engine owns its random stream, its copies of both tactics and the live
    state; rosters are only read. Phases run SCHEDULED -> FIRST_HALF ->
    HALF_TIME -> SECOND_HALF -> FULL_TIME and every call to ``step`` returns
    the events it appended.

    Args:
        home, away: Squads
        home_tactics, away_tactics: Tactics to use (None = best default XI)
        seed: Seed for the match RNG (ignored when ``rng`` is given)
        config: Engine configuration (None = process default)
        trace: Optional decision trace recorder
        neutral_venue: Drop the home advantage
        home_control, away_control: 'ai' or 'human'; human sides get no AI substitutions
        pause_at_half_time: Hold at half time until ``resume_from_half_time``
    """

    def __init__(self, home: Team, away: Team, home_tactics: Optional[Tactics] = None,
                 away_tactics: Optional[Tactics] = None, *, seed: Optional[int | str] = None,
                 rng: Optional[random.Random] = None, config: Optional[EngineConfig] = None,
                 trace: Optional[TraceRecorder] = None, neutral_venue: bool = False,
                 home_control: str = 'ai', away_control: str = 'ai',
                 pause_at_half_time: bool = False) -> None:
        self.config = config or get_config()
        self.rng = rng if rng is not None else make_rng(seed)
        self.trace = trace
        self.neutral_venue = neutral_venue
        self.pause_at_half_time = pause_at_half_time
        self._released = False

        sides: Dict[str, SideState] = {}
        for key, team, tactics, control in (('home', home, home_tactics, home_control),
                                            ('away', away, away_tactics, away_control)):
            if control not in CONTROLS:
                raise MatchSetupError(f"cannot start match: unknown control {control!r} for {key}")
            tactics = tactics.copy() if tactics is not None else default_tactics(team)
            try:
                tactics.validate(team.players)
            except TacticsError as e:
                raise MatchSetupError(f"cannot start match: {team.name}: {e}") from e
            sides[key] = SideState(key=key, team=team, tactics=tactics, control=control)

        self.state = LiveMatchState(minute=0, home=sides['home'], away=sides['away'],
                                    regular_minutes=int(self.config.num('match.regular_minutes')))
        self.log = EventLog(self.state.events)
        self.starting_lineups: Dict[str, List[str]] = {k: list(sides[k].tactics.lineup) for k in SIDES}
        self.substitutions: List[Dict[str, Any]] = []
        self.possession_ticks: Dict[str, int] = {'home': 0, 'away': 0}

    @property
    def home(self) -> Team:
        return self.state.home.team

    @property
    def away(self) -> Team:
        return self.state.away.team

    @property
    def events(self) -> List[MatchEvent]:
        return list(self.state.events)

    @property
    def is_finished(self) -> bool:
        return self.state.is_finished

    @property
    def is_paused(self) -> bool:
        return self.state.phase is Phase.HALF_TIME and self.pause_at_half_time and not self._released

    def step(self) -> List[MatchEvent]:
        """Advance by one tick and return the events it produced."""
        st = self.state
        if st.phase is Phase.FULL_TIME:
            return []
        before = len(self.log)
        if st.phase is Phase.SCHEDULED:
            self._kickoff()
            return self.log.since(before)
        if st.phase is Phase.HALF_TIME:
            if self.is_paused:
                return []
            self._start_second_half()
        self._tick()
        return self.log.since(before)

    def simulate(self) -> Dict[str, Any]:
        """Run to full time (releasing a half-time pause) and return the report."""
        while not self.is_finished:
            if self.is_paused:
                self.resume_from_half_time()
            self.step()
        return build_report(self)

    def iter_minutes(self) -> Iterator[Dict[str, Any]]:
        """Yield a state snapshot after every tick; stops at full time or a half-time pause."""
        while not self.is_finished and not self.is_paused:
            new_events = self.step()
            snap = self.state.snapshot()
            snap['new_events'] = [e.to_dict() for e in new_events]
            yield snap

    def resume_from_half_time(self) -> None:
        self._released = True

    def half_time_hints(self, side_key: str) -> Dict[str, Any]:
        """Qualitative tactical hints for one side at the current score."""
        own, opp = self.state.side(side_key), self.state.opponent(side_key)
        return half_time_hints(self.state.score_for(side_key), self.state.score_for(opp.key),
                               own.tactics, opp.tactics)

    def substitute(self, side_key: str, out_id: str, in_id: str) -> MatchEvent:
        """Manual substitution for a (usually human-controlled) side."""
        if side_key not in SIDES:
            raise SubstitutionError(f"unknown side {side_key!r}")
        if not self.state.phase.in_progress:
            raise SubstitutionError('substitutions are only allowed while the match is in progress')
        side = self.state.side(side_key)
        problem = check_substitution(side, out_id, in_id, int(self.config.num('match.max_subs')))
        if problem is not None:
            raise SubstitutionError(problem)
        decision = SubstitutionDecision(
            reason=MANUAL, outgoing=side.player(out_id), incoming=side.player(in_id),
            outgoing_energy=side.energy[out_id], incoming_energy=side.energy[in_id], score=0.0,
        )
        event = self._execute(side_key, decision)
        if event is None:
            raise SubstitutionError(f"substitution {out_id} -> {in_id} could not be executed")
        return event

    # internals

    def _kickoff(self) -> None:
        st = self.state
        lo = int(self.config.num('match.stoppage_min'))
        hi = int(self.config.num('match.stoppage_max'))
        if hi > 0:
            st.stoppage = self.rng.randint(lo, max(lo, hi))
        st.phase = Phase.FIRST_HALF
        self.log.append(0, EventType.KICKOFF, 'home',
                        description=f"Kick-off: {self.home.name} vs {self.away.name}")
        logger.debug("kickoff %s vs %s (stoppage %d)", self.home.name, self.away.name, st.stoppage)

    def _start_second_half(self) -> None:
        self.state.phase = Phase.SECOND_HALF
        recovery = self.config.num('fatigue.halftime_recovery')
        for key in SIDES:
            apply_recovery(self.state.side(key), recovery)

    def _tick(self) -> None:
        st = self.state
        cfg = self.config
        st.minute += 1
        minute = st.minute

        for key in SIDES:
            apply_energy_tick(st.side(key), minute, cfg, self.trace)

        per_minute = int(cfg.num('subs.max_per_minute'))
        for key in SIDES:
            for _ in range(per_minute):
                decision = evaluate(st.side(key), st.lead(key), minute, cfg, self.trace)
                if decision is None or self._execute(key, decision) is None:
                    break

        outcome = roll_minute(st, self.rng, cfg, self.trace, neutral_venue=self.neutral_venue)
        self.possession_ticks[st.possession] += 1
        if outcome is not None:
            self._apply_outcome(outcome)

        if minute == int(cfg.num('match.half_time_minute')) and st.phase is Phase.FIRST_HALF:
            self.log.append(minute, EventType.HALF_TIME, 'home',
                            description=f"Half time: {self.home.name} {st.home_score}-{st.away_score} {self.away.name}")
            st.phase = Phase.HALF_TIME
            self._released = False
        elif minute >= st.full_time_minute and st.phase is Phase.SECOND_HALF:
            self.log.append(minute, EventType.FULL_TIME, 'home',
                            description=f"Full time: {self.home.name} {st.home_score}-{st.away_score} {self.away.name}")
            st.phase = Phase.FULL_TIME
            logger.debug("full time %s %d-%d %s", self.home.name, st.home_score, st.away_score, self.away.name)

    def _apply_outcome(self, outcome: EventOutcome) -> None:
        st = self.state
        for planned in outcome.events:
            event = self.log.append(st.minute, planned.type, planned.team, player_id=planned.player_id,
                                    assist_player_id=planned.assist_player_id,
                                    description=planned.description)
            if event.type in SCORING_TYPES:
                st.add_goal(event.team)
        if outcome.foul is not None and outcome.foul_side is not None:
            apply_booking(st.side(outcome.foul_side), outcome.foul)
        if outcome.injured is not None:
            side_key, player_id = outcome.injured
            apply_knock(st.side(side_key), player_id, self.config.num('fatigue.injury_knock'))

    def _execute(self, side_key: str, decision: SubstitutionDecision) -> Optional[MatchEvent]:
        event = apply_substitution(self.state, side_key, decision, self.state.minute, self.log,
                                   self.trace, self.config)
        if event is not None:
            self.substitutions.append({
                'minute': event.minute,
                'team': side_key,
                'out': decision.outgoing.id,
                'in': decision.incoming.id,
                'reason': decision.reason,
            })
        return event
