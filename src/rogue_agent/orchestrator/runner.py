"""Plays levels by wiring the bot to the reference host."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from rogue_agent.agent.bot import Bot
from rogue_agent.agent.reporting import BufferedReporter, MessageReporter
from rogue_agent.config import settings
from rogue_agent.engine.generate import generate_level
from rogue_agent.engine.reducer import resolve_turn
from rogue_agent.engine.types import Action, Goal, LevelSnapshot, LevelStatus, TurnResult
from rogue_agent.storage.logger import RunLogger


@dataclass
class EpisodeSummary:
    """How a single level ended."""
    level_index: int
    status: LevelStatus
    turns: int
    final_health: int
    goal_trail: List[Goal] = field(default_factory=list)
    run_id: Optional[str] = None


TickCallback = Callable[[LevelSnapshot, Action, List[Goal], TurnResult], None]


class EpisodeRunner:
    """Runs the bot against the reference host, one level at a time."""

    def __init__(
        self,
        bot: Optional[Bot] = None,
        logger: Optional[RunLogger] = None,
        reporter: Optional[MessageReporter] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        self.bot = bot or Bot()
        self.logger = logger
        self.reporter = BufferedReporter(forward=reporter)
        self.on_tick = on_tick

    def run_level(
        self,
        snapshot: LevelSnapshot,
        max_turns: Optional[int] = None,
        seed: str = "map",
    ) -> EpisodeSummary:
        """Play one level until the exit, death or the turn limit."""
        turn_limit = max_turns or settings.default_max_turns
        status = LevelStatus.ONGOING
        trail: List[Goal] = []
        turns = 0

        run_id = None
        if self.logger is not None:
            run_id = self.logger.start_run(
                seed=seed,
                level_index=self.bot.level_count + 1,
                config=self.bot.config.model_dump(),
            )

        while status == LevelStatus.ONGOING and turns < turn_limit:
            action = self.bot.make_turn(snapshot, self.reporter)
            goals = list(self.bot.planner.session.trail)
            for goal in goals:
                if not trail or trail[-1] != goal:
                    trail.append(goal)
            messages = self.reporter.drain()

            result = resolve_turn(snapshot, action)
            if self.logger is not None:
                self.logger.log_tick(snapshot.turn, snapshot, action, goals, messages)
                self.logger.log_events(snapshot.turn, result.events)
            if self.on_tick is not None:
                self.on_tick(snapshot, action, goals, result)

            snapshot = result.next_snapshot
            status = result.status
            turns += 1

        if self.logger is not None:
            self.logger.finish_run(status.value, turns)

        return EpisodeSummary(
            level_index=self.bot.level_count,
            status=status,
            turns=turns,
            final_health=snapshot.player.health,
            goal_trail=trail,
            run_id=run_id,
        )

    def run_campaign(
        self,
        seed: Optional[str] = None,
        levels: Optional[int] = None,
        max_turns: Optional[int] = None,
    ) -> List[EpisodeSummary]:
        """Play generated levels in order, stopping at the first one not completed."""
        campaign_seed = seed or settings.default_level_seed
        level_count = levels or settings.default_levels

        summaries = []
        for level_index in range(1, level_count + 1):
            snapshot = generate_level(campaign_seed, level_index=level_index)
            summary = self.run_level(snapshot, max_turns=max_turns, seed=campaign_seed)
            summaries.append(summary)
            if summary.status != LevelStatus.COMPLETED:
                break
        return summaries
