"""Host-facing controller that owns one planner per level episode."""

from typing import Optional

from rogue_agent.config import Settings, settings as default_settings
from rogue_agent.engine.types import Action, LevelMap, LevelSnapshot

from .planner import Planner
from .reporting import MessageReporter, NullReporter


class Bot:
    """Answers each host tick with one action.

    Standing on the start cell marks a new episode: the planner and all its
    state are rebuilt. The level counter only advances when the layout differs
    from the previous episode's, so walking back over the start cell does not
    inflate the panic threshold.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.level_count = 0
        self.planner: Optional[Planner] = None
        self._layout: Optional[LevelMap] = None

    def make_turn(self, snapshot: LevelSnapshot, reporter: Optional[MessageReporter] = None) -> Action:
        reporter = reporter or NullReporter()
        level_map = snapshot.level_map

        if self.planner is None or snapshot.player.location == level_map.start:
            if level_map != self._layout:
                self.level_count += 1
                self._layout = level_map
            self.planner = Planner(snapshot, self.level_count, reporter, self.config)

        self.planner.session.reporter = reporter
        return self.planner.decide(snapshot)
