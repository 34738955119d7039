"""Stack-based goal planner for the roguelike agent.

Every tick the goal on top of the stack is resolved. Before a goal runs its
own logic the planner checks reactive interrupts (adjacent hostiles, better
equipment, easy experience, low health) which may fight, or push a new goal
that is then resolved within the same tick. A goal that is done or impossible
pops itself and hands the tick to the goal below it.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set, Union

from rogue_agent.config import Settings, settings as default_settings
from rogue_agent.engine.types import (
    Action,
    AttackAction,
    Goal,
    HealthPack,
    Item,
    LevelSnapshot,
    Location,
    NoAction,
    Pawn,
)

from .pathfinding import Navigator, TieBreak, nearest
from .reporting import MessageReporter, NullReporter
from .risk import FightAssessment, assess, threat_total


class GoalStackError(RuntimeError):
    """Raised when the bottom goal would be removed from the stack."""


class GoalStack:
    """LIFO of goals whose bottom element is never popped."""

    def __init__(self, bottom: Goal = Goal.REACH_EXIT):
        self._goals: List[Goal] = [bottom]

    @property
    def top(self) -> Goal:
        return self._goals[-1]

    @property
    def bottom(self) -> Goal:
        return self._goals[0]

    def push(self, goal: Goal) -> None:
        self._goals.append(goal)

    def pop(self) -> Goal:
        if len(self._goals) <= 1:
            raise GoalStackError(f"cannot pop the bottom goal {self.bottom.value}")
        return self._goals.pop()

    def as_list(self) -> List[Goal]:
        """Goals from bottom to top."""
        return list(self._goals)

    def __len__(self) -> int:
        return len(self._goals)

    def __iter__(self) -> Iterator[Goal]:
        return iter(self._goals)

    def __contains__(self, goal: object) -> bool:
        return goal in self._goals


class Delegate:
    """Marker outcome: the stack changed and its new top must be resolved."""

    def __repr__(self) -> str:
        return "DELEGATE"


DELEGATE = Delegate()

Outcome = Union[Action, Delegate]


@dataclass
class Session:
    """All mutable planner state for one level episode."""
    snapshot: LevelSnapshot
    level_index: int
    config: Settings
    reporter: MessageReporter
    final_room: bool
    stack: GoalStack = field(default_factory=GoalStack)
    navigator: Optional[Navigator] = None
    unreachable: Set[Location] = field(default_factory=set)
    trail: List[Goal] = field(default_factory=list)

    @classmethod
    def start(
        cls,
        snapshot: LevelSnapshot,
        level_index: int,
        config: Settings,
        reporter: MessageReporter,
    ) -> "Session":
        final_room = (
            config.final_room_detection
            and len(snapshot.hostiles) == config.final_room_hostile_count
        )
        session = cls(
            snapshot=snapshot,
            level_index=level_index,
            config=config,
            reporter=reporter,
            final_room=final_room,
        )
        session.stack.push(Goal.BEGIN)
        return session

    @property
    def player(self) -> Pawn:
        return self.snapshot.player

    @property
    def panic_health(self) -> int:
        return self.config.panic_health(self.level_index)

    @property
    def scaled_panic_health(self) -> int:
        return self.panic_health * self.level_index

    def report(self, message: str) -> None:
        self.reporter.report_message(message)

    def navigator_for(self, target: Location, fresh: bool = False) -> Navigator:
        """Navigator for target, rebuilt when the target changes or on request."""
        navigator = self.navigator
        if fresh or navigator is None or navigator.target != target:
            navigator = Navigator(self.snapshot, target)
            self.navigator = navigator
        else:
            navigator.observe(self.snapshot)
        return navigator

    def reset_navigation(self) -> None:
        self.navigator = None


# =============================================================================
# Queries
# =============================================================================


def best_equipment(snapshot: LevelSnapshot, exclude: Set[Location] = frozenset()) -> Optional[Item]:
    """Nearest item with the highest bonus, if it beats the current equipment."""
    items = [i for i in snapshot.items if i.location not in exclude]
    if not items:
        return None
    best_bonus = max(i.bonus for i in items)
    if best_bonus <= snapshot.player.equipment_bonus:
        return None
    origin = snapshot.player.location
    return min(
        (i for i in items if i.bonus == best_bonus),
        key=lambda i: i.location.distance_to(origin),
    )


def find_prey(session: Session) -> Optional[FightAssessment]:
    """Nearest hostile in vision that is safe to engage."""
    player = session.player
    horizon = player.location.x + player.location.y - session.config.vision_range
    fights = [
        assess(h, player, session.config.damage_factor)
        for h in session.snapshot.hostiles
        if h.location.x + h.location.y >= horizon and h.location not in session.unreachable
    ]
    fights = [f for f in fights if f.safe_to_engage]
    return min(fights, key=lambda f: f.hostile.location.distance_to(player.location), default=None)


def healing_candidates(session: Session) -> List[HealthPack]:
    """Health packs worth walking to, nearest first."""
    player = session.player
    if session.final_room:
        wanted = player.health <= session.config.final_room_health
    else:
        wanted = player.health < session.config.full_health
    if not wanted:
        return []
    return sorted(
        session.snapshot.health_packs,
        key=lambda p: p.location.distance_to(player.location),
    )


# =============================================================================
# Stack transitions
# =============================================================================


def _push(session: Session, goal: Goal) -> Delegate:
    session.stack.push(goal)
    session.reset_navigation()
    return DELEGATE


def _complete(session: Session) -> Delegate:
    goal = session.stack.pop()
    session.reset_navigation()
    session.report(f"-----{goal.value} done or impossible-----")
    return DELEGATE


def _escape(session: Session) -> Delegate:
    session.report("escape")
    return _push(session, Goal.HEAL)


def _attack(session: Session, hostile: Pawn) -> Action:
    session.report(f"attack hostile at ({hostile.location.x}, {hostile.location.y}), health {hostile.health}")
    return AttackAction(offset=hostile.location - session.player.location)


def _travel(
    session: Session,
    target: Location,
    tie_break: TieBreak = TieBreak.DIRECT,
    fresh: bool = False,
) -> Optional[Action]:
    """Step toward target; None (and target remembered) when unreachable."""
    navigator = session.navigator_for(target, fresh=fresh)
    action = navigator.step_toward(tie_break)
    if action is None:
        session.unreachable.add(target)
    session.report(navigator.describe())
    return action


# =============================================================================
# Interrupts
# =============================================================================


def _resolve_threats(session: Session) -> Optional[Outcome]:
    player = session.player
    nearby = [
        assess(h, player, session.config.damage_factor)
        for h in session.snapshot.hostiles_near(player.location, 1)
    ]

    if not nearby:
        return None

    if len(nearby) == 1:
        fight = nearby[0]
        if fight.safe_to_engage and player.health > session.panic_health:
            return _attack(session, fight.hostile)
        return _escape(session)

    if len(nearby) == 2:
        target = _double_threat_target(session, nearby)
        if target is not None:
            return _attack(session, target.hostile)
        return _escape(session)

    return _escape(session)


def _double_threat_target(session: Session, fights: List[FightAssessment]) -> Optional[FightAssessment]:
    health = session.player.health
    total = threat_total(fights)
    sturdy = health >= session.scaled_panic_health and health > total
    for fight in sorted((f for f in fights if f.can_kill), key=lambda f: f.hits_to_death):
        outlasts = total == 0 or fight.hits_to_death + session.config.double_threat_margin < health // total
        if outlasts or sturdy:
            return fight
    return None


def _check_opportunities(session: Session) -> Optional[Outcome]:
    top = session.stack.top
    if top == Goal.HEAL:
        return None
    if top != Goal.ACQUIRE_EQUIPMENT and best_equipment(session.snapshot, session.unreachable) is not None:
        return _push(session, Goal.ACQUIRE_EQUIPMENT)
    if top not in (Goal.GAIN_EXPERIENCE, Goal.ACQUIRE_EQUIPMENT) and find_prey(session) is not None:
        return _push(session, Goal.GAIN_EXPERIENCE)
    return None


def _check_health(session: Session) -> Optional[Outcome]:
    if session.stack.top == Goal.HEAL or not healing_candidates(session):
        return None
    if session.config.opportunistic_healing or session.player.health < session.panic_health:
        return _push(session, Goal.HEAL)
    return None


def _interrupts(session: Session, threats: bool = True) -> Optional[Outcome]:
    checks: List[Callable[[Session], Optional[Outcome]]] = [_check_opportunities, _check_health]
    if threats:
        checks.insert(0, _resolve_threats)
    for check in checks:
        outcome = check(session)
        if outcome is not None:
            return outcome
    return None


# =============================================================================
# Goal behaviours
# =============================================================================


def _begin(session: Session) -> Outcome:
    return _complete(session)


def _reach_exit(session: Session) -> Outcome:
    outcome = _interrupts(session)
    if outcome is not None:
        return outcome
    # bottom goal: wait for the level to change rather than pop
    action = _travel(session, session.snapshot.level_map.exit)
    if action is None:
        return NoAction(reason="exit_unreachable")
    return action


def _acquire_equipment(session: Session) -> Outcome:
    outcome = _interrupts(session)
    if outcome is not None:
        return outcome

    # unreachable items are remembered by _travel, so each pass narrows the choice
    while True:
        target = _equipment_target(session)
        if target is None:
            return _complete(session)
        action = _travel(session, target)
        if action is not None:
            return action


def _equipment_target(session: Session) -> Optional[Location]:
    player = session.player
    if player.at_baseline:
        return nearest(
            player.location,
            [i.location for i in session.snapshot.items if i.location not in session.unreachable],
        )
    best = best_equipment(session.snapshot, session.unreachable)
    return best.location if best is not None else None


def _gain_experience(session: Session) -> Outcome:
    # in the final room the boss fight is handled here, not by the threat check
    outcome = _interrupts(session, threats=not session.final_room)
    if outcome is not None:
        return outcome

    player = session.player
    while True:
        prey = find_prey(session)
        if prey is None:
            return _complete(session)

        if prey.hostile.location.is_in_range(player.location, 1):
            if session.final_room and player.health <= session.config.final_room_health:
                return _escape(session)
            return _attack(session, prey.hostile)
        action = _travel(session, prey.hostile.location)
        if action is not None:
            return action


def _heal(session: Session) -> Outcome:
    snapshot = session.snapshot
    candidates = healing_candidates(session)

    for pack in candidates:
        action = _travel(session, pack.location, TieBreak.SAFE, fresh=True)
        if action is not None:
            return action

    adjacent = snapshot.hostiles_near(session.player.location, 1)
    if candidates and adjacent:
        return _attack(session, adjacent[0])

    if candidates or adjacent:
        action = _travel(session, snapshot.level_map.exit, fresh=True)
        if action is not None:
            return action

    return _complete(session)


_BEHAVIOURS: Dict[Goal, Callable[[Session], Outcome]] = {
    Goal.BEGIN: _begin,
    Goal.REACH_EXIT: _reach_exit,
    Goal.ACQUIRE_EQUIPMENT: _acquire_equipment,
    Goal.GAIN_EXPERIENCE: _gain_experience,
    Goal.HEAL: _heal,
}


def resolve(goal: Goal, session: Session) -> Outcome:
    """Run one goal's behaviour against the session."""
    session.report(f"-----{goal.value}-----")
    return _BEHAVIOURS[goal](session)


class Planner:
    """Chooses exactly one action per tick for a single level episode."""

    def __init__(
        self,
        snapshot: LevelSnapshot,
        level_index: int = 1,
        reporter: Optional[MessageReporter] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.session = Session.start(snapshot, level_index, self.config, reporter or NullReporter())

    @property
    def stack(self) -> GoalStack:
        return self.session.stack

    def decide(self, snapshot: Optional[LevelSnapshot] = None) -> Action:
        """Resolve goals until one yields an action, at most max_goal_depth times."""
        session = self.session
        if snapshot is not None:
            session.snapshot = snapshot
        session.trail = []

        for _ in range(self.config.max_goal_depth):
            goal = session.stack.top
            session.trail.append(goal)
            outcome = resolve(goal, session)
            if not isinstance(outcome, Delegate):
                return outcome

        session.report("goal resolution did not settle")
        return NoAction(reason="unsettled")
