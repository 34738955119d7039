"""Wavefront pathfinding over the level grid.

Routes are found with a breadth-first wavefront over orthogonal moves. When
the target cannot be reached the set of traversable cells is widened step by
step (health packs, then items, then traps) before giving up.
"""

from enum import Enum, IntEnum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from rogue_agent.engine.types import (
    Action,
    CellType,
    LevelSnapshot,
    Location,
    NoAction,
    Pawn,
    StepAction,
)


class RelaxationLevel(IntEnum):
    """Increasingly permissive definitions of a traversable cell."""
    OPEN = 1
    HEALTH_PACKS = 2
    ITEMS = 3
    TRAPS = 4


class TieBreak(str, Enum):
    """How to choose among equally short predecessors during reconstruction."""
    DIRECT = "direct"
    SAFE = "safe"


def build_traversable_set(
    snapshot: LevelSnapshot,
    level: RelaxationLevel = RelaxationLevel.OPEN,
) -> Set[Location]:
    """Cells the agent may walk through at the given relaxation level."""
    level_map = snapshot.level_map
    occupied = set(snapshot.occupied())

    cells = {loc for loc in level_map.cells_of_type(CellType.EMPTY) if loc not in occupied}
    cells.add(level_map.exit)
    cells.add(level_map.start)

    if level >= RelaxationLevel.HEALTH_PACKS:
        cells.update(p.location for p in snapshot.health_packs)
    if level >= RelaxationLevel.ITEMS:
        cells.update(i.location for i in snapshot.items)
    if level >= RelaxationLevel.TRAPS:
        cells.update(level_map.cells_of_type(CellType.TRAP))

    return cells


def wavefront(origin: Location, target: Location, cells: Set[Location]) -> Dict[Location, int]:
    """Hop-count distances from origin, expanded layer by layer.

    Stops after the layer in which the target is first reached, or when a
    layer adds nothing.
    """
    distances = {origin: 0}
    frontier = [origin]
    reached = origin == target

    while frontier and not reached:
        next_frontier = []
        for cell in frontier:
            distance = distances[cell]
            for neighbour in cell.neighbours():
                if neighbour in cells and neighbour not in distances:
                    distances[neighbour] = distance + 1
                    next_frontier.append(neighbour)
                    if neighbour == target:
                        reached = True
        frontier = next_frontier

    return distances


def _order_key(
    tie_break: TieBreak,
    origin: Location,
    hostiles: Sequence[Location],
) -> Callable[[Location], float]:
    if tie_break == TieBreak.SAFE:
        return lambda cell: sum(1 for h in hostiles if h.is_in_range(cell, 1))
    return lambda cell: cell.distance_to(origin)


def reconstruct(
    distances: Dict[Location, int],
    origin: Location,
    target: Location,
    order_key: Callable[[Location], float],
) -> List[Location]:
    """Walk back from target to origin through strictly decreasing distances.

    Returns waypoints from target down to the first step (origin excluded),
    so the next step is the last element.
    """
    path = [target]
    chosen = {target}

    while path and path[-1] != origin:
        current = path[-1]
        wanted = distances[current] - 1
        candidates = sorted(current.neighbours(), key=order_key)
        predecessor = next(
            (c for c in candidates if c not in chosen and distances.get(c) == wanted),
            None,
        )
        if predecessor is None:
            # dead end: drop this waypoint, it stays excluded
            path.pop()
            continue
        chosen.add(predecessor)
        path.append(predecessor)

    if path:
        path.pop()
    return path


def search_path(
    origin: Location,
    target: Location,
    cells: Set[Location],
    tie_break: TieBreak = TieBreak.DIRECT,
    hostiles: Sequence[Location] = (),
) -> Optional[List[Location]]:
    """Shortest route from origin to target over cells, or None if unreachable."""
    distances = wavefront(origin, target, cells)
    if target not in distances:
        return None
    return reconstruct(distances, origin, target, _order_key(tie_break, origin, hostiles))


def next_step(route: List[Location], agent: Pawn) -> Action:
    """Pop the next waypoint off the route and step toward it."""
    if not route:
        return NoAction(reason="empty_route")
    waypoint = route.pop()
    return StepAction(offset=waypoint - agent.location)


class Navigator:
    """Working state for reaching one target.

    The traversable set only grows (via relaxation) for the lifetime of the
    navigator; the wavefront itself is recomputed on every call.
    """

    def __init__(self, snapshot: LevelSnapshot, target: Location):
        self.snapshot = snapshot
        self.target = target
        self.level = RelaxationLevel.OPEN
        self.cells = build_traversable_set(snapshot, self.level)
        self.route: List[Location] = []
        self.path_exists = False

    def observe(self, snapshot: LevelSnapshot) -> None:
        self.snapshot = snapshot

    def relax(self) -> bool:
        """Widen the traversable set by one level; False if already at the last."""
        if self.level == RelaxationLevel.TRAPS:
            return False
        self.level = RelaxationLevel(self.level + 1)
        self.cells = build_traversable_set(self.snapshot, self.level)
        return True

    def search(self, tie_break: TieBreak = TieBreak.DIRECT) -> bool:
        hostiles = [h.location for h in self.snapshot.hostiles]
        cells = (self.cells - set(hostiles)) | {self.target}
        route = search_path(self.snapshot.player.location, self.target, cells, tie_break, hostiles)
        self.path_exists = route is not None
        self.route = route or []
        return self.path_exists

    def step_toward(self, tie_break: TieBreak = TieBreak.DIRECT) -> Optional[Action]:
        """Next action toward the target, relaxing as needed; None if no route."""
        while not self.search(tie_break):
            if not self.relax():
                return None
        return next_step(self.route, self.snapshot.player)

    def describe(self) -> str:
        state = "route" if self.path_exists else "no route"
        return f"{state} to ({self.target.x}, {self.target.y}) at {self.level.name.lower()}"


def nearest(origin: Location, locations: Iterable[Location]) -> Optional[Location]:
    """Closest location by straight-line distance (first wins on ties)."""
    return min(locations, key=origin.distance_to, default=None)
