"""Core data types for the roguelike level model and agent actions."""

import math
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Offset(BaseModel):
    """A displacement between two grid cells."""
    model_config = ConfigDict(frozen=True)

    dx: int
    dy: int

    @property
    def is_orthogonal_unit(self) -> bool:
        return abs(self.dx) + abs(self.dy) == 1

    @property
    def is_adjacent_unit(self) -> bool:
        return max(abs(self.dx), abs(self.dy)) == 1


class Location(BaseModel):
    """An integer coordinate on the level grid."""
    model_config = ConfigDict(frozen=True)

    x: int
    y: int

    def __add__(self, offset: Offset) -> "Location":
        return Location(x=self.x + offset.dx, y=self.y + offset.dy)

    def __sub__(self, other: "Location") -> Offset:
        return Offset(dx=self.x - other.x, dy=self.y - other.y)

    def neighbours(self) -> List["Location"]:
        """Orthogonal neighbours in up, down, left, right order."""
        return [
            Location(x=self.x, y=self.y - 1),
            Location(x=self.x, y=self.y + 1),
            Location(x=self.x - 1, y=self.y),
            Location(x=self.x + 1, y=self.y),
        ]

    def is_in_range(self, other: "Location", radius: int) -> bool:
        """True when both axis deltas are within radius (8-neighbourhood for 1)."""
        return abs(self.x - other.x) <= radius and abs(self.y - other.y) <= radius

    def distance_to(self, other: "Location") -> float:
        """Straight-line distance, used only for ordering candidates."""
        return math.hypot(self.x - other.x, self.y - other.y)


class CellType(str, Enum):
    """Static cell kinds of a level layout."""
    EMPTY = "empty"
    WALL = "wall"
    TRAP = "trap"
    START = "start"
    EXIT = "exit"


class ActionType(str, Enum):
    """Types of actions the agent can emit."""
    NONE = "none"
    STEP = "step"
    ATTACK = "attack"


class NoAction(BaseModel):
    """Do nothing this turn (blocked or nothing to do)."""
    type: str = ActionType.NONE.value
    reason: Optional[str] = None


class StepAction(BaseModel):
    """Move one cell orthogonally."""
    type: str = ActionType.STEP.value
    offset: Offset

    @field_validator("offset")
    @classmethod
    def _orthogonal(cls, value: Offset) -> Offset:
        if not value.is_orthogonal_unit:
            raise ValueError(f"step offset must be an orthogonal unit, got ({value.dx}, {value.dy})")
        return value


class AttackAction(BaseModel):
    """Strike the occupant of one of the eight surrounding cells."""
    type: str = ActionType.ATTACK.value
    offset: Offset

    @field_validator("offset")
    @classmethod
    def _adjacent(cls, value: Offset) -> Offset:
        if not value.is_adjacent_unit:
            raise ValueError(f"attack offset must point to an adjacent cell, got ({value.dx}, {value.dy})")
        return value


# Union type for all possible actions
Action = Union[NoAction, StepAction, AttackAction]


class Pawn(BaseModel):
    """A fighting entity: the agent or a hostile."""
    location: Location
    health: int
    attack: int = Field(ge=0)
    defence: int = Field(ge=0)
    total_attack: int = Field(ge=0)
    total_defence: int = Field(ge=0)

    @property
    def equipment_bonus(self) -> int:
        """Attack plus defence gained from equipment over innate stats."""
        return self.total_attack + self.total_defence - self.attack - self.defence

    @property
    def at_baseline(self) -> bool:
        return self.total_attack == self.attack and self.total_defence == self.defence


class Item(BaseModel):
    """An equipment pickup lying on the floor."""
    location: Location
    attack_bonus: int = 0
    defence_bonus: int = 0

    @property
    def bonus(self) -> int:
        return self.attack_bonus + self.defence_bonus


class HealthPack(BaseModel):
    """A healing pickup lying on the floor."""
    location: Location


class LevelMap(BaseModel):
    """Static layout of a level, indexed as cells[y][x]."""
    cells: List[List[CellType]]

    @property
    def width(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def height(self) -> int:
        return len(self.cells)

    def contains(self, location: Location) -> bool:
        return 0 <= location.x < self.width and 0 <= location.y < self.height

    def cell_at(self, location: Location) -> CellType:
        """Cell type at location; everything outside the grid is wall."""
        if not self.contains(location):
            return CellType.WALL
        return self.cells[location.y][location.x]

    def cells_of_type(self, cell_type: CellType) -> List[Location]:
        return [
            Location(x=x, y=y)
            for y, row in enumerate(self.cells)
            for x, cell in enumerate(row)
            if cell == cell_type
        ]

    def _single(self, cell_type: CellType) -> Location:
        found = self.cells_of_type(cell_type)
        if len(found) != 1:
            raise ValueError(f"Level must have exactly one {cell_type.value} cell, found {len(found)}")
        return found[0]

    @property
    def start(self) -> Location:
        return self._single(CellType.START)

    @property
    def exit(self) -> Location:
        return self._single(CellType.EXIT)


class LevelSnapshot(BaseModel):
    """Read-only view of a level for one tick."""
    model_config = ConfigDict(frozen=True)

    turn: int = 0
    player: Pawn
    hostiles: List[Pawn] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)
    health_packs: List[HealthPack] = Field(default_factory=list)
    level_map: LevelMap

    def hostiles_near(self, location: Location, radius: int = 1) -> List[Pawn]:
        return [h for h in self.hostiles if h.location.is_in_range(location, radius)]

    def hostile_at(self, location: Location) -> Optional[Pawn]:
        return next((h for h in self.hostiles if h.location == location), None)

    def item_at(self, location: Location) -> Optional[Item]:
        return next((i for i in self.items if i.location == location), None)

    def health_pack_at(self, location: Location) -> Optional[HealthPack]:
        return next((p for p in self.health_packs if p.location == location), None)

    def occupied(self) -> Iterator[Location]:
        """Locations covered by pickups or hostiles."""
        for item in self.items:
            yield item.location
        for pack in self.health_packs:
            yield pack.location
        for hostile in self.hostiles:
            yield hostile.location


class Goal(str, Enum):
    """Behaviour tags the planner can stack."""
    BEGIN = "begin"
    REACH_EXIT = "reach_exit"
    ACQUIRE_EQUIPMENT = "acquire_equipment"
    GAIN_EXPERIENCE = "gain_experience"
    HEAL = "heal"


class LevelStatus(str, Enum):
    """Outcome of a level after a turn resolves."""
    ONGOING = "ongoing"
    COMPLETED = "completed"
    DEAD = "dead"


class Event(BaseModel):
    """An event that occurred while resolving a turn."""
    turn: int
    kind: str  # e.g., "step", "step_blocked", "equip", "hostile_attack"
    payload: Dict = Field(default_factory=dict)


class TurnResult(BaseModel):
    """Result of resolving one agent turn."""
    next_snapshot: LevelSnapshot
    events: List[Event] = Field(default_factory=list)
    status: LevelStatus = LevelStatus.ONGOING
