"""Level loading and generation for the reference host."""

import random
from typing import Dict, List

from .types import CellType, HealthPack, Item, LevelMap, LevelSnapshot, Location, Pawn


PLAYER_HEALTH = 100
PLAYER_ATTACK = 10
PLAYER_DEFENCE = 10

HOSTILE_HEALTH = 30
HOSTILE_ATTACK = 5
HOSTILE_DEFENCE = 5

ITEM_ATTACK_BONUS = 5
ITEM_DEFENCE_BONUS = 5

# Map glyphs; pawns and pickups stand on empty floor
GLYPHS: Dict[str, CellType] = {
    ".": CellType.EMPTY,
    "#": CellType.WALL,
    "^": CellType.TRAP,
    "S": CellType.START,
    "E": CellType.EXIT,
    "m": CellType.EMPTY,
    "i": CellType.EMPTY,
    "+": CellType.EMPTY,
}


def make_player(location: Location, health: int = PLAYER_HEALTH) -> Pawn:
    return Pawn(
        location=location,
        health=health,
        attack=PLAYER_ATTACK,
        defence=PLAYER_DEFENCE,
        total_attack=PLAYER_ATTACK,
        total_defence=PLAYER_DEFENCE,
    )


def make_hostile(location: Location, level_index: int = 1) -> Pawn:
    """A hostile whose stats grow with the level index."""
    attack = HOSTILE_ATTACK + level_index - 1
    defence = HOSTILE_DEFENCE + level_index - 1
    return Pawn(
        location=location,
        health=HOSTILE_HEALTH + 10 * (level_index - 1),
        attack=attack,
        defence=defence,
        total_attack=attack,
        total_defence=defence,
    )


def parse_level(text: str, turn: int = 0, level_index: int = 1) -> LevelSnapshot:
    """Build a snapshot from an ASCII map.

    Legend: ``#`` wall, ``.`` floor, ``^`` trap, ``S`` start (the agent spawns
    there), ``E`` exit, ``m`` hostile, ``i`` item, ``+`` health pack.

    Raises:
        ValueError: on unknown glyphs, ragged rows or a missing start/exit.
    """
    rows = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if not rows:
        raise ValueError("Level map is empty")
    width = len(rows[0])

    cells: List[List[CellType]] = []
    hostiles: List[Pawn] = []
    items: List[Item] = []
    packs: List[HealthPack] = []

    for y, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Row {y} has width {len(row)}, expected {width}")
        cell_row = []
        for x, glyph in enumerate(row):
            if glyph not in GLYPHS:
                raise ValueError(f"Unknown map glyph {glyph!r} at ({x}, {y})")
            location = Location(x=x, y=y)
            if glyph == "m":
                hostiles.append(make_hostile(location, level_index))
            elif glyph == "i":
                items.append(Item(
                    location=location,
                    attack_bonus=ITEM_ATTACK_BONUS,
                    defence_bonus=ITEM_DEFENCE_BONUS,
                ))
            elif glyph == "+":
                packs.append(HealthPack(location=location))
            cell_row.append(GLYPHS[glyph])
        cells.append(cell_row)

    level_map = LevelMap(cells=cells)
    # raises ValueError unless there is exactly one start and one exit
    start, _ = level_map.start, level_map.exit

    return LevelSnapshot(
        turn=turn,
        player=make_player(start),
        hostiles=hostiles,
        items=items,
        health_packs=packs,
        level_map=level_map,
    )


def render_level(snapshot: LevelSnapshot) -> List[str]:
    """Draw a snapshot back as ASCII rows, with ``@`` for the agent."""
    reverse = {
        CellType.EMPTY: ".",
        CellType.WALL: "#",
        CellType.TRAP: "^",
        CellType.START: "S",
        CellType.EXIT: "E",
    }
    grid = [[reverse[cell] for cell in row] for row in snapshot.level_map.cells]
    for pack in snapshot.health_packs:
        grid[pack.location.y][pack.location.x] = "+"
    for item in snapshot.items:
        grid[item.location.y][item.location.x] = "i"
    for hostile in snapshot.hostiles:
        grid[hostile.location.y][hostile.location.x] = "m"
    player = snapshot.player.location
    grid[player.y][player.x] = "@"
    return ["".join(row) for row in grid]


def generate_level(
    seed: str,
    width: int = 20,
    height: int = 12,
    level_index: int = 1,
) -> LevelSnapshot:
    """Generate a deterministic level from a seed.

    Args:
        seed: String seed for deterministic generation
        width: Grid width including the outer wall
        height: Grid height including the outer wall
        level_index: Scales hostile count and strength

    Returns:
        Initial LevelSnapshot with the agent on the start cell
    """
    if width < 5 or height < 5:
        raise ValueError("Level must be at least 5x5")

    rng = random.Random(f"{seed}:{level_index}")

    cells = _generate_cells(rng, width, height)
    start = Location(x=1, y=1)
    exit_cell = Location(x=width - 2, y=height - 2)
    cells[start.y][start.x] = CellType.START
    cells[exit_cell.y][exit_cell.x] = CellType.EXIT

    # Keep the cells around start and exit free
    reserved = {start, exit_cell, *start.neighbours(), *exit_cell.neighbours()}
    for loc in reserved - {start, exit_cell}:
        if 0 < loc.x < width - 1 and 0 < loc.y < height - 1:
            cells[loc.y][loc.x] = CellType.EMPTY
    floor = [
        Location(x=x, y=y)
        for y in range(1, height - 1)
        for x in range(1, width - 1)
        if cells[y][x] == CellType.EMPTY and Location(x=x, y=y) not in reserved
    ]
    rng.shuffle(floor)

    hostile_count = min(len(floor), 2 + level_index)
    item_count = min(len(floor) - hostile_count, 3)
    pack_count = min(len(floor) - hostile_count - item_count, 2)

    hostiles = [make_hostile(loc, level_index) for loc in floor[:hostile_count]]
    floor = floor[hostile_count:]
    items = [
        Item(
            location=loc,
            attack_bonus=rng.randint(1, 4 + level_index),
            defence_bonus=rng.randint(1, 4 + level_index),
        )
        for loc in floor[:item_count]
    ]
    floor = floor[item_count:]
    packs = [HealthPack(location=loc) for loc in floor[:pack_count]]

    return LevelSnapshot(
        turn=0,
        player=make_player(start),
        hostiles=hostiles,
        items=items,
        health_packs=packs,
        level_map=LevelMap(cells=cells),
    )


def _generate_cells(rng: random.Random, width: int, height: int) -> List[List[CellType]]:
    """Walled border with scattered inner walls and traps."""
    cells = []
    for y in range(height):
        row = []
        for x in range(width):
            if x in (0, width - 1) or y in (0, height - 1):
                row.append(CellType.WALL)
                continue
            roll = rng.random()
            if roll < 0.12:
                row.append(CellType.WALL)
            elif roll < 0.16:
                row.append(CellType.TRAP)
            else:
                row.append(CellType.EMPTY)
        cells.append(row)
    return cells
