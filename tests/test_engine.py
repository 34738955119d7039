"""Unit tests for the reference host engine."""

import unittest

from rogue_agent.engine.generate import generate_level, parse_level, render_level
from rogue_agent.engine.reducer import HEALTH_PACK_VALUE, TRAP_DAMAGE, resolve_turn
from rogue_agent.engine.types import (
    AttackAction,
    CellType,
    LevelStatus,
    Location,
    NoAction,
    Offset,
    StepAction,
)


def _step(dx: int, dy: int) -> StepAction:
    return StepAction(offset=Offset(dx=dx, dy=dy))


def _kinds(result):
    return [e.kind for e in result.events]


class TestParse(unittest.TestCase):
    def test_parse_places_everything(self):
        snapshot = parse_level("""
            #######
            #S.m.^#
            #.i+..#
            #....E#
            #######
        """)

        self.assertEqual(snapshot.player.location, Location(x=1, y=1))
        self.assertEqual(snapshot.level_map.exit, Location(x=5, y=3))
        self.assertEqual([h.location for h in snapshot.hostiles], [Location(x=3, y=1)])
        self.assertEqual([i.location for i in snapshot.items], [Location(x=2, y=2)])
        self.assertEqual([p.location for p in snapshot.health_packs], [Location(x=3, y=2)])
        self.assertEqual(snapshot.level_map.cell_at(Location(x=5, y=1)), CellType.TRAP)
        self.assertEqual(snapshot.level_map.cell_at(Location(x=3, y=1)), CellType.EMPTY)

    def test_snapshot_lookups(self):
        snapshot = parse_level("Sm+i.E")

        self.assertEqual(snapshot.hostile_at(Location(x=1, y=0)), snapshot.hostiles[0])
        self.assertEqual(snapshot.health_pack_at(Location(x=2, y=0)), snapshot.health_packs[0])
        self.assertEqual(snapshot.item_at(Location(x=3, y=0)), snapshot.items[0])
        self.assertIsNone(snapshot.hostile_at(Location(x=4, y=0)))
        self.assertIsNone(snapshot.item_at(Location(x=1, y=0)))
        self.assertIsNone(snapshot.health_pack_at(Location(x=3, y=0)))

    def test_step_onto_hostile_is_blocked(self):
        snapshot = parse_level("Sm.E")

        result = resolve_turn(snapshot, _step(1, 0))

        self.assertEqual(result.next_snapshot.player.location, Location(x=0, y=0))
        self.assertEqual(result.events[0].payload["reason"], "hostile")

    def test_outside_the_grid_is_wall(self):
        snapshot = parse_level("S.E")

        self.assertEqual(snapshot.level_map.cell_at(Location(x=-1, y=0)), CellType.WALL)
        self.assertEqual(snapshot.level_map.cell_at(Location(x=0, y=5)), CellType.WALL)

    def test_parse_rejects_bad_maps(self):
        for text in ("S.?E", "S..\n.E", "S...", "S.S.E", ""):
            with self.assertRaises(ValueError):
                parse_level(text)

    def test_render_round_trips_layout(self):
        text = "#####\n#S+m#\n#i.E#\n#####"
        snapshot = parse_level(text)

        rows = render_level(snapshot)

        self.assertEqual(rows, ["#####", "#@+m#", "#i.E#", "#####"])

    def test_hostiles_scale_with_level(self):
        easy = parse_level("Sm.E", level_index=1).hostiles[0]
        hard = parse_level("Sm.E", level_index=3).hostiles[0]

        self.assertGreater(hard.health, easy.health)
        self.assertGreater(hard.attack, easy.attack)


class TestGenerate(unittest.TestCase):
    def test_generate_is_deterministic(self):
        level_a = generate_level("demo_seed")
        level_b = generate_level("demo_seed")

        self.assertEqual(level_a.level_map, level_b.level_map)
        self.assertEqual(level_a.hostiles, level_b.hostiles)
        self.assertEqual(level_a.items, level_b.items)

    def test_generated_level_is_well_formed(self):
        snapshot = generate_level("demo_seed", width=16, height=10, level_index=2)

        self.assertEqual(snapshot.level_map.width, 16)
        self.assertEqual(snapshot.level_map.height, 10)
        self.assertEqual(snapshot.player.location, snapshot.level_map.start)
        self.assertEqual(len(snapshot.hostiles), 4)
        self.assertEqual(len(set(snapshot.occupied())), len(list(snapshot.occupied())))
        for location in snapshot.occupied():
            self.assertEqual(snapshot.level_map.cell_at(location), CellType.EMPTY)

    def test_generate_rejects_tiny_levels(self):
        with self.assertRaises(ValueError):
            generate_level("demo_seed", width=4, height=4)


class TestResolveTurn(unittest.TestCase):
    def test_step_moves_agent(self):
        snapshot = parse_level("S..E")

        result = resolve_turn(snapshot, _step(1, 0))

        self.assertEqual(result.next_snapshot.player.location, Location(x=1, y=0))
        self.assertEqual(result.next_snapshot.turn, 1)
        self.assertEqual(result.status, LevelStatus.ONGOING)

    def test_wall_blocks_step(self):
        snapshot = parse_level("S#E\n...")

        result = resolve_turn(snapshot, _step(1, 0))

        self.assertEqual(result.next_snapshot.player.location, Location(x=0, y=0))
        self.assertIn("step_blocked", _kinds(result))

    def test_item_is_equipped_in_place(self):
        snapshot = parse_level("Si.E")
        item = snapshot.items[0]

        result = resolve_turn(snapshot, _step(1, 0))
        player = result.next_snapshot.player

        self.assertEqual(player.location, Location(x=0, y=0))
        self.assertEqual(player.total_attack, player.attack + item.attack_bonus)
        self.assertEqual(player.total_defence, player.defence + item.defence_bonus)
        self.assertEqual(result.next_snapshot.items, [])

    def test_health_pack_heals_up_to_full(self):
        snapshot = parse_level("S+.E")
        hurt = snapshot.model_copy(update={"player": snapshot.player.model_copy(update={"health": 80})})
        low = snapshot.model_copy(update={"player": snapshot.player.model_copy(update={"health": 20})})

        self.assertEqual(resolve_turn(hurt, _step(1, 0)).next_snapshot.player.health, 100)
        self.assertEqual(resolve_turn(low, _step(1, 0)).next_snapshot.player.health, 20 + HEALTH_PACK_VALUE)

    def test_trap_hurts(self):
        snapshot = parse_level("S^.E")

        result = resolve_turn(snapshot, _step(1, 0))

        self.assertEqual(result.next_snapshot.player.health, 100 - TRAP_DAMAGE)
        self.assertIn("trap_triggered", _kinds(result))

    def test_reaching_exit_completes_level(self):
        snapshot = parse_level("SE")

        result = resolve_turn(snapshot, _step(1, 0))

        self.assertEqual(result.status, LevelStatus.COMPLETED)
        self.assertIn("exit_reached", _kinds(result))

    def test_attack_damages_and_hostile_strikes_back(self):
        snapshot = parse_level("Sm.E")
        tough = snapshot.hostiles[0].model_copy(update={"health": 100})
        snapshot = snapshot.model_copy(update={"hostiles": [tough]})

        result = resolve_turn(snapshot, AttackAction(offset=Offset(dx=1, dy=0)))

        self.assertEqual(result.next_snapshot.hostiles[0].health, 100 - 20)
        self.assertEqual(result.next_snapshot.player.health, 100 - 2)
        self.assertEqual(_kinds(result), ["attack", "hostile_attack"])

    def test_killed_hostile_is_removed(self):
        snapshot = parse_level("Sm.E")
        weak = snapshot.hostiles[0].model_copy(update={"health": 20})
        snapshot = snapshot.model_copy(update={"hostiles": [weak]})

        result = resolve_turn(snapshot, AttackAction(offset=Offset(dx=1, dy=0)))

        self.assertEqual(result.next_snapshot.hostiles, [])
        self.assertIn("hostile_killed", _kinds(result))
        self.assertNotIn("hostile_attack", _kinds(result))

    def test_agent_can_die(self):
        snapshot = parse_level("Sm.E")
        snapshot = snapshot.model_copy(update={"player": snapshot.player.model_copy(update={"health": 1})})

        result = resolve_turn(snapshot, NoAction())

        self.assertEqual(result.status, LevelStatus.DEAD)
        self.assertIn("agent_died", _kinds(result))

    def test_invalid_action_dict_becomes_noop(self):
        snapshot = parse_level("S..E")

        result = resolve_turn(snapshot, {"type": "step", "offset": {"dx": 1, "dy": 1}})

        self.assertEqual(result.next_snapshot.player.location, Location(x=0, y=0))
        self.assertEqual(result.events[0].payload["reason"], "invalid_action_schema")


if __name__ == "__main__":
    unittest.main()
