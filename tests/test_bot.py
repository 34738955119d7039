"""Unit tests for the host-facing bot."""

import unittest

from rogue_agent.agent.bot import Bot
from rogue_agent.agent.reporting import BufferedReporter
from rogue_agent.config import Settings
from rogue_agent.engine.generate import parse_level
from rogue_agent.engine.reducer import resolve_turn
from rogue_agent.engine.types import Goal


class TestBot(unittest.TestCase):
    def setUp(self):
        self.bot = Bot(Settings(final_room_detection=False))

    def test_first_tick_starts_an_episode(self):
        snapshot = parse_level("S....E")

        self.bot.make_turn(snapshot)

        self.assertEqual(self.bot.level_count, 1)
        self.assertEqual(self.bot.planner.session.level_index, 1)

    def test_planner_survives_while_off_start(self):
        snapshot = parse_level("S....E")
        action = self.bot.make_turn(snapshot)
        planner = self.bot.planner

        snapshot = resolve_turn(snapshot, action).next_snapshot
        self.bot.make_turn(snapshot)

        self.assertIs(self.bot.planner, planner)

    def test_returning_to_start_resets_without_counting(self):
        snapshot = parse_level("S....E")
        self.bot.make_turn(snapshot)
        planner = self.bot.planner
        planner.stack.push(Goal.HEAL)

        self.bot.make_turn(snapshot)

        self.assertIsNot(self.bot.planner, planner)
        self.assertEqual(self.bot.level_count, 1)
        self.assertNotIn(Goal.HEAL, self.bot.planner.stack)

    def test_new_layout_counts_a_level(self):
        self.bot.make_turn(parse_level("S....E"))
        self.bot.make_turn(parse_level("S...\n...E"))

        self.assertEqual(self.bot.level_count, 2)
        self.assertEqual(self.bot.planner.session.level_index, 2)
        self.assertEqual(self.bot.planner.session.panic_health, 30)

    def test_reporter_receives_diagnostics(self):
        reporter = BufferedReporter()

        self.bot.make_turn(parse_level("S....E"), reporter)

        self.assertTrue(reporter.drain())


if __name__ == "__main__":
    unittest.main()
