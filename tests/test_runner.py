"""Tests for the episode runner and run recording."""

import os
import tempfile
import unittest

from rogue_agent.agent.bot import Bot
from rogue_agent.config import Settings
from rogue_agent.engine.generate import parse_level
from rogue_agent.engine.types import Goal, LevelStatus
from rogue_agent.orchestrator.runner import EpisodeRunner
from rogue_agent.storage.logger import RunLogger, RunReplay


class TestEpisodeRunner(unittest.TestCase):
    def setUp(self):
        self.config = Settings(final_room_detection=False)

    def test_corridor_is_completed(self):
        runner = EpisodeRunner(bot=Bot(self.config))

        summary = runner.run_level(parse_level("S....E"))

        self.assertEqual(summary.status, LevelStatus.COMPLETED)
        self.assertEqual(summary.turns, 5)
        self.assertEqual(summary.final_health, 100)
        self.assertEqual(summary.goal_trail, [Goal.BEGIN, Goal.REACH_EXIT])
        self.assertIsNone(summary.run_id)

    def test_item_detour(self):
        runner = EpisodeRunner(bot=Bot(self.config))

        summary = runner.run_level(parse_level("S.i.E"))

        self.assertEqual(summary.status, LevelStatus.COMPLETED)
        self.assertEqual(summary.turns, 5)
        self.assertIn(Goal.ACQUIRE_EQUIPMENT, summary.goal_trail)

    def test_turn_limit(self):
        runner = EpisodeRunner(bot=Bot(self.config))

        summary = runner.run_level(parse_level("S#E"), max_turns=3)

        self.assertEqual(summary.status, LevelStatus.ONGOING)
        self.assertEqual(summary.turns, 3)

    def test_bottom_goal_survives_generated_levels(self):
        runner = EpisodeRunner(bot=Bot(Settings()))
        seen = []

        def check(snapshot, action, goals, result):
            stack = runner.bot.planner.stack
            self.assertGreaterEqual(len(stack), 1)
            self.assertEqual(stack.bottom, Goal.REACH_EXIT)
            seen.append(snapshot.turn)

        runner.on_tick = check
        for seed in ("alpha", "beta", "gamma"):
            summaries = runner.run_campaign(seed=seed, levels=2, max_turns=150)
            self.assertTrue(summaries)
        self.assertTrue(seen)


class TestRunRecording(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, "runs.db")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_recorded_run_can_be_replayed(self):
        runner = EpisodeRunner(bot=Bot(Settings(final_room_detection=False)), logger=RunLogger(self.db_path))

        summary = runner.run_level(parse_level("S....E"), seed="corridor")
        replay = RunReplay(self.db_path)
        info = replay.get_run_info(summary.run_id)
        ticks = replay.get_ticks(summary.run_id)

        self.assertEqual(info["seed"], "corridor")
        self.assertEqual(info["status"], "completed")
        self.assertEqual(info["turns"], 5)
        self.assertFalse(info["config"]["final_room_detection"])

        self.assertEqual([t["turn"] for t in ticks], [0, 1, 2, 3, 4])
        self.assertEqual(ticks[0]["goals"], ["begin", "reach_exit"])
        self.assertEqual(ticks[0]["action"]["type"], "step")
        self.assertIn("-----begin-----", ticks[0]["messages"])
        self.assertIn("exit_reached", [e["kind"] for e in ticks[-1]["events"]])

    def test_recent_runs_are_listed(self):
        runner = EpisodeRunner(bot=Bot(Settings(final_room_detection=False)), logger=RunLogger(self.db_path))
        runner.run_level(parse_level("S....E"), seed="first")
        runner.run_level(parse_level("S..E"), seed="second")

        runs = RunReplay(self.db_path).list_recent_runs(limit=5)

        self.assertEqual(len(runs), 2)
        self.assertEqual({r["seed"] for r in runs}, {"first", "second"})

    def test_logging_requires_a_started_run(self):
        logger = RunLogger(self.db_path)

        with self.assertRaises(ValueError):
            logger.finish_run("completed", 0)

    def test_unknown_run(self):
        self.assertIsNone(RunReplay(self.db_path).get_run_info("missing"))


if __name__ == "__main__":
    unittest.main()
