"""High-level recording interface for agent runs."""

from typing import Any, Dict, List, Optional

from .db import Database


class RunLogger:
    """Handles recording for a single run."""

    def __init__(self, db_path: str = "rogue_agent.db"):
        """Initialize logger with database path."""
        self.db = Database(db_path)
        self.run_id: Optional[str] = None

    def start_run(self, seed: str, level_index: int, config: Dict[str, Any]) -> str:
        """Start a new run and return the run ID."""
        self.run_id = self.db.create_run(seed, level_index, config)
        return self.run_id

    def log_tick(self, turn: int, snapshot, action, goals: List[Any], messages: List[str]) -> None:
        """Log one decision."""
        if not self.run_id:
            raise ValueError("Run not started")
        self.db.log_tick(self.run_id, turn, snapshot, action, goals, messages)

    def log_events(self, turn: int, events: List) -> None:
        """Log events from turn resolution."""
        if not self.run_id:
            raise ValueError("Run not started")
        self.db.log_events(self.run_id, turn, events)

    def finish_run(self, status: str, turns: int) -> None:
        """Record the run outcome."""
        if not self.run_id:
            raise ValueError("Run not started")
        self.db.finish_run(self.run_id, status, turns)


class RunReplay:
    """Reads recorded runs back from the database."""

    def __init__(self, db_path: str = "rogue_agent.db"):
        """Initialize replay with database path."""
        self.db = Database(db_path)

    def get_run_info(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get basic run information."""
        return self.db.get_run_info(run_id)

    def get_ticks(self, run_id: str) -> List[Dict[str, Any]]:
        """Get every recorded tick, with its events attached."""
        ticks = self.db.get_ticks(run_id)
        for tick in ticks:
            tick["events"] = self.db.get_events(run_id, tick["turn"])
        return ticks

    def list_recent_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        """List recent runs."""
        return self.db.list_runs(limit)
