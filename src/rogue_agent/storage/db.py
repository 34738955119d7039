"""Database connection and core operations for run recording."""

import json
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from .schema import (
    create_tables,
    deserialize,
    serialize_action,
    serialize_event,
    serialize_goals,
    serialize_snapshot,
)


class Database:
    """SQLite database wrapper for run recording and replay."""

    def __init__(self, db_path: str = "rogue_agent.db"):
        """Initialize database connection and create tables."""
        self.db_path = Path(db_path)
        create_tables(str(self.db_path))

    def _get_conn(self) -> sqlite3.Connection:
        """Get a database connection."""
        return sqlite3.connect(str(self.db_path))

    def create_run(self, seed: str, level_index: int, config: Dict[str, Any]) -> str:
        """Create a new run record and return its ID."""
        run_id = str(uuid.uuid4())
        with self._get_conn() as conn:
            conn.execute("""
                INSERT INTO runs (run_id, seed, level_index, created_at, config_json)
                VALUES (?, ?, ?, ?, ?)
            """, (
                run_id,
                seed,
                level_index,
                time.time(),
                json.dumps(config)
            ))
            conn.commit()

        return run_id

    def finish_run(self, run_id: str, status: str, turns: int) -> None:
        """Record how a run ended."""
        with self._get_conn() as conn:
            conn.execute("""
                UPDATE runs SET status = ?, turns = ? WHERE run_id = ?
            """, (status, turns, run_id))
            conn.commit()

    def log_tick(
        self,
        run_id: str,
        turn: int,
        snapshot,
        action,
        goals: List[Any],
        messages: List[str]
    ) -> None:
        """Log one decision with the snapshot it was made on."""
        with self._get_conn() as conn:
            conn.execute("""
                INSERT INTO ticks (run_id, turn, snapshot_json, action_json, goals_json, messages_json)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                run_id,
                turn,
                serialize_snapshot(snapshot),
                serialize_action(action),
                serialize_goals(goals),
                json.dumps(messages)
            ))
            conn.commit()

    def log_events(self, run_id: str, turn: int, events: List) -> None:
        """Log events from turn resolution."""
        with self._get_conn() as conn:
            for idx, event in enumerate(events):
                conn.execute("""
                    INSERT INTO events (run_id, turn, event_idx, event_json)
                    VALUES (?, ?, ?, ?)
                """, (
                    run_id,
                    turn,
                    idx,
                    serialize_event(event)
                ))
            conn.commit()

    def get_run_info(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get basic run information."""
        with self._get_conn() as conn:
            row = conn.execute("""
                SELECT seed, level_index, created_at, config_json, status, turns
                FROM runs
                WHERE run_id = ?
            """, (run_id,)).fetchone()

            if row:
                return {
                    "run_id": run_id,
                    "seed": row[0],
                    "level_index": row[1],
                    "created_at": row[2],
                    "config": json.loads(row[3]),
                    "status": row[4],
                    "turns": row[5],
                }
        return None

    def get_ticks(self, run_id: str) -> List[Dict[str, Any]]:
        """Get all ticks for a run."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT turn, snapshot_json, action_json, goals_json, messages_json
                FROM ticks
                WHERE run_id = ?
                ORDER BY turn
            """, (run_id,)).fetchall()

            return [{
                "turn": row[0],
                "snapshot": deserialize(row[1]),
                "action": deserialize(row[2]),
                "goals": deserialize(row[3]),
                "messages": deserialize(row[4]),
            } for row in rows]

    def get_events(self, run_id: str, turn: int) -> List[Dict[str, Any]]:
        """Get events for a specific turn."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT event_json
                FROM events
                WHERE run_id = ? AND turn = ?
                ORDER BY event_idx
            """, (run_id, turn)).fetchall()

            return [deserialize(row[0]) for row in rows]

    def list_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        """List recent runs."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT run_id, seed, level_index, created_at, status, turns
                FROM runs
                ORDER BY created_at DESC
                LIMIT ?
            """, (limit,)).fetchall()

            return [{
                "run_id": row[0],
                "seed": row[1],
                "level_index": row[2],
                "created_at": row[3],
                "status": row[4],
                "turns": row[5],
            } for row in rows]
