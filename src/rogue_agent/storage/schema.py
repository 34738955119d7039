"""SQLite database schema for recorded agent runs."""

import json
import sqlite3
from typing import Any, List


# Database schema creation SQL
SCHEMA_SQL = """
-- Runs table: one row per played level
CREATE TABLE IF NOT EXISTS runs (
    run_id TEXT PRIMARY KEY,
    seed TEXT NOT NULL,
    level_index INTEGER NOT NULL,
    created_at REAL NOT NULL,
    config_json TEXT NOT NULL,
    status TEXT,
    turns INTEGER
);

-- Ticks table: per-turn snapshot, decision and diagnostic messages
CREATE TABLE IF NOT EXISTS ticks (
    run_id TEXT NOT NULL,
    turn INTEGER NOT NULL,
    snapshot_json TEXT NOT NULL,
    action_json TEXT NOT NULL,
    goals_json TEXT NOT NULL,
    messages_json TEXT NOT NULL,
    PRIMARY KEY (run_id, turn),
    FOREIGN KEY (run_id) REFERENCES runs(run_id)
);

-- Events table: individual events from turn resolution
CREATE TABLE IF NOT EXISTS events (
    run_id TEXT NOT NULL,
    turn INTEGER NOT NULL,
    event_idx INTEGER NOT NULL,
    event_json TEXT NOT NULL,
    PRIMARY KEY (run_id, turn, event_idx),
    FOREIGN KEY (run_id, turn) REFERENCES ticks(run_id, turn)
);
"""


def create_tables(db_path: str) -> None:
    """Create all database tables if they don't exist."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()


def serialize_snapshot(snapshot) -> str:
    """Convert LevelSnapshot to JSON for storage."""
    return snapshot.model_dump_json()


def serialize_action(action) -> str:
    """Convert an Action to JSON for storage."""
    return action.model_dump_json()


def serialize_goals(goals: List[Any]) -> str:
    """Store goal tags by value."""
    return json.dumps([getattr(g, "value", str(g)) for g in goals])


def serialize_event(event) -> str:
    """Convert Event to JSON for storage."""
    return event.model_dump_json()


def deserialize(json_str: str) -> Any:
    """Convert stored JSON back to plain Python data."""
    return json.loads(json_str)

