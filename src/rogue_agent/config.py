"""Configuration management for the roguelike agent."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ROGUE_AGENT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROGUE_AGENT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Survival thresholds
    panic_health_per_level: int = 15
    panic_health_cap: int = 50
    full_health: int = 100
    final_room_health: int = 30

    # Final room ("boss fight") detection
    final_room_detection: bool = True
    final_room_hostile_count: int = 1

    # Combat estimates
    damage_factor: float = 0.9
    double_threat_margin: int = 4

    # Planner
    vision_range: int = 100
    max_goal_depth: int = 8
    opportunistic_healing: bool = False

    # Runs
    default_level_seed: str = "level_1"
    default_max_turns: int = 500
    default_levels: int = 1
    db_path: str = "rogue_agent.db"

    def panic_health(self, level_index: int) -> int:
        """Health below which the agent stops picking fights on this level."""
        return min(self.panic_health_per_level * level_index, self.panic_health_cap)


# Global settings instance
settings = Settings()
