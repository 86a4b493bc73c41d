import json
from pathlib import Path
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HOME_DIR = Path.home()
FLASH_DIR = HOME_DIR / ".flash"
ENV_FILE = FLASH_DIR / ".env"
DB_NAME = "progress.db"

NUM_STAGES = 5

# Seconds a card waits in stages 1-5 before it is due again
DEFAULT_COOLDOWNS = [0, 5 * 60, 24 * 3600, 7 * 24 * 3600, 28 * 24 * 3600]
DEBUG_COOLDOWNS = [0, 5, 10, 20, 40]


class Settings(BaseSettings):
    db_path: Optional[Path] = Field(None, description="Path to the progress database")

    # Scheduling
    initial_queue_size: int = Field(3, ge=1, description="Number of new cards kept in stage 1")
    stage_cooldowns: List[int] = Field(
        default_factory=lambda: list(DEFAULT_COOLDOWNS),
        description="Cooldown in seconds for stages 1 to 5",
    )
    debug: bool = Field(False, description="Use compressed cooldowns for trying things out")

    # Validation
    allowed_typos_per_line: int = Field(3, ge=0, description="Typos tolerated per typed line")

    model_config = SettingsConfigDict(
        env_prefix="FLASH_",
        env_file=ENV_FILE,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    @field_validator("stage_cooldowns")
    @classmethod
    def _check_cooldowns(cls, value: List[int]) -> List[int]:
        if len(value) != NUM_STAGES:
            raise ValueError(f"expected {NUM_STAGES} stage cooldowns, got {len(value)}")
        if value[0] != 0:
            raise ValueError("stage 1 cooldown must be 0")
        if any(b < a for a, b in zip(value, value[1:])):
            raise ValueError("stage cooldowns must not decrease")
        return value

    @property
    def progress_db_path(self) -> Path:
        return self.db_path or FLASH_DIR / DB_NAME

    def cooldowns_ms(self) -> List[int]:
        """Cooldowns of stages 1-5 in milliseconds."""
        seconds = DEBUG_COOLDOWNS if self.debug else self.stage_cooldowns
        return [s * 1000 for s in seconds]

    def save(self):
        """Persist current settings to ~/.flash/.env"""
        FLASH_DIR.mkdir(parents=True, exist_ok=True)
        cooldowns = json.dumps(self.stage_cooldowns, separators=(",", ":"))
        with open(ENV_FILE, "w") as f:
            if self.db_path:
                f.write(f"FLASH_DB_PATH={self.db_path}\n")
            f.write(f"FLASH_INITIAL_QUEUE_SIZE={self.initial_queue_size}\n")
            f.write(f"FLASH_STAGE_COOLDOWNS={cooldowns}\n")
            f.write(f"FLASH_DEBUG={str(self.debug).lower()}\n")
            f.write(f"FLASH_ALLOWED_TYPOS_PER_LINE={self.allowed_typos_per_line}\n")

settings = Settings()
