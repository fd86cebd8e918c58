"""
Contains the configuration options for mdbundle
"""

import json
import logging
import os
from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

USERPROFILE: Path = Path(os.getenv("userprofile", os.getenv("HOME", "")))
BASE_FOLDER: Path = (USERPROFILE / ".mdbundle").resolve()
SETTINGS_FILE_PATH: Path = BASE_FOLDER / "config.json"


class Settings(BaseSettings):
    """Settings class for mdbundle"""

    model_config = SettingsConfigDict(env_prefix="MDBUNDLE_")

    # Archive
    # zlib level used for deflated entries
    COMPRESSION_LEVEL: int = Field(default=6, ge=-1, le=9)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOGGING_DIR_PATH: Path = BASE_FOLDER / "logging"

    @classmethod
    def load_from_file(cls, path: Path) -> "Settings":
        """Loads settings from a JSON file."""
        if not path.exists():
            return cls()  # Return default

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            logging.getLogger("Config").error("Error loading settings: %s", e)
            return cls()  # Return defaults

    def save_to_file(self, path: Path):
        """Saves settings to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "w", encoding="utf-8") as f:
                _ = f.write(self.model_dump_json(indent=2))
        except (FileNotFoundError, OSError, IOError) as e:
            logging.getLogger("Config").error("Error saving settings: %s", e)


settings = Settings.load_from_file(Path(SETTINGS_FILE_PATH))
