import os
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EngineSettings(BaseModel):
    """Defaults for new timelines and logging, overridable from the environment."""
    default_duration: float = Field(default=10.0, gt=0)
    default_timeline_name: str = Field(default="New Animation")
    default_playback_rate: float = Field(default=1.0, gt=0)
    log_level: str = Field(default="INFO")
    log_file: Path | None = Field(default=None)

    @classmethod
    def from_env(cls) -> "EngineSettings":
        values = {
            "default_duration": os.getenv("TIMELINE_DEFAULT_DURATION"),
            "default_timeline_name": os.getenv("TIMELINE_DEFAULT_NAME"),
            "default_playback_rate": os.getenv("TIMELINE_DEFAULT_PLAYBACK_RATE"),
            "log_level": os.getenv("LOG_LEVEL"),
            "log_file": os.getenv("TIMELINE_LOG_FILE"),
        }
        return cls(**{key: value for key, value in values.items() if value})


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return EngineSettings.from_env()


def configure_logging(
    level: str | None = None,
    log_file: Path | str | None = None,
) -> None:
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    level_value = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level_value, format=LOG_FORMAT)
    logger = logging.getLogger("timeline_engine")
    logger.setLevel(level_value)

    target = log_file or settings.log_file
    if not target:
        return

    log_file_path = Path(target)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    if any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == os.path.abspath(log_file_path)
        for handler in logger.handlers
    ):
        return

    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(level_value)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
