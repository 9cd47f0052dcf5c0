import os
import yaml
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"


class Settings(BaseModel):
    title: str = "R2K2 Tournament Bracket"
    database_url: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    default_max_players: int = 32

    # Pool sizing only applies to server databases (ignored for SQLite)
    pool_size: int = 10
    max_overflow: int = 10


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    flat: Dict[str, Any] = {}
    for section in ("app", "tournament", "database"):
        flat.update(data.get(section) or {})
    return flat


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Build settings from the YAML defaults, then apply environment overrides.
    """
    path = Path(config_path or os.getenv("SETTINGS_PATH", DEFAULT_CONFIG_PATH))
    values = _read_yaml(path)

    if os.getenv("DATABASE_URL"):
        values["database_url"] = os.getenv("DATABASE_URL")
    if os.getenv("LOG_LEVEL"):
        values["log_level"] = os.getenv("LOG_LEVEL")
    if os.getenv("CORS_ORIGINS"):
        values["cors_origins"] = [o.strip() for o in os.getenv("CORS_ORIGINS").split(",") if o.strip()]
    if os.getenv("DEFAULT_MAX_PLAYERS"):
        values["default_max_players"] = int(os.getenv("DEFAULT_MAX_PLAYERS"))

    return Settings(**values)


# Singleton instance
settings = load_settings()
