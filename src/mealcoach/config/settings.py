"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".mealcoach"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "mealcoach.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class RecommenderConfig:
    """Timeout and retry policy for the macro recommender."""

    timeout_seconds: float = 30.0
    max_retries: int = 1
    base_delay_seconds: float = 1.0
    jitter_factor: float = 0.1


@dataclass
class CheckInConfig:
    """Weekly check-in execution options."""

    max_workers: int = 4  # threads for per-day intake reads


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    checkin: CheckInConfig = field(default_factory=CheckInConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.mealcoach/config.yaml

        Returns:
            Settings instance

        Raises:
            ValueError: If a value has the wrong type or is out of range
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if db_data.get("path"):
                settings.database.path = Path(db_data["path"]).expanduser()

        if "recommender" in data:
            rec_data = data["recommender"] or {}
            if "timeout_seconds" in rec_data:
                settings.recommender.timeout_seconds = float(rec_data["timeout_seconds"])
            if "max_retries" in rec_data:
                settings.recommender.max_retries = int(rec_data["max_retries"])
            if "base_delay_seconds" in rec_data:
                settings.recommender.base_delay_seconds = float(
                    rec_data["base_delay_seconds"]
                )
            if "jitter_factor" in rec_data:
                settings.recommender.jitter_factor = float(rec_data["jitter_factor"])

        if "checkin" in data:
            checkin_data = data["checkin"] or {}
            if "max_workers" in checkin_data:
                settings.checkin.max_workers = int(checkin_data["max_workers"])

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise ValueError for out-of-range values."""
        if self.recommender.timeout_seconds <= 0:
            raise ValueError("recommender.timeout_seconds must be positive")
        if self.recommender.max_retries < 0:
            raise ValueError("recommender.max_retries must be >= 0")
        if self.recommender.base_delay_seconds < 0:
            raise ValueError("recommender.base_delay_seconds must be >= 0")
        if not 0 <= self.recommender.jitter_factor <= 1:
            raise ValueError("recommender.jitter_factor must be between 0 and 1")
        if self.checkin.max_workers < 1:
            raise ValueError("checkin.max_workers must be at least 1")
        if self.logging.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {VALID_LOG_LEVELS}, got '{self.logging.level}'"
            )

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.mealcoach/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "recommender": {
                "timeout_seconds": self.recommender.timeout_seconds,
                "max_retries": self.recommender.max_retries,
                "base_delay_seconds": self.recommender.base_delay_seconds,
                "jitter_factor": self.recommender.jitter_factor,
            },
            "checkin": {
                "max_workers": self.checkin.max_workers,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
