"""
Centralized configuration management.

Values are read once at import time, in this priority order (later overrides
earlier):
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables (highest priority)
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path(__file__).parent.parent.parent

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.info("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def get(self, key, default=None):
        value = self._config.get(key, default)
        return default if value is None else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None or not str(value).strip():
            return default
        return str(value).strip().lower() in {"true", "yes", "on", "1"}

    def get_float(self, key: str, default: float) -> float:
        """
        Get a positive float value, falling back to ``default`` when the
        value is missing, malformed or not positive.
        """
        raw = self.get(key)
        if raw is None or not str(raw).strip():
            return default
        try:
            value = float(raw)
        except (ValueError, TypeError):
            logger.warning("Invalid {} value '{}', defaulting to {}", key, raw, default)
            return default
        if value <= 0:
            logger.warning("{} value {} must be positive, defaulting to {}", key, value, default)
            return default
        return value

    def get_list(self, key: str, default: list[str] | None = None) -> list[str]:
        raw = self.get(key)
        if raw is None or not str(raw).strip():
            return list(default or [])
        return [item.strip() for item in str(raw).split(",") if item.strip()]


# Global configuration instance
config = EnvironConfig()
