"""Configuration management for hooklint.

Loads environment variables (and a ``.env`` file from the working directory)
and provides centralized access to run settings. The hook catalog itself is
never global: it is built per run and carried by the analysis session.
"""
import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from hooklint.analyzer.classifier import DEFAULT_PLUGIN_BASE_TYPES

__version__ = "1.2.0"


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: str | Path | None = None):
        """Load ``.env`` and validate numeric settings.

        Args:
            env_file: Explicit .env path (defaults to ./.env)

        Raises:
            ValueError: If a numeric setting is not a positive integer
        """
        load_dotenv(Path(env_file) if env_file else Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        for name, value in (("HOOKLINT_MAX_SUGGESTIONS", self.max_suggestions),
                            ("HOOKLINT_JOBS", self.jobs)):
            if value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value}")

    @staticmethod
    def _int_env(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {raw!r}") from None

    @property
    def config_dir(self) -> Path:
        """Folder holding hooks.json, hooksPlugin.json and deprecatedHooks.json."""
        return Path(os.getenv("HOOKLINT_CONFIG_DIR", ".hooklint"))

    @property
    def catalog_version(self) -> str:
        """Catalog provider key (``directory``, ``240Dev``, ``266Dev``)."""
        return os.getenv("HOOKLINT_CATALOG_VERSION", "directory")

    @property
    def max_suggestions(self) -> int:
        return self._int_env("HOOKLINT_MAX_SUGGESTIONS", 3)

    @property
    def jobs(self) -> int:
        """Worker threads used by ``hooklint check``."""
        return self._int_env("HOOKLINT_JOBS", 4)

    @property
    def plugin_base_types(self) -> Tuple[str, ...]:
        """Base classes that mark a class as a plugin.

        Returns:
            Type names from HOOKLINT_PLUGIN_BASES (comma separated), or the
            framework defaults
        """
        raw = os.getenv("HOOKLINT_PLUGIN_BASES", ",".join(DEFAULT_PLUGIN_BASE_TYPES))
        return tuple(part.strip() for part in raw.split(",") if part.strip())


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create the singleton Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached Config so the next get_config() re-reads the environment."""
    global _config
    _config = None
