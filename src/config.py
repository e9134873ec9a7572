"""Configuration management for result-janitor.

Loads environment variables (and a project-local .env file) and provides
centralized config access.
"""
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

from src.analyzer.rules import Rule, TargetSpec, custom_rules, parse_target, select_rules

# Version - Managed by hand together with pyproject.toml
__version__ = "1.0.0"

DEFAULT_CACHE_DIR = ".result_janitor_cache"


def _split(raw: Optional[str], separator: str = ',') -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(separator) if item.strip()]


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, project_root: str | Path = "."):
        """Initialize config by loading the project's .env file.

        Args:
            project_root: Directory holding the optional .env file

        Raises:
            ValueError: If a configured rule id or target is invalid
        """
        self.project_root = Path(project_root).resolve()
        env_path = self.project_root / ".env"
        # Real environment variables win over .env entries
        load_dotenv(env_path, override=False)

        self._validate()

    def _validate(self):
        """Validate rule ids and target strings eagerly.

        Raises:
            ValueError: If a rule id is unknown or a target is malformed
        """
        select_rules(self.enabled_rules, self.disabled_rules)
        for raw in self.raw_targets:
            parse_target(raw)

    @property
    def enabled_rules(self) -> Optional[List[str]]:
        """Rule ids from RESULT_JANITOR_RULES, or None for all rules."""
        rules = _split(os.getenv("RESULT_JANITOR_RULES"))
        return rules or None

    @property
    def disabled_rules(self) -> List[str]:
        return _split(os.getenv("RESULT_JANITOR_DISABLED_RULES"))

    @property
    def raw_targets(self) -> List[str]:
        """Custom targets from RESULT_JANITOR_TARGETS (';'-separated)."""
        return _split(os.getenv("RESULT_JANITOR_TARGETS"), ';')

    @property
    def targets(self) -> List[TargetSpec]:
        return [parse_target(raw) for raw in self.raw_targets]

    @property
    def excluded_dirs(self) -> List[str]:
        """Extra directory names to skip (RESULT_JANITOR_EXCLUDE)."""
        return _split(os.getenv("RESULT_JANITOR_EXCLUDE"))

    @property
    def cache_dir(self) -> Path:
        """Cache directory, relative paths resolved against the project root."""
        cache_dir = Path(os.getenv("RESULT_JANITOR_CACHE_DIR", DEFAULT_CACHE_DIR))
        if not cache_dir.is_absolute():
            cache_dir = self.project_root / cache_dir
        return cache_dir

    def rules(self, extra_targets: Optional[List[TargetSpec]] = None,
              only: Optional[List[str]] = None) -> List[Rule]:
        """Resolve the active rule set.

        Args:
            extra_targets: Targets given on the command line
            only: Rule ids given on the command line (override RESULT_JANITOR_RULES)

        Returns:
            Preset rules followed by one custom rule per configured target

        Raises:
            ValueError: If a rule id is unknown
        """
        enabled = only if only else self.enabled_rules
        selected = select_rules(enabled, self.disabled_rules)
        return selected + custom_rules(self.targets + list(extra_targets or []))


# Singleton instances, one per project root
_configs = {}


def get_config(project_root: str | Path = ".") -> Config:
    """Get or create the Config instance for a project root.

    Returns:
        Config instance
    """
    key = Path(project_root).resolve()
    if key not in _configs:
        _configs[key] = Config(key)
    return _configs[key]
