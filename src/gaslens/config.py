"""Configuration for gaslens."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from gaslens.constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_LOOP_ITERATIONS,
    MAX_LOOP_MULTIPLIER,
)


@dataclass
class GasLensConfig:
    """Settings shared by the analyzer, aggregator and rule executor.

    Attributes:
        loop_iterations: Iteration estimate for loops without a literal bound
        max_loop_multiplier: Ceiling for nested loop multipliers
        cache_ttl_seconds: Lifetime of cached analysis results
        enabled_rules: If non-empty, only these rule IDs run
        disabled_rules: Rule IDs that never run
    """

    loop_iterations: int = DEFAULT_LOOP_ITERATIONS
    max_loop_multiplier: int = MAX_LOOP_MULTIPLIER
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    enabled_rules: set[str] = field(default_factory=set)
    disabled_rules: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        # Degenerate values fall back to the nearest sane setting.
        self.loop_iterations = max(1, int(self.loop_iterations))
        self.max_loop_multiplier = max(1, int(self.max_loop_multiplier))
        self.cache_ttl_seconds = max(0.0, float(self.cache_ttl_seconds))
        self.enabled_rules = set(self.enabled_rules)
        self.disabled_rules = set(self.disabled_rules)

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check whether a rule should run under this configuration.

        Args:
            rule_id: Rule identifier (e.g., "GL-001")

        Returns:
            True if the rule is allowed to run
        """
        if rule_id in self.disabled_rules:
            return False
        return not self.enabled_rules or rule_id in self.enabled_rules

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> GasLensConfig:
        """Build a config from a mapping, ignoring unknown keys.

        Keys may use dashes or underscores (``loop-iterations`` or
        ``loop_iterations``).
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = key.replace("-", "_")
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path | str) -> GasLensConfig:
        """Load settings from the ``[tool.gaslens]`` table of a TOML file.

        Args:
            path: Path to a TOML file (typically pyproject.toml or gaslens.toml)

        Returns:
            Config with file values applied over the defaults

        Raises:
            FileNotFoundError: If the file doesn't exist
            tomllib.TOMLDecodeError: If the file is not valid TOML
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open("rb") as f:
            data = tomllib.load(f)

        section = data.get("tool", {}).get("gaslens", data.get("gaslens", {}))
        return cls.from_mapping(section)
