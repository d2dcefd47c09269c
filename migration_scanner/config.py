"""Scanner configuration loaded from YAML."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Pattern, Tuple

import yaml

from .filters import FindingFilter, PathExclusion, SeverityCutoff
from .severity import Severity
from .utils.fileio import read_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".migration-scanner.yaml"
KNOWN_KEYS = {"min_severity", "exclude", "disabled_rules", "concurrent", "rules"}


class ConfigError(ValueError):
    """Configuration content is malformed."""


@dataclass
class ScannerConfig:
    min_severity: Severity = Severity.INFO
    exclude: List[str] = field(default_factory=list)
    disabled_rules: List[str] = field(default_factory=list)
    concurrent: bool = False
    rule_options: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def filters(self) -> Tuple[FindingFilter, ...]:
        return (
            SeverityCutoff(self.min_severity),
            PathExclusion(compile_excludes(self.exclude)),
        )


def compile_excludes(patterns: Iterable[str]) -> Tuple[Pattern[str], ...]:
    """Compile exclude patterns case-insensitively, skipping invalid ones."""

    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as exc:
            logger.warning("Ignoring invalid exclude pattern %r: %s", pattern, exc)
    return tuple(compiled)


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key) or []
    if isinstance(value, str):
        value = [item.strip() for item in value.split(",") if item.strip()]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def parse_config(data: Any) -> ScannerConfig:
    if data is None:
        return ScannerConfig()
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")
    unknown = set(data) - KNOWN_KEYS
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")

    config = ScannerConfig()
    if data.get("min_severity") is not None:
        try:
            config.min_severity = Severity.parse(str(data["min_severity"]))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    config.exclude = _string_list(data, "exclude")
    config.disabled_rules = [rule_id.upper() for rule_id in _string_list(data, "disabled_rules")]
    config.concurrent = bool(data.get("concurrent", False))

    rules = data.get("rules") or {}
    if not isinstance(rules, dict) or not all(isinstance(options, dict) for options in rules.values()):
        raise ConfigError("'rules' must map rule ids to option mappings")
    config.rule_options = {str(rule_id).upper(): dict(options) for rule_id, options in rules.items()}
    return config


def load_config(path: Optional[str] = None) -> ScannerConfig:
    """Load configuration from ``path`` or from the default file if present."""

    if path is None:
        candidate = Path(DEFAULT_CONFIG_FILE)
        if not candidate.exists():
            return ScannerConfig()
    else:
        candidate = Path(path)
        if not candidate.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    try:
        data = read_yaml_file(candidate)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{candidate}: {exc}") from exc
    logger.debug("Loaded configuration from %s", candidate)
    return parse_config(data)
