"""
Configuration system for the style scanner.

Supports YAML and JSON configuration files for customizing
checking behavior, rules, output and fixing.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict

import yaml


logger = logging.getLogger(__name__)


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".stylescanner.yaml",
    ".stylescanner.yml",
    ".stylescanner.json",
    "stylescanner.yaml",
    "stylescanner.yml",
    "stylescanner.json",
]

DEFAULT_EXCLUDE_PATTERNS = [
    ".git/**",
    ".build/**",
    "build/**",
    "Pods/**",
    "Carthage/**",
    "DerivedData/**",
]


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


@dataclass
class RuleConfig:
    """
    Settings for a single rule.

    ``enabled`` and ``severity`` left as ``None`` fall back to the rule's
    own defaults. Keys other than the known ones become rule options.
    """
    enabled: Optional[bool] = None
    severity: Optional[str] = None
    autofix: bool = True
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any) -> "RuleConfig":
        """Build from ``true``/``false`` shorthand or a mapping."""
        if isinstance(value, RuleConfig):
            return value
        if isinstance(value, bool):
            return cls(enabled=value)
        if value is None:
            return cls()
        if not isinstance(value, dict):
            raise ConfigError(f"Rule settings must be a mapping or a boolean, got {value!r}")

        data = dict(value)
        options = dict(data.pop("options", None) or {})
        enabled = data.pop("enabled", None)
        severity = data.pop("severity", None)
        autofix = data.pop("autofix", True)
        options.update(data)
        return cls(
            enabled=enabled,
            severity=str(severity).lower() if severity is not None else None,
            autofix=bool(autofix),
            options=options,
        )


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: str = "text"  # text, json, sarif
    output_file: Optional[str] = None
    verbose: bool = False
    show_suppressed: bool = False
    context_lines: int = 2
    color: bool = True


@dataclass
class LintConfig:
    """
    Main configuration for the style scanner.

    Example YAML config:

    ```yaml
    scan:
      extensions: [".swift"]
      exclude:
        - "Pods/**"
      max_workers: 4
      rule_workers: 1

    severity_threshold: info
    terminator: ";"
    lookahead: 3

    rules:
      preset: standard  # strict, standard, relaxed
      statement-termination:
        severity: error
      explicit-typing: false
      comment-markers:
        markers: [TODO, FIXME]
      self-prefix:
        enabled: true

    output:
      format: text
      verbose: false
      color: true

    remediation:
      auto_fix: false
      dry_run: false
      backup: true
    ```
    """
    # File discovery
    extensions: List[str] = field(default_factory=lambda: [".swift"])
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    include_patterns: Optional[List[str]] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    max_workers: int = 4
    rule_workers: int = 1

    # Rule settings
    rule_preset: str = "standard"  # strict, standard, relaxed
    rules: Dict[str, RuleConfig] = field(default_factory=dict)
    severity_threshold: str = "info"  # error, warning, info
    terminator: str = ";"
    lookahead: int = 3

    # Output settings
    output: OutputConfig = field(default_factory=OutputConfig)

    # Remediation settings
    auto_fix: bool = False
    dry_run: bool = False
    backup: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    def rule_config(self, rule_id: str) -> RuleConfig:
        return self.rules.get(rule_id) or RuleConfig()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LintConfig":
        """Create config from a dictionary."""
        data = dict(data)

        # Handle nested sections
        if isinstance(data.get("scan"), dict):
            data.update(data.pop("scan"))
        if isinstance(data.get("remediation"), dict):
            data.update(data.pop("remediation"))

        if "rules" in data:
            rules_data = dict(data.pop("rules") or {})
            if "preset" in rules_data:
                data["rule_preset"] = rules_data.pop("preset")
            data["rules"] = {
                str(rule_id): RuleConfig.from_value(value)
                for rule_id, value in rules_data.items()
            }
        if "output" in data and isinstance(data["output"], dict):
            output_fields = set(OutputConfig.__dataclass_fields__)
            data["output"] = OutputConfig(**{k: v for k, v in data["output"].items() if k in output_fields})

        # Map some common alternative names
        if "exclude" in data:
            data["exclude_patterns"] = data.pop("exclude")
        if "include" in data:
            data["include_patterns"] = data.pop("include")

        # Filter to only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = sorted(k for k in data if k not in known_fields)
        if unknown:
            logger.debug("Ignoring unknown configuration keys: %s", ", ".join(unknown))
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered_data)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            # YAML is a superset of JSON, so it also covers unknown suffixes.
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.exists():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_lint_config(path: Optional[str] = None, start_dir: str = ".") -> LintConfig:
    """
    Load a LintConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        logger.debug("No configuration file found, using defaults")
        return LintConfig()

    logger.debug("Loading configuration from %s", path)
    return LintConfig.from_dict(load_config(path))


def create_default_config() -> str:
    """
    Create a default configuration file content.
    """
    config = {
        "scan": {
            "extensions": [".swift"],
            "exclude": list(DEFAULT_EXCLUDE_PATTERNS),
            "max_file_size": 10485760,
            "max_workers": 4,
            "rule_workers": 1,
        },
        "severity_threshold": "info",
        "terminator": ";",
        "lookahead": 3,
        "rules": {
            "preset": "standard",
            "statement-termination": {"severity": "warning"},
            "comment-markers": {
                "markers": ["DEBUG", "TODO", "DEPRECATED", "LOCALIZE", "STAT", "FEATURE"],
            },
            "self-prefix": {"enabled": False},
            "method-grouping": {"enabled": False},
        },
        "output": {
            "format": "text",
            "verbose": False,
            "color": True,
            "show_suppressed": False,
        },
        "remediation": {
            "auto_fix": False,
            "dry_run": False,
            "backup": True,
        },
    }

    return yaml.dump(config, default_flow_style=False, sort_keys=False)


# Rule presets: fnmatch patterns over rule ids, applied before per-rule settings.
RULE_PRESETS: Dict[str, Dict[str, List[str]]] = {
    "strict": {
        "enabled": ["*"],
        "disabled": [],
    },
    "standard": {
        "enabled": [],
        "disabled": [],
    },
    "relaxed": {
        "enabled": [],
        "disabled": ["explicit-typing", "force-unwrap", "comment-markers"],
    },
}


def get_preset_rules(preset: str) -> Dict[str, List[str]]:
    """Get the rule configuration for a preset."""
    return RULE_PRESETS.get(preset, RULE_PRESETS["standard"])
