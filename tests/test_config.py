"""
Tests for configuration loading.
"""

import json
import pytest
import os
import sys

import yaml

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stylescanner.config import (
    LintConfig,
    RuleConfig,
    OutputConfig,
    ConfigError,
    load_config,
    find_config,
    load_lint_config,
    create_default_config,
    get_preset_rules,
)


class TestRuleConfig:
    """Tests for per-rule settings."""

    def test_boolean_shorthand(self):
        assert RuleConfig.from_value(True).enabled is True
        assert RuleConfig.from_value(False).enabled is False

    def test_mapping(self):
        config = RuleConfig.from_value({
            "enabled": True,
            "severity": "ERROR",
            "autofix": False,
            "markers": ["TODO"],
        })
        assert config.enabled is True
        assert config.severity == "error"
        assert config.autofix is False
        assert config.options == {"markers": ["TODO"]}

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            RuleConfig.from_value("yes")


class TestLintConfig:
    """Tests for the main configuration dataclass."""

    def test_defaults(self):
        config = LintConfig()
        assert config.extensions == [".swift"]
        assert config.terminator == ";"
        assert config.lookahead == 3
        assert config.rule_preset == "standard"
        assert isinstance(config.output, OutputConfig)

    def test_from_dict(self):
        config = LintConfig.from_dict({
            "scan": {"extensions": [".swift", ".swiftinterface"], "exclude": ["Vendor/**"], "max_workers": 2},
            "severity_threshold": "warning",
            "rules": {
                "preset": "relaxed",
                "explicit-typing": False,
                "statement-termination": {"severity": "error"},
            },
            "output": {"format": "json", "verbose": True, "unknown": 1},
            "remediation": {"dry_run": True, "backup": False},
            "mystery": "ignored",
        })

        assert config.extensions == [".swift", ".swiftinterface"]
        assert config.exclude_patterns == ["Vendor/**"]
        assert config.max_workers == 2
        assert config.severity_threshold == "warning"
        assert config.rule_preset == "relaxed"
        assert config.rules["explicit-typing"].enabled is False
        assert config.rules["statement-termination"].severity == "error"
        assert config.output.format == "json"
        assert config.output.verbose is True
        assert config.dry_run is True
        assert config.backup is False

    def test_to_dict(self):
        data = LintConfig(rules={"force-unwrap": RuleConfig(enabled=False)}).to_dict()
        assert data["rules"]["force-unwrap"]["enabled"] is False
        assert data["output"]["format"] == "text"

    def test_rule_config_default(self):
        assert LintConfig().rule_config("statement-termination") == RuleConfig()


class TestConfigFiles:
    """Tests for reading configuration files."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / ".stylescanner.yaml"
        path.write_text("terminator: ';'\nrules:\n  force-unwrap: false\n")
        data = load_config(str(path))
        assert data == {"terminator": ";", "rules": {"force-unwrap": False}}

    def test_load_json(self, tmp_path):
        path = tmp_path / ".stylescanner.json"
        path.write_text(json.dumps({"lookahead": 5}))
        assert load_config(str(path)) == {"lookahead": 5}

    def test_empty_file(self, tmp_path):
        path = tmp_path / ".stylescanner.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / ".stylescanner.yaml"
        path.write_text("rules: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / ".stylescanner.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_find_config_walks_up(self, tmp_path):
        config_path = tmp_path / ".stylescanner.yml"
        config_path.write_text("lookahead: 4\n")
        nested = tmp_path / "Sources" / "App"
        nested.mkdir(parents=True)
        source = nested / "main.swift"
        source.write_text("let a: Int = 1;\n")

        assert find_config(str(nested)) == str(config_path.resolve())
        assert find_config(str(source)) == str(config_path.resolve())
        assert load_lint_config(start_dir=str(nested)).lookahead == 4

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("severity_threshold: error\n")
        assert load_lint_config(str(path)).severity_threshold == "error"


class TestDefaultConfig:
    """Tests for the generated default configuration."""

    def test_round_trip(self):
        data = yaml.safe_load(create_default_config())
        config = LintConfig.from_dict(data)
        assert config.rule_preset == "standard"
        assert config.rules["self-prefix"].enabled is False
        assert config.rules["comment-markers"].options["markers"][0] == "DEBUG"
        assert config.backup is True

    def test_presets(self):
        assert get_preset_rules("strict")["enabled"] == ["*"]
        assert "explicit-typing" in get_preset_rules("relaxed")["disabled"]
        assert get_preset_rules("unknown") == get_preset_rules("standard")
