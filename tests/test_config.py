"""Tests for configuration and rule loading."""

import json

import pytest

from skillgate.config import (
    DEFAULT_RULES,
    ensure_config,
    get_config,
    load_rules_file,
    load_settings,
    parse_rules,
    render_default_config,
)
from skillgate.errors import ConfigurationError
from skillgate.gate_types import PolicyRule

from conftest import CONTROLLER


class TestDefaults:

    def test_defaults_without_config_file(self):
        settings = load_settings()
        assert len(settings.rules) == len(DEFAULT_RULES) == 11
        assert settings.rules[0].category == CONTROLLER
        assert settings.log_file == "/tmp/claude-skill-usage.log"
        assert settings.marker_key == "skill"
        assert settings.ack_tool == "Skill"

    def test_default_rule_order(self):
        labels = [r.display_label for r in parse_rules(DEFAULT_RULES)]
        assert labels == [
            "controller", "model", "view", "helper", "ViewComponent",
            "Stimulus controller", "Stimulus controller",
            "policy", "job", "migration", "spec",
        ]

    def test_defaults_not_mutated(self):
        get_config()["gate"]["marker_key"] = "changed"
        assert get_config()["gate"]["marker_key"] == "skill"


class TestConfigFile:

    def test_toml_overrides(self, tmp_path):
        path = tmp_path / "skillgate.toml"
        path.write_text(
            '[gate]\n'
            'log_file = "/var/log/gate.log"\n'
            '\n'
            '[[rules]]\n'
            'pattern = "*/src/*.py"\n'
            'category = "python-style"\n'
        )
        settings = load_settings(path)
        assert settings.rules == (PolicyRule("*/src/*.py", "python-style"),)
        assert settings.log_file == "/var/log/gate.log"
        # Unspecified keys keep defaults
        assert settings.marker_key == "skill"

    def test_env_var_config(self, tmp_path, monkeypatch):
        path = tmp_path / "env.toml"
        path.write_text('[gate]\nack_tool = "LoadPolicy"\n')
        monkeypatch.setenv("SKILLGATE_CONFIG", str(path))
        assert load_settings().ack_tool == "LoadPolicy"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[gate\nlog_file = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            get_config(path)

    def test_non_utf8_config(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_bytes(b'[gate]\nlog_file = "\xff"\n')
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            get_config(path)

    def test_empty_log_file_disables_log(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text('[gate]\nlog_file = ""\n')
        assert load_settings(path).log_file is None

    def test_log_file_argument_wins(self):
        assert load_settings(log_file="/tmp/other.log").log_file == "/tmp/other.log"
        assert load_settings(log_file="").log_file is None

    def test_bad_gate_option(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text('[gate]\nmarker_key = 3\n')
        with pytest.raises(ConfigurationError, match="marker_key"):
            load_settings(path)

    def test_rules_file_overrides_config_rules(self, tmp_path):
        rules_path = tmp_path / "rules.json"
        rules_path.write_text(json.dumps([{"pattern": "*.go", "category": "go"}]))
        settings = load_settings(rules_path=rules_path)
        assert [r.category for r in settings.rules] == ["go"]


class TestParseRules:

    def test_full_rule(self):
        rules = parse_rules([{"pattern": "*.js", "category": "js", "label": "script", "exclude": ["*.min.js"]}])
        assert rules == (PolicyRule("*.js", "js", "script", ("*.min.js",)),)

    def test_exclude_as_string(self):
        assert parse_rules([{"pattern": "*", "category": "c", "exclude": "*.md"}])[0].exclude == ("*.md",)

    def test_rules_key(self):
        assert len(parse_rules({"rules": [{"pattern": "*", "category": "c"}]})) == 1

    def test_empty_list(self):
        assert parse_rules([]) == ()

    @pytest.mark.parametrize("raw,message", [
        ("not a list", "must be a list"),
        ([["*.rb", "ruby"]], "expected a table"),
        ([{"category": "ruby"}], "'pattern'"),
        ([{"pattern": "*.rb"}], "'category'"),
        ([{"pattern": "", "category": "ruby"}], "'pattern'"),
        ([{"pattern": "*.rb", "category": "  "}], "'category'"),
        ([{"pattern": "*.rb", "category": 7}], "'category'"),
        ([{"pattern": "*.rb", "category": "ruby", "label": 1}], "'label'"),
        ([{"pattern": "*.rb", "category": "ruby", "exclude": [1]}], "'exclude'"),
        ([{"pattern": "*.rb", "category": "ruby", "priority": 1}], "unknown keys"),
    ])
    def test_malformed(self, raw, message):
        with pytest.raises(ConfigurationError, match=message):
            parse_rules(raw)

    def test_reports_position(self):
        with pytest.raises(ConfigurationError, match="rule #2"):
            parse_rules([{"pattern": "*", "category": "a"}, {"pattern": "*"}])


class TestRuleFiles:

    def test_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n"
            "  - pattern: '*/app/models/*.rb'\n"
            "    category: models\n"
            "    label: model\n"
            "  - pattern: '*.rb'\n"
            "    category: ruby\n"
        )
        rules = load_rules_file(path)
        assert [r.category for r in rules] == ["models", "ruby"]
        assert rules[0].label == "model"

    def test_toml(self, tmp_path):
        path = tmp_path / "rules.toml"
        path.write_text('[[rules]]\npattern = "*.rb"\ncategory = "ruby"\n')
        assert load_rules_file(path)[0].category == "ruby"

    def test_json_list(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{"pattern": "*.rb", "category": "ruby"}]))
        assert load_rules_file(path)[0].pattern == "*.rb"

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "rules.ini"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            load_rules_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "rules.yml"
        path.write_text("rules: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_rules_file(path)

    @pytest.mark.parametrize("name, content", [
        ("rules.json", b'[{"pattern": "*.md", "category": "\xff"}]'),
        ("rules.toml", b'[[rules]]\npattern = "*.md"\ncategory = "\xff"\n'),
        ("rules.yaml", b'- pattern: "*.md"\n  category: "\xff"\n'),
    ])
    def test_non_utf8_rule_file(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_bytes(content)
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_rules_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_rules_file(tmp_path / "nope.yaml")

    def test_empty_yaml_is_malformed(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("")
        with pytest.raises(ConfigurationError):
            load_rules_file(path)


class TestEnsureConfig:

    def test_writes_default_config(self, tmp_path):
        path = ensure_config(tmp_path / "cfg" / "skillgate.toml")
        assert path.exists()
        settings = load_settings(path)
        assert settings.rules == parse_rules(DEFAULT_RULES)
        assert settings.log_file == "/tmp/claude-skill-usage.log"

    def test_does_not_overwrite(self, tmp_path):
        path = tmp_path / "skillgate.toml"
        path.write_text("# mine\n")
        ensure_config(path)
        assert path.read_text() == "# mine\n"

    def test_render_mentions_order(self):
        assert "first match wins" in render_default_config()
