"""config.py — Configuration loading from skillgate.toml and rule files."""

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from .errors import ConfigurationError
from .gate_types import PolicyRule, Tools

logger = logging.getLogger(__name__)

SKILLGATE_ROOT = Path.home() / ".skillgate"
DEFAULT_CONFIG_PATH = SKILLGATE_ROOT / "config" / "skillgate.toml"
CONFIG_ENV_VAR = "SKILLGATE_CONFIG"

_VIEW = "superpowers:rails-view-conventions"

# Order matters: first match wins.
DEFAULT_RULES = [
    {"pattern": "*/app/controllers/*.rb",
     "category": "superpowers:rails-controller-conventions", "label": "controller"},
    {"pattern": "*/app/models/*.rb",
     "category": "superpowers:rails-model-conventions", "label": "model"},
    {"pattern": "*/app/views/*.erb", "category": _VIEW, "label": "view"},
    {"pattern": "*/app/helpers/*.rb", "category": _VIEW, "label": "helper"},
    {"pattern": "*/app/components/*.rb", "category": _VIEW, "label": "ViewComponent",
     "exclude": ["*_controller.js"]},
    {"pattern": "*/app/components/*_controller.js",
     "category": "superpowers:rails-stimulus-conventions", "label": "Stimulus controller"},
    {"pattern": "*/app/packs/controllers/*_controller.js",
     "category": "superpowers:rails-stimulus-conventions", "label": "Stimulus controller"},
    {"pattern": "*/app/policies/*.rb",
     "category": "superpowers:rails-policy-conventions", "label": "policy"},
    {"pattern": "*/app/jobs/*.rb",
     "category": "superpowers:rails-job-conventions", "label": "job"},
    {"pattern": "*/db/migrate/*.rb",
     "category": "superpowers:rails-migration-conventions", "label": "migration"},
    {"pattern": "*/spec/*.rb",
     "category": "superpowers:rails-testing-conventions", "label": "spec"},
]

_DEFAULTS = {
    "gate": {
        "log_file": "/tmp/claude-skill-usage.log",
        "marker_key": "skill",
        "ack_tool": Tools.SKILL,
    },
    "rules": DEFAULT_RULES,
}

_RULE_KEYS = {"pattern", "category", "label", "exclude"}


@dataclass(frozen=True)
class GateSettings:
    """Resolved settings for one gate process."""
    rules: tuple[PolicyRule, ...]
    log_file: Optional[str]
    marker_key: str
    ack_tool: str


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base, recursing into nested dicts. Lists are replaced."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    return Path(env).expanduser() if env else DEFAULT_CONFIG_PATH


def get_config(path: Optional[Union[str, Path]] = None) -> dict:
    """Load config from skillgate.toml, merged with defaults.

    An explicitly given path must exist. The default path is optional.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else get_config_path()

    if not config_path.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {config_path}")
        return copy.deepcopy(_DEFAULTS)

    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e

    return _deep_merge(copy.deepcopy(_DEFAULTS), user_config)


def _parse_rule(index: int, raw: Any) -> PolicyRule:
    where = f"rule #{index + 1}"
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{where}: expected a table, got {type(raw).__name__}")

    unknown = set(raw) - _RULE_KEYS
    if unknown:
        raise ConfigurationError(f"{where}: unknown keys {sorted(unknown)}")

    for key in ("pattern", "category"):
        value = raw.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"{where}: '{key}' must be a non-empty string")

    label = raw.get("label")
    if label is not None and (not isinstance(label, str) or not label.strip()):
        raise ConfigurationError(f"{where}: 'label' must be a non-empty string")

    exclude = raw.get("exclude", [])
    if isinstance(exclude, str):
        exclude = [exclude]
    if not isinstance(exclude, list) or not all(isinstance(e, str) and e for e in exclude):
        raise ConfigurationError(f"{where}: 'exclude' must be a list of patterns")

    return PolicyRule(
        pattern=raw["pattern"],
        category=raw["category"],
        label=label,
        exclude=tuple(exclude),
    )


def parse_rules(raw: Any) -> tuple[PolicyRule, ...]:
    """Validate raw rule records, preserving their order.

    Raises ConfigurationError on the first malformed record.
    """
    if isinstance(raw, dict) and "rules" in raw:
        raw = raw["rules"]
    if not isinstance(raw, list):
        raise ConfigurationError(f"Rules must be a list, got {type(raw).__name__}")
    return tuple(_parse_rule(i, item) for i, item in enumerate(raw))


def load_rules_file(path: Union[str, Path]) -> tuple[PolicyRule, ...]:
    """Load a standalone rule file (.toml, .yaml/.yml or .json)."""
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        elif suffix in (".yaml", ".yml"):
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        elif suffix == ".json":
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported rule file type: {path.name}")
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot parse rule file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read rule file {path}: {e}") from e

    rules = parse_rules(raw)
    logger.debug("Loaded %d rules from %s", len(rules), path)
    return rules


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    rules_path: Optional[Union[str, Path]] = None,
    log_file: Optional[str] = None,
) -> GateSettings:
    """Resolve rules and gate options. A rules file overrides config rules."""
    config = get_config(config_path)
    gate = config.get("gate", {})
    if not isinstance(gate, dict):
        raise ConfigurationError("[gate] must be a table")

    rules = load_rules_file(rules_path) if rules_path else parse_rules(config.get("rules"))

    for key in ("marker_key", "ack_tool"):
        if not isinstance(gate.get(key), str) or not gate[key]:
            raise ConfigurationError(f"[gate] {key} must be a non-empty string")

    resolved_log = log_file if log_file is not None else gate.get("log_file")
    if resolved_log is not None and not isinstance(resolved_log, str):
        raise ConfigurationError("[gate] log_file must be a string")

    return GateSettings(
        rules=rules,
        log_file=resolved_log or None,
        marker_key=gate["marker_key"],
        ack_tool=gate["ack_tool"],
    )


def _toml_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_default_config() -> str:
    """Render the default configuration as TOML text."""
    gate = _DEFAULTS["gate"]
    lines = [
        "[gate]",
        f"log_file = {_toml_string(gate['log_file'])}",
        f"marker_key = {_toml_string(gate['marker_key'])}",
        f"ack_tool = {_toml_string(gate['ack_tool'])}",
        "",
        "# Rules are checked top to bottom. The first match wins.",
    ]
    for rule in DEFAULT_RULES:
        lines.append("")
        lines.append("[[rules]]")
        lines.append(f"pattern = {_toml_string(rule['pattern'])}")
        lines.append(f"category = {_toml_string(rule['category'])}")
        lines.append(f"label = {_toml_string(rule['label'])}")
        if rule.get("exclude"):
            items = ", ".join(_toml_string(e) for e in rule["exclude"])
            lines.append(f"exclude = [{items}]")
    return "\n".join(lines) + "\n"


def ensure_config(path: Optional[Union[str, Path]] = None) -> Path:
    """Create the default skillgate.toml if it doesn't exist."""
    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        return config_path

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(render_default_config())
    return config_path
