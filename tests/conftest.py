"""Pytest fixtures for skillgate tests."""

import json

import pytest

from skillgate.config import DEFAULT_RULES, parse_rules

CONTROLLER = "superpowers:rails-controller-conventions"
MODEL = "superpowers:rails-model-conventions"
VIEW = "superpowers:rails-view-conventions"


def skill_entry(skill: str) -> dict:
    """A transcript line recording a Skill tool call, in CC wrapper format."""
    return {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [
                {"type": "tool_use", "id": "tu_1", "name": "Skill", "input": {"skill": skill}},
            ],
        },
    }


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point SKILLGATE_CONFIG at a file that doesn't exist, so defaults apply."""
    monkeypatch.setenv("SKILLGATE_CONFIG", str(tmp_path / "no-such-config.toml"))
    monkeypatch.delenv("SKILLGATE_DEBUG", raising=False)


@pytest.fixture
def rails_rules():
    return parse_rules(DEFAULT_RULES)


@pytest.fixture
def write_transcript(tmp_path):
    """Write a JSONL transcript with the given skills loaded; return its path.

    compact=True writes `"skill":"x"` instead of `"skill": "x"`.
    """
    def _write(skills=(), compact=False, name="transcript.jsonl"):
        path = tmp_path / name
        separators = (",", ":") if compact else None
        with open(path, "w") as f:
            f.write(json.dumps({"role": "user", "content": "Add a comments endpoint"}, separators=separators) + "\n")
            for skill in skills:
                f.write(json.dumps(skill_entry(skill), separators=separators) + "\n")
        return str(path)
    return _write
