"""Shared gate types.

Defines the contract between the classifier, the decision engine and the
hook entry point. Every module imports its request/decision shapes from here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Tools:
    """Canonical Claude Code tool names seen by the gate."""
    EDIT = "Edit"
    WRITE = "Write"
    MULTI_EDIT = "MultiEdit"
    READ = "Read"
    SKILL = "Skill"


class Outcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class PolicyRule:
    """One (pattern, category) entry of the ordered rule set.

    `pattern` is a bash-style glob where `*` also crosses `/`. `exclude`
    patterns veto a match. `label` names the file type in deny messages.
    """
    pattern: str
    category: str
    label: Optional[str] = None
    exclude: tuple[str, ...] = ()

    @property
    def display_label(self) -> str:
        return self.label or self.category

    def to_dict(self) -> dict:
        data = {"pattern": self.pattern, "category": self.category}
        if self.label:
            data["label"] = self.label
        if self.exclude:
            data["exclude"] = list(self.exclude)
        return data


@dataclass(frozen=True)
class ActionRequest:
    """A single attempted action, created per hook call."""
    kind: str
    target_path: str = ""
    ack_name: Optional[str] = None
    transcript_path: Optional[str] = None

    @classmethod
    def from_hook_input(cls, payload: dict, ack_tool: str = Tools.SKILL) -> "ActionRequest":
        """Build a request from Claude Code PreToolUse hook JSON.

        Missing or non-string fields collapse to empty values. `ack_name` is
        only taken when the tool itself is the acknowledgment tool.
        """
        if not isinstance(payload, dict):
            payload = {}
        tool_input = payload.get("tool_input")
        if not isinstance(tool_input, dict):
            tool_input = {}

        kind = _as_str(payload.get("tool_name"))
        skill = _as_str(tool_input.get("skill"))
        transcript = _as_str(payload.get("transcript_path"))

        return cls(
            kind=kind,
            target_path=_as_str(tool_input.get("file_path")),
            ack_name=skill if kind == ack_tool and skill else None,
            transcript_path=transcript or None,
        )


@dataclass(frozen=True)
class Decision:
    """Outcome of a gate check.

    `reason` is the denying category and `remediation` the instructions shown
    to the caller; both are None on allow. `category` records what matched,
    if anything, regardless of outcome.
    """
    outcome: Outcome
    reason: Optional[str] = None
    remediation: Optional[str] = None
    category: Optional[str] = None
    label: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW

    def to_hook_output(self) -> dict:
        if self.allowed:
            return {"decision": "allow"}
        return {"decision": "block", "reason": self.remediation or self.reason}


@dataclass(frozen=True)
class DecisionRecord:
    """One line of the decision log."""
    timestamp: str
    kind: str
    target: str
    category: Optional[str]
    outcome: str
    ack: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "timestamp": self.timestamp,
            "kind": self.kind,
            "target": self.target,
            "category": self.category,
            "outcome": self.outcome,
        }
        if self.ack:
            data["ack"] = self.ack
        return data


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""
