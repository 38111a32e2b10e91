"""skillgate - Deny edits until the matching skill has been loaded."""

__version__ = "0.1.0"

from .gate_types import ActionRequest, Decision, Outcome, PolicyRule, Tools
from .errors import ConfigurationError, SkillgateError
from .classifier import Classifier, classify
from .transcript import InMemoryAuditTrail, TranscriptAuditTrail
from .decision_log import DecisionLog, MemoryDecisionLog, NullDecisionLog
from .engine import PolicyGate, decide, format_remediation

__all__ = [
    "ActionRequest",
    "Classifier",
    "ConfigurationError",
    "Decision",
    "DecisionLog",
    "InMemoryAuditTrail",
    "MemoryDecisionLog",
    "NullDecisionLog",
    "Outcome",
    "PolicyGate",
    "PolicyRule",
    "SkillgateError",
    "Tools",
    "TranscriptAuditTrail",
    "classify",
    "decide",
    "format_remediation",
]
