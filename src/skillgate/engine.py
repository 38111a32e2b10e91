"""engine.py — Core gate logic.

Called by the hook. Reads the transcript. Returns allow/deny decisions.

Order of checks:
  1. The action loads a skill       -> allow (it is satisfying a policy)
  2. No target path                 -> allow (not a file action)
  3. Path matches no rule           -> allow
  4. Rule's skill already loaded    -> allow
  5. Otherwise                      -> deny with remediation

Every call writes exactly one decision record, whatever the outcome.
"""

import logging
from typing import Iterable, Optional

from .classifier import find_rule
from .decision_log import NullDecisionLog, now_timestamp
from .gate_types import ActionRequest, Decision, DecisionRecord, Outcome, PolicyRule, Tools
from .transcript import DEFAULT_MARKER_KEY, AuditTrail, TranscriptAuditTrail

logger = logging.getLogger(__name__)


def format_remediation(category: str, label: Optional[str] = None, ack_tool: str = Tools.SKILL) -> str:
    """Build the deny message shown to the caller.

    The caller is told which skill to load and to stop and re-read before
    retrying, not to retry blindly.
    """
    label = label or category
    return (
        f"BLOCKED: You must load the {category} skill before editing {label} files.\n"
        "\n"
        "STOP. Do not immediately retry your edit.\n"
        f'1. Load the skill: {ack_tool}(skill: "{category}")\n'
        "2. Read the conventions carefully\n"
        "3. Reconsider whether your planned edit follows them\n"
        "4. Adjust your approach if needed, then edit\n"
    )


def _evaluate(
    request: ActionRequest,
    rules: Iterable[PolicyRule],
    audit_trail: AuditTrail,
    ack_tool: str,
) -> Decision:
    if request.ack_name:
        logger.debug("%s loads %s -> allow", request.kind, request.ack_name)
        return Decision(outcome=Outcome.ALLOW)

    if not request.target_path:
        return Decision(outcome=Outcome.ALLOW)

    rule = find_rule(request.target_path, rules)
    if rule is None:
        return Decision(outcome=Outcome.ALLOW)

    label = rule.display_label
    try:
        loaded = audit_trail.has_occurred(rule.category)
    except Exception as e:
        # Fail closed
        logger.warning("Audit trail lookup failed for %s: %s", rule.category, e)
        loaded = False

    if loaded:
        return Decision(outcome=Outcome.ALLOW, category=rule.category, label=label)

    return Decision(
        outcome=Outcome.DENY,
        reason=rule.category,
        remediation=format_remediation(rule.category, label, ack_tool),
        category=rule.category,
        label=label,
    )


def _record(decision_log, request: ActionRequest, decision: Decision) -> None:
    try:
        decision_log.record(DecisionRecord(
            timestamp=getattr(decision_log, "clock", now_timestamp)(),
            kind=request.kind,
            target=request.target_path,
            category=decision.category,
            outcome=decision.outcome.value,
            ack=request.ack_name,
        ))
    except Exception as e:
        logger.debug("Decision log write failed: %s", e)


def decide(
    request: ActionRequest,
    rules: Iterable[PolicyRule],
    audit_trail: AuditTrail,
    decision_log=None,
    ack_tool: str = Tools.SKILL,
) -> Decision:
    """Decide whether an action may proceed.

    Args:
        request: The attempted action
        rules: Ordered rule set; first match wins
        audit_trail: Read-only lookup of loaded skills
        decision_log: Sink for the decision record (optional)
        ack_tool: Tool name quoted in the remediation message

    Returns:
        Decision. Never raises for audit trail or log failures.
    """
    decision = _evaluate(request, rules, audit_trail, ack_tool)
    _record(decision_log or NullDecisionLog(), request, decision)
    return decision


class PolicyGate:
    """Rule set + decision log, with the audit trail resolved per request.

    The rule set is frozen at construction. Each check() builds a fresh
    TranscriptAuditTrail from the request's transcript path unless an
    explicit trail is passed.
    """

    def __init__(
        self,
        rules: Iterable[PolicyRule],
        decision_log=None,
        marker_key: str = DEFAULT_MARKER_KEY,
        ack_tool: str = Tools.SKILL,
    ):
        self.rules = tuple(rules)
        self.decision_log = decision_log or NullDecisionLog()
        self.marker_key = marker_key
        self.ack_tool = ack_tool

    def check(self, request: ActionRequest, audit_trail: Optional[AuditTrail] = None) -> Decision:
        if audit_trail is None:
            audit_trail = TranscriptAuditTrail(request.transcript_path, self.marker_key)
        return decide(
            request,
            self.rules,
            audit_trail,
            decision_log=self.decision_log,
            ack_tool=self.ack_tool,
        )
