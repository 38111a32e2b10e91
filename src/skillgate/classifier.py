"""classifier.py — Map a target path to at most one policy rule.

Rules are tried in declaration order and the first match wins, even when a
later rule is narrower. Patterns use shell glob semantics where `*` also
matches `/`, so `*/app/models/*.rb` covers nested model directories.
"""

import logging
from fnmatch import fnmatchcase
from typing import Iterable, Optional

from .gate_types import PolicyRule

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Normalize a target path for matching.

    Backslashes become `/`. Relative paths are anchored with a leading `/`
    so that `app/models/user.rb` matches `*/app/models/*.rb` the same way
    `/repo/app/models/user.rb` does.
    """
    path = path.replace("\\", "/")
    if not path.startswith("/"):
        path = "/" + path
    return path


def match_rule(rule: PolicyRule, path: str) -> bool:
    """Check a single rule against an already normalized path."""
    if not fnmatchcase(path, rule.pattern):
        return False
    return not any(fnmatchcase(path, excluded) for excluded in rule.exclude)


def find_rule(target_path: Optional[str], rules: Iterable[PolicyRule]) -> Optional[PolicyRule]:
    """Return the first rule matching target_path, or None."""
    if not target_path:
        return None

    path = normalize_path(target_path)
    for rule in rules:
        if match_rule(rule, path):
            logger.debug("Path %s matched %s -> %s", target_path, rule.pattern, rule.category)
            return rule
    return None


def classify(target_path: Optional[str], rules: Iterable[PolicyRule]) -> Optional[str]:
    """Return the category of the first matching rule, or None.

    None means no policy applies and the action is unconditionally allowed.
    """
    rule = find_rule(target_path, rules)
    return rule.category if rule else None


class Classifier:
    """Immutable ordered rule set with a classify() lookup."""

    def __init__(self, rules: Iterable[PolicyRule]):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[PolicyRule, ...]:
        return self._rules

    def find_rule(self, target_path: Optional[str]) -> Optional[PolicyRule]:
        return find_rule(target_path, self._rules)

    def classify(self, target_path: Optional[str]) -> Optional[str]:
        return classify(target_path, self._rules)

    def __len__(self) -> int:
        return len(self._rules)
