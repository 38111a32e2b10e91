"""hook.py — PreToolUse hook entry point.

Claude Code pipes the hook payload to stdin. Exit codes:
    0  allow
    2  deny (remediation on stderr, shown to the model)
    2  also on a configuration error, so a broken rule set blocks edits
       instead of silently disabling every policy

Usage: python -m skillgate.hook [--config PATH] [--rules PATH] [--log-file PATH]
"""

import argparse
import json
import logging
import os
import sys
from typing import Optional, TextIO

from .config import load_settings
from .decision_log import DecisionLog, NullDecisionLog
from .engine import PolicyGate
from .errors import ConfigurationError
from .gate_types import ActionRequest

logger = logging.getLogger(__name__)

EXIT_ALLOW = 0
EXIT_DENY = 2


def configure_logging(verbose: bool = False) -> None:
    debug = verbose or os.environ.get("SKILLGATE_DEBUG") == "1"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_hook_input(stream: TextIO) -> dict:
    """Parse hook JSON. Anything unparseable is treated as an empty payload."""
    raw = stream.read().strip()
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Hook input is not valid JSON: %s", e)
        return {}
    if not isinstance(payload, dict):
        logger.warning("Hook input is not a JSON object")
        return {}
    return payload


def build_gate(
    config_path: Optional[str] = None,
    rules_path: Optional[str] = None,
    log_file: Optional[str] = None,
) -> PolicyGate:
    """Build a gate from config. Raises ConfigurationError."""
    settings = load_settings(config_path, rules_path, log_file)
    decision_log = DecisionLog(settings.log_file) if settings.log_file else NullDecisionLog()
    return PolicyGate(
        settings.rules,
        decision_log=decision_log,
        marker_key=settings.marker_key,
        ack_tool=settings.ack_tool,
    )


def run_hook(gate: PolicyGate, stdin: TextIO, stderr: TextIO) -> int:
    """Run one hook invocation and return the process exit code."""
    payload = read_hook_input(stdin)
    request = ActionRequest.from_hook_input(payload, gate.ack_tool)
    decision = gate.check(request)

    if decision.allowed:
        return EXIT_ALLOW

    stderr.write(decision.remediation or f"BLOCKED: {decision.reason}\n")
    stderr.flush()
    return EXIT_DENY


def add_hook_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to skillgate.toml")
    parser.add_argument("--rules", help="Rule file (.toml, .yaml, .json); overrides config rules")
    parser.add_argument("--log-file", help="Decision log path; empty string disables it")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")


def hook_main(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    try:
        gate = build_gate(args.config, args.rules, args.log_file)
    except ConfigurationError as e:
        print(f"skillgate: configuration error: {e}", file=sys.stderr)
        return EXIT_DENY
    return run_hook(gate, sys.stdin, sys.stderr)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point when called from hooks: python -m skillgate.hook"""
    parser = argparse.ArgumentParser(prog="skillgate-hook", description="Skill-loading gate for PreToolUse")
    add_hook_arguments(parser)
    args = parser.parse_args(argv)
    sys.exit(hook_main(args))


if __name__ == "__main__":
    main()
