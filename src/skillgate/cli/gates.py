"""Gate commands: check, hook, log."""

import sys

from . import format_output, handles_config_errors


@handles_config_errors
def cmd_check(args):
    """Dry-run a tool use against the gate. Nothing is logged."""
    from ..gate_types import ActionRequest
    from ..hook import build_gate
    from ..transcript import find_loaded_skills

    gate = build_gate(args.config, args.rules, log_file="")
    request = ActionRequest(
        kind=args.tool,
        target_path=args.file or "",
        ack_name=args.skill if args.tool == gate.ack_tool and args.skill else None,
        transcript_path=args.transcript,
    )
    decision = gate.check(request)

    if args.json:
        output = decision.to_hook_output()
        output["category"] = decision.category
        if args.explain:
            output["loaded_skills"] = find_loaded_skills(args.transcript, gate.marker_key)
        print(format_output(output, as_json=True))
    else:
        if decision.allowed:
            print(f"ALLOWED ({decision.category})" if decision.category else "ALLOWED")
        else:
            print(f"BLOCKED by rule: {decision.reason}")
            print(decision.remediation, end="")
        if args.explain:
            loaded = find_loaded_skills(args.transcript, gate.marker_key)
            print(f"Loaded skills: {', '.join(loaded) if loaded else '(none)'}")

    return 0 if decision.allowed else 1


def cmd_hook(args):
    """Run as a PreToolUse hook, reading the payload from stdin."""
    from ..hook import hook_main

    sys.exit(hook_main(args))


@handles_config_errors
def cmd_log(args):
    """Show recent decisions from the decision log."""
    from ..config import load_settings
    from ..decision_log import read_records

    log_file = args.file or load_settings(args.config).log_file
    if not log_file:
        print("Decision log is disabled.")
        return 0

    records = read_records(log_file, limit=args.limit)
    if args.json:
        print(format_output(records, as_json=True))
        return 0

    if not records:
        print(f"No decisions in {log_file}")
        return 0
    for r in records:
        target = r.get("target") or "-"
        category = r.get("category") or "-"
        print(f"[{r.get('timestamp', '?')}] {r['outcome'].upper():5} {r.get('kind', '')} {target} ({category})")
    return 0


def register(subparsers):
    """Register gate commands."""
    from ..gate_types import Tools
    from ..hook import add_hook_arguments

    p = subparsers.add_parser("check", help="Check if a tool use would be allowed")
    p.add_argument("--tool", default=Tools.EDIT, help="Tool name (default: Edit)")
    p.add_argument("--file", help="Target file path")
    p.add_argument("--skill", help="Skill name, when --tool is the skill tool")
    p.add_argument("--transcript", help="Session transcript (.jsonl)")
    p.add_argument("--config", help="Path to skillgate.toml")
    p.add_argument("--rules", help="Rule file overriding config rules")
    p.add_argument("--explain", action="store_true", help="List skills found in the transcript")
    p.add_argument("--json", action="store_true", help="JSON output")
    p.set_defaults(func=cmd_check)

    p = subparsers.add_parser("hook", help="Run as a PreToolUse hook (stdin JSON)")
    add_hook_arguments(p)
    p.set_defaults(func=cmd_hook)

    p = subparsers.add_parser("log", help="Show recent gate decisions")
    p.add_argument("-n", "--limit", type=int, default=20, help="Number of records")
    p.add_argument("--file", help="Decision log path (default: from config)")
    p.add_argument("--config", help="Path to skillgate.toml")
    p.add_argument("--json", action="store_true", help="JSON output")
    p.set_defaults(func=cmd_log)
