"""Rule commands: list, init."""

from . import format_output, handles_config_errors


@handles_config_errors
def cmd_rules_list(args):
    """Show the active rules in evaluation order."""
    from ..config import load_settings

    settings = load_settings(args.config, args.rules)
    if args.json:
        print(format_output([r.to_dict() for r in settings.rules], as_json=True))
        return 0

    print(f"{len(settings.rules)} rules (first match wins)")
    print("=" * 40)
    for i, rule in enumerate(settings.rules, 1):
        line = f"{i:2}. {rule.pattern} -> {rule.category} [{rule.display_label}]"
        if rule.exclude:
            line += f" (except {', '.join(rule.exclude)})"
        print(line)
    return 0


def cmd_rules_init(args):
    """Write the default config file if missing."""
    from ..config import ensure_config

    path = ensure_config(args.config)
    print(f"Config: {path}")
    return 0


def register(subparsers):
    """Register rule commands."""
    rules_parser = subparsers.add_parser("rules", help="Inspect and initialise rules")
    sub = rules_parser.add_subparsers(dest="rules_command")

    p = sub.add_parser("list", help="List active rules")
    p.add_argument("--config", help="Path to skillgate.toml")
    p.add_argument("--rules", help="Rule file overriding config rules")
    p.add_argument("--json", action="store_true", help="JSON output")
    p.set_defaults(func=cmd_rules_list)

    p = sub.add_parser("init", help="Create default skillgate.toml")
    p.add_argument("--config", help="Where to write (default: ~/.skillgate/config/skillgate.toml)")
    p.set_defaults(func=cmd_rules_init)
