"""Command-line interface for skillgate."""

import argparse
import json
import sys
from functools import wraps


def format_output(data, as_json: bool = False) -> str:
    """Render command output.

    `data` is a check result dict, a list of rule or decision records
    (as returned by read_records), or plain text. With as_json the whole
    value is dumped; otherwise a dict becomes "key: value" lines and a
    list becomes one compact JSON object per line.
    """
    if as_json:
        return json.dumps(data, indent=2, default=str)
    if isinstance(data, dict):
        return "\n".join(f"{k}: {v}" for k, v in data.items())
    if isinstance(data, list):
        return "\n".join(json.dumps(item, default=str) for item in data)
    return str(data)


def handles_config_errors(func):
    """Decorator that turns ConfigurationError into exit status 1."""
    @wraps(func)
    def wrapper(args):
        from ..errors import ConfigurationError
        try:
            return func(args)
        except ConfigurationError as e:
            print(f"skillgate: configuration error: {e}", file=sys.stderr)
            sys.exit(1)
    return wrapper


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="skillgate - Deny edits until the matching skill is loaded",
        prog="skillgate",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from . import gates, rules

    gates.register(subparsers)
    rules.register(subparsers)

    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        sys.exit(1)

    from ..hook import configure_logging
    configure_logging(getattr(args, "verbose", False))

    result = args.func(args)
    if isinstance(result, int) and result:
        sys.exit(result)


if __name__ == "__main__":
    main()
