"""
Verdict command-line interface.

Commands:
    check RULES FACTS [--all]      Evaluate rules, print results as JSON
    explain RULES FACTS [--json]   Show each rule's result tree
    run RULES FACTS [--dry-run]    Evaluate and deliver callback notifications

RULES is a YAML or JSON rules file. FACTS is a JSON file, or "-" for stdin.
Pass -v/--verbose before the command for debug logging on stderr.

Exit codes:
    0  at least one rule satisfied (check/run) or explanation printed
    1  no rule satisfied
    2  malformed input or failed delivery
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from . import __version__
from .core.logging import get_logger, set_log_level
from .delivery import RecordingClient
from .engine import RulesEngine
from .errors import DeliveryError, VerdictError
from .explain import explain_rule_results, format_explanation
from .facts import as_fact_source
from .serialization import load_rules, rule_result_to_dict

logger = get_logger(__name__)

EXIT_SATISFIED = 0
EXIT_NOT_SATISFIED = 1
EXIT_ERROR = 2


def output_json(data: Any, indent: int = 2) -> None:
    """Print JSON output to stdout."""
    print(json.dumps(data, indent=indent))


def output_error(message: str, **kwargs: Any) -> None:
    """Print an error JSON document to stdout."""
    error_data = {
        "error": kwargs.pop("error_type", "error"),
        "message": message,
    }
    error_data.update(kwargs)
    output_json(error_data)


def _read_facts(source: str) -> Any:
    if source == "-":
        text = sys.stdin.read()
    else:
        with open(source, encoding="utf-8") as f:
            text = f.read()
    return as_fact_source(text)


def _build_engine(args: argparse.Namespace, client: Any = None) -> RulesEngine:
    rules = load_rules(args.rules)
    logger.debug("Loaded %d rule(s) from %s", len(rules), args.rules)
    return RulesEngine(rules, client=client)


# =============================================================================
# Commands
# =============================================================================


def cmd_check(args: argparse.Namespace) -> int:
    """Evaluate rules without delivering anything."""
    engine = _build_engine(args)
    results = engine.check(_read_facts(args.facts))
    satisfied = [r for r in results if r.satisfied]
    shown = results if args.all else satisfied

    output_json(
        {
            "rules": len(results),
            "satisfied": len(satisfied),
            "results": [rule_result_to_dict(r) for r in shown],
        }
    )
    return EXIT_SATISFIED if satisfied else EXIT_NOT_SATISFIED


def cmd_explain(args: argparse.Namespace) -> int:
    """Explain every rule's result tree."""
    engine = _build_engine(args)
    results = engine.check(_read_facts(args.facts))

    if args.json:
        output_json(
            [
                {"name": r.rule.label if r.rule else None, **format_explanation(r.condition_result)}
                for r in results
            ]
        )
    else:
        print(explain_rule_results(results))
    return EXIT_SATISFIED


def cmd_run(args: argparse.Namespace) -> int:
    """Evaluate rules and deliver satisfied callback notifications."""
    recorder = RecordingClient() if args.dry_run else None
    engine = _build_engine(args, client=recorder)
    results = engine.run_sync(_read_facts(args.facts))

    data: dict[str, Any] = {
        "satisfied": len(results),
        "results": [rule_result_to_dict(r) for r in results],
    }
    if recorder is not None:
        data["deliveries"] = [{"url": url, "body": body} for url, body in recorder.sent]
    output_json(data)
    return EXIT_SATISFIED if results else EXIT_NOT_SATISFIED


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="verdict",
        description="Evaluate rule trees against facts and dispatch notifications",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_inputs(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("rules", help="Rules file (YAML or JSON)")
        sub.add_argument("facts", help="Facts JSON file, or - for stdin")

    check_parser = subparsers.add_parser("check", help="Evaluate rules against facts")
    add_inputs(check_parser)
    check_parser.add_argument(
        "--all", action="store_true", help="Include rules that were not satisfied"
    )
    check_parser.set_defaults(func=cmd_check)

    explain_parser = subparsers.add_parser("explain", help="Explain each rule's decision")
    add_inputs(explain_parser)
    explain_parser.add_argument("--json", action="store_true", help="Output JSON")
    explain_parser.set_defaults(func=cmd_explain)

    run_parser = subparsers.add_parser("run", help="Evaluate rules and deliver notifications")
    add_inputs(run_parser)
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Record deliveries instead of sending them",
    )
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_ERROR

    if args.verbose:
        set_log_level(logging.DEBUG)

    try:
        return args.func(args)
    except DeliveryError as e:
        output_error(str(e), error_type="delivery_error", url=e.url)
        return EXIT_ERROR
    except VerdictError as e:
        output_error(str(e), error_type="invalid_input")
        return EXIT_ERROR
    except OSError as e:
        output_error(str(e), error_type="io_error")
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
