"""
Command-line interface for the style scanner.

Provides a thin CLI around the engine for checking code, applying
fixes, creating a configuration file and listing rules.
"""

import argparse
import logging
import os
import sys
from typing import Optional, List

from rich.console import Console
from rich.table import Table
from rich import box

from stylescanner import __version__
from stylescanner.config import LintConfig, load_lint_config, create_default_config, RuleConfig
from stylescanner.core.engine import StyleEngine
from stylescanner.core.rules import registry
from stylescanner.formatters import get_formatter


logger = logging.getLogger(__name__)

CONFIG_FILE = ".stylescanner.yaml"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stylescanner",
        description="Rule-based style linter and formatter for Swift-like source code.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stylescanner check ./Sources                    # Check a directory
  stylescanner check View.swift                   # Check a single file
  stylescanner check . --format json              # Output as JSON
  stylescanner check . --format sarif -o out      # SARIF output to file
  stylescanner check . --severity warning         # Only warnings and errors
  stylescanner fix ./Sources --dry-run            # Show fixes without applying
  stylescanner init                               # Create config file
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Check command
    check_parser = subparsers.add_parser("check", help="Check code for style issues")
    _add_common_arguments(check_parser)
    check_parser.add_argument(
        "-f", "--format",
        choices=["text", "json", "sarif"],
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    check_parser.add_argument(
        "-s", "--severity",
        choices=["error", "warning", "info"],
        help="Minimum severity to report (default: info)",
    )
    check_parser.add_argument(
        "--show-suppressed",
        action="store_true",
        help="Show suppressed findings",
    )
    check_parser.add_argument(
        "--fix",
        action="store_true",
        help="Apply automatic fixes and report what remains",
    )

    # Fix command
    fix_parser = subparsers.add_parser("fix", help="Apply automatic fixes")
    _add_common_arguments(fix_parser)
    fix_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show fixes without applying them",
    )
    fix_parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Don't create backup files",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    # List-rules command
    rules_parser = subparsers.add_parser("list-rules", help="List available rules")
    rules_parser.add_argument(
        "--fixable",
        action="store_true",
        help="Only list rules with automatic fixes",
    )

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Target file or directory (default: current directory)",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--include",
        action="append",
        help="Include patterns (can be specified multiple times)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        help="Exclude patterns (can be specified multiple times)",
    )
    parser.add_argument(
        "--enable",
        action="append",
        metavar="RULE",
        help="Enable a rule (can be specified multiple times)",
    )
    parser.add_argument(
        "--disable",
        action="append",
        metavar="RULE",
        help="Disable a rule (can be specified multiple times)",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        help="Number of parallel file workers (default: 4)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output and debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )


def configure_logging(verbose: bool = False):
    """Send log records to stderr; ``verbose`` enables debug output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_config(args: argparse.Namespace) -> LintConfig:
    """Load the configuration and apply command-line overrides."""
    config = load_lint_config(args.config, start_dir=args.target)

    if args.include:
        config.include_patterns = args.include
    if args.exclude:
        config.exclude_patterns = config.exclude_patterns + args.exclude
    if args.jobs is not None:
        config.max_workers = args.jobs
    for rule_id in args.enable or []:
        config.rules.setdefault(rule_id, RuleConfig()).enabled = True
    for rule_id in args.disable or []:
        config.rules.setdefault(rule_id, RuleConfig()).enabled = False

    if getattr(args, "severity", None):
        config.severity_threshold = args.severity
    if getattr(args, "format", None):
        config.output.format = args.format
    if getattr(args, "output", None):
        config.output.output_file = args.output
    if getattr(args, "show_suppressed", False):
        config.output.show_suppressed = True
    if getattr(args, "fix", False):
        config.auto_fix = True
    if args.verbose:
        config.output.verbose = True
    if args.no_color:
        config.output.color = False

    return config


def _make_formatter(config: LintConfig):
    output = config.output
    if output.format in ("text", "cli"):
        return get_formatter(
            output.format,
            use_color=output.color and not output.output_file,
            verbose=output.verbose,
            include_suppressed=output.show_suppressed,
        )
    return get_formatter(output.format, include_suppressed=output.show_suppressed)


def _emit(text: str, output_file: Optional[str], announce: bool):
    if output_file:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(text)
        if announce:
            print(f"Results written to {output_file}")
    else:
        print(text, end="" if text.endswith("\n") else "\n")


def cmd_check(args: argparse.Namespace) -> int:
    """Execute the check command."""
    config = build_config(args)
    engine = StyleEngine(config)

    logger.debug("Checking %s", os.path.abspath(args.target))
    if config.auto_fix:
        report, _ = engine.fix(args.target)
    else:
        report = engine.check(args.target)

    output = _make_formatter(config).format_result(report)
    _emit(output, config.output.output_file, announce=config.output.format == "text")

    # Return exit code based on findings
    return 1 if report.error_count > 0 else 0


def cmd_fix(args: argparse.Namespace) -> int:
    """Execute the fix command."""
    config = build_config(args)
    config.dry_run = config.dry_run or args.dry_run
    if args.no_backup:
        config.backup = False

    engine = StyleEngine(config)
    report, results = engine.fix(args.target)

    if config.dry_run or config.output.verbose:
        print(engine.remediation.format_remediation_report(results))
    if config.dry_run:
        print("\n[DRY RUN] No files were modified.")
    else:
        changed = sum(1 for r in results if r.written)
        print(f"Applied {report.fixes_applied} fixes in {changed} files; {report.fixes_skipped} skipped.")

    print(_make_formatter(config).format_result(report), end="")

    return 1 if report.error_count > 0 else 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    if os.path.exists(CONFIG_FILE) and not args.force:
        print(f"Configuration file {CONFIG_FILE} already exists.")
        print("Use --force to overwrite.")
        return 1

    content = create_default_config()

    with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
        f.write(content)

    print(f"Created configuration file: {CONFIG_FILE}")
    return 0


def cmd_list_rules(args: argparse.Namespace) -> int:
    """Execute the list-rules command."""
    rules = registry.all_metadata()
    if args.fixable:
        rules = [meta for meta in rules if meta.auto_fixable]

    table = Table(
        title="Available Rules",
        show_header=True,
        header_style="bold magenta",
        box=box.SIMPLE,
    )
    table.add_column("", width=1)
    table.add_column("Rule", style="cyan")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Fix", justify="center")
    table.add_column("Description")

    for meta in rules:
        status = "✓" if meta.enabled_by_default else "○"
        description = meta.description + (" (advisory)" if meta.advisory else "")
        table.add_row(
            status,
            meta.rule_id,
            meta.severity.value,
            meta.category.value,
            "yes" if meta.auto_fixable else "",
            description,
        )

    console = Console()
    console.print(table)
    console.print(f"Total: {len(rules)} rules")
    console.print("✓ = enabled by default, ○ = disabled by default")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(getattr(args, "verbose", False))

    try:
        if args.command == "check":
            return cmd_check(args)
        elif args.command == "fix":
            return cmd_fix(args)
        elif args.command == "init":
            return cmd_init(args)
        elif args.command == "list-rules":
            return cmd_list_rules(args)
        else:
            parser.print_help()
            return 0

    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
