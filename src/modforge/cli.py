"""Command-line entry point for modforge.

Usage::

    modforge apply ./my-app --template template.json --modules auth,api
    modforge logs --list --failed
    modforge logs 3f2a9c0d1e4b
    modforge logs --clear --days 30
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from modforge.catalog.loader import load_template
from modforge.config import Config
from modforge.errors import CatalogError, ConfigError, LogStoreError
from modforge.installer import ModuleInstaller
from modforge.logs.store import InstructionLog, InstructionLogStore, LogStatus
from modforge.utils import (
    console,
    format_timestamp,
    print_error,
    print_info,
    print_plain,
    print_success,
    print_summary_table,
    truncate,
)

_STATUS_STYLE = {
    LogStatus.SUCCESS: ("green", "+"),
    LogStatus.SKIPPED: ("yellow", "o"),
    LogStatus.FAILED: ("red", "x"),
}


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------


def _split_names(raw: str) -> list[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def cmd_apply(args: argparse.Namespace, config: Config) -> int:
    """Resolve the requested modules and install them into an existing project."""
    project_root = Path(args.project_root)
    if not project_root.is_dir():
        print_error(f"Project directory not found: {project_root}")
        return 1

    try:
        template = load_template(args.template)
    except CatalogError as exc:
        print_error(str(exc))
        return 1

    if args.keep_modules_dir:
        config.cleanup_modules_dir = False
    if args.verbose:
        config.verbose = True

    project_name = args.project_name or project_root.resolve().name
    print_plain(f"Selected template: {template.name}")
    if template.description:
        print_plain(f"Description: {template.description}")

    installer = ModuleInstaller(config)
    selected = _split_names(args.modules)
    if not selected:
        print_plain("No modules selected")
        return 0

    resolution = installer.resolve(template, selected)
    if resolution.is_empty:
        print_plain("Nothing to install")
        return 0

    report = installer.install(project_root, project_name, resolution.modules)
    print_summary_table(
        {
            "Project": project_name,
            "Modules": ", ".join(resolution.names),
            "Executed": str(report.executed),
            "Skipped": str(report.skipped),
            "Failed": str(report.failed),
            "Modules not loaded": ", ".join(report.unloaded_modules) or "none",
            "Logs": str(installer.log_store.log_dir),
        },
        title="Install Summary",
    )
    return 0


# ---------------------------------------------------------------------------
# logs
# ---------------------------------------------------------------------------


def render_log(log: InstructionLog) -> None:
    """Print every recorded detail of a single instruction log."""
    color, _ = _STATUS_STYLE[log.status]
    snapshot = log.instruction_snapshot

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Project", escape(log.project_name))
    table.add_row("Module", escape(log.module_name))
    table.add_row("Instruction #", str(log.instruction_index + 1))
    table.add_row("Timestamp", format_timestamp(log.timestamp))
    table.add_row("Status", f"[{color}]{log.status.value.upper()}[/{color}]")
    table.add_row("Action", escape(str(snapshot.get("action", ""))))
    table.add_row("Target Path", escape(str(snapshot.get("path", ""))))
    if snapshot.get("content"):
        table.add_row("Content", escape(truncate(str(snapshot["content"]), 100)))
    if snapshot.get("pattern"):
        table.add_row("Pattern", escape(str(snapshot["pattern"])))
    if "replacement" in snapshot:
        table.add_row("Replacement", escape(str(snapshot["replacement"])))
    if snapshot.get("componentName"):
        table.add_row("Component", escape(str(snapshot["componentName"])))
    if snapshot.get("propName"):
        prop = str(snapshot["propName"])
        if snapshot.get("propValue"):
            prop += f"={{{snapshot['propValue']}}}"
        table.add_row("Prop", escape(prop))
    for position, condition in enumerate(log.condition_results or [], start=1):
        mark = "[green]+[/green]" if condition.passed else "[red]x[/red]"
        table.add_row(f"Condition #{position}", f"{mark} {escape(condition.reason)}")
    if log.error:
        table.add_row("Error", f"[red]{escape(log.error)}[/red]")

    console.print(Panel(table, title=f"[bold]Instruction Log: {log.hash}[/bold]", border_style=color))


def render_log_list(logs: list[InstructionLog], limit: int) -> None:
    """Print a table of the newest *limit* logs."""
    table = Table(title=f"Found {len(logs)} log(s)", show_header=True, header_style="bold cyan")
    table.add_column("", no_wrap=True)
    table.add_column("Hash", no_wrap=True)
    table.add_column("Instruction")
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Error", style="red")

    for log in logs[:limit]:
        color, symbol = _STATUS_STYLE[log.status]
        table.add_row(
            f"[{color}]{symbol}[/{color}]",
            log.hash,
            escape(f"{log.project_name} > {log.module_name} > #{log.instruction_index + 1}"),
            format_timestamp(log.timestamp),
            escape(truncate(log.error, 80)) if log.error else "",
        )
    console.print(table)

    if len(logs) > limit:
        print_plain(f"... and {len(logs) - limit} more logs")
    print_plain('Use "modforge logs <hash>" to view details')


def cmd_logs(args: argparse.Namespace, config: Config) -> int:
    """View, list or prune instruction logs."""
    store = InstructionLogStore(config.log_dir)

    if args.clear:
        days = args.days if args.days is not None else config.log_retention_days
        print_info("Clearing old logs...")
        cleared = store.prune(days)
        print_success(f"Cleared {cleared} old log(s)")
        return 0

    if args.hash:
        try:
            log = store.get(args.hash)
        except LogStoreError as exc:
            print_error(str(exc))
            return 1
        if log is None:
            print_error(f"Log not found: {args.hash}")
            return 1
        render_log(log)
        return 0

    logs = store.list_logs(
        status=LogStatus.FAILED if args.failed else None,
        project=args.project,
        module=args.module,
    )
    if not logs:
        print_info("No logs found")
        return 0
    render_log_list(logs, config.list_limit)
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Create the ``modforge`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="modforge",
        description="modforge -- install optional template modules into generated projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  modforge apply ./my-app --template template.json --modules auth,api\n"
            "  modforge logs --list --failed\n"
            "  modforge logs --clear\n"
        ),
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Instruction log directory (default: ~/.modforge-logs or $MODFORGE_LOG_DIR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="Install modules into a generated project")
    apply_parser.add_argument("project_root", help="Root directory of the generated project")
    apply_parser.add_argument(
        "--template", "-t", required=True, help="Template definition file (.json, .yaml, .yml)"
    )
    apply_parser.add_argument(
        "--modules", "-m", default="", help="Comma-separated module names to install"
    )
    apply_parser.add_argument(
        "--project-name", default=None, help="Project name recorded in logs (default: directory name)"
    )
    apply_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show every condition evaluation"
    )
    apply_parser.add_argument(
        "--keep-modules-dir", action="store_true", help="Do not remove the module catalog directory"
    )
    apply_parser.set_defaults(handler=cmd_apply)

    logs_parser = subparsers.add_parser("logs", help="View instruction logs")
    logs_parser.add_argument("hash", nargs="?", default=None, help="Instruction hash to view")
    logs_parser.add_argument("--list", action="store_true", help="List recent logs")
    logs_parser.add_argument("--failed", action="store_true", help="Show only failed instructions")
    logs_parser.add_argument("--project", default=None, help="Filter by project name")
    logs_parser.add_argument("--module", default=None, help="Filter by module name")
    logs_parser.add_argument("--clear", action="store_true", help="Delete old logs")
    logs_parser.add_argument(
        "--days", type=int, default=None, help="Age threshold for --clear (default: 30)"
    )
    logs_parser.set_defaults(handler=cmd_logs)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``modforge`` and ``python -m modforge``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
    except ConfigError as exc:
        print_error(f"Invalid configuration: {exc}")
        return 1
    if args.log_dir:
        config.log_dir = Path(args.log_dir).expanduser()

    return args.handler(args, config)
