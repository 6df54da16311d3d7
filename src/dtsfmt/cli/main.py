#!/usr/bin/env python3
"""
DTSFMT CLI - Command Line Interface
-----------------------------------
Two commands:

    dtsfmt format PATH   re-indent and align device-tree sources
    dtsfmt lint PATH     report lines over the maximum length

Settings come from the nearest .dtsfmt.yaml, then from flags.

Author: dtsfmt Team
Date: 2026-10-18
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    BarColumn,
    TaskProgressColumn
)

from dtsfmt.cli.formatter import ReportFormatter, console
from dtsfmt.config.settings import ConfigError, Settings, find_config, load_settings
from dtsfmt.core.engine import FormatEngine

logger = logging.getLogger("dtsfmt.cli")

__version__ = "1.0.0"


class DtsFmtCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    Provides progress feedback, write confirmation and diffs.
    """

    def __init__(self, output: Optional[Console] = None):
        self.console = output or console
        self.report = ReportFormatter(self.console)
        self.parser = argparse.ArgumentParser(
            prog="dtsfmt",
            description="dtsfmt - Device Tree Source formatter and line-length checker",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _add_settings_args(self, parser: argparse.ArgumentParser):
        parser.add_argument("path", help="Path to a device-tree file or directory")
        parser.add_argument("--config", help="Settings file (default: nearest .dtsfmt.yaml)")
        parser.add_argument("--ext", action="append", help="File extension filter, repeatable")
        style = parser.add_mutually_exclusive_group()
        style.add_argument("--tabs", action="store_true", help="Indent with tabs")
        style.add_argument("--spaces", type=int, metavar="N", help="Indent with N spaces")
        parser.add_argument("--tab-width", type=int, help="Tab stop width")
        parser.add_argument("--max-line-length", type=int, help="Maximum line length")
        parser.add_argument("--exclude-comments", action="store_true",
                            help="Do not count comments toward line length")
        parser.add_argument("--no-warnings", action="store_true", help="Disable line-length warnings")
        parser.add_argument("--verbose", action="store_true", help="Debug logging")

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-v", "--version", action="version", version=f"dtsfmt v{__version__}")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        format_parser = subparsers.add_parser("format", help="Format device-tree sources")
        self._add_settings_args(format_parser)
        format_parser.add_argument("--check", action="store_true",
                                   help="Exit with 1 if any file would change; write nothing")
        format_parser.add_argument("--diff", action="store_true", help="Show a unified diff per file")
        format_parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        format_parser.add_argument("-y", "--yes", action="store_true", help="Write without asking")

        lint_parser = subparsers.add_parser("lint", help="Report over-long lines")
        self._add_settings_args(lint_parser)
        lint_parser.add_argument("--formatted", action="store_true",
                                 help="Analyse the formatted text instead of the file as is")

    def print_header(self, subtitle: str):
        self.console.print(Panel.fit(
            f"[bold cyan]dtsfmt v{__version__}[/bold cyan]\n"
            "══════════════════════════════════════════════════",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _configure_logging(self, verbose: bool):
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=self.console, show_path=False)],
            force=True,
        )

    def resolve_settings(self, args: argparse.Namespace) -> Settings:
        """File settings with command-line overrides applied."""
        config_path = Path(args.config) if args.config else find_config(args.path)
        settings = load_settings(config_path)

        use_tabs = None
        tab_width = args.tab_width
        if args.tabs:
            use_tabs = True
        elif args.spaces is not None:
            use_tabs = False
            tab_width = args.spaces

        return settings.merged(
            use_tabs=use_tabs,
            tab_width=tab_width,
            max_line_length=args.max_line_length,
            include_comments_in_length=False if args.exclude_comments else None,
            warnings=False if args.no_warnings else None,
        )

    def _confirm_action(self, target_count: int, args: argparse.Namespace) -> bool:
        """Safety gate before files are rewritten."""
        if args.dry_run or args.check or args.yes:
            return True

        if target_count == 1:
            choice = self.console.input("\n[bold yellow]Apply formatting to this file? (y/N): [/bold yellow]")
            return choice.strip().lower() == 'y'

        self.console.print(Panel(
            f"[bold red]BATCH MODIFICATION[/bold red]\n\n"
            f"Target Path: [white]{args.path}[/white]\n"
            f"File Count:  [bold cyan]{target_count} files[/bold cyan]\n",
            expand=False, border_style="red"
        ))
        return self.console.input("[bold yellow]Type 'CONFIRM' to write changes: [/bold yellow]") == "CONFIRM"

    def _progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console
        )

    def _run_format(self, engine: FormatEngine, files: List[Path], args: argparse.Namespace) -> int:
        if not self._confirm_action(len(files), args):
            self.console.print("[bold red]Operation cancelled by user.[/bold red]")
            return 1

        dry_run = args.dry_run or args.check
        reports: List[Dict[str, Any]] = []
        with self._progress() as progress:
            task_id = progress.add_task("Formatting...", total=len(files))
            for file_path in files:
                report = engine.format_file(file_path, dry_run=dry_run)
                reports.append(report)

                if args.diff and report.get("formatted_content") is not None:
                    progress.stop()
                    self.report.display_diff(report["original_content"], report["formatted_content"],
                                             report["file_path"])
                    progress.start()

                progress.update(task_id, advance=1, description=f"Checked: {file_path.name}")

        self.report.print_final_table(reports)
        summary = engine.generate_summary(reports)
        self.report.print_summary(summary)

        if summary["system_errors"] or summary["successful"] < summary["total_files"]:
            return 1
        if args.check and summary["changed"]:
            self.console.print(f"[bold yellow]{summary['changed']} file(s) would be reformatted.[/bold yellow]")
            return 1
        return 0

    def _run_lint(self, engine: FormatEngine, files: List[Path], args: argparse.Namespace) -> int:
        reports: List[Dict[str, Any]] = []
        with self._progress() as progress:
            task_id = progress.add_task("Measuring...", total=len(files))
            for file_path in files:
                reports.append(engine.lint_file(file_path, formatted=args.formatted))
                progress.update(task_id, advance=1, description=f"Checked: {file_path.name}")

        for r in reports:
            self.report.show_diagnostics(r["file_path"], r.get("diagnostics") or [])

        self.report.print_final_table(reports, title="dtsfmt Line Length Report")
        summary = engine.generate_summary(reports)
        self.report.print_summary(summary)

        if summary["system_errors"]:
            return 1
        return 1 if engine.settings.warnings and summary["diagnostics"] else 0

    def _run_engine(self, args: argparse.Namespace) -> int:
        input_path = Path(args.path)
        if not input_path.exists():
            self.console.print(f"[bold red]Error:[/bold red] Path '{args.path}' not found.")
            return 2

        try:
            settings = self.resolve_settings(args)
        except ConfigError as e:
            self.console.print(f"[bold red]Configuration error:[/bold red] {e}")
            return 2

        engine = FormatEngine(input_path, settings)
        files = engine.discover(args.ext)
        if not files:
            extensions = ", ".join(args.ext or settings.extensions)
            self.console.print(f"\n[bold yellow]No device-tree files ({extensions}) found.[/bold yellow]")
            return 0

        if args.command == "format":
            return self._run_format(engine, files, args)
        return self._run_lint(engine, files, args)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point; returns the process exit code."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("Device Tree Formatter")
            self.parser.print_help()
            return 0

        args = self.parser.parse_args(argv)
        if args.command is None:
            self.parser.print_help()
            return 0

        self._configure_logging(args.verbose)
        if args.command == "format":
            self.print_header("Format")
        else:
            self.print_header("Line Length Check")
        return self._run_engine(args)


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(DtsFmtCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
