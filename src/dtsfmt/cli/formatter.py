# src/dtsfmt/cli/formatter.py
import difflib
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from dtsfmt.core.models import Diagnostic

console = Console()

STATUS_COLORS = {
    "UNCHANGED": "green",
    "CLEAN": "green",
    "PREVIEW": "yellow",
    "FORMATTED": "cyan",
    "WARNINGS": "yellow",
}


class ReportFormatter:
    """
    Rendering side of the CLI: diffs, diagnostics and the final report.
    Holds no state besides the console it prints to.
    """

    def __init__(self, output: Optional[Console] = None):
        self.console = output or console

    def display_diff(self, original_text: str, formatted_text: str, file_name: str) -> bool:
        """
        Prints a unified diff of the proposed changes.
        Returns False when there is nothing to show.
        """
        diff_list = list(difflib.unified_diff(
            original_text.splitlines(),
            formatted_text.splitlines(),
            fromfile=f"a/{file_name}",
            tofile=f"b/{file_name}",
            lineterm=""
        ))
        if not diff_list:
            self.console.print(f"[dim]No formatting changes needed for {file_name}.[/dim]")
            return False

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(
            syntax,
            title=f"Proposed Formatting: {file_name}",
            border_style="green"
        ))
        return True

    def show_diagnostics(self, file_name: str, diagnostics: List[Diagnostic]):
        """One table per file; lines are shown 1-based like an editor would."""
        if not diagnostics:
            return

        table = Table(title=f"Line Length: {file_name}", header_style="bold magenta")
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Length", justify="right")
        table.add_column("Severity")
        table.add_column("Message", style="white")

        for d in diagnostics:
            table.add_row(str(d.line + 1), str(d.length), f"[yellow]{d.severity}[/yellow]", d.message)

        self.console.print(table)

    def print_final_table(self, reports: List[Dict[str, Any]], title: str = "dtsfmt Execution Report"):
        """Builds the summary table shown at the very end of a run."""
        table = Table(title=title, show_lines=True, header_style="bold magenta")
        table.add_column("File Path", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Result", justify="center")

        for r in reports:
            if r.get("error"):
                self.console.print(f"[bold red]Error in {r['file_path']}:[/bold red] {r['error']}")

            status = r.get("status", "FAILED")
            color = STATUS_COLORS.get(status, "red")
            result_icon = "✅" if r.get("success") else "❌"
            table.add_row(str(r.get("file_path")), f"[{color}]{status}[/{color}]", result_icon)

        self.console.print(table)

    def print_summary(self, summary: Dict[str, Any]):
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Files:     {summary['total_files']}\n"
            f"Success:         [green]{summary['successful']}[/green]\n"
            f"Changed:         [yellow]{summary['changed']}[/yellow]\n"
            f"Written:         {summary['written_to_disk']}\n"
            f"Diagnostics:     [yellow]{summary['diagnostics']}[/yellow]\n"
            f"System Errors:   [red]{summary['system_errors']}[/red]",
            border_style="dim"
        ))
