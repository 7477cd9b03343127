"""Interactive change applier module."""

import inquirer
from typing import List, Dict, Any, Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from xml_changes.modules.xml_parser import (
    ParseDiagnostic,
    XMLParserError,
    build_previews,
    parse_xml_string,
)
from xml_changes.modules.apply_changes_action import (
    ApplyChangesResult,
    DirectoryResolutionError,
    apply_changes,
    resolve_project_directory,
)
from xml_changes.utils.clipboard import read_from_clipboard
from xml_changes.utils.notifications import show_toast
from xml_changes.utils.settings import get_default_project_directory, set_default_project_directory

console = Console()

OPERATION_STYLES = {
    "CREATE": "green",
    "UPDATE": "cyan",
    "DELETE": "red",
}


def display_diagnostics(diagnostics: List[ParseDiagnostic]) -> None:
    """
    Show the entries that were skipped while parsing.

    Args:
        diagnostics: Diagnostics collected by parse_xml_string
    """
    if not diagnostics:
        return

    console.print(f"\n[bold yellow]Skipped {len(diagnostics)} invalid entries:[/bold yellow]")
    for diagnostic in diagnostics:
        where = f" ({diagnostic.path})" if diagnostic.path else ""
        console.print(f"  [yellow]•[/yellow] block {diagnostic.block_index + 1}{where}: {diagnostic.message}")


def display_previews(previews: List[Dict[str, Any]]) -> None:
    """
    Show a table describing each change before it is applied.

    Args:
        previews: Preview dictionaries from build_previews
    """
    table = Table(title="Planned changes", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Operation")
    table.add_column("Path")
    table.add_column("Summary")
    table.add_column("Notes", style="yellow")

    for i, preview in enumerate(previews, 1):
        style = OPERATION_STYLES.get(preview["operation"], "white")
        table.add_row(
            str(i),
            f"[{style}]{preview['operation']}[/{style}]",
            preview["path"],
            preview.get("summary", ""),
            preview.get("warning", ""),
        )

    console.print(table)


def display_apply_result(result: ApplyChangesResult) -> None:
    """
    Show which files were changed and which failed.

    Args:
        result: The batch result
    """
    if result.succeeded:
        console.print("\n[bold green]Applied changes:[/bold green]")
        for outcome in result.succeeded:
            console.print(f"  [green]✓[/green] {outcome.path}")

    if result.failed:
        console.print("\n[bold red]Failed changes:[/bold red]")
        for outcome in result.failed:
            console.print(f"  [red]✗[/red] {outcome.path}: {outcome.error}")

    border_style = "green" if result.ok else "red"
    console.print(Panel(
        Text.from_markup(
            f"[green]• {len(result.succeeded)}[/green] files changed\n"
            f"[red]• {len(result.failed)}[/red] files failed"
        ),
        title="Apply Complete",
        border_style=border_style
    ))


def prompt_project_directory(default: Optional[str] = None) -> Optional[str]:
    """
    Ask for the directory to apply changes to.

    Args:
        default: Directory to suggest

    Returns:
        The entered directory, or None if the user cancelled
    """
    questions = [
        inquirer.Path(
            "directory",
            message="Project directory",
            default=default,
            path_type=inquirer.Path.DIRECTORY,
            exists=True,
        ),
    ]

    answers = inquirer.prompt(questions)
    if not answers:  # User pressed Ctrl+C
        return None
    return answers["directory"]


def set_default_directory() -> bool:
    """Prompt for and save the default project directory."""
    directory = prompt_project_directory(get_default_project_directory())
    if not directory:
        return False

    if set_default_project_directory(directory):
        show_toast(f"Default project directory set to {directory}")
        return True
    return False


def xml_change_applier(preview_only: bool = False) -> bool:
    """
    Apply the change document currently on the clipboard.

    Args:
        preview_only: Show the planned changes without applying them

    Returns:
        True if every change was applied (or previewed), False otherwise
    """
    xml_string = read_from_clipboard()
    if not xml_string.strip():
        console.print("[bold yellow]Clipboard is empty. Copy a <code_changes> document first.[/bold yellow]")
        return False

    diagnostics: List[ParseDiagnostic] = []
    try:
        changes = parse_xml_string(xml_string, diagnostics)
    except XMLParserError as e:
        display_diagnostics(diagnostics)
        console.print(f"[bold red]Error parsing XML: {str(e)}[/bold red]")
        return False

    console.print(f"[bold blue]Found {len(changes)} file changes[/bold blue]")
    display_diagnostics(diagnostics)

    directory = prompt_project_directory(get_default_project_directory())
    if not directory:
        return False

    try:
        directory = resolve_project_directory(directory)
    except DirectoryResolutionError as e:
        console.print(f"[bold red]{str(e)}[/bold red]")
        return False

    display_previews(build_previews(changes, directory))

    if preview_only:
        return True

    questions = [
        inquirer.Confirm(
            "apply",
            message=f"Apply {len(changes)} changes to {directory}?",
            default=True,
        ),
    ]
    answers = inquirer.prompt(questions)
    if not answers or not answers["apply"]:
        console.print("[yellow]No changes applied.[/yellow]")
        return False

    result = apply_changes(changes, directory)
    display_apply_result(result)
    return result.ok
