"""Interactive menu for xml changes."""

import os
import inquirer
from rich.align import Align
from rich.console import Console
from rich.text import Text

from xml_changes.modules.change_applier import xml_change_applier, set_default_directory
from xml_changes.utils.settings import get_default_project_directory

console = Console()


def clear_screen():
    """Clear the terminal."""
    os.system('cls' if os.name == 'nt' else 'clear')


def run_apply() -> None:
    if xml_change_applier():
        console.print("[green]All changes applied successfully![/green]")


def run_preview() -> None:
    xml_change_applier(preview_only=True)


# action key -> (menu label, heading, handler)
ACTIONS = {
    "apply": ("Apply changes from clipboard", "Apply Changes", run_apply),
    "preview": ("Preview changes from clipboard", "Preview Changes", run_preview),
    "set_dir": ("Set default project directory", "Default Project Directory", set_default_directory),
}


def render_header() -> None:
    """Print the menu title and the current default project."""
    console.print(Align.center(Text("XML CHANGES", style="bold cyan"), vertical="middle"))
    default_directory = get_default_project_directory()
    if default_directory:
        console.print(Align.center(Text(f"Default project: {default_directory}", style="dim")))
    console.print()


def display_main_menu() -> None:
    """Loop over the action menu until the user exits."""
    choices = [(label, key) for key, (label, _, _) in ACTIONS.items()]
    choices.append(("Exit", "exit"))

    try:
        while True:
            clear_screen()
            render_header()

            answers = inquirer.prompt([
                inquirer.List(
                    "action",
                    message="What do you want to do?",
                    choices=choices,
                    carousel=True,
                    default="apply",
                ),
            ])
            if not answers or answers["action"] == "exit":
                console.print("[yellow]Bye.[/yellow]")
                break

            _, heading, handler = ACTIONS[answers["action"]]
            clear_screen()
            console.print(f"[bold green]{heading}[/bold green]")
            handler()

            console.print("\n[cyan]Press Enter to return to the menu...[/cyan]")
            input()
    finally:
        clear_screen()
