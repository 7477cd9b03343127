"""Command line interface for xml changes."""

import sys
import logging
import argparse
from typing import List, Optional
from rich.console import Console

from xml_changes.menu import display_main_menu
from xml_changes.modules.xml_parser import (
    ParseDiagnostic,
    XMLParserError,
    parse_xml_string,
    generate_xml_from_changes,
)
from xml_changes.modules.apply_changes_action import (
    DirectoryResolutionError,
    apply_changes_action,
    preview_changes_action,
)
from xml_changes.modules.change_applier import (
    display_apply_result,
    display_diagnostics,
    display_previews,
)
from xml_changes.utils.clipboard import copy_to_clipboard, read_from_clipboard
from xml_changes.utils.notifications import show_toast
from xml_changes.utils.settings import (
    get_default_project_directory,
    get_settings_file,
    set_default_project_directory,
)

console = Console()


def configure_logging(verbose: bool = False) -> None:
    """Set up logging for the command line."""
    logging.basicConfig(level=logging.WARNING,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    if verbose:
        logging.getLogger('xml_changes').setLevel(logging.DEBUG)


def read_document(source: Optional[str], from_clipboard: bool = False) -> str:
    """
    Read a change document.

    Args:
        source: File path, or None / '-' for standard input.
        from_clipboard: Read the clipboard instead.

    Returns:
        The document text.
    """
    if from_clipboard:
        return read_from_clipboard()
    if source is None or source == '-':
        return sys.stdin.read()
    with open(source, 'r', encoding='utf-8') as f:
        return f.read()


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the document source arguments shared by several commands."""
    parser.add_argument(
        'file',
        nargs='?',
        help="File containing the <code_changes> document ('-' or omitted for stdin)"
    )
    parser.add_argument(
        '--clipboard', '-c',
        action='store_true',
        help='Read the document from the clipboard'
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(description='Apply <code_changes> documents to a project')
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Apply command
    apply_parser = subparsers.add_parser('apply', help='Apply the changes in a document')
    add_source_arguments(apply_parser)
    apply_parser.add_argument(
        '--dir', '-d',
        dest='directory',
        help='Project directory (default: PROJECT_DIRECTORY or the saved default)'
    )

    # Preview command
    preview_parser = subparsers.add_parser('preview', help='Show the changes without applying them')
    add_source_arguments(preview_parser)
    preview_parser.add_argument(
        '--dir', '-d',
        dest='directory',
        help='Project directory (default: PROJECT_DIRECTORY or the saved default)'
    )

    # Normalize command
    normalize_parser = subparsers.add_parser(
        'normalize',
        help='Rewrite a document in the <file> layout, dropping invalid entries'
    )
    add_source_arguments(normalize_parser)
    normalize_parser.add_argument(
        '--copy',
        action='store_true',
        help='Copy the result to the clipboard instead of printing it'
    )

    # Config command
    config_parser = subparsers.add_parser('config', help='Show or change the default project directory')
    config_parser.add_argument(
        '--set-dir',
        metavar='DIR',
        help='Save DIR as the default project directory'
    )

    return parser


def run_apply(args) -> int:
    """Apply a document and report the outcome."""
    xml_string = read_document(args.file, args.clipboard)
    diagnostics: List[ParseDiagnostic] = []
    result = apply_changes_action(xml_string, args.directory, diagnostics)
    display_diagnostics(diagnostics)
    display_apply_result(result)
    return 0 if result.ok else 1


def run_preview(args) -> int:
    """Print what applying a document would do."""
    xml_string = read_document(args.file, args.clipboard)
    try:
        previews = preview_changes_action(xml_string, args.directory)
    except (XMLParserError, DirectoryResolutionError) as e:
        console.print(f"[bold red]Error: {str(e)}[/bold red]")
        return 1
    display_previews(previews)
    return 0


def run_normalize(args) -> int:
    """Rewrite a document with only its valid entries."""
    xml_string = read_document(args.file, args.clipboard)
    diagnostics: List[ParseDiagnostic] = []
    try:
        changes = parse_xml_string(xml_string, diagnostics)
    except XMLParserError as e:
        display_diagnostics(diagnostics)
        console.print(f"[bold red]Error: {str(e)}[/bold red]")
        return 1

    output = generate_xml_from_changes(changes)
    if args.copy:
        display_diagnostics(diagnostics)
        copy_to_clipboard(output)
        show_toast(f"Normalized document with {len(changes)} changes copied to clipboard")
    else:
        sys.stdout.write(output + '\n')
    return 0


def run_config(args) -> int:
    """Show or update the default project directory."""
    if args.set_dir:
        if not set_default_project_directory(args.set_dir):
            return 1
        show_toast(f"Default project directory saved to {get_settings_file()}")

    directory = get_default_project_directory()
    if directory:
        console.print(f"[green]Default project directory:[/green] {directory}")
    else:
        console.print("[yellow]No default project directory configured.[/yellow]")
    return 0


COMMANDS = {
    'apply': run_apply,
    'preview': run_preview,
    'normalize': run_normalize,
    'config': run_config,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        # Handle commands if provided
        if args.command in COMMANDS:
            return COMMANDS[args.command](args)

        # No command specified, show the interactive menu
        display_main_menu()
        return 0
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Process cancelled by user.[/bold yellow]")
        return 1
    except Exception as e:
        console.print(f"[bold red]Error: {str(e)}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
