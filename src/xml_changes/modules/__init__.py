"""Modules package for xml changes.

This package provides a unified API for the CLI and the interactive menu
to parse change documents and apply them.
"""

# Re-export the public APIs used by the CLI and the menu
from xml_changes.modules.xml_parser import (
    FileChange,
    ParseDiagnostic,
    XMLParserError,
    FormatError,
    EntryValidationError,
    parse_xml_string,
    parse_xml_preview,
    build_previews,
    generate_xml_from_changes,
)
from xml_changes.modules.apply_changes import ApplyError, apply_file_change, resolve_path
from xml_changes.modules.apply_changes_action import (
    ApplyOutcome,
    ApplyChangesResult,
    DirectoryResolutionError,
    apply_changes,
    apply_changes_action,
    preview_changes_action,
    resolve_project_directory,
)

# Define a version to track API compatibility
__api_version__ = '1.0.0'
