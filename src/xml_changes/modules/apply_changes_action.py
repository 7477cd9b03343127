"""Parse a change document and apply it to a project directory."""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

from xml_changes.modules.xml_parser import (
    FileChange,
    ParseDiagnostic,
    XMLParserError,
    parse_xml_string,
    parse_xml_preview,
)
from xml_changes.modules.apply_changes import ApplyError, apply_file_change, resolve_path
from xml_changes.utils.settings import get_default_project_directory

logger = logging.getLogger(__name__)

# Path reported for failures that happen before any file is touched
BATCH_FAILURE_PATH = 'N/A'


class DirectoryResolutionError(Exception):
    """Exception raised when no usable project directory is available."""
    pass


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of applying one change."""
    path: str
    resolved_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class ApplyChangesResult:
    """Succeeded and failed outcomes of a batch, each in document order."""
    succeeded: List[ApplyOutcome] = field(default_factory=list)
    failed: List[ApplyOutcome] = field(default_factory=list)

    @property
    def succeeded_files(self) -> List[str]:
        return [outcome.path for outcome in self.succeeded]

    @property
    def failed_files(self) -> List[Dict[str, str]]:
        return [{'file_path': outcome.path, 'error': outcome.error} for outcome in self.failed]

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {'succeeded_files': self.succeeded_files, 'failed_files': self.failed_files}


def resolve_project_directory(project_directory: Optional[str] = None) -> str:
    """
    Work out which directory a batch applies to.

    Args:
        project_directory: Explicit directory; blank values fall back to the
            configured default.

    Returns:
        The absolute path of an existing, accessible directory.

    Raises:
        DirectoryResolutionError: If no directory is configured or it can't be used.
    """
    final_directory = project_directory.strip() if project_directory and project_directory.strip() else None
    if final_directory is None:
        final_directory = get_default_project_directory()

    if not final_directory:
        raise DirectoryResolutionError(
            "No project directory provided. Please pass a directory path, "
            "set PROJECT_DIRECTORY, or save a default with 'xml-changes config --set-dir'"
        )

    # Normalize path
    final_directory = os.path.abspath(os.path.expanduser(final_directory))
    logger.info(f"Target directory: {final_directory}")

    if not os.path.isdir(final_directory) or not os.access(final_directory, os.R_OK | os.W_OK | os.X_OK):
        raise DirectoryResolutionError(
            f"Cannot access directory: {final_directory}. "
            "Please make sure it exists and you have permissions."
        )

    return final_directory


def apply_changes(changes: List[FileChange], project_directory: str) -> ApplyChangesResult:
    """
    Apply changes one after another in the given order.

    A failing change is recorded and the remaining changes still run.

    Args:
        changes: Parsed changes.
        project_directory: Resolved project directory.

    Returns:
        The batch result.
    """
    result = ApplyChangesResult()

    for change in changes:
        logger.info(f"Processing file: {change.path} ({change.operation})")
        try:
            resolved = apply_file_change(change, project_directory)
        except ApplyError as e:
            logger.error(f"Error processing file {change.path}: {str(e)}")
            result.failed.append(ApplyOutcome(change.path, e.resolved_path, str(e)))
            continue
        except Exception as e:
            logger.error(f"Unexpected error processing file {change.path}: {str(e)}")
            result.failed.append(
                ApplyOutcome(change.path, resolve_path(change.path, project_directory), str(e) or type(e).__name__)
            )
            continue

        logger.info(f"Successfully processed: {change.path}")
        result.succeeded.append(ApplyOutcome(change.path, resolved))

    logger.info(f"Applied {len(result.succeeded)} changes successfully")
    if result.failed:
        logger.warning(f"Failed to apply {len(result.failed)} changes")

    return result


def apply_changes_action(
    xml_string: str,
    project_directory: Optional[str] = None,
    diagnostics: Optional[List[ParseDiagnostic]] = None
) -> ApplyChangesResult:
    """
    Parse a change document and apply it.

    Document and directory problems are reported as one failed outcome
    with path ``N/A`` instead of being raised.

    Args:
        xml_string: The <code_changes> document.
        project_directory: Target directory; falls back to the configured default.
        diagnostics: Optional list that receives the entries skipped while parsing.

    Returns:
        The batch result.
    """
    logger.debug(f"Received XML: {(xml_string or '')[:200]}...")

    try:
        changes = parse_xml_string(xml_string, diagnostics)
        final_directory = resolve_project_directory(project_directory)
    except (XMLParserError, DirectoryResolutionError) as e:
        logger.error(f"Error in apply_changes_action: {str(e)}")
        result = ApplyChangesResult()
        result.failed.append(ApplyOutcome(BATCH_FAILURE_PATH, None, str(e)))
        return result

    result = apply_changes(changes, final_directory)
    logger.info("File changes processing complete.")
    return result


def preview_changes_action(xml_string: str, project_directory: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Describe what applying a change document would do.

    Args:
        xml_string: The <code_changes> document.
        project_directory: Target directory; falls back to the configured default.

    Returns:
        One preview dictionary per change.

    Raises:
        XMLParserError: If the document can't be parsed.
        DirectoryResolutionError: If no usable directory is available.
    """
    final_directory = resolve_project_directory(project_directory)
    return parse_xml_preview(xml_string, final_directory)
