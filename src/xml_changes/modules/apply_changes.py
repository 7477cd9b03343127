"""Apply parsed file changes to a project directory."""

import os
import errno
import logging
import tempfile

from xml_changes.modules.xml_parser import FileChange

logger = logging.getLogger(__name__)


class ApplyError(Exception):
    """Exception raised when a file change cannot be applied."""

    def __init__(self, message: str, path: str, resolved_path: str):
        super().__init__(message)
        self.path = path
        self.resolved_path = resolved_path


def resolve_path(file_path: str, project_directory: str) -> str:
    """
    Resolve the target of a change.

    Args:
        file_path: Path from the change document, absolute or relative.
        project_directory: Root that relative paths are joined to.

    Returns:
        The absolute path the change operates on.
    """
    if os.path.isabs(file_path):
        return file_path
    return os.path.abspath(os.path.join(project_directory, file_path))


def ensure_directory_exists(directory: str) -> None:
    """Create a directory and its parents; an existing directory is fine."""
    if not directory:
        return
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        if e.errno != errno.EEXIST or not os.path.isdir(directory):
            logger.error(f"Error creating directory {directory}: {e}")
            raise


def write_file_atomic(full_path: str, content: str) -> None:
    """
    Replace a file's content in one step.

    The content goes to a temporary file next to the target, which is then
    renamed over it, so a failed write leaves the old file untouched.

    A symlink at ``full_path`` is written through, so the file it points to
    gets the new content and the link stays in place.

    Args:
        full_path: The file to write.
        content: The complete new content.
    """
    full_path = os.path.realpath(full_path)
    directory = os.path.dirname(full_path) or '.'
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', newline='', dir=directory,
            prefix='.' + os.path.basename(full_path) + '.', suffix='.tmp', delete=False
        ) as handle:
            temp_path = handle.name
            handle.write(content)

        if os.path.exists(full_path):
            os.chmod(temp_path, os.stat(full_path).st_mode & 0o7777)
        else:
            # NamedTemporaryFile creates 0600 files, new files get the usual umask
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(temp_path, 0o666 & ~umask)
        os.replace(temp_path, full_path)
    except BaseException:
        if temp_path and os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def delete_file(full_path: str) -> None:
    """Delete a file; a missing file counts as deleted."""
    try:
        os.remove(full_path)
    except FileNotFoundError:
        logger.debug(f"File already absent: {full_path}")


def apply_file_change(change: FileChange, project_directory: str) -> str:
    """
    Apply a single change under the project directory.

    CREATE and UPDATE both write the complete file content, creating parent
    directories as needed. DELETE removes the file if it is there.

    Args:
        change: The change to apply.
        project_directory: Root directory for relative paths.

    Returns:
        The resolved absolute path of the changed file.

    Raises:
        ApplyError: If the filesystem operation fails.
    """
    full_path = resolve_path(change.path, project_directory)
    operation = change.operation.upper()

    try:
        if operation in ("CREATE", "UPDATE"):
            if change.code is None:
                raise ApplyError(
                    f"No file_code provided for {operation} operation on {change.path}",
                    change.path, full_path
                )
            ensure_directory_exists(os.path.dirname(full_path))
            write_file_atomic(full_path, change.code)
            logger.info(f"{'Created' if operation == 'CREATE' else 'Updated'} file: {full_path}")
        elif operation == "DELETE":
            delete_file(full_path)
            logger.info(f"Deleted file: {full_path}")
        else:
            logger.warning(f"Unknown file_operation: {change.operation} for file: {change.path}")
    except OSError as e:
        raise ApplyError(f"Failed to {operation} {full_path}: {e.strerror or e}", change.path, full_path) from e

    return full_path
