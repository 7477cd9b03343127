#!/usr/bin/env python3
"""XML parser module for <code_changes> documents."""

import os
import logging
from dataclasses import dataclass
from typing import List, Dict, Tuple, Optional, Any, Union
from xml.dom import minidom
from xml.parsers.expat import ExpatError

# Configure logging
logger = logging.getLogger(__name__)

ROOT_TAG = "code_changes"
BLOCK_TAG = "changed_files"
FILE_TAG = "file"

VALID_OPERATIONS = ("CREATE", "UPDATE", "DELETE")
CODE_OPERATIONS = ("CREATE", "UPDATE")

# Order in which the legacy (flat) dialect lists an entry's fields
LEGACY_SEQUENCE = ("file_summary", "file_operation", "file_path", "file_code")

EXPECTED_FORMAT = (
    "Expected <code_changes> containing one or more <changed_files> blocks, each with "
    "<file> elements holding <file_summary>, <file_operation>, <file_path> and <file_code>."
)

RawEntry = Dict[str, Optional[str]]


class XMLParserError(Exception):
    """Exception raised for errors in the XML parser."""
    pass


class FormatError(XMLParserError):
    """The document as a whole cannot yield any file changes."""
    pass


class EntryValidationError(XMLParserError):
    """A single entry is incomplete or invalid and has to be skipped."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class FileChange:
    """A validated file operation extracted from a change document.

    Attributes:
        summary: Free-text description of the change
        operation: CREATE, UPDATE or DELETE
        path: Target path, absolute or relative to the project directory
        code: Full file content for CREATE and UPDATE operations
    """
    summary: str
    operation: str
    path: str
    code: Optional[str] = None

    def __repr__(self) -> str:
        """Return a string representation of the FileChange object."""
        return f"FileChange({self.operation}, {self.path})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileChange':
        """Create a FileChange object from a dictionary.

        Accepts both the document field names (``file_path`` ...) and the
        short attribute names (``path`` ...).

        Args:
            data: Dictionary containing file change data

        Returns:
            A new FileChange object

        Raises:
            EntryValidationError: If the dictionary does not describe a valid change
        """
        raw = {
            "file_summary": data.get("file_summary", data.get("summary")),
            "file_operation": data.get("file_operation", data.get("operation")),
            "file_path": data.get("file_path", data.get("path")),
            "file_code": data.get("file_code", data.get("code")),
        }
        if raw["file_operation"] is not None:
            raw["file_operation"] = str(raw["file_operation"]).strip().upper()
        return validate_entry(raw)

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Return the change keyed by its document field names."""
        return {
            "file_summary": self.summary,
            "file_operation": self.operation,
            "file_path": self.path,
            "file_code": self.code,
        }


@dataclass(frozen=True)
class ParseDiagnostic:
    """Why an entry (or the rest of a legacy block) was skipped."""
    block_index: int
    message: str
    path: Optional[str] = None


def element_children(node) -> list:
    """Return the element children of a node, skipping text and comments."""
    return [child for child in node.childNodes if child.nodeType == child.ELEMENT_NODE]


def get_text_content(node) -> str:
    """Concatenate all text and CDATA beneath a node, like DOM ``textContent``."""
    parts = []
    for child in node.childNodes:
        if child.nodeType in (child.TEXT_NODE, child.CDATA_SECTION_NODE):
            parts.append(child.data)
        elif child.nodeType == child.ELEMENT_NODE:
            parts.append(get_text_content(child))
    return ''.join(parts)


def get_element_text(node) -> str:
    """Return the trimmed text content of an element."""
    return get_text_content(node).strip()


def get_file_code(node) -> Optional[str]:
    """Extract the content of a <file_code> element.

    CDATA sections placed directly in the element win over plain text. Adjacent
    sections are joined so that content split around a literal ``]]>`` comes
    back whole.

    Args:
        node: The <file_code> element

    Returns:
        The trimmed code, or None when the element carries no content
    """
    cdata = [child.data for child in node.childNodes if child.nodeType == child.CDATA_SECTION_NODE]
    if cdata:
        code = ''.join(cdata).strip()
    else:
        code = get_element_text(node)
    return code or None


def read_field(node, tag: str) -> Optional[str]:
    """Read one entry field according to its tag's extraction rule."""
    if tag == "file_code":
        return get_file_code(node)
    text = get_element_text(node)
    if tag == "file_operation":
        return text.upper()
    return text


def has_file_elements(block) -> bool:
    """Probe a <changed_files> block for the wrapped (<file>) dialect."""
    return len(block.getElementsByTagName(FILE_TAG)) > 0


def nearest_block(node):
    """Return the closest enclosing <changed_files> element of a node."""
    parent = node.parentNode
    while parent is not None and parent.nodeType == parent.ELEMENT_NODE:
        if parent.tagName == BLOCK_TAG:
            return parent
        parent = parent.parentNode
    return None


def extract_wrapped_entries(block) -> Tuple[List[RawEntry], List[str]]:
    """Read the <file> elements that belong to a block.

    A <file> inside a nested <changed_files> belongs to that inner block
    only, so it is read once.

    Args:
        block: A <changed_files> element using the wrapped dialect

    Returns:
        A tuple of (raw entries in document order, notes about skipped content).
        This dialect never stops early, so the notes are always empty.
    """
    entries = []
    for file_node in block.getElementsByTagName(FILE_TAG):
        if nearest_block(file_node) is not block:
            continue
        raw: RawEntry = {}
        for child in element_children(file_node):
            if child.tagName in LEGACY_SEQUENCE:
                raw[child.tagName] = read_field(child, child.tagName)
        entries.append(raw)
    return entries, []


def extract_legacy_entries(block) -> Tuple[List[RawEntry], List[str]]:
    """Read flat runs of summary/operation/path/code elements from a block.

    Fields must appear in ``LEGACY_SEQUENCE`` order. A run may stop after
    ``file_path`` when it is a DELETE and the block ends or the next run
    begins. Any other missing or misplaced tag, including the ``file_code`` of
    a CREATE or UPDATE, ends the scan and the rest of the block is dropped.

    Args:
        block: A <changed_files> element without <file> wrappers

    Returns:
        A tuple of (raw entries in document order, notes about dropped content)
    """
    children = element_children(block)
    entries: List[RawEntry] = []
    notes: List[str] = []
    index = 0

    while index < len(children):
        raw: RawEntry = {}
        for position, tag in enumerate(LEGACY_SEQUENCE):
            if index >= len(children) or children[index].tagName != tag:
                break
            raw[tag] = read_field(children[index], tag)
            index += 1
        else:
            entries.append(raw)
            continue

        # Only a DELETE may leave out file_code, and only at a run boundary
        at_boundary = index >= len(children) or children[index].tagName == LEGACY_SEQUENCE[0]
        if position == len(LEGACY_SEQUENCE) - 1 and at_boundary and raw.get("file_operation") == "DELETE":
            entries.append(raw)
            continue

        found = children[index].tagName if index < len(children) else "end of block"
        dropped = len(children) - index
        notes.append(
            f"Expected <{tag}> but found <{found}>; "
            f"dropping {dropped} remaining element(s) of legacy <changed_files> block"
        )
        break

    return entries, notes


def validate_entry(raw: RawEntry) -> FileChange:
    """Turn raw entry fields into a FileChange.

    Args:
        raw: Field values keyed by tag name

    Returns:
        The validated FileChange

    Raises:
        EntryValidationError: If a required field is missing, the operation is
            unknown, or CREATE/UPDATE comes without code
    """
    summary = raw.get("file_summary")
    operation = raw.get("file_operation")
    path = raw.get("file_path")
    code = raw.get("file_code")

    if not summary or not operation or not path:
        raise EntryValidationError(
            "Entry is missing required fields (file_summary, file_operation, file_path)",
            path=path or None,
        )

    if operation not in VALID_OPERATIONS:
        raise EntryValidationError(
            f"Invalid file_operation: {operation} for file: {path}. Must be CREATE, UPDATE, or DELETE.",
            path=path,
        )

    if operation in CODE_OPERATIONS and code is None:
        raise EntryValidationError(f"Missing file_code for {operation} on {path}", path=path)

    # DELETE never carries content
    if operation == "DELETE":
        code = None

    return FileChange(summary=summary, operation=operation, path=path, code=code)


def parse_document(xml_string: str):
    """Check the container tags and build the DOM.

    Args:
        xml_string: The raw change document

    Returns:
        The document's root element

    Raises:
        FormatError: If the document is empty, lacks <code_changes>, or is not well formed
    """
    if not xml_string or not xml_string.strip():
        raise FormatError("Empty XML string provided")

    xml_string = xml_string.strip()

    if f"<{ROOT_TAG}>" not in xml_string or f"</{ROOT_TAG}>" not in xml_string:
        raise FormatError(f"XML must contain <{ROOT_TAG}> root element")

    try:
        dom = minidom.parseString(xml_string)
    except ExpatError as e:
        raise FormatError(f"Failed to parse XML document: {str(e)}")

    root = dom.documentElement
    if root is None or root.tagName != ROOT_TAG:
        raise FormatError(f"Root element must be <{ROOT_TAG}>")

    return root


def parse_xml_string(xml_string: str, diagnostics: Optional[List[ParseDiagnostic]] = None) -> List[FileChange]:
    """Parse a <code_changes> document into a list of FileChange objects.

    Every <changed_files> block is read with the wrapped dialect when it
    contains <file> elements and with the legacy flat dialect otherwise.
    Invalid entries are skipped and reported through the log and the optional
    ``diagnostics`` list; the document only fails as a whole when it is
    malformed or nothing valid is left.

    Args:
        xml_string: The XML string to parse
        diagnostics: Optional list that receives a ParseDiagnostic per skipped entry

    Returns:
        The valid changes in document order

    Raises:
        FormatError: If the document is malformed or holds no valid changes
    """
    logger.debug(f"Processing XML (first 500 chars): {(xml_string or '')[:500]}")

    root = parse_document(xml_string)

    blocks = root.getElementsByTagName(BLOCK_TAG)
    if not blocks:
        raise FormatError(f"No <{BLOCK_TAG}> elements found inside <{ROOT_TAG}>")

    def record(block_index: int, message: str, path: Optional[str] = None) -> None:
        if diagnostics is not None:
            diagnostics.append(ParseDiagnostic(block_index=block_index, message=message, path=path))

    all_changes: List[FileChange] = []

    for block_index, block in enumerate(blocks):
        if has_file_elements(block):
            raw_entries, notes = extract_wrapped_entries(block)
        else:
            logger.debug(f"Block {block_index} has no <file> elements, reading legacy layout")
            raw_entries, notes = extract_legacy_entries(block)

        for raw in raw_entries:
            try:
                all_changes.append(validate_entry(raw))
            except EntryValidationError as e:
                logger.error(str(e))
                record(block_index, str(e), e.path)

        for note in notes:
            logger.warning(note)
            record(block_index, note)

    if not all_changes:
        raise FormatError(f"No valid file changes found in the provided XML. {EXPECTED_FORMAT}")

    logger.info(f"Successfully parsed {len(all_changes)} file changes.")
    return all_changes


def parse_xml_preview(xml_string: str, repo_path: str) -> List[Dict[str, Any]]:
    """Parse XML and generate preview of changes without applying them.

    Args:
        xml_string: XML string containing file changes
        repo_path: Path to the project directory

    Returns:
        List of dictionaries with preview information

    Raises:
        FormatError: If the document cannot be parsed
    """
    return build_previews(parse_xml_string(xml_string), repo_path)


def build_previews(changes: List[FileChange], repo_path: str) -> List[Dict[str, Any]]:
    """Describe already parsed changes against the files under repo_path."""
    from xml_changes.modules.apply_changes import resolve_path

    previews = []

    for change in changes:
        preview: Dict[str, Any] = {
            "path": change.path,
            "operation": change.operation,
            "summary": change.summary,
        }

        file_path = resolve_path(change.path, repo_path)
        file_exists = os.path.exists(file_path)
        preview["resolved_path"] = file_path
        preview["file_exists"] = file_exists

        if change.operation in CODE_OPERATIONS:
            # Limit content preview to avoid overwhelming the terminal
            code = change.code or ""
            preview["content"] = code if len(code) <= 1000 else code[:1000] + "... (truncated)"

        if change.operation == "CREATE":
            preview["operation_desc"] = "Creating new file"
            if file_exists:
                preview["warning"] = "File already exists and will be overwritten"
        elif change.operation == "UPDATE":
            preview["operation_desc"] = "Updating existing file"
            if not file_exists:
                preview["warning"] = "File doesn't exist but operation is UPDATE"
        else:
            preview["operation_desc"] = "Deleting file"
            if not file_exists:
                preview["warning"] = "File doesn't exist but operation is DELETE"

        previews.append(preview)

    return previews


def wrap_cdata(text: str) -> str:
    """Wrap text in CDATA, splitting any literal ``]]>`` across sections."""
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def generate_xml_from_changes(changes: List[Union[FileChange, Dict[str, Any]]]) -> str:
    """Generate a <code_changes> document from a list of changes.

    Args:
        changes: FileChange objects or dictionaries accepted by FileChange.from_dict

    Returns:
        XML string in the wrapped dialect that parse_xml_string reads back
    """
    xml_parts = [f"<{ROOT_TAG}>", f"  <{BLOCK_TAG}>"]

    for change in changes:
        if not isinstance(change, FileChange):
            change = FileChange.from_dict(change)

        xml_parts.append(f"    <{FILE_TAG}>")
        xml_parts.append(f"      <file_summary>{escape_text(change.summary)}</file_summary>")
        xml_parts.append(f"      <file_operation>{change.operation}</file_operation>")
        xml_parts.append(f"      <file_path>{escape_text(change.path)}</file_path>")
        if change.code is not None:
            xml_parts.append(f"      <file_code>{wrap_cdata(change.code)}</file_code>")
        xml_parts.append(f"    </{FILE_TAG}>")

    xml_parts.append(f"  </{BLOCK_TAG}>")
    xml_parts.append(f"</{ROOT_TAG}>")
    return '\n'.join(xml_parts)


def escape_text(text: str) -> str:
    """Escape the characters that are special in XML text nodes."""
    return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')
