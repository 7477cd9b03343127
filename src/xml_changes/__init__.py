"""Apply <code_changes> documents to a project tree."""

__version__ = '1.0.0'
