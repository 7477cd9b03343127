"""Utilities package for xml changes.

This package provides utility functions shared by the CLI and the menu.
"""

# API version to track compatibility
__api_version__ = '1.0.0'

# Re-export the public APIs
from xml_changes.utils.clipboard import copy_to_clipboard, read_from_clipboard
from xml_changes.utils.notifications import show_toast
from xml_changes.utils.settings import (
    load_settings,
    save_settings,
    get_default_project_directory,
    set_default_project_directory,
)
