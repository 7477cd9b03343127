"""Persistent settings for xml changes."""

import os
import json
from typing import Optional
from rich.console import Console

console = Console(stderr=True)

PROJECT_DIRECTORY_ENV = 'PROJECT_DIRECTORY'
SETTINGS_HOME_ENV = 'XML_CHANGES_HOME'


def get_settings_dir() -> str:
    """Return the settings directory, ``~/.xml_changes`` unless overridden."""
    return os.environ.get(SETTINGS_HOME_ENV) or os.path.join(os.path.expanduser('~'), '.xml_changes')


def get_settings_file() -> str:
    """Return the path of the settings file."""
    return os.path.join(get_settings_dir(), 'settings.json')


def _ensure_settings_dir():
    """Ensure settings directory exists."""
    settings_dir = get_settings_dir()
    if not os.path.exists(settings_dir):
        os.makedirs(settings_dir, exist_ok=True)


def load_settings() -> dict:
    """Load settings from disk.

    Returns:
        The saved settings, or an empty dict if there are none or they can't be read.
    """
    settings_file = get_settings_file()
    if not os.path.exists(settings_file):
        return {}

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            settings = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        console.print(f"[yellow]Error loading settings: {e}[/yellow]")
        return {}

    if not isinstance(settings, dict):
        console.print("[yellow]Ignoring settings file: expected a JSON object[/yellow]")
        return {}
    return settings


def save_settings(settings: dict) -> bool:
    """Save settings to disk.

    Args:
        settings: Settings to merge into the saved ones.

    Returns:
        bool: True if the settings were written, False otherwise
    """
    _ensure_settings_dir()

    current_settings = load_settings()
    current_settings.update(settings)

    try:
        with open(get_settings_file(), 'w', encoding='utf-8') as f:
            json.dump(current_settings, f, indent=2)
        return True
    except IOError as e:
        console.print(f"[yellow]Error saving settings: {e}[/yellow]")
        return False


def get_default_project_directory() -> Optional[str]:
    """Get the directory to apply changes to when none is given.

    The ``PROJECT_DIRECTORY`` environment variable wins over the saved setting.

    Returns:
        str: The default project directory, or None if none is configured
    """
    env_value = os.environ.get(PROJECT_DIRECTORY_ENV, '').strip()
    if env_value:
        return env_value

    saved = load_settings().get('project_directory')
    if isinstance(saved, str) and saved.strip():
        return saved.strip()
    return None


def set_default_project_directory(path: str) -> bool:
    """Save the default project directory.

    Args:
        path: The directory; stored as an absolute path.

    Returns:
        bool: True if saved successfully
    """
    return save_settings({'project_directory': os.path.abspath(os.path.expanduser(path))})
