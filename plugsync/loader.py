"""Load installed plugins into the host process.

This is the host-side step that turns a resolved, installed Plugin into a
Python module. Resolution never imports anything; only ``load_plugins``
does, and only for non-theme plugins whose working tree exists.
"""

import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Iterable, Optional
import structlog

from plugsync.core.errors import PlugSyncError
from plugsync.core.models import Plugin

log = structlog.get_logger()


class LoaderError(PlugSyncError):
    """Raised when a plugin entry point cannot be imported."""


def module_name(plugin: Plugin) -> str:
    """Name the plugin module is registered under in ``sys.modules``."""
    return "plugsync_plugin_" + re.sub(r"\W", "_", plugin.name)


def entry_point(plugin: Plugin) -> Optional[Path]:
    """Locate the entry-point file of a plugin.

    ``<file>.py`` is tried first, then ``<file>/__init__.py``.
    """
    candidates = [
        plugin.local_path / f"{plugin.file}.py",
        plugin.local_path / plugin.file / "__init__.py",
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_plugin(plugin: Plugin) -> ModuleType:
    """Import a plugin's entry point.

    Args:
        plugin: Installed plugin

    Returns:
        The executed module

    Raises:
        LoaderError: If the entry point is missing or fails to execute
    """
    path = entry_point(plugin)
    if path is None:
        raise LoaderError(f"Entry point '{plugin.file}' not found in {plugin.local_path}")

    name = module_name(plugin)
    spec = importlib.util.spec_from_file_location(name, path)
    if not spec or not spec.loader:
        raise LoaderError(f"Cannot create module spec for {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module

    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[name]
        raise LoaderError(f"Error executing plugin {plugin.name}: {e}") from e

    return module


def load_plugins(plugins: Iterable[Plugin]) -> dict[str, ModuleType]:
    """Load every installed, non-theme plugin.

    Plugins without an alias are still loaded (their import may register
    things with the host) but are not part of the returned table. Load
    failures are logged and skipped.

    Returns:
        Mapping of alias -> loaded module
    """
    table: dict[str, ModuleType] = {}
    for plugin in plugins:
        if plugin.theme or not plugin.installed:
            continue

        try:
            module = load_plugin(plugin)
        except LoaderError as e:
            log.warning("plugin_load_failed", name=plugin.name, error=str(e))
            continue

        log.debug("plugin_loaded", name=plugin.name, alias=plugin.alias)
        if plugin.alias:
            table[plugin.alias] = module

    return table
