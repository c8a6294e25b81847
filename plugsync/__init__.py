"""plugsync - declarative git plugin manager.

Give it a list of plugin sources (``owner/repo`` shorthand or any git URL)
and it keeps one git working tree per plugin under a root directory,
checked out at the pinned branch or commit.
"""

__version__ = "0.3.0"

from plugsync.core.models import Plugin, PluginSpec
from plugsync.core.registry import PluginRegistry
from plugsync.manager import PlugManager
from plugsync.config import PlugSyncConfig

__all__ = [
    "__version__",
    "Plugin",
    "PluginSpec",
    "PluginRegistry",
    "PlugManager",
    "PlugSyncConfig",
]
