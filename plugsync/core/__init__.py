"""Core of plugsync: resolve plugin specs and keep their git trees in sync.

Pieces, leaves first:
- urls: classify and normalize source strings
- resolver: PluginSpec -> Plugin
- git: clone / pull / checkout / hash queries
- registry: the resolved plugin list for one root
- installer: concurrent install and update batches
- status: list and outdated reports
"""

from plugsync.core.models import (
    InstallSummary,
    Plugin,
    PluginSpec,
    PluginStatus,
    RemoveResult,
    SourceKind,
    StatusKind,
    UpdateSummary,
)
from plugsync.core.urls import (
    canonical_url,
    classify,
    derive_name,
    short_url,
)
from plugsync.core.resolver import resolve, resolve_all
from plugsync.core.git import GitResult, GitRunner
from plugsync.core.registry import PluginRegistry
from plugsync.core.installer import Installer
from plugsync.core.status import StatusReporter

__all__ = [
    # Models
    "InstallSummary",
    "Plugin",
    "PluginSpec",
    "PluginStatus",
    "RemoveResult",
    "SourceKind",
    "StatusKind",
    "UpdateSummary",
    # URLs
    "canonical_url",
    "classify",
    "derive_name",
    "short_url",
    # Resolver
    "resolve",
    "resolve_all",
    # Git
    "GitResult",
    "GitRunner",
    # Registry and orchestration
    "PluginRegistry",
    "Installer",
    "StatusReporter",
]
