"""Plugin records and result types.

A ``PluginSpec`` is what the caller writes down; a ``Plugin`` is what the
resolver turns it into. Orchestrators report back through the summary
dataclasses at the bottom of this module.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

# Concurrent git processes per batch
DEFAULT_MAX_WORKERS = 8


class SourceKind(str, Enum):
    """How a plugin source string was written."""

    FULL_URL = "full_url"            # https://host/owner/repo
    HOST_RELATIVE = "host_relative"  # host.tld/owner/repo
    SHORT_SSH = "short_ssh"          # git@host:owner/repo.git
    SHORTHAND = "shorthand"          # owner/repo


class StatusKind(str, Enum):
    """Per-plugin state reported by the status reporter."""

    INSTALLED = "installed"
    NOT_INSTALLED = "not-installed"
    UP_TO_DATE = "up-to-date"
    NEEDS_UPDATE = "needs-update"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PluginSpec:
    """A plugin as declared by the caller.

    Attributes:
        source: Repository URL or shorthand (``owner/repo``)
        file: Entry-point name inside the repository
        alias: Key under which the loaded plugin is exposed to the host
        branch: Branch to check out after clone/pull
        commit: Commit to check out; wins over ``branch``
        theme: Store under ``themes/`` and never load as code
    """

    source: str
    file: Optional[str] = None
    alias: Optional[str] = None
    branch: Optional[str] = None
    commit: Optional[str] = None
    theme: bool = False


@dataclass
class Plugin:
    """A resolved plugin.

    Only the resolver and ``PluginRegistry.repin`` mutate these records.

    Attributes:
        canonical_url: Scheme-qualified clone URL
        short_url: Display form of the URL
        name: Directory name derived from the URL
        local_path: Working tree location (root/plugins|themes/name)
        file: Entry-point name inside the working tree
        alias: Host-facing key for the loaded plugin
        branch: Pinned branch
        commit: Pinned commit
        theme: Whether the plugin lives under ``themes/``
    """

    canonical_url: str
    short_url: str
    name: str
    local_path: Path
    file: str
    alias: Optional[str] = None
    branch: Optional[str] = None
    commit: Optional[str] = None
    theme: bool = False

    @property
    def installed(self) -> bool:
        """True if the working tree directory exists. Never cached."""
        return self.local_path.is_dir()

    @property
    def ref(self) -> Optional[str]:
        """The ref a checkout should target, commit first."""
        return self.commit or self.branch

    @property
    def label(self) -> str:
        return f"{self.name} ({self.short_url})"


@dataclass
class PluginStatus:
    """Read-only status of a single plugin."""

    name: str
    short_url: str
    installed: bool
    status: StatusKind
    local_hash: Optional[str] = None
    remote_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class InstallSummary:
    """Outcome of an install batch.

    Attributes:
        cloned: Plugins cloned by this batch
        already_installed: Plugins whose working tree already existed
        failed: Canonical URL (or category directory) -> error message,
            for clones, checkouts and path collisions
        checked_out: Plugins that had a pinned ref applied
    """

    cloned: list[str] = field(default_factory=list)
    already_installed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    checked_out: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.cloned)

    @property
    def noop(self) -> bool:
        return not self.cloned and not self.failed


@dataclass
class UpdateSummary:
    """Outcome of an update batch.

    Attributes:
        updated: Plugins pulled (or fetched) successfully
        changed: Subset of ``updated`` whose HEAD moved
        skipped: Plugins that are not installed
        failed: Canonical URL -> error message, for updates, checkouts
            and path collisions
        checked_out: Plugins that had a pinned ref applied
    """

    updated: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    checked_out: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.updated)

    @property
    def noop(self) -> bool:
        return not self.updated and not self.failed


@dataclass
class RemoveResult:
    """Result of removing a plugin working tree."""

    name: str
    success: bool
    deleted: int = 0
    path: Optional[Path] = None
    error: Optional[str] = None
