"""Host-facing facade for plugsync.

``PlugManager`` is what a host application embeds. It owns a registry,
runs each command to completion (blocking the caller) and reports progress
through the notification callback it was given. Async hosts should drive
``Installer`` and ``StatusReporter`` directly instead.

Example:
    manager = PlugManager(notify=print)
    plugins = manager.init(
        [
            PluginSpec("erf/vis-highlight", alias="hl"),
            PluginSpec("https://github.com/erf/vis-cursors.git", branch="dev"),
        ],
        auto_install=True,
    )
    plugins["hl"].setup()
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterable, Optional
import structlog

from plugsync.config import PlugSyncConfig, default_root
from plugsync.core.doctor import HealthCheck, get_all_checks
from plugsync.core.git import GitResult, GitRunner
from plugsync.core.installer import Installer
from plugsync.core.models import (
    DEFAULT_MAX_WORKERS,
    InstallSummary,
    PluginSpec,
    PluginStatus,
    RemoveResult,
    StatusKind,
    UpdateSummary,
)
from plugsync.core.registry import PluginRegistry
from plugsync.core.status import StatusReporter
from plugsync.core.upgrade import DEFAULT_UPGRADE_URL, UpgradeResult, upgrade_self
from plugsync.loader import load_plugins

log = structlog.get_logger()

Notify = Callable[[str], None]


@dataclass(frozen=True)
class Command:
    """An entry of the command table exposed to the host."""

    name: str
    description: str
    args: str = ""


COMMANDS = [
    Command("ls", "list plugins"),
    Command("install", "install plugins (git clone)"),
    Command("update", "update plugins (git pull)"),
    Command("outdated", "are repos up-to-date? (compare commits)"),
    Command("upgrade", "fetch latest plugsync (overwrites target)", "{target}"),
    Command("rm", "delete plugin by name (ls for names)", "{name}"),
    Command("clean", "delete all plugins"),
    Command("checkout", "check out a branch or commit of a plugin", "{name} {branch|commit}"),
    Command("doctor", "check git, plugin root and plugin specs"),
    Command("commands", "list these commands"),
]

_STATUS_SUFFIX = {
    StatusKind.UP_TO_DATE: "is up-to-date",
    StatusKind.NEEDS_UPDATE: "needs update",
    StatusKind.NOT_INSTALLED: "is not installed",
}


def _discard(message: str) -> None:
    pass


class PlugManager:
    """Runs plugsync commands for a host application."""

    def __init__(
        self,
        root: Optional[Path] = None,
        notify: Optional[Notify] = None,
        git: Optional[GitRunner] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        upgrade_url: str = DEFAULT_UPGRADE_URL,
    ):
        """Initialize the manager.

        Args:
            root: Root install directory (default: ~/.cache/plugsync)
            notify: Sink for human-readable messages
            git: Git runner shared by all commands
            max_workers: Maximum number of concurrent git processes
            upgrade_url: Where ``upgrade`` downloads plugsync from
        """
        self.registry = PluginRegistry(root if root is not None else default_root())
        self.git = git or GitRunner()
        self.notify = notify or _discard
        self.upgrade_url = upgrade_url
        self.installer = Installer(self.registry, self.git, max_workers, self.notify)
        self.reporter = StatusReporter(self.registry, self.git, max_workers)
        self.plugins: dict[str, ModuleType] = {}

    @classmethod
    def from_config(cls, config: PlugSyncConfig, notify: Optional[Notify] = None) -> "PlugManager":
        """Build a manager from a loaded configuration."""
        return cls(
            root=config.root,
            notify=notify,
            git=GitRunner(timeout=config.git_timeout),
            max_workers=config.max_workers,
            upgrade_url=config.upgrade_url,
        )

    def init(
        self, specs: Iterable[PluginSpec], auto_install: bool = False
    ) -> dict[str, ModuleType]:
        """Resolve plugins, optionally install them, then load them.

        Args:
            specs: Plugin specs in declaration order
            auto_install: Run a silent install before loading

        Returns:
            Mapping of alias -> loaded module for installed, non-theme
            plugins that have an alias
        """
        self.registry.init(specs)
        if auto_install:
            self.install(silent=True)
        self.plugins = load_plugins(self.registry.plugins)
        return self.plugins

    def ls(self) -> list[PluginStatus]:
        statuses = self.reporter.list_plugins()
        self.notify(f"plugins ({len(statuses)})")
        for status in statuses:
            message = f"{status.name} ({status.short_url})"
            if not status.installed:
                message += " is not installed"
            self.notify(message)
        return statuses

    def install(self, silent: bool = False) -> InstallSummary:
        if not silent:
            self.notify("installing..")
        return asyncio.run(self.installer.install_all(silent=silent))

    def update(self) -> UpdateSummary:
        self.notify("updating..")
        return asyncio.run(self.installer.update_all())

    def outdated(self) -> list[PluginStatus]:
        self.notify("checking for updates..")
        statuses = asyncio.run(self.reporter.outdated())
        for status in statuses:
            suffix = _STATUS_SUFFIX.get(status.status, f"could not be checked: {status.error}")
            self.notify(f"{status.name} ({status.short_url}) {suffix}")
        return statuses

    def rm(self, name: str) -> RemoveResult:
        """Delete one plugin's working tree."""
        result = self.registry.remove(name)
        self._report_removal(result)
        return result

    def clean(self) -> list[RemoveResult]:
        """Delete the working trees of all configured plugins."""
        self.notify("cleaning..")
        results = self.registry.remove_all()
        for result in results:
            self._report_removal(result)
        deleted = sum(r.deleted for r in results)
        self.notify(f"deleted {deleted} of {len(results)} plugins")
        return results

    def _report_removal(self, result: RemoveResult) -> None:
        if result.path is None:
            self.notify(f"plugin '{result.name}' not found")
        elif not result.success:
            self.notify(f"{result.name} ({result.path}) could not be deleted: {result.error}")
        elif result.deleted:
            self.notify(f"{result.name} ({result.path}) deleted")
        else:
            self.notify(f"{result.name} ({result.path}) is not installed")

    def checkout(self, name: Optional[str], ref: Optional[str]) -> Optional[GitResult]:
        """Re-pin a plugin to ``ref`` and check it out right away.

        The pin lasts for the lifetime of this manager and overrides any
        configured branch on later installs and updates.

        Returns:
            The checkout result, or None if nothing was checked out
        """
        if not name or not ref:
            self.notify("missing {name} or {branch|commit}")
            return None

        if ref.startswith("-"):
            self.notify(f"invalid branch or commit '{ref}'")
            return None

        plugin = self.registry.repin(name, ref)
        if plugin is None:
            self.notify(f"plugin '{name}' not found")
            return None

        if not plugin.installed:
            self.notify(f"{plugin.label} is not installed, '{ref}' will be checked out on install")
            return None

        result = asyncio.run(self.git.checkout(plugin.local_path, ref))
        if result.success:
            self.notify(f"checked out '{ref}'")
        else:
            self.notify(f"checkout of '{ref}' failed: {result.error}")
            if result.suggestion:
                self.notify(result.suggestion)
        return result

    def upgrade(self, target: Path) -> UpgradeResult:
        """Replace ``target`` with the latest published plugsync file."""
        self.notify("upgrading..")
        result = asyncio.run(upgrade_self(Path(target), self.upgrade_url))
        if result.success:
            self.notify("upgrade OK - restart for latest plugsync")
        elif result.status_code is not None:
            self.notify(f"upgrade failed with code: {result.status_code}")
        else:
            self.notify(f"upgrade failed: {result.error}")
        return result

    def doctor(self) -> list[HealthCheck]:
        checks = get_all_checks(self.registry, self.git)
        for check in checks:
            mark = "ok" if check.passed else "FAIL"
            self.notify(f"[{mark}] {check.name}: {check.message}")
            if check.details:
                self.notify(f"       {check.details}")
        return checks

    def commands(self) -> list[Command]:
        """List the available commands."""
        self.notify("plugsync commands")
        lines = []
        for command in COMMANDS:
            usage = f"{command.name} {command.args}".strip()
            lines.append(f"{usage} - {command.description}")
        self.notify("\n".join(lines))
        return list(COMMANDS)
