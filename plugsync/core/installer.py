"""Install and update orchestration.

Both batches follow the same shape: a concurrent phase (clone or pull) over
independent repositories, bounded by ``max_workers``, then a barrier, then a
sequential checkout phase that re-applies pinned refs to every installed
plugin. A failure in one plugin is recorded in the summary and never stops
the rest of the batch. Plugins that resolve to a working tree already
claimed by an earlier plugin are reported and left out of both phases.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence
import structlog

from plugsync.core.errors import classify_os_error
from plugsync.core.git import GitResult, GitRunner
from plugsync.core.models import DEFAULT_MAX_WORKERS, InstallSummary, Plugin, UpdateSummary
from plugsync.core.registry import PluginRegistry

log = structlog.get_logger()

Notify = Callable[[str], None]


def _discard(message: str) -> None:
    pass


def _plural(count: int) -> str:
    return "plugin" if count == 1 else "plugins"


class Installer:
    """Clones, updates and checks out the plugins of a registry.

    Example:
        installer = Installer(registry, GitRunner(timeout=120), notify=print)
        summary = await installer.install_all()
        print(summary.count, summary.failed)
    """

    def __init__(
        self,
        registry: PluginRegistry,
        git: Optional[GitRunner] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        notify: Optional[Notify] = None,
    ):
        """Initialize the installer.

        Args:
            registry: Registry holding the resolved plugins
            git: Git runner (a default runner without timeout if omitted)
            max_workers: Maximum number of concurrent git processes
            notify: Sink for human-readable progress messages
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.registry = registry
        self.git = git or GitRunner()
        self.max_workers = max_workers
        self.notify = notify or _discard

    async def _fan_out(
        self,
        plugins: Sequence[Plugin],
        operation: Callable[[Plugin], Awaitable[GitResult]],
    ) -> list[tuple[Plugin, GitResult]]:
        """Run ``operation`` for every plugin concurrently and wait for all."""
        semaphore = asyncio.Semaphore(self.max_workers)

        async def worker(plugin: Plugin) -> tuple[Plugin, GitResult]:
            async with semaphore:
                try:
                    return plugin, await operation(plugin)
                except Exception as e:
                    log.error("plugin_operation_crashed", name=plugin.name, error=str(e))
                    return plugin, GitResult(success=False, stderr=str(e))

        return list(await asyncio.gather(*(worker(p) for p in plugins)))

    def _ensure_dirs(self, failed: dict[str, str]) -> None:
        for directory in self.registry.category_roots:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                error = str(classify_os_error(e))
                log.error("plugin_dir_create_failed", path=str(directory), error=str(e))
                failed[str(directory)] = error
                self.notify(f"could not create {directory}: {error}")

    def _claim_paths(self, failed: dict[str, str], silent: bool = False) -> list[Plugin]:
        """Plugins that own their working tree, in declaration order.

        The first plugin declared for a path owns it. Later plugins that
        resolve to the same path are recorded as failed and left out of the
        batch, so two git processes never share a directory.
        """
        owners: dict[Path, Plugin] = {}
        for plugin in self.registry.plugins:
            owner = owners.setdefault(plugin.local_path, plugin)
            if owner is plugin:
                continue

            error = f"shares {plugin.local_path} with {owner.canonical_url}"
            failed[plugin.canonical_url] = error
            log.warning(
                "plugin_path_collision",
                name=plugin.name,
                url=plugin.canonical_url,
                owner=owner.canonical_url,
                path=str(plugin.local_path),
            )
            if not silent:
                self.notify(f"{plugin.label} skipped: {error}")
        return list(owners.values())

    async def _checkout_all(
        self,
        plugins: Sequence[Plugin],
        failed: dict[str, str],
        checked_out: list[str],
        silent: bool = False,
    ) -> None:
        """Re-apply pinned refs, one plugin at a time."""
        for plugin in plugins:
            if not plugin.installed:
                continue

            result = await self.git.checkout(plugin.local_path, plugin.ref)
            if result is None:
                continue

            if result.success:
                checked_out.append(plugin.name)
                log.info("plugin_checked_out", name=plugin.name, ref=plugin.ref)
                if not silent:
                    self.notify(f"{plugin.label} checked out '{plugin.ref}'")
            else:
                failed[plugin.canonical_url] = result.error
                log.warning(
                    "plugin_checkout_failed",
                    name=plugin.name,
                    ref=plugin.ref,
                    error=result.error,
                )
                if not silent:
                    self.notify(f"{plugin.label} checkout of '{plugin.ref}' failed: {result.error}")

    async def install_all(self, silent: bool = False) -> InstallSummary:
        """Clone every plugin that is not installed, then apply pinned refs.

        Args:
            silent: Suppress per-plugin messages (the summary is still sent)

        Returns:
            InstallSummary for the batch
        """
        summary = InstallSummary()
        self._ensure_dirs(summary.failed)
        plugins = self._claim_paths(summary.failed, silent)

        present: list[Plugin] = []
        pending: list[Plugin] = []
        for plugin in plugins:
            (present if plugin.installed else pending).append(plugin)

        for plugin in present:
            summary.already_installed.append(plugin.name)
            if not silent:
                self.notify(f"{plugin.label} is already installed")

        log.info("install_started", pending=len(pending), present=len(present))

        results = await self._fan_out(
            pending,
            lambda plugin: self.git.clone(plugin.canonical_url, plugin.local_path),
        )

        for plugin, result in results:
            if result.success:
                summary.cloned.append(plugin.name)
                log.info("plugin_cloned", name=plugin.name, url=plugin.canonical_url)
                if not silent:
                    self.notify(f"{plugin.label} installed")
            else:
                summary.failed[plugin.canonical_url] = result.error
                log.warning(
                    "plugin_clone_failed",
                    name=plugin.name,
                    url=plugin.canonical_url,
                    error=result.error,
                    suggestion=result.suggestion,
                )
                if not silent:
                    self.notify(f"{plugin.label} install failed: {result.error}")

        await self._checkout_all(plugins, summary.failed, summary.checked_out, silent)

        if summary.noop:
            self.notify("nothing to install")
        else:
            message = f"installed {summary.count} {_plural(summary.count)}"
            if summary.failed:
                message += f", {len(summary.failed)} failed"
            self.notify(message)

        log.info(
            "install_finished",
            cloned=summary.count,
            failed=len(summary.failed),
            checked_out=len(summary.checked_out),
        )
        return summary

    async def update_all(self) -> UpdateSummary:
        """Pull every installed plugin, then apply pinned refs.

        Plugins pinned to a commit are fetched instead of pulled since their
        HEAD is detached. Plugins that are not installed are skipped.

        Returns:
            UpdateSummary for the batch
        """
        summary = UpdateSummary()
        changed: set[Path] = set()
        plugins = self._claim_paths(summary.failed)

        installed: list[Plugin] = []
        for plugin in plugins:
            if plugin.installed:
                installed.append(plugin)
            else:
                summary.skipped.append(plugin.name)
                self.notify(f"{plugin.label} is not installed")

        async def update_one(plugin: Plugin) -> GitResult:
            before = await self.git.local_head_hash(plugin.local_path)
            operation = self.git.fetch if plugin.commit else self.git.pull
            result = await operation(plugin.local_path)
            if result.success:
                after = await self.git.local_head_hash(plugin.local_path)
                if before.success and after.success and before.stdout != after.stdout:
                    changed.add(plugin.local_path)
            return result

        log.info("update_started", installed=len(installed), skipped=len(summary.skipped))

        for plugin, result in await self._fan_out(installed, update_one):
            if result.success:
                summary.updated.append(plugin.name)
                if plugin.local_path in changed:
                    summary.changed.append(plugin.name)
                    self.notify(f"{plugin.label} updated")
                else:
                    self.notify(f"{plugin.label} is up-to-date")
                log.info("plugin_updated", name=plugin.name, changed=plugin.local_path in changed)
            else:
                summary.failed[plugin.canonical_url] = result.error
                log.warning(
                    "plugin_update_failed",
                    name=plugin.name,
                    error=result.error,
                    suggestion=result.suggestion,
                )
                self.notify(f"{plugin.label} update failed: {result.error}")

        await self._checkout_all(plugins, summary.failed, summary.checked_out)

        if summary.noop:
            self.notify("nothing to update")
        else:
            message = f"updated {summary.count} {_plural(summary.count)}"
            if summary.changed:
                message += f" ({len(summary.changed)} changed)"
            if summary.failed:
                message += f", {len(summary.failed)} failed"
            self.notify(message)

        log.info(
            "update_finished",
            updated=summary.count,
            changed=len(summary.changed),
            failed=len(summary.failed),
        )
        return summary
