"""Read-only status reports for the plugins of a registry."""

import asyncio
from typing import Optional
import structlog

from plugsync.core.git import GitRunner
from plugsync.core.models import DEFAULT_MAX_WORKERS, Plugin, PluginStatus, StatusKind
from plugsync.core.registry import PluginRegistry

log = structlog.get_logger()


class StatusReporter:
    """Computes installed and outdated state without changing anything."""

    def __init__(
        self,
        registry: PluginRegistry,
        git: Optional[GitRunner] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.registry = registry
        self.git = git or GitRunner()
        self.max_workers = max_workers

    def list_plugins(self) -> list[PluginStatus]:
        """Installed / not installed for every plugin. Spawns no processes."""
        statuses = []
        for plugin in self.registry.plugins:
            installed = plugin.installed
            statuses.append(
                PluginStatus(
                    name=plugin.name,
                    short_url=plugin.short_url,
                    installed=installed,
                    status=StatusKind.INSTALLED if installed else StatusKind.NOT_INSTALLED,
                )
            )
        return statuses

    async def outdated(self) -> list[PluginStatus]:
        """Compare local HEAD with remote HEAD for every installed plugin.

        Hashes are compared as full strings. Plugins that are not installed
        are reported as such without querying the remote.

        Returns:
            One PluginStatus per plugin, in registry order
        """
        semaphore = asyncio.Semaphore(self.max_workers)

        async def check(plugin: Plugin) -> PluginStatus:
            if not plugin.installed:
                return PluginStatus(
                    name=plugin.name,
                    short_url=plugin.short_url,
                    installed=False,
                    status=StatusKind.NOT_INSTALLED,
                )
            async with semaphore:
                return await self._compare(plugin)

        statuses = await asyncio.gather(*(check(p) for p in self.registry.plugins))
        log.info(
            "outdated_checked",
            total=len(statuses),
            needs_update=sum(1 for s in statuses if s.status == StatusKind.NEEDS_UPDATE),
        )
        return list(statuses)

    async def _compare(self, plugin: Plugin) -> PluginStatus:
        local = await self.git.local_head_hash(plugin.local_path)
        remote = await self.git.remote_head_hash(plugin.canonical_url)

        status = PluginStatus(
            name=plugin.name,
            short_url=plugin.short_url,
            installed=True,
            status=StatusKind.UNKNOWN,
            local_hash=local.stdout if local.success else None,
            remote_hash=remote.stdout if remote.success else None,
        )

        if not local.success or not remote.success:
            status.error = local.error or remote.error
            log.warning("plugin_hash_query_failed", name=plugin.name, error=status.error)
        elif status.local_hash == status.remote_hash:
            status.status = StatusKind.UP_TO_DATE
        else:
            status.status = StatusKind.NEEDS_UPDATE
        return status
