"""Plugin registry: the resolved plugin list and the root install path.

The registry is an explicit object owned by the caller and passed to the
orchestrators; there is no module-level state. It is mutated only by
``init``, ``repin`` and the remove operations, never during a batch.
"""

import shutil
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional
import structlog

from plugsync.core.errors import classify_os_error
from plugsync.core.models import Plugin, PluginSpec, RemoveResult
from plugsync.core.resolver import category_dir, resolve_all

log = structlog.get_logger()


class PluginRegistry:
    """Holds resolved plugins for one plugin root.

    Example:
        registry = PluginRegistry(Path("~/.cache/plugsync").expanduser())
        registry.init([PluginSpec("erf/vis-highlight")])
        plugin = registry.find_by_name("vis-highlight")
    """

    def __init__(self, root: Path):
        """Initialize an empty registry.

        Args:
            root: Root install directory (holds plugins/ and themes/)
        """
        self.root = Path(root).expanduser()
        self.specs: list[PluginSpec] = []
        self.plugins: list[Plugin] = []

    def set_root(self, path: Path) -> None:
        """Change the root install directory.

        Only plugins resolved by a later ``init`` use the new root; plugins
        already resolved keep their paths.
        """
        self.root = Path(path).expanduser()

    @property
    def category_roots(self) -> tuple[Path, Path]:
        """The plugins/ and themes/ directories under the root."""
        return category_dir(self.root, False), category_dir(self.root, True)

    def init(self, specs: Iterable[PluginSpec]) -> list[Plugin]:
        """Store and resolve plugin specs, replacing any previous list.

        Specs that cannot be resolved are dropped (and logged by the
        resolver).

        Returns:
            The resolved plugins
        """
        self.specs = list(specs)
        self.plugins = resolve_all(self.specs, self.root)
        log.info(
            "registry_initialized",
            root=str(self.root),
            specs=len(self.specs),
            plugins=len(self.plugins),
        )
        return self.plugins

    def __len__(self) -> int:
        return len(self.plugins)

    def __iter__(self):
        return iter(self.plugins)

    def find_by_name(self, name: Optional[str]) -> Optional[Plugin]:
        """Find a plugin by its derived name (linear lookup)."""
        if not name:
            return None
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def repin(self, name: str, ref: str) -> Optional[Plugin]:
        """Pin a plugin to a ref for the lifetime of this registry.

        The ref is stored as ``commit`` so it wins over any configured
        branch on every later checkout. Nothing is persisted.

        Returns:
            The re-pinned plugin, or None if no plugin has that name
        """
        plugin = self.find_by_name(name)
        if plugin is None:
            return None
        plugin.commit = ref
        log.info("plugin_repinned", name=name, ref=ref)
        return plugin

    def collisions(self) -> dict[Path, list[Plugin]]:
        """Plugins that share a working tree path.

        Two specs that derive the same name in the same category would
        clone into the same directory. The registry does not fix this;
        callers can use this to report it.

        Returns:
            Mapping of shared path -> plugins using it (only paths with
            more than one plugin)
        """
        by_path: dict[Path, list[Plugin]] = defaultdict(list)
        for plugin in self.plugins:
            by_path[plugin.local_path].append(plugin)
        return {path: plugins for path, plugins in by_path.items() if len(plugins) > 1}

    def remove(self, name: str) -> RemoveResult:
        """Delete a plugin's working tree.

        Removing a plugin that is not installed is a no-op with zero
        deleted. An unknown name gives an unsuccessful result.
        """
        plugin = self.find_by_name(name)
        if plugin is None:
            return RemoveResult(
                name=name,
                success=False,
                error=f"Plugin '{name}' not found",
            )
        return self._remove_plugin(plugin)

    def remove_all(self) -> list[RemoveResult]:
        """Delete the working trees of every plugin in the registry."""
        return [self._remove_plugin(plugin) for plugin in self.plugins]

    def _remove_plugin(self, plugin: Plugin) -> RemoveResult:
        path = plugin.local_path
        if not plugin.installed:
            return RemoveResult(name=plugin.name, success=True, deleted=0, path=path)

        try:
            shutil.rmtree(path)
        except OSError as e:
            classified = classify_os_error(e)
            log.error("plugin_remove_failed", name=plugin.name, path=str(path), error=str(e))
            return RemoveResult(
                name=plugin.name,
                success=False,
                path=path,
                error=str(classified),
            )

        log.info("plugin_removed", name=plugin.name, path=str(path))
        return RemoveResult(name=plugin.name, success=True, deleted=1, path=path)
