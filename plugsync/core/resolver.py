"""Turn caller-supplied plugin specs into resolved Plugin records."""

from pathlib import Path
from typing import Iterable, Optional
import structlog

from plugsync.core.models import Plugin, PluginSpec
from plugsync.core.urls import canonical_url, derive_name, short_url

log = structlog.get_logger()

DEFAULT_ENTRY_POINT = "__init__"
PLUGINS_DIR = "plugins"
THEMES_DIR = "themes"


def category_dir(root: Path, theme: bool) -> Path:
    """Directory that holds working trees of one category."""
    return root / (THEMES_DIR if theme else PLUGINS_DIR)


def resolve(spec: PluginSpec, root: Path) -> Optional[Plugin]:
    """Resolve a single plugin spec.

    Pure data transformation: nothing on disk or on the network is touched.

    Args:
        spec: Plugin spec as written by the caller
        root: Root install directory

    Returns:
        The resolved Plugin, or None if no name can be derived from the URL
    """
    url = canonical_url(spec.source)
    name = derive_name(url)
    if not name:
        log.warning("plugin_resolve_skipped", source=spec.source, url=url)
        return None

    return Plugin(
        canonical_url=url,
        short_url=short_url(url),
        name=name,
        local_path=category_dir(root, spec.theme) / name,
        file=spec.file or DEFAULT_ENTRY_POINT,
        alias=spec.alias,
        branch=spec.branch,
        commit=spec.commit,
        theme=spec.theme,
    )


def resolve_all(specs: Iterable[PluginSpec], root: Path) -> list[Plugin]:
    """Resolve specs in order, dropping the ones that cannot be resolved."""
    plugins = []
    for spec in specs:
        plugin = resolve(spec, root)
        if plugin is not None:
            plugins.append(plugin)
    return plugins
