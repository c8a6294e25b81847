"""Tests for the plugin registry."""

import pytest

from plugsync.core.models import PluginSpec
from plugsync.core.registry import PluginRegistry


@pytest.fixture
def registry(root):
    registry = PluginRegistry(root)
    registry.init(
        [
            PluginSpec("erf/vis-highlight", alias="hl"),
            PluginSpec("https://github.com/erf/vis-cursors.git", branch="dev"),
            PluginSpec("erf/dark-theme", theme=True),
        ]
    )
    return registry


def test_init_resolves_in_order(registry, root):
    assert len(registry) == 3
    assert [p.name for p in registry] == ["vis-highlight", "vis-cursors", "dark-theme"]
    assert registry.category_roots == (root / "plugins", root / "themes")


def test_init_replaces_previous_list(registry):
    registry.init([PluginSpec("erf/vis-fzf-open")])
    assert [p.name for p in registry] == ["vis-fzf-open"]
    assert len(registry.specs) == 1


def test_set_root_applies_to_later_init(registry, temp_dir):
    old_path = registry.find_by_name("vis-highlight").local_path
    registry.set_root(temp_dir / "elsewhere")

    assert registry.find_by_name("vis-highlight").local_path == old_path

    registry.init(registry.specs)
    assert registry.find_by_name("vis-highlight").local_path == (
        temp_dir / "elsewhere" / "plugins" / "vis-highlight"
    )


def test_find_by_name(registry):
    assert registry.find_by_name("vis-cursors").branch == "dev"
    assert registry.find_by_name("nope") is None
    assert registry.find_by_name(None) is None


def test_repin_overrides_branch(registry):
    plugin = registry.repin("vis-cursors", "v1.2")
    assert plugin.commit == "v1.2"
    assert plugin.ref == "v1.2"
    assert registry.repin("nope", "v1.2") is None


def test_installed_is_not_cached(registry):
    plugin = registry.find_by_name("vis-highlight")
    assert not plugin.installed
    plugin.local_path.mkdir(parents=True)
    assert plugin.installed


def test_remove_installed_plugin(registry):
    plugin = registry.find_by_name("vis-highlight")
    plugin.local_path.mkdir(parents=True)
    (plugin.local_path / "__init__.py").write_text("")

    result = registry.remove("vis-highlight")

    assert result.success
    assert result.deleted == 1
    assert result.path == plugin.local_path
    assert not plugin.local_path.exists()


def test_remove_absent_plugin_deletes_nothing(registry):
    result = registry.remove("vis-cursors")
    assert result.success
    assert result.deleted == 0


def test_remove_unknown_name(registry):
    result = registry.remove("nope")
    assert not result.success
    assert result.path is None
    assert "not found" in result.error


def test_remove_all(registry):
    registry.find_by_name("vis-highlight").local_path.mkdir(parents=True)
    registry.find_by_name("dark-theme").local_path.mkdir(parents=True)

    results = registry.remove_all()

    assert [r.deleted for r in results] == [1, 0, 1]
    assert not any(p.installed for p in registry)


def test_collisions_reports_shared_paths(root):
    registry = PluginRegistry(root)
    registry.init(
        [
            PluginSpec("https://github.com/erf/vis-cursors.git?x=1"),
            PluginSpec("https://github.com/erf/vis-cursors.git?X=1"),
            PluginSpec("erf/vis-highlight"),
            PluginSpec("other/vis-highlight", theme=True),
        ]
    )

    collisions = registry.collisions()

    assert list(collisions) == [root / "plugins" / "vis-cursors"]
    assert len(collisions[root / "plugins" / "vis-cursors"]) == 2


def test_no_collisions(registry):
    assert registry.collisions() == {}
