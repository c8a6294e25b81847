"""plugsync CLI - keep a declared list of git plugins in sync."""

import click
from rich.console import Console

from plugsync import __version__
from plugsync.config import PlugSyncConfig
from plugsync.core.errors import ConfigError
from plugsync.logging import setup_logging
from plugsync.manager import PlugManager

console = Console()


def _notify(message: str) -> None:
    console.print(message, markup=False, highlight=False, soft_wrap=True)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to plugsync.toml")
@click.option("--root", "-r", type=click.Path(), help="Override the plugin root directory")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str = None, root: str = None, log_level: str = None):
    """plugsync - declarative git plugin manager"""
    try:
        config = PlugSyncConfig.load(config_path)
        if root:
            config.root = root
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e))

    setup_logging(
        level=log_level or config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
    )

    manager = PlugManager.from_config(config, notify=_notify)
    manager.registry.init(config.specs())
    ctx.obj = manager


@cli.command("ls")
@click.pass_obj
def ls(manager: PlugManager):
    """List plugins and whether they are installed."""
    manager.ls()


@cli.command()
@click.option("--silent", "-s", is_flag=True, help="Only print the summary")
@click.pass_obj
def install(manager: PlugManager, silent: bool = False):
    """Clone missing plugins and check out pinned refs."""
    summary = manager.install(silent=silent)
    if summary.failed:
        raise SystemExit(1)


@cli.command()
@click.pass_obj
def update(manager: PlugManager):
    """Pull installed plugins and check out pinned refs."""
    summary = manager.update()
    if summary.failed:
        raise SystemExit(1)


@cli.command()
@click.pass_obj
def outdated(manager: PlugManager):
    """Compare local commits with their remotes."""
    manager.outdated()


@cli.command()
@click.argument("name")
@click.pass_obj
def rm(manager: PlugManager, name: str):
    """Delete the plugin NAME (see ls for names)."""
    result = manager.rm(name)
    if not result.success:
        raise SystemExit(1)


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def clean(manager: PlugManager, yes: bool = False):
    """Delete all configured plugins."""
    if not yes and not click.confirm(
        f"Delete {len(manager.registry)} plugins under {manager.registry.root}?"
    ):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    results = manager.clean()
    if not all(r.success for r in results):
        raise SystemExit(1)


@cli.command()
@click.argument("name")
@click.argument("ref")
@click.pass_obj
def checkout(manager: PlugManager, name: str, ref: str):
    """Check out branch or commit REF of plugin NAME."""
    result = manager.checkout(name, ref)
    if result is not None and not result.success:
        raise SystemExit(1)


@cli.command()
@click.argument("target", type=click.Path(dir_okay=False))
@click.pass_obj
def upgrade(manager: PlugManager, target: str):
    """Overwrite TARGET with the latest published plugsync file."""
    result = manager.upgrade(target)
    if not result.success:
        raise SystemExit(1)


@cli.command()
@click.pass_obj
def doctor(manager: PlugManager):
    """Check git, the plugin root and the plugin specs."""
    checks = manager.doctor()
    if not all(c.passed for c in checks):
        raise SystemExit(1)


@cli.command()
@click.pass_obj
def commands(manager: PlugManager):
    """List available commands."""
    manager.commands()


def main():
    cli()


if __name__ == "__main__":
    main()
