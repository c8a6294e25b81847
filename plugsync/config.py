"""Configuration for plugsync with validation."""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import structlog
import toml

from plugsync.core.errors import ConfigError
from plugsync.core.models import DEFAULT_MAX_WORKERS, PluginSpec
from plugsync.core.upgrade import DEFAULT_UPGRADE_URL

log = structlog.get_logger()


def default_root() -> Path:
    """Default plugin root, e.g. ~/.cache/plugsync.

    ``PLUGSYNC_ROOT`` wins, then ``$XDG_CACHE_HOME/plugsync``, then
    ``$HOME/.cache/plugsync``.
    """
    override = os.environ.get("PLUGSYNC_ROOT")
    if override:
        return Path(override).expanduser()

    cache_dir = os.environ.get("XDG_CACHE_HOME")
    if not cache_dir:
        home = os.environ.get("HOME") or str(Path.home())
        cache_dir = os.path.join(home, ".cache")
    return Path(cache_dir).expanduser() / "plugsync"


class PluginEntry(BaseModel):
    """One ``[[plugins]]`` entry of the config file."""

    model_config = ConfigDict(extra="forbid")

    source: str
    file: Optional[str] = None
    alias: Optional[str] = None
    branch: Optional[str] = None
    commit: Optional[str] = None
    theme: bool = False

    @field_validator("source")
    @classmethod
    def source_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Plugin source cannot be empty")
        return v.strip()

    def to_spec(self) -> PluginSpec:
        return PluginSpec(
            source=self.source,
            file=self.file,
            alias=self.alias,
            branch=self.branch,
            commit=self.commit,
            theme=self.theme,
        )


class PlugSyncConfig(BaseModel):
    """Main configuration for plugsync with validation."""

    model_config = ConfigDict(validate_assignment=True)

    # Paths
    root: Path = Field(default_factory=default_root)

    # Execution
    max_workers: int = Field(gt=0, default=DEFAULT_MAX_WORKERS)
    git_timeout: Optional[float] = Field(default=None, gt=0)

    # Self-upgrade
    upgrade_url: str = DEFAULT_UPGRADE_URL

    # Logging
    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    log_file: Optional[Path] = None

    # Plugins
    plugins: list[PluginEntry] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def expand_root(cls, v):
        return Path(v).expanduser()

    def specs(self) -> list[PluginSpec]:
        """Plugin specs in declaration order."""
        return [entry.to_spec() for entry in self.plugins]

    @classmethod
    def load(cls, path: Optional[str] = None) -> "PlugSyncConfig":
        """Load configuration from a TOML file.

        Search order if path not provided:
        1. ./plugsync.toml (project-specific)
        2. ~/.config/plugsync/config.toml (user default)

        Args:
            path: Optional explicit config file path

        Returns:
            PlugSyncConfig instance (defaults if no file is found)

        Raises:
            ConfigError: If an explicit path is missing, or a file cannot
                be parsed or validated
        """
        if path is not None and not Path(path).expanduser().exists():
            raise ConfigError(f"Config file not found: {path}")

        if path is None:
            candidates = [
                Path("plugsync.toml"),
                Path("~/.config/plugsync/config.toml").expanduser(),
            ]
            for candidate in candidates:
                if candidate.exists():
                    path = str(candidate)
                    log.info("config_found", path=path)
                    break

        if path is None:
            log.info("config_using_defaults")
            return cls()

        try:
            data = toml.load(Path(path).expanduser())
        except (OSError, toml.TomlDecodeError) as e:
            log.error("config_load_failed", path=path, error=str(e))
            raise ConfigError(f"Could not read {path}: {e}") from e

        try:
            config = cls(**data)
        except ValidationError as e:
            log.error("config_invalid", path=path, error=str(e))
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e

        log.info("config_loaded", path=path, plugins=len(config.plugins))
        return config

    def save(self, path: str):
        """Save configuration to TOML file.

        Args:
            path: File path to save to
        """
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            data = self.model_dump(mode="json", exclude_none=True)
            toml.dump(data, f)
        log.info("config_saved", path=path)
