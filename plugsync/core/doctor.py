"""Health checks for the plugsync doctor command."""

import subprocess
from pathlib import Path
from typing import Optional

import structlog

from plugsync.core.git import GitRunner
from plugsync.core.registry import PluginRegistry
from plugsync.core.urls import canonical_url

log = structlog.get_logger()


class HealthCheck:
    """Result of a health check."""

    def __init__(self, name: str, passed: bool, message: str, details: Optional[str] = None):
        self.name = name
        self.passed = passed
        self.message = message
        self.details = details


def check_git(git: GitRunner) -> HealthCheck:
    """Check that git is installed and report its version."""
    if not git.available():
        return HealthCheck(
            name="Git",
            passed=False,
            message="Not found in PATH",
            details="Install git to clone and update plugins",
        )

    try:
        result = subprocess.run(
            [git.executable, "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        return HealthCheck(name="Git", passed=False, message=f"Error: {e}")

    if result.returncode != 0:
        return HealthCheck(
            name="Git",
            passed=False,
            message=f"git --version exited with {result.returncode}",
            details=result.stderr.strip() or None,
        )
    return HealthCheck(name="Git", passed=True, message=result.stdout.strip())


def check_root(root: Path) -> HealthCheck:
    """Check that the plugin root exists (or can be created) and is writable."""
    try:
        root.mkdir(parents=True, exist_ok=True)
        probe = root / ".write_test"
        probe.touch()
        probe.unlink()
    except OSError as e:
        return HealthCheck(
            name="Plugin root",
            passed=False,
            message=f"Not writable: {root}",
            details=str(e),
        )
    return HealthCheck(name="Plugin root", passed=True, message=str(root))


def check_resolution(registry: PluginRegistry) -> HealthCheck:
    """Check that every configured spec resolved to a plugin."""
    dropped = len(registry.specs) - len(registry.plugins)
    if dropped:
        resolved_urls = {p.canonical_url for p in registry.plugins}
        skipped = [
            s.source for s in registry.specs if canonical_url(s.source) not in resolved_urls
        ]
        return HealthCheck(
            name="Plugin specs",
            passed=False,
            message=f"{dropped} of {len(registry.specs)} specs could not be resolved",
            details=", ".join(skipped) or None,
        )
    return HealthCheck(
        name="Plugin specs",
        passed=True,
        message=f"All {len(registry.specs)} specs resolved",
    )


def check_collisions(registry: PluginRegistry) -> HealthCheck:
    """Check that no two plugins share a working tree directory."""
    collisions = registry.collisions()
    if collisions:
        details = "; ".join(
            f"{path}: {', '.join(p.canonical_url for p in plugins)}"
            for path, plugins in collisions.items()
        )
        return HealthCheck(
            name="Plugin paths",
            passed=False,
            message=f"{len(collisions)} directories shared by several plugins",
            details=details,
        )
    return HealthCheck(name="Plugin paths", passed=True, message="No collisions")


def get_all_checks(registry: PluginRegistry, git: Optional[GitRunner] = None) -> list[HealthCheck]:
    """Run every health check.

    Args:
        registry: Initialized plugin registry
        git: Git runner whose executable is checked

    Returns:
        Health checks in display order
    """
    checks = [
        check_git(git or GitRunner()),
        check_root(registry.root),
        check_resolution(registry),
        check_collisions(registry),
    ]
    log.info("doctor_finished", failed=sum(1 for c in checks if not c.passed))
    return checks
