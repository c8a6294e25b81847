"""Shared test fixtures."""

import asyncio
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

import pytest

from plugsync.core.git import GitResult, GitRunner


@pytest.fixture
def temp_dir():
    """Temporary directory for tests."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


# =============================================================================
# Real git repositories
# =============================================================================


def git(*args, cwd: Path) -> str:
    """Run git in ``cwd`` and return trimmed stdout, failing the test on error."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write, add and commit one file. Returns the new HEAD hash."""
    (repo / name).write_text(content)
    git("add", name, cwd=repo)
    git("commit", "-m", message, cwd=repo)
    return git("rev-parse", "HEAD", cwd=repo)


def make_origin(parent: Path, name: str, with_dev_branch: bool = True) -> Path:
    """Create a repository that plays the role of a plugin remote.

    It has one commit with an ``__init__.py`` entry point on the default
    branch and, optionally, a ``dev`` branch one commit ahead.
    """
    repo = parent / name
    repo.mkdir(parents=True)
    git("init", cwd=repo)
    git("config", "user.email", "test@example.com", cwd=repo)
    git("config", "user.name", "Test User", cwd=repo)
    git("config", "commit.gpgsign", "false", cwd=repo)

    commit_file(repo, "__init__.py", f"NAME = {name!r}\n", "Initial commit")

    if with_dev_branch:
        default_branch = git("rev-parse", "--abbrev-ref", "HEAD", cwd=repo)
        git("checkout", "-b", "dev", cwd=repo)
        commit_file(repo, "dev.txt", "work in progress\n", "Dev commit")
        git("checkout", default_branch, cwd=repo)

    return repo


@pytest.fixture
def remotes(temp_dir):
    """Directory holding origin repositories."""
    path = temp_dir / "remotes"
    path.mkdir()
    return path


@pytest.fixture
def origin(remotes):
    """A plugin remote named vis-highlight."""
    return make_origin(remotes, "vis-highlight")


@pytest.fixture
def root(temp_dir):
    """Plugin root directory (not created)."""
    return temp_dir / "root"


# =============================================================================
# Fake git runner
# =============================================================================


class FakeGit(GitRunner):
    """GitRunner that never spawns processes.

    Clones create the destination directory. Hashes come from the
    ``local`` and ``remote`` dicts (keyed by directory name and URL).
    """

    def __init__(
        self,
        delay: float = 0.0,
        fail_urls: tuple = (),
        local: Optional[dict] = None,
        remote: Optional[dict] = None,
    ):
        super().__init__()
        self.delay = delay
        self.fail_urls = set(fail_urls)
        self.local = local or {}
        self.remote = remote or {}
        self.calls: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _busy(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)
        self.in_flight -= 1

    async def clone(self, url, dest):
        self.calls.append(("clone", url))
        await self._busy()
        if url in self.fail_urls:
            return GitResult(success=False, stderr="fatal: repository not found")
        Path(dest).mkdir(parents=True)
        return GitResult(success=True)

    async def pull(self, path):
        self.calls.append(("pull", Path(path).name))
        await self._busy()
        return GitResult(success=True)

    async def fetch(self, path):
        self.calls.append(("fetch", Path(path).name))
        await self._busy()
        return GitResult(success=True)

    async def checkout(self, path, ref):
        if not ref:
            return None
        self.calls.append(("checkout", Path(path).name, ref))
        return GitResult(success=True)

    async def local_head_hash(self, path):
        name = Path(path).name
        self.calls.append(("rev-parse", name))
        return GitResult(success=True, stdout=self.local.get(name, "a" * 40))

    async def remote_head_hash(self, url):
        self.calls.append(("ls-remote", url))
        if url in self.remote:
            return GitResult(success=True, stdout=self.remote[url])
        return GitResult(success=False, stderr="fatal: could not read from remote")


@pytest.fixture
def fake_git():
    return FakeGit()
