"""Git primitives used by the orchestrators.

Every operation spawns exactly one ``git`` process with an argument list
(never a shell string) and returns a GitResult. Failures are captured in the
result; nothing in here raises for a failed git command.
"""

import asyncio
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import structlog

from plugsync.core.errors import ErrorCategory, classify_git_failure

log = structlog.get_logger()


@dataclass
class GitResult:
    """Result of a git invocation.

    Attributes:
        success: Whether git exited with status 0
        command: Argument list that was executed
        returncode: Exit status, None if the process never ran or timed out
        stdout: Trimmed standard output
        stderr: Trimmed standard error
        error_category: Classification of the failure
        suggestion: Actionable suggestion for fixing the failure
    """

    success: bool
    command: list[str] = field(default_factory=list)
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error_category: Optional[ErrorCategory] = None
    suggestion: Optional[str] = None

    @property
    def error(self) -> Optional[str]:
        """Best available error message, None on success."""
        if self.success:
            return None
        return self.stderr or self.stdout or f"git exited with code {self.returncode}"


def _failure(command: list[str], message: str, returncode: Optional[int] = None) -> GitResult:
    classified = classify_git_failure(message)
    return GitResult(
        success=False,
        command=command,
        returncode=returncode,
        stderr=message,
        error_category=classified.category,
        suggestion=classified.suggestion,
    )


class GitRunner:
    """Runs git commands for plugin working trees.

    Example:
        git = GitRunner(timeout=120)
        result = await git.clone("https://github.com/erf/vis-cursors", dest)
        if not result.success:
            print(result.error, result.suggestion)
    """

    def __init__(self, timeout: Optional[float] = None, executable: str = "git"):
        """Initialize the runner.

        Args:
            timeout: Seconds before a git process is killed. None = no limit.
            executable: Name or path of the git binary
        """
        self.timeout = timeout
        self.executable = executable

    def available(self) -> bool:
        """Check if the git executable can be found."""
        return shutil.which(self.executable) is not None

    async def run(self, *args: str) -> GitResult:
        """Run git with the given arguments.

        Args:
            *args: Arguments passed to git, one list element each

        Returns:
            GitResult with trimmed output
        """
        command = [self.executable, *args]
        # Never block on an interactive credential prompt
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        log.debug("git_execute", command=command)

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError:
            return _failure(command, f"{self.executable} is not installed or not in PATH")
        except OSError as e:
            return _failure(command, f"Failed to start {self.executable}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            log.warning("git_timeout", command=command, timeout=self.timeout)
            return _failure(command, f"git timed out after {self.timeout}s")

        out = stdout.decode("utf-8", errors="replace").strip()
        err = stderr.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            log.debug("git_failed", command=command, returncode=proc.returncode, stderr=err)
            result = _failure(command, err or out, proc.returncode)
            result.stdout = out
            return result

        return GitResult(
            success=True,
            command=command,
            returncode=proc.returncode,
            stdout=out,
            stderr=err,
        )

    async def clone(self, url: str, dest: Path) -> GitResult:
        """Clone ``url`` into ``dest``."""
        return await self.run("clone", "--quiet", "--", url, str(dest))

    async def pull(self, path: Path) -> GitResult:
        """Fast-forward an existing working tree."""
        return await self.run("-C", str(path), "pull", "--quiet")

    async def fetch(self, path: Path) -> GitResult:
        """Fetch without merging; used for trees pinned to a commit."""
        return await self.run("-C", str(path), "fetch", "--quiet")

    async def checkout(self, path: Path, ref: Optional[str]) -> Optional[GitResult]:
        """Check out a branch or commit.

        There is no implicit default-branch checkout: with no ref the tree
        is left on whatever the clone produced.

        Args:
            path: Working tree
            ref: Commit or branch name, or None

        Returns:
            GitResult, or None if there was nothing to check out
        """
        if not ref:
            return None
        command = [self.executable, "-C", str(path), "checkout", "--quiet", ref]
        if ref.startswith("-"):
            return _failure(command, f"Invalid ref: {ref}")
        return await self.run("-C", str(path), "checkout", "--quiet", ref, "--")

    async def local_head_hash(self, path: Path) -> GitResult:
        """Commit hash of HEAD in a working tree (in ``stdout``)."""
        return await self.run("-C", str(path), "rev-parse", "HEAD")

    async def remote_head_hash(self, url: str) -> GitResult:
        """Commit hash of the remote HEAD (in ``stdout``).

        Read-only; the result's stdout holds only the hash.
        """
        command = [self.executable, "ls-remote", url, "HEAD"]
        if url.startswith("-"):
            return _failure(command, f"Invalid repository URL: {url}")

        result = await self.run("ls-remote", url, "HEAD")
        if not result.success:
            return result

        lines = result.stdout.splitlines()
        if not lines or not lines[0].split():
            return _failure(result.command, f"No HEAD found on remote {url}", result.returncode)

        result.stdout = lines[0].split()[0]
        return result
