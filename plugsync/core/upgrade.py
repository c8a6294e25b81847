"""Self-upgrade: replace a file of plugsync with a freshly downloaded copy.

This overwrites code in place, so the target path is always passed in
explicitly; nothing here searches for where plugsync is installed. The new
content is written beside the target first and then moved over it, so a
failed download never leaves a truncated file behind.
"""

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import httpx
import structlog

from plugsync.core.errors import UpgradeError

log = structlog.get_logger()

DEFAULT_UPGRADE_URL = (
    "https://raw.githubusercontent.com/plugsync/plugsync/main/plugsync/manager.py"
)
DEFAULT_TIMEOUT = 30.0


@dataclass
class UpgradeResult:
    """Result of a self-upgrade.

    Attributes:
        success: Whether the target was replaced
        path: Target file
        status_code: HTTP status of the download, if a response arrived
        bytes_written: Size of the new file
        error: Error message if failed
    """

    success: bool
    path: Path
    status_code: Optional[int] = None
    bytes_written: int = 0
    error: Optional[str] = None


async def _download(
    url: str,
    client: Optional[httpx.AsyncClient],
    timeout: float,
) -> tuple[bytes, int]:
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    try:
        response = await client.get(url, headers={"Cache-Control": "no-cache"})
    except httpx.HTTPError as e:
        raise UpgradeError(f"Request to {url} failed: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        raise UpgradeError(
            f"Download failed with HTTP {response.status_code}",
            status_code=response.status_code,
        )
    if not response.content:
        raise UpgradeError("Downloaded file is empty", status_code=response.status_code)

    return response.content, response.status_code


def _replace(target: Path, content: bytes) -> None:
    if not target.parent.is_dir():
        raise UpgradeError(f"Target directory does not exist: {target.parent}")

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=target.parent, prefix=f".{target.name}.", delete=False
        ) as tmp:
            tmp.write(content)
            tmp_path = Path(tmp.name)
        if target.exists():
            shutil.copymode(target, tmp_path)
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise UpgradeError(f"Could not write {target}: {e}") from e


async def upgrade_self(
    target: Path,
    url: str = DEFAULT_UPGRADE_URL,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> UpgradeResult:
    """Download ``url`` and atomically replace ``target`` with it.

    Args:
        target: File to overwrite
        url: Where to fetch the replacement from
        client: HTTP client to use (a short-lived one is created if omitted)
        timeout: Request timeout in seconds for the default client

    Returns:
        UpgradeResult; the status code distinguishes HTTP failures
    """
    target = Path(target).expanduser()
    log.info("upgrade_started", url=url, target=str(target))

    try:
        content, status_code = await _download(url, client, timeout)
        _replace(target, content)
    except UpgradeError as e:
        log.error("upgrade_failed", url=url, target=str(target), error=str(e))
        return UpgradeResult(
            success=False,
            path=target,
            status_code=e.status_code,
            error=str(e),
        )

    log.info("upgrade_finished", target=str(target), size=len(content))
    return UpgradeResult(
        success=True,
        path=target,
        status_code=status_code,
        bytes_written=len(content),
    )
