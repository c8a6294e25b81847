"""Plugin source URL classification and normalization.

Sources can be written four ways:

    https://github.com/erf/vis-cursors.git   full URL
    gitlab.com/owner/repo                    host-relative
    git@github.com:erf/vis-cursors.git       short SSH
    erf/vis-cursors                          GitHub shorthand

Classification is pattern matching, not URL parsing. Anything that matches
none of the first three patterns is treated as shorthand.
"""

import re
from typing import Optional

from plugsync.core.models import SourceKind

DEFAULT_HOST = "github.com"

_FULL_URL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_SHORT_SSH_RE = re.compile(r"^[^\s@/:]+@[^\s@/:]+:.+")
_HOST_RELATIVE_RE = re.compile(r"^[A-Za-z0-9\-]+(\.[A-Za-z0-9\-]+)+(:\d+)?/.+")
_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_\-][A-Za-z0-9._\-]*$")


def classify(source: str) -> SourceKind:
    """Classify a plugin source string.

    Order matters: a full URL also loosely matches the host-relative and
    shorthand patterns, so the more specific checks run first.

    Args:
        source: Source string as written by the user

    Returns:
        The matching SourceKind
    """
    if _FULL_URL_RE.match(source):
        return SourceKind.FULL_URL
    if _SHORT_SSH_RE.match(source):
        return SourceKind.SHORT_SSH
    if _HOST_RELATIVE_RE.match(source):
        return SourceKind.HOST_RELATIVE
    return SourceKind.SHORTHAND


def canonical_url(source: str) -> str:
    """Return the clone URL for a source string.

    Full and short SSH URLs pass through unchanged. Host-relative URLs get
    an ``https://`` prefix and shorthand is expanded to a GitHub URL. The
    result always classifies as FULL_URL or SHORT_SSH, so calling this on
    its own output is a no-op.

    Examples:
        >>> canonical_url("erf/vis-cursors")
        'https://github.com/erf/vis-cursors'
        >>> canonical_url("gitlab.com/owner/repo")
        'https://gitlab.com/owner/repo'
    """
    source = source.strip()
    kind = classify(source)
    if kind in (SourceKind.FULL_URL, SourceKind.SHORT_SSH):
        return source
    if kind == SourceKind.HOST_RELATIVE:
        return f"https://{source}"
    return f"https://{DEFAULT_HOST}/{source}"


def short_url(url: str) -> str:
    """Shorten a URL for display.

    The scheme is dropped, and so is the host when it is the default host.
    SSH and shorthand forms are returned as-is.
    """
    kind = classify(url)
    if kind == SourceKind.FULL_URL:
        rest = url.split("://", 1)[1]
    elif kind == SourceKind.HOST_RELATIVE:
        rest = url
    else:
        return url

    prefix = f"{DEFAULT_HOST}/"
    if rest.startswith(prefix):
        return rest[len(prefix):]
    return rest


def derive_name(url: str) -> Optional[str]:
    """Derive a plugin directory name from a clone URL.

    Takes the last path segment, ignoring query string, fragment and
    trailing slashes, and drops one trailing extension such as ``.git``.

    Args:
        url: Canonical clone URL

    Returns:
        A filesystem-safe name, or None if none can be extracted
    """
    path = re.split(r"[?#]", url.strip(), maxsplit=1)[0]
    if classify(path) == SourceKind.FULL_URL:
        # A host with no path (e.g. "https://github.com/") has no name
        path = path.split("://", 1)[1].rstrip("/")
        if "/" not in path:
            return None

    path = path.rstrip("/")
    segment = re.split(r"[/:]", path)[-1]

    stem, dot, _ = segment.rpartition(".")
    if dot and stem:
        segment = stem

    if not _SAFE_NAME_RE.match(segment):
        return None
    return segment
