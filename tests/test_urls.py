"""Tests for plugin source URL handling."""

import pytest

from plugsync.core.models import SourceKind
from plugsync.core.urls import canonical_url, classify, derive_name, short_url


# =============================================================================
# classify
# =============================================================================


@pytest.mark.parametrize(
    "source,kind",
    [
        ("https://github.com/erf/vis-cursors.git", SourceKind.FULL_URL),
        ("ssh://git@example.com/owner/repo.git", SourceKind.FULL_URL),
        ("file:///srv/git/repo", SourceKind.FULL_URL),
        ("git@github.com:erf/vis-cursors.git", SourceKind.SHORT_SSH),
        ("gitlab.com/owner/repo", SourceKind.HOST_RELATIVE),
        ("git.example.org:8443/owner/repo", SourceKind.HOST_RELATIVE),
        ("erf/vis-cursors", SourceKind.SHORTHAND),
    ],
)
def test_classify(source, kind):
    assert classify(source) == kind


def test_shorthand_repo_with_dot_is_not_host_relative():
    # The first segment has no dot, so it is a GitHub owner, not a host
    assert classify("erf/vis.plug") == SourceKind.SHORTHAND


# =============================================================================
# canonical_url
# =============================================================================


def test_canonical_url_expands_shorthand():
    assert canonical_url("erf/vis-highlight") == "https://github.com/erf/vis-highlight"


def test_canonical_url_prefixes_host_relative():
    assert canonical_url("gitlab.com/owner/repo") == "https://gitlab.com/owner/repo"


def test_canonical_url_keeps_full_and_ssh():
    assert canonical_url("https://github.com/erf/vis-cursors.git") == (
        "https://github.com/erf/vis-cursors.git"
    )
    assert canonical_url("git@github.com:erf/vis-cursors.git") == (
        "git@github.com:erf/vis-cursors.git"
    )


def test_canonical_url_strips_whitespace():
    assert canonical_url("  erf/vis-highlight\n") == "https://github.com/erf/vis-highlight"


@pytest.mark.parametrize(
    "source",
    [
        "erf/vis-highlight",
        "gitlab.com/owner/repo",
        "https://github.com/erf/vis-cursors.git",
        "git@github.com:erf/vis-cursors.git",
    ],
)
def test_canonical_url_is_idempotent(source):
    once = canonical_url(source)
    assert canonical_url(once) == once
    assert classify(once) in (SourceKind.FULL_URL, SourceKind.SHORT_SSH)


# =============================================================================
# short_url
# =============================================================================


def test_short_url_drops_scheme_and_default_host():
    assert short_url("https://github.com/erf/vis-highlight") == "erf/vis-highlight"


def test_short_url_keeps_other_hosts():
    assert short_url("https://gitlab.com/owner/repo") == "gitlab.com/owner/repo"


def test_short_url_never_has_scheme():
    for url in [
        "https://github.com/erf/vis-cursors.git",
        "http://example.com/a/b",
        "file:///srv/git/repo",
    ]:
        assert "://" not in short_url(url)


def test_short_url_leaves_ssh_alone():
    assert short_url("git@github.com:erf/vis-cursors.git") == "git@github.com:erf/vis-cursors.git"


# =============================================================================
# derive_name
# =============================================================================


@pytest.mark.parametrize(
    "url,name",
    [
        ("https://github.com/erf/vis-highlight.git", "vis-highlight"),
        ("https://github.com/erf/vis-highlight", "vis-highlight"),
        ("https://github.com/erf/vis-highlight/", "vis-highlight"),
        ("https://github.com/erf/vis-cursors.git?ref=x#readme", "vis-cursors"),
        ("git@github.com:erf/vis-cursors.git", "vis-cursors"),
        ("git@github.com:vis-cursors.git", "vis-cursors"),
        ("https://github.com/erf/vis.plug.git", "vis.plug"),
        ("file:///srv/git/repo", "repo"),
    ],
)
def test_derive_name(url, name):
    assert derive_name(url) == name


@pytest.mark.parametrize(
    "url",
    [
        "https://",
        "https://github.com",
        "https://github.com/",
        "https://gitlab.com/",
        "https://github.com/?tab=repositories",
        "https://github.com/erf/..",
        "https://github.com/erf/a b",
        "",
    ],
)
def test_derive_name_rejects_unusable_urls(url):
    assert derive_name(url) is None


def test_derive_name_rejects_hidden_names():
    # ".vimrc" has no stem before the dot, so nothing is stripped
    assert derive_name("https://example.com/owner/.vimrc") is None
