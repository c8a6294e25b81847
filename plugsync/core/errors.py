"""Error types and git failure classification.

Batch operations never raise for a single plugin; they return structured
results. This module gives those results a category and, where we know
one, an actionable suggestion for the user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PlugSyncError(Exception):
    """Base exception for plugsync."""


class ConfigError(PlugSyncError):
    """Raised when the configuration file cannot be read or validated."""


class UpgradeError(PlugSyncError):
    """Raised when fetching a replacement of plugsync itself fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ErrorCategory(Enum):
    """Categories of git failures."""

    TRANSIENT = "transient"   # Network, timeout - try again later
    NOT_FOUND = "not_found"   # Repository or ref does not exist
    AUTH = "auth"             # Credentials or permissions
    CONFLICT = "conflict"     # Local changes, destination exists
    FATAL = "fatal"           # Anything else


@dataclass
class ClassifiedError:
    """A classified failure with handling metadata."""

    category: ErrorCategory
    message: str
    retryable: bool
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


# (keywords, category, retryable, suggestion), first match wins
_GIT_PATTERNS = [
    (
        ("could not resolve host", "unable to access", "connection timed out",
         "connection refused", "network is unreachable", "timed out"),
        ErrorCategory.TRANSIENT,
        True,
        "Check your network connection and try again",
    ),
    (
        ("authentication failed", "permission denied", "could not read username",
         "terminal prompts disabled"),
        ErrorCategory.AUTH,
        False,
        "Check the repository URL and your git credentials",
    ),
    (
        ("repository not found", "does not appear to be a git repository",
         "not found"),
        ErrorCategory.NOT_FOUND,
        False,
        "Check that the repository exists and the URL is spelled correctly",
    ),
    (
        ("did not match any file(s) known to git", "pathspec", "unknown revision",
         "invalid reference", "reference is not a tree"),
        ErrorCategory.NOT_FOUND,
        False,
        "Check the pinned branch or commit name",
    ),
    (
        ("already exists and is not an empty directory",),
        ErrorCategory.CONFLICT,
        False,
        "Remove the existing directory or pick another plugin name",
    ),
    (
        ("would be overwritten", "not possible to fast-forward", "divergent branches",
         "you have unstaged changes", "please commit your changes"),
        ErrorCategory.CONFLICT,
        False,
        "Commit, stash or discard local changes in the plugin directory",
    ),
    (
        ("you are not currently on a branch",),
        ErrorCategory.CONFLICT,
        False,
        "The plugin is pinned to a commit; check out a branch to pull",
    ),
]


def classify_git_failure(message: str) -> ClassifiedError:
    """Classify a git error message.

    Args:
        message: stderr (or stdout) of the failed git process

    Returns:
        ClassifiedError with category, retryability and suggestion
    """
    text = message.strip()
    lowered = text.lower()

    for keywords, category, retryable, suggestion in _GIT_PATTERNS:
        if any(kw in lowered for kw in keywords):
            return ClassifiedError(
                category=category,
                message=text,
                retryable=retryable,
                suggestion=suggestion,
            )

    return ClassifiedError(
        category=ErrorCategory.FATAL,
        message=text,
        retryable=False,
    )


def classify_os_error(error: OSError) -> ClassifiedError:
    """Classify a filesystem error raised while preparing or removing trees."""
    if isinstance(error, PermissionError):
        suggestion = "Check directory permissions or choose another root"
    elif "no space left" in str(error).lower():
        suggestion = "Free up disk space on the device"
    else:
        suggestion = None

    return ClassifiedError(
        category=ErrorCategory.FATAL,
        message=str(error),
        retryable=False,
        suggestion=suggestion,
    )
