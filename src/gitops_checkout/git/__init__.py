"""Git command execution and error classification."""

from .error_classifier import REFUSED, REJECTED, TRANSIENT, UNKNOWN, classify_push_error
from .runner import DEFAULT_GIT_TIMEOUT, GitRunner, SubprocessGitRunner

__all__ = [
    "DEFAULT_GIT_TIMEOUT",
    "GitRunner",
    "REFUSED",
    "REJECTED",
    "SubprocessGitRunner",
    "TRANSIENT",
    "UNKNOWN",
    "classify_push_error",
]
