"""
Git error classifier for push failure categorization.

Classifies git push stderr output so the delete retry loop can report why
the remote did not accept the tombstone commit.

git ends almost every failed push with "error: failed to push some refs",
so that trailer says nothing about the cause and is not matched. Per-ref
status lines and fatal messages are.
"""

from typing import List, Tuple

REJECTED = "rejected"
REFUSED = "refused"
TRANSIENT = "transient"
UNKNOWN = "unknown"

# The server refused the update on policy grounds (hooks, protected
# branches). Pulling does not help.
REFUSED_PATTERNS: List[str] = [
    "[remote rejected]",
    "hook declined",
    "protected branch",
    "GH006",
    "not allowed to push",
]

# The remote branch moved ahead of the local one. Another writer pushed
# concurrently; pulling and pushing again can succeed.
REJECTED_PATTERNS: List[str] = [
    "[rejected]",
    "non-fast-forward",
    "fetch first",
    "Updates were rejected because",
    "cannot lock ref",
    "stale info",
]

# Network, DNS and authentication failures.
TRANSIENT_PATTERNS: List[str] = [
    "Could not resolve host",
    "Connection refused",
    "Connection timed out",
    "Connection reset",
    "Network is unreachable",
    "SSL",
    "unable to access",
    "Authentication failed",
    "the remote end hung up unexpectedly",
    "Could not read from remote repository",
]

_CATEGORIES: Tuple[Tuple[str, List[str]], ...] = (
    (REFUSED, REFUSED_PATTERNS),
    (REJECTED, REJECTED_PATTERNS),
    (TRANSIENT, TRANSIENT_PATTERNS),
)


def classify_push_error(stderr: str) -> str:
    """
    Classify a git push failure from its stderr output.

    Refusals are checked before rejections because a refused ref is also
    reported in a "[remote rejected]" status line.

    Args:
        stderr: The raw stderr string from the failed git push invocation.

    Returns:
        "refused"   if the server declined the update (hook, protection).
        "rejected"  if another writer advanced the remote branch.
        "transient" if the error indicates a network or authentication issue.
        "unknown"   if the error does not match any known pattern.
    """
    lowered = stderr.lower()
    for category, patterns in _CATEGORIES:
        for pattern in patterns:
            if pattern.lower() in lowered:
                return category
    return UNKNOWN
