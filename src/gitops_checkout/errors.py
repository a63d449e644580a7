"""
Error hierarchy for checkout lifecycle operations.

Every error raised by the controller subclasses CheckoutError so a host
can surface any failure of a lifecycle call with a single except clause.
"""

from typing import List, Optional


class CheckoutError(Exception):
    """Base exception for checkout lifecycle failures."""

    pass


class GitCommandError(CheckoutError):
    """
    Raised when a git invocation exits non-zero or cannot be executed.

    Attributes:
        command: Full argv that was executed (including the git binary).
        returncode: Process exit code, or None when the process never
                    completed (timeout, missing binary).
        stderr: Captured standard error, stripped.
    """

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr}"
        return base


class CloneError(GitCommandError):
    """Raised when the remote cannot be cloned (unreachable remote, unknown branch)."""

    pass


class SyncError(GitCommandError):
    """Raised when pulling from origin fails (network failure or merge conflict)."""

    pass


class IdentityMismatchError(CheckoutError):
    """Raised when the recorded resource identity disagrees with the configured path."""

    def __init__(self, checkout_dir: str, expected: Optional[str]):
        super().__init__(
            f"Checkout directory state mismatch. "
            f"Checkout Directory is: {checkout_dir}. Expected: {expected}"
        )
        self.checkout_dir = checkout_dir
        self.expected = expected


class SanityCheckFailedError(CheckoutError):
    """
    Raised when freshly observed repo/branch/head differ from recorded state.

    Delete aborts on this error and leaves the working copy untouched.
    """

    def __init__(self, attribute: str, expected: Optional[str], actual: str):
        super().__init__(f"expected {attribute} to be {expected}, was {actual}")
        self.attribute = attribute
        self.expected = expected
        self.actual = actual


class PushRetriesExhaustedError(CheckoutError):
    """Raised when every push attempt of the delete retry loop failed."""

    def __init__(self, attempts: int, last_error: GitCommandError, category: str):
        super().__init__(
            f"Push failed after {attempts} attempt(s) "
            f"(last failure category={category}): {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error
        self.category = category


class FilesystemError(CheckoutError):
    """Raised when the checkout directory cannot be removed after a successful push."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Failed to remove checkout directory {path}: {cause}")
        self.path = path
        self.cause = cause
