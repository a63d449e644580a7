"""
Git command execution primitive.

All checkout operations are built from single git invocations of the shape
run(working_directory, *args). GitRunner is the seam the controller depends
on; SubprocessGitRunner is the production implementation that shells out to
the git binary.
"""

import logging
import subprocess
from typing import List, Protocol

from gitops_checkout.errors import GitCommandError

logger = logging.getLogger(__name__)


DEFAULT_GIT_TIMEOUT = 300  # seconds, generous for clone/pull/push over the network


class GitRunner(Protocol):
    """Executes one git command in a working directory."""

    def run(self, working_dir: str, *args: str) -> str:
        """
        Run `git <args>` with working_dir as the current directory.

        Returns:
            Captured stdout with trailing newlines removed.

        Raises:
            GitCommandError: On non-zero exit or execution failure.
        """
        ...


class SubprocessGitRunner:
    """
    GitRunner backed by subprocess.run against the git binary.

    Each call is a blocking external-process invocation. Output is captured
    as text; stdout is returned with trailing newlines stripped, stderr is
    attached to GitCommandError on failure.
    """

    def __init__(self, git_binary: str = "git", timeout: int = DEFAULT_GIT_TIMEOUT):
        """
        Initialize subprocess git runner.

        Args:
            git_binary: Name or path of the git executable
            timeout: Per-invocation timeout in seconds
        """
        self.git_binary = git_binary
        self.timeout = timeout

    def _command(self, *args: str) -> List[str]:
        return [self.git_binary, "--no-pager", *args]

    def run(self, working_dir: str, *args: str) -> str:
        cmd = self._command(*args)
        logger.debug(f"Running git command in {working_dir}: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                cwd=working_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                f"Git command timed out after {self.timeout}s: {' '.join(cmd)}",
                command=cmd,
            ) from e
        except FileNotFoundError as e:
            # Either the binary or the working directory does not exist
            raise GitCommandError(
                f"Cannot execute {' '.join(cmd)} in {working_dir}: {e}",
                command=cmd,
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            raise GitCommandError(
                f"Git command failed with exit code {result.returncode}: {' '.join(cmd)}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )

        return result.stdout.rstrip("\n") if result.stdout else ""
