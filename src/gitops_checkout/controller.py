"""
Checkout Lifecycle Controller.

Drives the create/read/delete transitions of a git working copy managed as
a declarative resource. Every operation runs under the path lock for the
checkout directory and is built purely from GitRunner invocations.

Delete is the destructive path: it re-synchronizes, verifies that the
working copy still matches the recorded state, pushes an empty tombstone
commit (retrying against concurrent writers) and only then removes the
directory. A delete whose push never lands never removes local files.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Callable, Optional, Tuple

from gitops_checkout.config import ProviderConfig
from gitops_checkout.errors import (
    CloneError,
    FilesystemError,
    GitCommandError,
    IdentityMismatchError,
    PushRetriesExhaustedError,
    SanityCheckFailedError,
    SyncError,
)
from gitops_checkout.git.error_classifier import classify_push_error
from gitops_checkout.git.runner import GitRunner
from gitops_checkout.locks import PathLockRegistry
from gitops_checkout.logging_utils import ErrorCode, format_error_log
from gitops_checkout.models import TOMBSTONE_MESSAGE, CheckoutOptions, CheckoutState

logger = logging.getLogger(__name__)


class CheckoutController:
    """
    Implements the lifecycle entry points for a checkout resource.

    Example:
        >>> controller = CheckoutController(SubprocessGitRunner())
        >>> state = controller.create(config, CheckoutState())
        >>> state = controller.read(config, state)
        >>> controller.delete(config, state)
    """

    REMOTE_NAME = "origin"

    def __init__(
        self,
        runner: GitRunner,
        lock_registry: Optional[PathLockRegistry] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the checkout controller.

        Args:
            runner: Git command execution primitive
            lock_registry: Registry serializing operations per path; a fresh
                           registry owned by this controller when omitted
            sleep: Blocking wait used between delete push attempts
        """
        self.runner = runner
        self.lock_registry = lock_registry if lock_registry is not None else PathLockRegistry()
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Lifecycle entry points
    # ------------------------------------------------------------------

    def create(self, config: ProviderConfig, state: CheckoutState) -> CheckoutState:
        """
        Ensure a clone exists at config.path and return its observed attributes.

        The returned state carries identity == config.path. On failure the
        exception propagates and the caller's state is left without identity.

        Raises:
            CloneError: If the remote cannot be cloned
            SyncError: If pulling from origin fails
            GitCommandError: If observing the working copy fails
        """
        with self.lock_registry.locked(config.path):
            self.clone_if_not_exist(config)
            created = state.model_copy(update={"id": config.path, "path": config.path})
            return self.reconcile(config, created)

    def update(self, config: ProviderConfig, state: CheckoutState) -> CheckoutState:
        """Update is identical to create: clone if needed, then reconcile."""
        return self.create(config, state)

    def read(self, config: ProviderConfig, state: CheckoutState) -> CheckoutState:
        """
        Synchronize the working copy with its remote and re-observe it.

        Re-clones when the directory was removed out-of-band.

        Raises:
            IdentityMismatchError: If state.id differs from config.path
            CloneError: If a missing checkout cannot be re-cloned
            SyncError: If pulling from origin fails
        """
        self._check_identity(config, state)

        with self.lock_registry.locked(config.path):
            self.clone_if_not_exist(config)
            return self.reconcile(config, state)

    def delete(self, config: ProviderConfig, state: CheckoutState) -> None:
        """
        Push a tombstone commit and remove the checkout directory.

        Steps, all under the path lock:
            1. Re-clone if the directory is missing.
            2. Observe repo/branch, pull, observe head.
            3. Compare against the recorded state; abort on any mismatch.
            4. Commit an empty tombstone on the current branch.
            5. Push it, pulling and retrying while the remote keeps moving.
            6. Remove the directory tree.

        Raises:
            IdentityMismatchError: If state.id differs from config.path
            SanityCheckFailedError: If the working copy diverged from state
            PushRetriesExhaustedError: If no push attempt succeeded
            FilesystemError: If the directory cannot be removed
        """
        self._check_identity(config, state)
        options = state.options()

        with self.lock_registry.locked(config.path):
            self.clone_if_not_exist(config)

            repo, branch, head = self._observe(config.path, options.merging_strategy)
            self._sanity_check(state, repo, branch, head)

            self._commit_tombstone(config.path)
            self._push_with_retry(config.path, options)
            self._remove_checkout(config.path)

    # ------------------------------------------------------------------
    # Clone and reconciliation
    # ------------------------------------------------------------------

    def clone_if_not_exist(self, config: ProviderConfig) -> bool:
        """
        Clone config.repo at config.branch into config.path unless a clone exists.

        Returns:
            True if a clone was performed, False if one already existed

        Raises:
            CloneError: If git clone fails
        """
        checkout_dir = Path(config.path)
        if (checkout_dir / ".git").exists():
            return False

        parent = checkout_dir.parent
        parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Cloning {config.repo} ({config.branch}) into {config.path}")
        try:
            self.runner.run(
                str(parent), "clone", "--branch", config.branch, config.repo, config.path
            )
        except GitCommandError as e:
            logger.error(
                format_error_log(
                    ErrorCode.CLONE,
                    "Clone failed",
                    repo=config.repo,
                    branch=config.branch,
                    path=config.path,
                    returncode=e.returncode,
                )
            )
            raise CloneError(
                f"Failed to clone {config.repo} branch {config.branch} into {config.path}",
                command=e.command,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

        return True

    def reconcile(self, config: ProviderConfig, state: CheckoutState) -> CheckoutState:
        """
        Pull from origin and return state with freshly observed repo/branch/head.

        This is a live synchronization, not a cache lookup.
        """
        repo, branch, head = self._observe(config.path, state.merging_strategy)
        logger.info(f"Reconciled {config.path}: repo={repo} branch={branch} head={head}")
        return state.model_copy(
            update={
                "path": config.path,
                "repo": repo,
                "branch": branch,
                "head": head,
            }
        )

    def _observe(self, checkout_dir: str, merging_strategy: str) -> Tuple[str, str, str]:
        """Read remote URL and branch, pull, then read the resulting head."""
        repo = self.runner.run(checkout_dir, "config", "--get", "remote.origin.url")
        branch = self.runner.run(checkout_dir, "rev-parse", "--abbrev-ref", "HEAD")
        self._pull(checkout_dir, merging_strategy)
        head = self.runner.run(checkout_dir, "rev-parse", "HEAD")
        return repo, branch, head

    def _pull(self, checkout_dir: str, merging_strategy: str) -> None:
        try:
            self.runner.run(checkout_dir, "pull", merging_strategy, self.REMOTE_NAME)
        except GitCommandError as e:
            logger.error(
                format_error_log(
                    ErrorCode.SYNC,
                    "Pull failed",
                    path=checkout_dir,
                    strategy=merging_strategy,
                    returncode=e.returncode,
                )
            )
            raise SyncError(
                f"Failed to pull {self.REMOTE_NAME} into {checkout_dir}",
                command=e.command,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

    # ------------------------------------------------------------------
    # Delete helpers
    # ------------------------------------------------------------------

    def _check_identity(self, config: ProviderConfig, state: CheckoutState) -> None:
        if config.path != state.id:
            logger.error(
                format_error_log(
                    ErrorCode.IDENTITY,
                    "Checkout directory state mismatch",
                    configured=config.path,
                    recorded=state.id,
                )
            )
            raise IdentityMismatchError(config.path, state.id)

    def _sanity_check(self, state: CheckoutState, repo: str, branch: str, head: str) -> None:
        observed = (("repo", repo), ("branch", branch), ("head", head))
        for attribute, actual in observed:
            expected = getattr(state, attribute)
            if expected != actual:
                logger.error(
                    format_error_log(
                        ErrorCode.SANITY,
                        "Refusing to delete modified checkout",
                        path=state.id,
                        attribute=attribute,
                        expected=expected,
                        actual=actual,
                    )
                )
                raise SanityCheckFailedError(attribute, expected, actual)

    def _commit_tombstone(self, checkout_dir: str) -> None:
        try:
            self.runner.run(
                checkout_dir, "commit", "--allow-empty", "-m", TOMBSTONE_MESSAGE
            )
        except GitCommandError as e:
            raise GitCommandError(
                f"push error: {e.args[0]}",
                command=e.command,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

    def _push_with_retry(self, checkout_dir: str, options: CheckoutOptions) -> int:
        """
        Push HEAD to origin, re-synchronizing between rejected attempts.

        Each retry sleeps retry_interval seconds, pulls with the configured
        merge strategy so the tombstone sits on the new remote tip, then
        pushes again. retry_count == 0 still makes a single attempt.

        Returns:
            Number of push attempts made (the last one succeeded)

        Raises:
            PushRetriesExhaustedError: If every attempt failed
            SyncError: If a pull between attempts fails
        """
        max_attempts = max(1, options.retry_count)
        attempt = 0

        while True:
            attempt += 1
            try:
                self.runner.run(checkout_dir, "push", self.REMOTE_NAME, "HEAD")
                logger.info(
                    f"Tombstone pushed for {checkout_dir} "
                    f"on attempt {attempt}/{max_attempts}"
                )
                return attempt
            except GitCommandError as e:
                category = classify_push_error(e.stderr)
                if attempt >= max_attempts:
                    logger.error(
                        format_error_log(
                            ErrorCode.PUSH,
                            "Push retries exhausted",
                            path=checkout_dir,
                            attempts=attempt,
                            category=category,
                        )
                    )
                    raise PushRetriesExhaustedError(attempt, e, category) from e

                logger.warning(
                    f"Push attempt {attempt}/{max_attempts} for {checkout_dir} failed "
                    f"(category={category}), retrying in {options.retry_interval}s"
                )

            self.sleep(options.retry_interval)
            self._pull(checkout_dir, options.merging_strategy)

    def _remove_checkout(self, checkout_dir: str) -> None:
        try:
            shutil.rmtree(checkout_dir)
        except FileNotFoundError:
            logger.warning(f"Checkout directory already removed: {checkout_dir}")
            return
        except OSError as e:
            logger.error(
                format_error_log(
                    ErrorCode.FS,
                    "Tombstone pushed but directory removal failed",
                    path=checkout_dir,
                )
            )
            raise FilesystemError(checkout_dir, e) from e

        logger.info(f"Removed checkout directory {checkout_dir}")
