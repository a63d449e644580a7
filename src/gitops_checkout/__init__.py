"""
Git working copy management as a declarative resource.

A checkout is cloned on create, synchronized with its remote on every read,
and removed on delete only after an empty tombstone commit has landed on the
remote branch.

Example:
    >>> from gitops_checkout import CheckoutController, ProviderConfig, CheckoutState
    >>> from gitops_checkout.git import SubprocessGitRunner
    >>> controller = CheckoutController(SubprocessGitRunner())
    >>> config = ProviderConfig(repo="git@github.com:example/infra.git",
    ...                         branch="main", path="/srv/checkouts/infra")
    >>> state = controller.create(config, CheckoutState())
"""

__version__ = "0.3.0"

from .config import ProviderConfig, ProviderConfigManager
from .controller import CheckoutController
from .errors import (
    CheckoutError,
    CloneError,
    FilesystemError,
    GitCommandError,
    IdentityMismatchError,
    PushRetriesExhaustedError,
    SanityCheckFailedError,
    SyncError,
)
from .locks import PathLockRegistry, canonical_path
from .models import CheckoutOptions, CheckoutState
from .resource import ApplyResult, CheckoutResource, PlanAction

__all__ = [
    "ApplyResult",
    "CheckoutController",
    "CheckoutError",
    "CheckoutOptions",
    "CheckoutResource",
    "CheckoutState",
    "CloneError",
    "FilesystemError",
    "GitCommandError",
    "IdentityMismatchError",
    "PathLockRegistry",
    "PlanAction",
    "ProviderConfig",
    "ProviderConfigManager",
    "PushRetriesExhaustedError",
    "SanityCheckFailedError",
    "SyncError",
    "canonical_path",
]
