"""
Shared pytest fixtures for gitops-checkout tests.

Provides:
- FakeGitRunner: scriptable GitRunner recording every invocation and its
  time interval, so controller behaviour (including the delete retry loop
  and lock exclusion) can be tested without real git or network
- SleepRecorder: injected sleep that records requested delays instead of
  blocking
"""

import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from gitops_checkout.config import ProviderConfig
from gitops_checkout.controller import CheckoutController
from gitops_checkout.errors import GitCommandError
from gitops_checkout.locks import PathLockRegistry
from gitops_checkout.models import CheckoutState


FAKE_REPO_URL = "git@example.com:platform/infra.git"
FAKE_HEAD = "a" * 40

REJECTED_PUSH_STDERR = (
    "To example.com:platform/infra.git\n"
    " ! [rejected]        HEAD -> main (fetch first)\n"
    "error: failed to push some refs to 'example.com:platform/infra.git'"
)


def rejected_push_error() -> GitCommandError:
    """Build the error git push raises when another writer got there first."""
    return GitCommandError(
        "Git command failed with exit code 1: git --no-pager push origin HEAD",
        command=["git", "--no-pager", "push", "origin", "HEAD"],
        returncode=1,
        stderr=REJECTED_PUSH_STDERR,
    )


class FakeGitRunner:
    """
    Scriptable in-memory GitRunner.

    Default behaviour models a healthy checkout: clone creates <path>/.git,
    config/rev-parse return repo/branch/head attributes, everything else
    returns "". script() overrides responses for commands matching an args
    prefix; responses are consumed in order and the last one repeats.
    A response may be a string, an exception instance (raised) or a
    callable(working_dir, args) -> str.
    """

    def __init__(self, repo: str = FAKE_REPO_URL, branch: str = "main", head: str = FAKE_HEAD):
        self.repo = repo
        self.branch = branch
        self.head = head
        self.delay = 0.0
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []
        self.intervals: List[Tuple[str, float, float]] = []
        self._scripts: Dict[Tuple[str, ...], List[Any]] = {}
        self._record_lock = threading.Lock()

    def script(self, prefix: Tuple[str, ...], *responses: Any) -> None:
        self._scripts[tuple(prefix)] = list(responses)

    def run(self, working_dir: str, *args: str) -> str:
        start = time.monotonic()
        with self._record_lock:
            self.calls.append((working_dir, args))
        try:
            if self.delay:
                time.sleep(self.delay)
            return self._respond(working_dir, args)
        finally:
            with self._record_lock:
                self.intervals.append((working_dir, start, time.monotonic()))

    def _respond(self, working_dir: str, args: Tuple[str, ...]) -> str:
        matches = [key for key in self._scripts if args[: len(key)] == key]
        if matches:
            queue = self._scripts[max(matches, key=len)]
            response = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(response, BaseException):
                raise response
            if callable(response):
                return response(working_dir, args)
            return response
        return self._default(working_dir, args)

    def _default(self, working_dir: str, args: Tuple[str, ...]) -> str:
        if args[0] == "clone":
            (Path(args[-1]) / ".git").mkdir(parents=True, exist_ok=True)
            return ""
        if args == ("config", "--get", "remote.origin.url"):
            return self.repo
        if args == ("rev-parse", "--abbrev-ref", "HEAD"):
            return self.branch
        if args == ("rev-parse", "HEAD"):
            return self.head
        return ""

    def commands(self) -> List[Tuple[str, ...]]:
        """Return the args of every call, in order."""
        return [args for _, args in self.calls]

    def count(self, command: str) -> int:
        """Return how many calls ran the given git subcommand."""
        return sum(1 for _, args in self.calls if args[0] == command)


class SleepRecorder:
    """Injected sleep capturing delays without blocking."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_git() -> FakeGitRunner:
    return FakeGitRunner()


@pytest.fixture
def push_rejection():
    """Factory returning a fresh rejected-push GitCommandError."""
    return rejected_push_error


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def lock_registry() -> PathLockRegistry:
    return PathLockRegistry()


@pytest.fixture
def controller(fake_git, lock_registry, sleep_recorder) -> CheckoutController:
    return CheckoutController(fake_git, lock_registry=lock_registry, sleep=sleep_recorder)


@pytest.fixture
def checkout_config(tmp_path) -> ProviderConfig:
    return ProviderConfig(
        repo=FAKE_REPO_URL,
        branch="main",
        path=str(tmp_path / "checkouts" / "infra"),
    )


@pytest.fixture
def created_state(controller, checkout_config, fake_git) -> CheckoutState:
    """State of a successfully created checkout; the fake's call log is reset."""
    state = controller.create(checkout_config, CheckoutState())
    fake_git.calls.clear()
    fake_git.intervals.clear()
    return state
