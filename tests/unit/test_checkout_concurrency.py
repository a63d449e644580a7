"""
Tests for lock discipline of CheckoutController under concurrent callers.

- Lifecycle calls on the same path never overlap their git invocations
- Lifecycle calls on distinct paths proceed in parallel
"""

import threading
from typing import List

from gitops_checkout.config import ProviderConfig
from gitops_checkout.models import CheckoutState


def _run_threads(targets) -> List[BaseException]:
    errors: List[BaseException] = []

    def wrap(target):
        def runner():
            try:
                target()
            except BaseException as e:  # collected and asserted by the test
                errors.append(e)

        return runner

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return errors


class TestSamePathExclusion:
    """Operations against one checkout path are serialized."""

    def test_concurrent_creates_never_overlap_git_calls(self, controller, checkout_config, fake_git):
        """Two creates on the same path produce strictly sequential git invocations."""
        fake_git.delay = 0.01

        errors = _run_threads(
            [
                lambda: controller.create(checkout_config, CheckoutState()),
                lambda: controller.create(checkout_config, CheckoutState()),
            ]
        )

        assert errors == []
        intervals = sorted((start, end) for _, start, end in fake_git.intervals)
        for (_, previous_end), (next_start, _) in zip(intervals, intervals[1:]):
            assert next_start >= previous_end
        # Only the first create clones; the second finds the checkout in place
        assert fake_git.count("clone") == 1

    def test_read_and_delete_on_same_path_are_serialized(
        self, controller, checkout_config, created_state, fake_git
    ):
        """A read racing a delete never interleaves with the delete's git calls."""
        fake_git.delay = 0.01
        results = {}

        def read():
            try:
                results["read"] = controller.read(checkout_config, created_state)
            except Exception as e:  # the checkout may be gone once delete wins
                results["read_error"] = e

        errors = _run_threads([read, lambda: controller.delete(checkout_config, created_state)])

        assert errors == []
        intervals = sorted((start, end) for _, start, end in fake_git.intervals)
        for (_, previous_end), (next_start, _) in zip(intervals, intervals[1:]):
            assert next_start >= previous_end


class TestDistinctPathIndependence:
    """Operations against different checkout paths do not block each other."""

    def test_creates_on_distinct_paths_run_concurrently(self, controller, fake_git, tmp_path):
        """Both creates reach git at the same time; a global lock would deadlock the barrier."""
        first = ProviderConfig(repo=fake_git.repo, branch="main", path=str(tmp_path / "first"))
        second = ProviderConfig(repo=fake_git.repo, branch="main", path=str(tmp_path / "second"))
        barrier = threading.Barrier(2, timeout=5)

        def rendezvous(working_dir, args):
            barrier.wait()
            return fake_git.repo

        fake_git.script(("config", "--get", "remote.origin.url"), rendezvous)

        errors = _run_threads(
            [
                lambda: controller.create(first, CheckoutState()),
                lambda: controller.create(second, CheckoutState()),
            ]
        )

        assert errors == []
        assert fake_git.count("clone") == 2
