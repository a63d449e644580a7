"""
Tests for git push error classification.

- Rejected category: remote advanced by another writer
- Refused category: server-side hooks and branch protection
- Transient category: network / auth errors
- Unknown category: unrecognized errors

Stderr samples include the "failed to push some refs" trailer git prints
after almost every failed push, since it must not decide the category.
"""

import pytest

from gitops_checkout.git.error_classifier import classify_push_error

PUSH_TRAILER = "error: failed to push some refs to 'git@example.com:platform/infra.git'"


class TestClassifyPushError:
    """Test suite for classify_push_error() function."""

    def test_classify_rejected_fetch_first(self):
        """A '[rejected] ... (fetch first)' push classifies as rejected."""
        stderr = (
            "To example.com:platform/infra.git\n"
            " ! [rejected]        HEAD -> main (fetch first)\n"
            f"{PUSH_TRAILER}\n"
            "hint: Updates were rejected because the remote contains work that you do\n"
            "hint: not have locally."
        )
        assert classify_push_error(stderr) == "rejected"

    def test_classify_rejected_non_fast_forward(self):
        """'non-fast-forward' classifies as rejected."""
        stderr = f" ! [rejected]        HEAD -> main (non-fast-forward)\n{PUSH_TRAILER}"
        assert classify_push_error(stderr) == "rejected"

    def test_classify_rejected_cannot_lock_ref(self):
        """A concurrent ref update on the server classifies as rejected."""
        stderr = (
            "remote: error: cannot lock ref 'refs/heads/main': is at 1234 but expected 5678\n"
            f"{PUSH_TRAILER}"
        )
        assert classify_push_error(stderr) == "rejected"

    def test_classify_refused_pre_receive_hook(self):
        """A pre-receive hook refusal is not contention."""
        stderr = (
            "remote: commit message does not reference a ticket\n"
            "To example.com:platform/infra.git\n"
            " ! [remote rejected] HEAD -> main (pre-receive hook declined)\n"
            f"{PUSH_TRAILER}"
        )
        assert classify_push_error(stderr) == "refused"

    @pytest.mark.parametrize(
        "stderr",
        [
            "remote: error: GH006: Protected branch update failed for refs/heads/main.\n"
            " ! [remote rejected] HEAD -> main (protected branch hook declined)\n"
            f"{PUSH_TRAILER}",
            "remote: GitLab: You are not allowed to push code to protected branches on this project.\n"
            " ! [remote rejected] HEAD -> main (pre-receive hook declined)\n"
            f"{PUSH_TRAILER}",
        ],
    )
    def test_classify_refused_protected_branch(self, stderr):
        """Branch protection on the hosting service classifies as refused."""
        assert classify_push_error(stderr) == "refused"

    def test_classify_transient_could_not_resolve_host(self):
        """DNS failure classifies as transient."""
        stderr = (
            "fatal: unable to access 'https://github.com/org/repo.git/': "
            "Could not resolve host: github.com"
        )
        assert classify_push_error(stderr) == "transient"

    def test_classify_transient_hung_up_with_trailer(self):
        """A dropped connection followed by the push trailer classifies as transient."""
        stderr = (
            "Connection to example.com closed by remote host.\n"
            "fatal: the remote end hung up unexpectedly\n"
            f"{PUSH_TRAILER}"
        )
        assert classify_push_error(stderr) == "transient"

    def test_classify_transient_ssh_key_refused(self):
        """An SSH authentication failure classifies as transient."""
        stderr = (
            "git@example.com: Permission denied (publickey).\n"
            "fatal: Could not read from remote repository."
        )
        assert classify_push_error(stderr) == "transient"

    def test_trailer_alone_is_unknown(self):
        """The generic trailer carries no cause."""
        assert classify_push_error(PUSH_TRAILER) == "unknown"

    def test_classify_empty_stderr_is_unknown(self):
        """Empty stderr (timeout, missing binary) classifies as unknown."""
        assert classify_push_error("") == "unknown"
