"""Output helpers for gitops-checkout CLI commands.

Builds the JSON documents printed when a command runs with --json. A
success document carries the checkout attributes; a failure document
carries the structured attributes of the lifecycle error, so scripts can
tell a sanity-check abort from exhausted push retries without parsing the
message.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import (
    FilesystemError,
    GitCommandError,
    IdentityMismatchError,
    PushRetriesExhaustedError,
    SanityCheckFailedError,
)
from ..models import CheckoutState


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_details(error: Exception) -> Dict[str, Any]:
    """Return the structured attributes of a lifecycle error."""
    if isinstance(error, SanityCheckFailedError):
        return {
            "attribute": error.attribute,
            "expected": error.expected,
            "actual": error.actual,
        }
    if isinstance(error, PushRetriesExhaustedError):
        return {
            "attempts": error.attempts,
            "category": error.category,
            "stderr": error.last_error.stderr,
        }
    if isinstance(error, IdentityMismatchError):
        return {"checkout_dir": error.checkout_dir, "expected": error.expected}
    if isinstance(error, FilesystemError):
        return {"path": error.path, "cause": str(error.cause)}
    if isinstance(error, GitCommandError):
        return {"returncode": error.returncode, "stderr": error.stderr}
    return {}


def format_checkout_result(
    command: str,
    checkout: Optional[CheckoutState],
    action: Optional[str] = None,
    **fields: Any,
) -> str:
    """Format a successful command as JSON.

    Args:
        command: CLI command name, e.g. "apply"
        checkout: State the command produced (or destroyed); None when no
                  checkout is recorded
        action: Plan action taken by apply ("create", "update", "replace")
        **fields: Command-specific fields, e.g. destroyed=True

    Returns:
        JSON string: {"success": true, "command": ..., "checkout": {...}, ...}
    """
    result: Dict[str, Any] = {"success": True, "command": command}
    if action is not None:
        result["action"] = action
    result["checkout"] = checkout.model_dump(mode="json") if checkout is not None else None
    result.update(fields)
    result["timestamp"] = _timestamp()
    return json.dumps(result, indent=2)


def format_checkout_error(command: str, error: Exception) -> str:
    """Format a failed command as JSON.

    Returns:
        JSON string: {"success": false, "command": ..., "error": ...,
        "error_type": "SanityCheckFailedError", "details": {...}}
    """
    result = {
        "success": False,
        "command": command,
        "error": str(error),
        "error_type": type(error).__name__,
        "details": error_details(error),
        "timestamp": _timestamp(),
    }
    return json.dumps(result, indent=2)
