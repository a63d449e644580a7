"""
Logging utilities for gitops-checkout.

Every lifecycle abort is logged once at ERROR level with a stable error
code so operators can grep for it, followed by key=value context about the
checkout involved. Entry points call configure_logging() once.

Usage:
    from gitops_checkout.logging_utils import ErrorCode, format_error_log

    logger.error(format_error_log(ErrorCode.PUSH, "Push retries exhausted", path=path))
"""

import logging
from enum import Enum
from typing import Any, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ErrorCode(str, Enum):
    """Error codes for checkout lifecycle aborts."""

    IDENTITY = "CHECKOUT-IDENTITY-001"
    SANITY = "CHECKOUT-SANITY-001"
    PUSH = "CHECKOUT-PUSH-001"
    FS = "CHECKOUT-FS-001"
    CLONE = "CHECKOUT-CLONE-001"
    SYNC = "CHECKOUT-SYNC-001"


def _context_value(value: Any) -> str:
    # Quote values a naive split on spaces would break apart
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return repr(text)
    return text


def format_error_log(code: Union[ErrorCode, str], message: str, **context: Any) -> str:
    """
    Render a checkout abort as "[CODE] message key=value ...".

    Context entries whose value is None are left out, so callers can pass
    optional attributes (for example an unrecorded head) unconditionally.

    Raises:
        ValueError: If code is not a known ErrorCode value

    Examples:
        >>> format_error_log(ErrorCode.SANITY, "Refusing to delete", attribute="head", expected=None)
        '[CHECKOUT-SANITY-001] Refusing to delete attribute=head'

        >>> format_error_log(ErrorCode.SYNC, "Pull failed", strategy="--rebase", stderr="CONFLICT (content)")
        "[CHECKOUT-SYNC-001] Pull failed strategy=--rebase stderr='CONFLICT (content)'"
    """
    line = f"[{ErrorCode(code).value}] {message}"
    fields = [f"{key}={_context_value(value)}" for key, value in context.items() if value is not None]
    if fields:
        line = f"{line} {' '.join(fields)}"
    return line


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for command-line entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
