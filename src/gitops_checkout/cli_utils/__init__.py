"""CLI utilities package for gitops-checkout.

Provides JSON output formatting shared by the checkout commands.
"""

from .output_helpers import (
    error_details,
    format_checkout_error,
    format_checkout_result,
)

__all__ = [
    "error_details",
    "format_checkout_error",
    "format_checkout_result",
]
