"""
Local JSON state file for the checkout resource.

Records the resource attributes between command invocations, the way a
declarative host keeps its state file. Writes are atomic via a temp file.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from gitops_checkout.models import CheckoutState

logger = logging.getLogger(__name__)


class StateStore:
    """Persists a single CheckoutState document at a fixed path."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[CheckoutState]:
        """
        Load the stored state.

        Returns:
            The recorded CheckoutState, or None when no state file exists

        Raises:
            ValueError: If the state file exists but is not a valid state
        """
        if not self._path.exists():
            return None

        try:
            return CheckoutState.model_validate_json(self._path.read_text())
        except (json.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Invalid state file {self._path}: {e}") from e

    def save(self, state: CheckoutState) -> None:
        """Save state atomically via temp file + replace."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            temp_path.write_text(state.model_dump_json(indent=2))
            temp_path.replace(self._path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug(f"Saved checkout state to {self._path}")

    def clear(self) -> None:
        """Remove the state file if present."""
        if self._path.exists():
            self._path.unlink()
            logger.debug(f"Cleared checkout state at {self._path}")
