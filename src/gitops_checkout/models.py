"""
Data model for the managed checkout resource.

CheckoutOptions holds the caller-tunable settings of a checkout; CheckoutState
is the full set of resource attributes as tracked by the host, including the
observed repo/branch/head that are never caller-supplied.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_RETRY_COUNT = 10
DEFAULT_RETRY_INTERVAL = 5  # seconds
DEFAULT_MERGING_STRATEGY = "--rebase"
TOMBSTONE_MESSAGE = "Removed by Terraform"


@dataclass
class CheckoutOptions:
    """Delete-phase retry and pull merge settings for a checkout."""

    retry_count: int = DEFAULT_RETRY_COUNT
    retry_interval: int = DEFAULT_RETRY_INTERVAL
    merging_strategy: str = DEFAULT_MERGING_STRATEGY

    def __post_init__(self):
        if not self.merging_strategy:
            self.merging_strategy = DEFAULT_MERGING_STRATEGY
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0. Got: {self.retry_count}")
        if self.retry_interval < 0:
            raise ValueError(
                f"retry_interval must be >= 0 seconds. Got: {self.retry_interval}"
            )


class CheckoutState(BaseModel):
    """
    Resource attributes of a checkout as recorded by the host.

    `id` is the resource identity (the canonical checkout path) and is None
    until Create succeeds. `repo`, `branch` and `head` are observed from the
    working copy after each reconciliation.
    """

    id: Optional[str] = Field(None, description="Resource identity (checkout path)")
    path: Optional[str] = Field(None, description="Checkout directory")
    repo: Optional[str] = Field(None, description="remote.origin.url of the working copy")
    branch: Optional[str] = Field(None, description="Currently checked-out branch")
    head: Optional[str] = Field(None, description="Commit hash after last sync")

    retry_count: int = Field(
        DEFAULT_RETRY_COUNT, ge=0, description="Number of git push attempts on delete"
    )
    retry_interval: int = Field(
        DEFAULT_RETRY_INTERVAL, ge=0, description="Seconds between git push attempts"
    )
    merging_strategy: str = Field(
        DEFAULT_MERGING_STRATEGY, description="Flag passed to git pull"
    )

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "id": "/srv/checkouts/infra",
                "path": "/srv/checkouts/infra",
                "repo": "git@github.com:example/infra.git",
                "branch": "main",
                "head": "3f2a9c0e5b1d4e6f7a8b9c0d1e2f3a4b5c6d7e8f",
                "retry_count": 10,
                "retry_interval": 5,
                "merging_strategy": "--rebase",
            }
        },
    )

    @field_validator("merging_strategy")
    @classmethod
    def _default_empty_strategy(cls, value: str) -> str:
        return value or DEFAULT_MERGING_STRATEGY

    @classmethod
    def from_options(cls, options: CheckoutOptions) -> "CheckoutState":
        """Build a not-yet-created state carrying the given options."""
        return cls(
            retry_count=options.retry_count,
            retry_interval=options.retry_interval,
            merging_strategy=options.merging_strategy,
        )

    def options(self) -> CheckoutOptions:
        """Return the caller-tunable options recorded in this state."""
        return CheckoutOptions(
            retry_count=self.retry_count,
            retry_interval=self.retry_interval,
            merging_strategy=self.merging_strategy,
        )
