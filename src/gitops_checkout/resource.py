"""
Resource schema and lifecycle dispatch for the checkout resource.

Declares the attributes the host tracks, decides whether a configuration
change can be applied in place or forces replacement, and maps the host's
lifecycle events onto CheckoutController.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional

from gitops_checkout.config import ProviderConfig
from gitops_checkout.controller import CheckoutController
from gitops_checkout.models import (
    DEFAULT_MERGING_STRATEGY,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_INTERVAL,
    CheckoutOptions,
    CheckoutState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttributeSchema:
    """Declaration of one resource attribute."""

    type: type
    computed: bool = False
    optional: bool = False
    force_new: bool = False
    default: Any = None
    description: str = ""


CHECKOUT_SCHEMA: Dict[str, AttributeSchema] = {
    "path": AttributeSchema(str, computed=True, force_new=True),
    "repo": AttributeSchema(str, computed=True),
    "branch": AttributeSchema(str, computed=True),
    "head": AttributeSchema(str, computed=True),
    "retry_count": AttributeSchema(
        int,
        optional=True,
        force_new=True,
        default=DEFAULT_RETRY_COUNT,
        description="Number of git commit retries",
    ),
    "retry_interval": AttributeSchema(
        int,
        optional=True,
        force_new=True,
        default=DEFAULT_RETRY_INTERVAL,
        description="Number of seconds between git commit retries",
    ),
    "merging_strategy": AttributeSchema(
        str,
        optional=True,
        default=DEFAULT_MERGING_STRATEGY,
        description="Specify how merging gets resolved",
    ),
}


class PlanAction(str, Enum):
    """What applying a configuration to a prior state will do."""

    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"


class ApplyResult(NamedTuple):
    """Outcome of CheckoutResource.apply()."""

    action: PlanAction
    state: CheckoutState


class CheckoutResource:
    """
    Lifecycle dispatch table for the checkout resource.

    Update is aliased to Create: both clone if needed and reconcile.
    """

    def __init__(self, controller: CheckoutController):
        self.controller = controller
        self.operations: Dict[str, Callable[[ProviderConfig, CheckoutState], Any]] = {
            "create": controller.create,
            "read": controller.read,
            "update": controller.create,
            "delete": controller.delete,
        }

    def dispatch(self, operation: str, config: ProviderConfig, state: CheckoutState) -> Any:
        """
        Invoke a lifecycle operation by name.

        Raises:
            ValueError: If operation is not one of create/read/update/delete
        """
        try:
            handler = self.operations[operation]
        except KeyError:
            raise ValueError(
                f"Unknown lifecycle operation '{operation}'. "
                f"Expected one of: {', '.join(self.operations)}"
            )
        logger.debug(f"Dispatching {operation} for {config.path}")
        return handler(config, state)

    def plan(
        self,
        config: ProviderConfig,
        prior: Optional[CheckoutState],
        options: CheckoutOptions,
    ) -> PlanAction:
        """
        Decide how to move from prior state to the desired configuration.

        A missing prior identity means create. A changed path or any changed
        ForceNew option means replace. Everything else is an in-place update.
        """
        if prior is None or prior.id is None:
            return PlanAction.CREATE

        if prior.id != config.path:
            return PlanAction.REPLACE

        desired = dataclasses.asdict(options)
        for name, schema in CHECKOUT_SCHEMA.items():
            if schema.force_new and not schema.computed:
                if getattr(prior, name) != desired[name]:
                    return PlanAction.REPLACE

        return PlanAction.UPDATE

    def apply(
        self,
        config: ProviderConfig,
        prior: Optional[CheckoutState],
        options: CheckoutOptions,
        on_prior_deleted: Optional[Callable[[], None]] = None,
    ) -> ApplyResult:
        """
        Plan and apply the desired configuration.

        Returns the action taken together with the new state, so callers
        report what happened without planning a second time.

        Replacement deletes the prior instance (at its recorded path, with
        its recorded options) before creating the new one. on_prior_deleted
        is called between the two steps so the caller can drop the stale
        state even if the create that follows fails.
        """
        action = self.plan(config, prior, options)
        logger.info(f"Applying {action.value} for checkout {config.path}")

        if action is PlanAction.REPLACE:
            assert prior is not None and prior.id is not None
            prior_config = dataclasses.replace(config, path=prior.id)
            self.dispatch("delete", prior_config, prior)
            if on_prior_deleted is not None:
                on_prior_deleted()
            state = self.dispatch("create", config, CheckoutState.from_options(options))
            return ApplyResult(action, state)

        if action is PlanAction.CREATE:
            state = self.dispatch("create", config, CheckoutState.from_options(options))
            return ApplyResult(action, state)

        assert prior is not None
        desired = prior.model_copy(update={"merging_strategy": options.merging_strategy})
        return ApplyResult(action, self.dispatch("update", config, desired))
