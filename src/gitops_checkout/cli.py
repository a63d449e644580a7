"""Command-line host for gitops-checkout.

Drives the checkout resource lifecycle from a provider configuration file
and a local state file: apply (create/update/replace), refresh (read),
destroy (delete) and show.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .cli_utils import format_checkout_error, format_checkout_result
from .config import VALID_LOG_LEVELS, ProviderConfig, ProviderConfigManager
from .controller import CheckoutController
from .errors import CheckoutError
from .git.runner import SubprocessGitRunner
from .logging_utils import configure_logging
from .models import CheckoutOptions, CheckoutState
from .resource import CheckoutResource
from .state_store import StateStore

console = Console()

DEFAULT_STATE_FILE = "gitops-checkout.state.json"


def _load_provider_config(ctx: click.Context) -> ProviderConfig:
    """Load and validate the provider configuration, then set up logging.

    Raises:
        click.ClickException: If config file is missing or malformed
    """
    try:
        config = ProviderConfigManager(ctx.obj["config_path"]).load()
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(str(e))

    configure_logging(ctx.obj["log_level"] or config.log_level)
    return config


def _build_resource(config: ProviderConfig) -> CheckoutResource:
    runner = SubprocessGitRunner(git_binary=config.git_binary, timeout=config.git_timeout)
    return CheckoutResource(CheckoutController(runner))


def _handle_checkout_error(ctx: click.Context, e: Exception, json_output: bool) -> None:
    """Print a lifecycle failure in the requested format and exit non-zero."""
    if json_output:
        _print_json(format_checkout_error(ctx.command.name, e))
    else:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
    sys.exit(1)


def _print_json(payload: str) -> None:
    console.print(payload, markup=False, emoji=False, highlight=False, soft_wrap=True)


def _print_state(state: CheckoutState, title: str) -> None:
    table = Table(title=title)
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")
    for name, value in state.model_dump().items():
        table.add_row(name, escape(str(value)) if value is not None else "-")
    console.print(table)


@click.group("gitops-checkout")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Provider configuration file (default: $GITOPS_CHECKOUT_CONFIG or ./gitops-checkout.json)",
)
@click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_STATE_FILE,
    show_default=True,
    help="State file recording the checkout attributes",
)
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], state_path: str, log_level: Optional[str]):
    """Manage a git working copy as a declarative resource.

    The checkout is cloned on apply, synchronized with its remote on every
    refresh, and removed on destroy only after an empty tombstone commit
    has been pushed to the remote branch.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["state_path"] = state_path
    ctx.obj["log_level"] = log_level


@cli.command("apply")
@click.option("--retry-count", type=click.IntRange(min=0), default=None, help="Push attempts on delete")
@click.option("--retry-interval", type=click.IntRange(min=0), default=None, help="Seconds between push attempts")
@click.option("--merging-strategy", default=None, help="Flag passed to git pull (default: --rebase)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def apply_command(
    ctx: click.Context,
    retry_count: Optional[int],
    retry_interval: Optional[int],
    merging_strategy: Optional[str],
    json_output: bool,
):
    """Create the checkout, update it in place, or replace it."""
    config = _load_provider_config(ctx)
    store = StateStore(ctx.obj["state_path"])

    try:
        prior = store.load()
        options = CheckoutOptions(
            retry_count=config.defaults.retry_count if retry_count is None else retry_count,
            retry_interval=(
                config.defaults.retry_interval if retry_interval is None else retry_interval
            ),
            merging_strategy=merging_strategy or config.defaults.merging_strategy,
        )
        resource = _build_resource(config)
        action, state = resource.apply(config, prior, options, on_prior_deleted=store.clear)
        store.save(state)
    except (CheckoutError, ValueError) as e:
        _handle_checkout_error(ctx, e, json_output)
        return

    if json_output:
        _print_json(format_checkout_result("apply", state, action=action.value))
    else:
        console.print(f"[green]Checkout {action.value} complete[/green]")
        _print_state(state, config.path)


@cli.command("refresh")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def refresh_command(ctx: click.Context, json_output: bool):
    """Pull from origin and record the observed repo, branch and head."""
    config = _load_provider_config(ctx)
    store = StateStore(ctx.obj["state_path"])

    try:
        prior = store.load()
        if prior is None:
            raise click.ClickException("No checkout state recorded. Run 'apply' first.")
        state = _build_resource(config).dispatch("read", config, prior)
        store.save(state)
    except (CheckoutError, ValueError) as e:
        _handle_checkout_error(ctx, e, json_output)
        return

    if json_output:
        _print_json(format_checkout_result("refresh", state))
    else:
        _print_state(state, config.path)


@cli.command("destroy")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def destroy_command(ctx: click.Context, json_output: bool):
    """Push a tombstone commit and remove the checkout directory."""
    config = _load_provider_config(ctx)
    store = StateStore(ctx.obj["state_path"])

    try:
        prior = store.load()
        if prior is not None:
            _build_resource(config).dispatch("delete", config, prior)
            store.clear()
    except (CheckoutError, ValueError) as e:
        _handle_checkout_error(ctx, e, json_output)
        return

    destroyed = prior is not None
    if json_output:
        _print_json(
            format_checkout_result("destroy", prior, destroyed=destroyed, path=config.path)
        )
    elif destroyed:
        console.print(f"[green]Removed checkout {escape(config.path)}[/green]")
    else:
        console.print("[yellow]No checkout state recorded, nothing to destroy[/yellow]")


@cli.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def show_command(ctx: click.Context, json_output: bool):
    """Show the recorded checkout state without touching git."""
    store = StateStore(ctx.obj["state_path"])

    try:
        state = store.load()
    except ValueError as e:
        _handle_checkout_error(ctx, e, json_output)
        return

    if json_output:
        _print_json(format_checkout_result("show", state))
    elif state is None:
        console.print("[yellow]No checkout state recorded[/yellow]")
    else:
        _print_state(state, state.path or "checkout")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
