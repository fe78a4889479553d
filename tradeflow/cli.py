"""Command line interface for inspecting tradeflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import typer
from pydantic import ValidationError

from tradeflow import get_snapshot_store, load_config, snapshot_key
from tradeflow.calculators import compute_expiration, compute_price
from tradeflow.config import PricingPolicy
from tradeflow.contracts import WorkflowState
from tradeflow.workflows import REGISTRY, get_definition

app = typer.Typer(help="CLI for tradeflow workflows")

workflow_app = typer.Typer(help="Commands for inspecting workflow definitions")
snapshot_app = typer.Typer(help="Commands for managing resumability snapshots")
preview_app = typer.Typer(help="Preview derived values")

app.add_typer(workflow_app, name="workflow")
app.add_typer(snapshot_app, name="snapshot")
app.add_typer(preview_app, name="preview")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for tradeflow loggers"),
) -> None:
    """Tradeflow CLI entry point."""
    logging.basicConfig(level=log_level.upper())


@workflow_app.command("list")
def workflow_list() -> None:
    """List registered workflows with their step ids."""
    for name, definition in sorted(REGISTRY.items()):
        typer.echo(f"{name}\t{' -> '.join(definition.step_ids())}")


@workflow_app.command("steps")
def workflow_steps(name: str) -> None:
    """
    Show the ordered steps of a workflow.

    Example:
        tradeflow workflow steps job_posting
        # Output: 0. posting_type - What are you posting? [posting_type]
        #            skip: redirect /jobs/vacancy/new
    """
    try:
        definition = get_definition(name)
    except KeyError as e:
        typer.secho(str(e.args[0]), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    for index, step in enumerate(definition.steps):
        typer.echo(f"{index}. {step.id} - {step.title} [{', '.join(step.fields)}]")
        for rule in step.skip_rules:
            target = f"redirect {rule.redirect}" if rule.is_redirect else f"goto {rule.goto}"
            typer.echo(f"   skip: {target}")


@snapshot_app.command("show")
def snapshot_show(workflow: str, session: str) -> None:
    """Print the persisted snapshot for a workflow session."""
    config = load_config()
    store = get_snapshot_store(config=config)
    key = snapshot_key(workflow, session, config.snapshots.namespace)
    raw = asyncio.run(store.get(key))
    if raw is None:
        typer.echo("No snapshot found")
        raise typer.Exit(code=1)
    try:
        state = WorkflowState.from_json(raw)
    except ValidationError as e:
        typer.secho(
            f"Snapshot {key} is unreadable: {e.error_count()} error(s)", fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    typer.echo(f"Snapshot {key}: step {state.step_index}")
    typer.echo(f"History: {state.history}")
    typer.echo(f"Fields: {json.dumps(state.fields, sort_keys=True)}")


@snapshot_app.command("clear")
def snapshot_clear(workflow: str, session: str) -> None:
    """Delete the persisted snapshot so the workflow starts over."""
    config = load_config()
    store = get_snapshot_store(config=config)
    key = snapshot_key(workflow, session, config.snapshots.namespace)
    asyncio.run(store.delete(key))
    typer.echo(f"Cleared {key}")


@preview_app.command("expiration")
def preview_expiration(
    code: str,
    now: Optional[str] = typer.Option(None, help="ISO timestamp to compute from"),
) -> None:
    """Show when a posting with duration ``code`` would expire."""
    reference = datetime.fromisoformat(now) if now else datetime.now(timezone.utc)
    result = compute_expiration(int(code) if code.isdigit() else code, reference)
    suffix = " (capped)" if result.was_capped else ""
    typer.echo(f"{result.days} days -> {result.expires_at.isoformat()}{suffix}")


@preview_app.command("price")
def preview_price(
    option: str,
    base: str,
    override: Optional[List[str]] = typer.Option(None, help="Per-option price as OPTION=PRICE"),
    free: bool = typer.Option(False, help="Apply the free-by-default flag"),
) -> None:
    """Show the final price of ``option`` under a pricing policy."""
    prices = {}
    try:
        base_price = Decimal(base)
        for item in override or []:
            key, _, value = item.partition("=")
            prices[key] = Decimal(value)
    except InvalidOperation:
        typer.secho("Prices must be decimal numbers", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    pricing = compute_price(
        option, base_price, PricingPolicy(prices=prices, is_free_by_default=free)
    )
    typer.echo(f"{option}: {pricing.display_price}")
    if pricing.override_reason:
        typer.echo(f"Reason: {pricing.override_reason}")


if __name__ == "__main__":
    app()
