"""Command line interface for orgdiff.

Drives the comparison core from a terminal. Every command that compares two
environments validates both first, exactly as environment selection does in
the interactive tool.

Usage:
    orgdiff orgs
    orgdiff validate "Org A"
    orgdiff types "Org A" "Org B" --filter apex
    orgdiff entries "Org A" "Org B" ApexClass
    orgdiff compare "Org A" "Org B" ApexClass AccountService
    orgdiff files "Org A" "Org B" LightningComponentBundle myCard
    orgdiff prefetch "Org A" "Org B" ApexClass ApexPage

Failures print the message to stderr and exit with code 1.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer

from orgdiff import __version__
from orgdiff.config import Settings, load_settings
from orgdiff.domain import CategoryCounts, EqualityHint
from orgdiff.exceptions import ConfigError
from orgdiff.gateway import CliGateway, RemoteGateway
from orgdiff.reconcile import count_difference_ratio, filter_categories
from orgdiff.service import OperationResult, OrgDiffService
from orgdiff.utils import configure_logging

T = TypeVar("T")

app = typer.Typer(
    name="orgdiff",
    help="Compare metadata between two orgs through the sf CLI (read-only).",
    no_args_is_help=True,
    add_completion=False,
)

HINT_SYMBOLS = {
    EqualityHint.LIKELY_EQUAL: "=",
    EqualityHint.LIKELY_DIFFERENT: "!",
    EqualityHint.UNKNOWN: "?",
}


def build_gateway(settings: Settings) -> RemoteGateway:
    """Gateway used by every command."""
    return CliGateway(settings.gateway)


# ============================================================================
# Helpers
# ============================================================================


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _unwrap(result: OperationResult[T]) -> T:
    if not result.success:
        _fail(result.error or "Unknown error")
    return result.value  # type: ignore[return-value]


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _run(ctx: typer.Context, body: Callable[[OrgDiffService], Awaitable[Any]]) -> Any:
    settings = _settings(ctx)
    service = OrgDiffService(build_gateway(settings), settings)
    try:
        return asyncio.run(body(service))
    finally:
        service.reset()


async def _open(service: OrgDiffService, org_a: str, org_b: str) -> None:
    _unwrap(await service.select_environments(org_a, org_b))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"orgdiff {__version__}")
        raise typer.Exit()


# ============================================================================
# Global Options
# ============================================================================


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version"),
):
    """Compare metadata inventories and contents between two orgs."""
    try:
        settings = load_settings(config)
    except (FileNotFoundError, ConfigError) as e:
        _fail(str(e))

    try:
        configure_logging(log_level or settings.logging.level, settings.logging.structured)
    except ValueError as e:
        _fail(str(e))

    ctx.obj = settings


# ============================================================================
# Environment Commands
# ============================================================================


@app.command("orgs")
def orgs(ctx: typer.Context):
    """List authorized (non-scratch) orgs."""

    async def body(service: OrgDiffService) -> None:
        environments = _unwrap(await service.list_environments())
        if not environments:
            typer.echo("No authorized orgs found. Run 'sf org login web' first.")
            return
        for env in environments:
            marker = " (default)" if env.is_default else ""
            typer.echo(f"{env.alias}\t{env.id}{marker}")

    _run(ctx, body)


@app.command("validate")
def validate(ctx: typer.Context, alias: str = typer.Argument(..., help="Org alias or username")):
    """Check that an org is reachable and not expired."""

    async def body(service: OrgDiffService) -> None:
        descriptor = _unwrap(await service.validate_environment(alias))
        typer.echo(json.dumps(descriptor, indent=2, sort_keys=True, default=str))

    _run(ctx, body)


# ============================================================================
# Comparison Commands
# ============================================================================


@app.command("types")
def list_types(
    ctx: typer.Context,
    org_a: str = typer.Argument(..., help="Org A alias"),
    org_b: str = typer.Argument(..., help="Org B alias"),
    filter_text: str = typer.Option("", "--filter", "-f", help="Case-insensitive name filter"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Maximum names to print"),
):
    """List the union of metadata types of both orgs."""

    async def body(service: OrgDiffService) -> None:
        await _open(service, org_a, org_b)
        unioned = _unwrap(await service.get_reconciled_categories())

        if service.session is not None and service.session.has_count_gap(unioned):
            ratio = count_difference_ratio(unioned.count_a, unioned.count_b)
            typer.secho(
                f"Warning: {org_a} lists {unioned.count_a} metadata types but {org_b} lists "
                f"{unioned.count_b} ({ratio:.1%} difference). Permissions may differ.",
                fg=typer.colors.YELLOW,
                err=True,
            )

        for category in filter_categories(unioned.categories, filter_text, limit):
            marker = " [bundle]" if category.is_composite else ""
            typer.echo(f"{category.name}{marker}")

    _run(ctx, body)


@app.command("entries")
def entries(
    ctx: typer.Context,
    org_a: str = typer.Argument(..., help="Org A alias"),
    org_b: str = typer.Argument(..., help="Org B alias"),
    category: str = typer.Argument(..., help="Metadata type, e.g. ApexClass"),
):
    """Reconcile the components of one metadata type."""

    async def body(service: OrgDiffService) -> None:
        await _open(service, org_a, org_b)
        view = _unwrap(await service.get_reconciled_entries(category))
        for entry in view.entries:
            typer.echo(f"{entry.presence.value:<6} {HINT_SYMBOLS[entry.equality_hint]} {entry.name}")

        counts = view.presence_counts()
        summary = ", ".join(f"{presence.value}={count}" for presence, count in counts.items())
        typer.echo(f"{len(view.entries)} components ({summary})")

    _run(ctx, body)


@app.command("compare")
def compare(
    ctx: typer.Context,
    org_a: str = typer.Argument(..., help="Org A alias"),
    org_b: str = typer.Argument(..., help="Org B alias"),
    category: str = typer.Argument(..., help="Metadata type"),
    entry_name: str = typer.Argument(..., help="Component name"),
    file_path: Optional[str] = typer.Option(None, "--file", help="Member file of a bundle"),
):
    """Compare the full content of one component."""

    async def body(service: OrgDiffService) -> None:
        await _open(service, org_a, org_b)
        result = _unwrap(await service.compare_entry(category, entry_name, file_path))
        target = f"{category}:{entry_name}" + (f"/{file_path}" if file_path else "")
        typer.echo(f"{result.verdict.value} {target}")

    _run(ctx, body)


@app.command("files")
def files(
    ctx: typer.Context,
    org_a: str = typer.Argument(..., help="Org A alias"),
    org_b: str = typer.Argument(..., help="Org B alias"),
    category: str = typer.Argument(..., help="Bundle metadata type"),
    entry_name: str = typer.Argument(..., help="Bundle name"),
):
    """List the member files of a bundle in both orgs."""

    async def body(service: OrgDiffService) -> None:
        await _open(service, org_a, org_b)
        unioned = _unwrap(await service.get_reconciled_files(category, entry_name))
        for member in unioned.files:
            typer.echo(f"{member.presence.value:<6} {member.path}")

    _run(ctx, body)


@app.command("prefetch")
def prefetch(
    ctx: typer.Context,
    org_a: str = typer.Argument(..., help="Org A alias"),
    org_b: str = typer.Argument(..., help="Org B alias"),
    categories: Optional[List[str]] = typer.Argument(None, help="Metadata types (all when omitted)"),
):
    """Count components per metadata type, rate limited."""

    async def body(service: OrgDiffService) -> None:
        await _open(service, org_a, org_b)
        counts = _unwrap(await service.prefetch_counts(categories or None))
        for name, outcome in counts.items():
            if isinstance(outcome, CategoryCounts):
                typer.echo(f"{name}\t{outcome.count_a}\t{outcome.count_b}")
            else:
                typer.secho(f"{name}\terror: {outcome}", fg=typer.colors.YELLOW, err=True)

    _run(ctx, body)


if __name__ == "__main__":
    app()
