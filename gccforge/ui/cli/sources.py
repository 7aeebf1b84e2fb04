"""
CLI commands for source acquisition.

Thin wrappers over ``gccforge.core.use_cases.build``.
"""

from __future__ import annotations

import json

import click

from gccforge.core.errors import GccForgeError
from gccforge.ui.cli.common import build_request, fail, load_cli_settings, selection_options


@click.group()
def sources() -> None:
    """Sources — fetch and inspect what a build needs."""


@sources.command("list")
@selection_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_sources(ctx: click.Context, as_json: bool, workdir: str | None, **selection) -> None:
    """Show each resolved source and whether it is already on disk."""
    from gccforge.core.use_cases.build import source_status

    settings = load_cli_settings(ctx, workdir)
    try:
        resolved, statuses = source_status(build_request(**selection), settings)
    except GccForgeError as e:
        fail(ctx, e, as_json)

    if as_json:
        click.echo(json.dumps({
            "target": resolved.target,
            "sources": [s.to_dict() for s in statuses],
        }, indent=2))
        return

    click.secho(f"\n📦 Sources for {resolved.target}", fg="cyan", bold=True)
    for status in statuses:
        dep = status.source.dependency.value
        if status.present:
            click.secho(f"   ✓ {dep:<9} ", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {dep:<9} ", fg="red", nl=False)
        click.echo(f"{status.source.revision}  → {status.location}")
    click.echo()


@sources.command()
@selection_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def fetch(ctx: click.Context, as_json: bool, workdir: str | None, **selection) -> None:
    """Fetch, extract and update every source without building."""
    from gccforge.core.use_cases.build import fetch_sources

    settings = load_cli_settings(ctx, workdir)
    try:
        resolved, receipts = fetch_sources(build_request(**selection), settings)
    except GccForgeError as e:
        fail(ctx, e, as_json)

    fetched = [r.action_id for r in receipts if r.ok]
    skipped = [r.action_id for r in receipts if r.skipped]

    if as_json:
        click.echo(json.dumps({
            "target": resolved.target,
            "fetched": fetched,
            "skipped": skipped,
        }, indent=2))
        return

    click.secho(f"✅ Sources ready for {resolved.target}", fg="green", bold=True)
    click.echo(f"   Fetched: {len(fetched)}  Already present: {len(skipped)}")
