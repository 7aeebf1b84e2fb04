"""
gccforge — CLI entrypoint.

Usage:
    gccforge --help
    gccforge build -a arm64 -s gnu -v 11
    gccforge plan -a x86_64 -s gnu -v 10 --tarballs --json
    gccforge sources list -a arm -s linaro -v 7
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from gccforge import __version__
from gccforge.core.errors import GccForgeError
from gccforge.core.observability.logging_config import setup_logging
from gccforge.ui.cli.common import (
    CODEC_CHOICES,
    build_request,
    fail,
    load_cli_settings,
    selection_options,
)
from gccforge.ui.cli.sources import sources

if TYPE_CHECKING:
    from gccforge.core.use_cases.build import BuildResult


@click.group()
@click.version_option(version=__version__, prog_name="gccforge")
@click.option("--verbose", "-V", is_flag=True, help="Enable verbose output (stream tool output).")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to gccforge.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """gccforge — build GCC cross toolchains."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("GCCFORGE_LOG_LEVEL", "WARNING")
    ctx.obj["log_level"] = level

    setup_logging(
        level=level,
        log_file=os.environ.get("GCCFORGE_LOG_FILE"),
        log_file_level=os.environ.get("GCCFORGE_LOG_FILE_LEVEL"),
        show_tool_output=verbose or debug,
    )


@cli.command()
@selection_options
@click.option("--package", "-p", "codec", type=click.Choice(CODEC_CHOICES), default=None,
              help="Compress the finished toolchain with this codec.")
@click.option("--release", "-r", is_flag=True, help="Publish the toolchain and announce it.")
@click.option("--tmpfs", is_flag=True, help="Build in tmpfs mounts (needs plenty of RAM).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    codec: str | None,
    release: bool,
    tmpfs: bool,
    as_json: bool,
    workdir: str | None,
    **selection,
) -> None:
    """Build a cross toolchain.

    Examples:

        gccforge build -a arm64 -s gnu -v 11

        gccforge build -a arm -s linaro -v 7 --tarballs -p xz

        gccforge build -a x86_64 -s gnu -v 10 -e --tmpfs
    """
    from gccforge.core.use_cases.build import BuildResult, run_build

    settings = load_cli_settings(ctx, workdir)
    request = build_request(**selection, codec=codec, release=release, tmpfs=tmpfs)

    settings.root.mkdir(parents=True, exist_ok=True)
    # The run log is always written, one run per file; it is what the
    # notification channel ships.
    setup_logging(
        level=ctx.obj["log_level"],
        log_file=str(settings.log_path),
        log_file_level=os.environ.get("GCCFORGE_LOG_FILE_LEVEL", "INFO"),
        show_tool_output=ctx.obj["verbose"] or ctx.obj["debug"],
        log_file_mode="w",
    )

    result = BuildResult()
    try:
        run_build(request, settings, result=result)
    except GccForgeError as e:
        if not as_json:
            _print_report(result)
        fail(ctx, e, as_json, result.to_dict())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.success else 1)

    _print_report(result)
    if result.published:
        click.secho("   📦 Release published", fg="cyan")
    if not result.success:
        sys.exit(1)


def _print_report(result: BuildResult) -> None:
    report = result.report
    if report is None:
        return
    click.echo()
    click.secho(f"{'✅' if report.success else '❌'} {report.verdict}",
                fg="green" if report.success else "red", bold=True)
    for line in report.lines()[1:]:
        click.echo(f"   {line}")
    click.echo()


@cli.command()
@selection_options
@click.option("--package", "-p", "codec", type=click.Choice(CODEC_CHOICES), default=None,
              help="Packaging codec to include in the plan.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(
    ctx: click.Context,
    codec: str | None,
    as_json: bool,
    workdir: str | None,
    **selection,
) -> None:
    """Resolve and show a build plan without building anything."""
    from gccforge.core.use_cases.build import make_context, resolve_plan

    settings = load_cli_settings(ctx, workdir)
    request = build_request(**selection, codec=codec)

    try:
        resolved = resolve_plan(request, make_context(settings))
    except GccForgeError as e:
        fail(ctx, e, as_json)

    summary = resolved.summary()
    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    click.secho(f"\n🛠️  {resolved.target}", fg="cyan", bold=True)
    click.echo(f"   {resolved.flavor.value} GCC {resolved.version} · {resolved.libc.value}"
               f" · {'tarballs' if resolved.tarballs else 'git'} · -j{resolved.jobs}")
    click.echo(f"   Kernel arch: {resolved.kernel_arch}")
    click.echo(f"   Patch: {resolved.patch}")
    if resolved.codec:
        click.echo(f"   Package: .tar.{resolved.codec.value}")
    click.echo()
    click.secho("   Sources:", fg="white", bold=True)
    for src in resolved.sources:
        click.echo(f"     • {src.dependency.value:<9} {src.revision}  ← {src.url}")
    click.echo()


@cli.command()
@click.option("--target", "-t", default=None, help="Also remove this target's install tree.")
@click.option("--workdir", type=click.Path(file_okay=False), default=None,
              help="Clean this directory instead of the configured one.")
@click.pass_context
def clean(ctx: click.Context, target: str | None, workdir: str | None) -> None:
    """Remove build trees left by a previous run."""
    from gccforge.core.use_cases.build import clean_workspace

    settings = load_cli_settings(ctx, workdir)
    try:
        clean_workspace(settings, target=target)
    except GccForgeError as e:
        fail(ctx, e)

    click.secho(f"✅ Clean: {settings.root}", fg="green")


cli.add_command(sources)


if __name__ == "__main__":
    cli()
