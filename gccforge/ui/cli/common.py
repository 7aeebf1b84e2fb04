"""
Shared CLI plumbing — target selection options, settings, error output.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from gccforge.core.config.loader import ConfigError, load_settings
from gccforge.core.config.settings import Settings
from gccforge.core.errors import GccForgeError
from gccforge.core.models.plan import Architecture, Codec, Flavor
from gccforge.core.models.request import BuildRequest

ARCH_CHOICES = [a.value for a in Architecture]
FLAVOR_CHOICES = [f.value for f in Flavor]
CODEC_CHOICES = [c.value for c in Codec]


def selection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options that pick what gets built (architecture, source, version)."""
    decorators = [
        click.option("--arch", "-a", "arch", required=True,
                     type=click.Choice(ARCH_CHOICES), help="Target architecture."),
        click.option("--source", "-s", "source", required=True,
                     type=click.Choice(FLAVOR_CHOICES), help="GCC source: upstream GNU or Linaro."),
        click.option("--version", "-v", "version", required=True, type=int,
                     help="GCC major version (4-11)."),
        click.option("--elf", "-e", is_flag=True, help="Build a bare-metal (ELF) toolchain; implies newlib."),
        click.option("--with-newlib", "newlib", is_flag=True, help="Use newlib instead of glibc."),
        click.option("--tarballs", is_flag=True, help="Use release tarballs instead of git checkouts."),
        click.option("--full-src", "-f", "full_src", is_flag=True,
                     help="Clone full history instead of shallow checkouts."),
        click.option("--no-update", is_flag=True,
                     help="Do not update checkouts or patch GCC (useful on slow links)."),
        click.option("--jobs", "-j", type=click.IntRange(min=1), default=None,
                     help="Parallel jobs (default: CPU count + 1)."),
        click.option("--workdir", type=click.Path(file_okay=False), default=None,
                     help="Build in this directory instead of the configured one."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_request(
    arch: str,
    source: str,
    version: int,
    elf: bool = False,
    newlib: bool = False,
    tarballs: bool = False,
    full_src: bool = False,
    no_update: bool = False,
    jobs: int | None = None,
    **extra: Any,
) -> BuildRequest:
    """BuildRequest from the selection options (plus build-only extras)."""
    return BuildRequest(
        architecture=Architecture(arch),
        flavor=Flavor(source),
        version=version,
        bare_metal=elf,
        use_newlib=newlib,
        tarballs=tarballs,
        full_history=full_src,
        no_update=no_update,
        jobs=jobs,
        **extra,
    )


def load_cli_settings(ctx: click.Context, workdir: str | None = None) -> Settings:
    """Settings from --config (or auto-detect), with --workdir applied."""
    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    if workdir:
        settings = settings.model_copy(update={"workdir": Path(workdir).resolve()})
    return settings


def fail(
    ctx: click.Context,
    error: GccForgeError,
    as_json: bool = False,
    payload: dict | None = None,
) -> None:
    """Print a fatal error (with hint, output tail and usage) and exit 1."""
    if as_json:
        data = dict(payload or {})
        data["error"] = error.to_dict()
        click.echo(json.dumps(data, indent=2))
        sys.exit(1)

    click.secho(f"❌ {error.message}", fg="red", bold=True)
    if error.hint:
        click.secho(f"   {error.hint}", fg="yellow")
    tail = error.to_dict().get("output_tail")
    if tail:
        click.echo()
        click.secho("   Last lines of output:", fg="white", bold=True)
        for line in tail.splitlines()[-15:]:
            click.echo(f"     {line}")
    if error.show_usage:
        click.echo()
        click.echo(ctx.get_help())
    sys.exit(1)
