"""
instar — CLI entrypoint.

Usage:
    instar --help
    instar install foo-1.0.tar.gz
    instar remove foo-1.0
    instar list
    instar config set install_dir ~/.local
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from instar import __version__
from instar.core.context import InstarContext, resolve_context
from instar.core.models.result import TransactionResult
from instar.core.observability.logging_config import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="instar")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config-dir",
    "config_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding instar.cfg and installed package manifests "
    "(default: $INSTAR_CONFIG_DIR or ~/.config/instar).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_dir: Path | None,
) -> None:
    """instar — install and remove .tar.gz packages in a local tree."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["context"] = resolve_context(config_dir)

    configure_logging(debug=debug, verbose=verbose, quiet=quiet)


def get_context(ctx: click.Context) -> InstarContext:
    """The run context resolved by the root command."""
    return ctx.obj["context"]


def _report_failure(result: TransactionResult) -> None:
    if result.partial:
        click.secho(f"⚠️  {result.operation} of {result.package} stopped part-way", fg="yellow", bold=True)
        click.secho(f"   {result.error}", fg="red")
        click.echo(f"   {len(result.completed)} path(s) already changed; nothing was rolled back.")
        if result.operation == "install":
            click.echo(f"   Run 'instar remove {result.package}' to clean up.")
        else:
            click.echo(f"   The manifest was kept; run 'instar remove {result.package}' again to retry.")
    else:
        click.secho(f"❌ {result.error}", fg="red")


@cli.command()
@click.argument("archive", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, archive: Path, yes: bool, as_json: bool) -> None:
    """Install a <name>.tar.gz package archive."""
    from instar.core.config.loader import ConfigError, load_config
    from instar.core.use_cases.packages import run_install

    if not archive.is_file():
        click.secho(f"❌ File not found: {archive}", fg="red")
        sys.exit(1)

    instar_ctx = get_context(ctx)

    if not yes:
        try:
            config = load_config(instar_ctx.config_file)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
        if not click.confirm(f"Installing {archive} to {config.install_dir}. Continue?"):
            click.echo("No confirmation received. Aborting...")
            return

    result = run_install(archive, instar_ctx)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        _report_failure(result)
        sys.exit(1)

    files = result.details.get("files", [])
    click.secho(f"✅ Installed {result.package} ({len(files)} file(s))", fg="green", bold=True)
    if ctx.obj.get("verbose"):
        for path in files:
            click.echo(f"   + {path}")


@cli.command()
@click.argument("package")
@click.option(
    "--ignore-missing",
    is_flag=True,
    help="Treat recorded files that no longer exist as already removed.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(ctx: click.Context, package: str, ignore_missing: bool, as_json: bool) -> None:
    """Remove an installed package and every file it installed."""
    from instar.core.use_cases.packages import run_remove

    result = run_remove(package, get_context(ctx), missing_ok=ignore_missing)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        _report_failure(result)
        sys.exit(1)

    details = result.details
    click.secho(
        f"✅ Removed {package} ({len(details.get('deleted', []))} file(s))",
        fg="green",
        bold=True,
    )
    for path in details.get("missing", []):
        click.secho(f"   ⚠️  already missing: {path}", fg="yellow")
    if ctx.obj.get("verbose"):
        for path in details.get("deleted", []):
            click.echo(f"   - {path}")
        for path in details.get("pruned", []):
            click.echo(f"   - {path}/")


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List installed packages."""
    from instar.core.use_cases.packages import list_packages

    names = list_packages(get_context(ctx))

    if as_json:
        click.echo(json.dumps({"packages": names, "count": len(names)}, indent=2))
        return

    if not names:
        click.echo("No packages installed.")
        return

    for name in names:
        click.echo(name)


# ── Register sub-command groups from instar/ui/cli/ ───────────────

from instar.ui.cli.config import config  # noqa: E402

cli.add_command(config)


if __name__ == "__main__":
    cli()
