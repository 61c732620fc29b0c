"""
CLI commands for instar configuration.

Thin wrappers over ``instar.core.config.loader``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def config() -> None:
    """Configuration — show, set."""


@config.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Show the current configuration."""
    from instar.core.config.loader import ConfigError, load_config

    instar_ctx = ctx.obj["context"]
    try:
        cfg = load_config(instar_ctx.config_file)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = cfg.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps({"config_file": str(instar_ctx.config_file), **data}, indent=2))
        return

    click.secho(f"⚙️  {instar_ctx.config_file}", fg="cyan", bold=True)
    for key, value in data.items():
        click.echo(f"   {key}: {value}")


@config.command("set")
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_value(ctx: click.Context, name: str, value: str) -> None:
    """Set a configuration value (keys: install_dir)."""
    from instar.core.config.loader import ConfigError, set_config_value

    try:
        cfg = set_config_value(ctx.obj["context"], name, value)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ {name.strip()} = {getattr(cfg, name.strip())}", fg="green")
