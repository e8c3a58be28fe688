import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import machine_output, user_output
from carti.core.config_store import CartiConfig
from carti.core.context import CartiContext


@click.group("config")
def config_group() -> None:
    """Manage global carti configuration."""


@config_group.command("list")
@click.pass_obj
@cli_error_boundary
def config_list(ctx: CartiContext) -> None:
    """Print every configuration key and its value."""
    for key in CartiConfig.keys():
        value = getattr(ctx.config, key)
        machine_output(f"{key}={'' if value is None else value}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
@cli_error_boundary
def config_set(ctx: CartiContext, key: str, value: str) -> None:
    """Set KEY to VALUE in the global config file."""
    updated = ctx.config.with_value(key, value)
    ctx.config_store.save(updated)
    user_output(f"Set {key}={value} in {ctx.config_store.path()}")
