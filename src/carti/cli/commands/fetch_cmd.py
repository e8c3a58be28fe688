import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import machine_output
from carti.core.bundle import render_remote
from carti.core.context import CartiContext
from carti.core.errors import UnknownBundle


@click.command("fetch")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def fetch_cmd(ctx: CartiContext, name: str) -> None:
    """Show which known bundles match NAME without installing anything."""
    candidates = ctx.global_listing.get(name)
    if not candidates:
        raise UnknownBundle(name, hint="Run `carti repo update` to refresh repo listings")
    for bundle in candidates:
        machine_output(render_remote(bundle))
