import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import user_output
from carti.cli.rendering import bundle_table, print_table
from carti.core.context import CartiContext


@click.command("list")
@click.option("--global", "global_", is_flag=True, help="List bundles known from repo sources.")
@click.pass_obj
@cli_error_boundary
def list_cmd(ctx: CartiContext, global_: bool) -> None:
    """List bundles installed in this project."""
    if global_:
        entries = ctx.global_listing.entries()
        if not entries:
            user_output("No bundles known. Add a repo source with `carti repo add <source>`")
            return
        print_table(bundle_table(entries, location_header="uri"))
        return

    entries = ctx.local_listing.entries()
    if not entries:
        user_output("No bundles in this project. Use `carti install` or `carti bundle`")
        return
    print_table(bundle_table(entries, location_header="path"))
