import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import success_mark, user_output
from carti.core.bundle import render_local
from carti.core.context import CartiContext
from carti.core.install import install_bundle


@click.command("install")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def install_cmd(ctx: CartiContext, name: str) -> None:
    """Install bundle NAME from the known repo listings into this project."""
    bundle = install_bundle(ctx, name)
    user_output(success_mark() + f"Installed {render_local(bundle)}")
