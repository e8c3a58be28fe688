"""Bundle command: pack a local file into the project."""

from pathlib import Path

import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import user_output
from carti.core.bundle import BundleMeta, BundleType, render_local
from carti.core.context import CartiContext
from carti.core.install import bundle_file


@click.command("bundle")
@click.option(
    "-t",
    "--type",
    "bundle_type",
    type=click.Choice([t.value for t in BundleType]),
    required=True,
    help="Kind of content the file holds.",
)
@click.option("-n", "--name", required=True, help="Bundle name.")
@click.option("-v", "--version", "version", required=True, help="Bundle version.")
@click.option("-d", "--description", default=None, help="Free-form description.")
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_obj
@cli_error_boundary
def bundle_cmd(
    ctx: CartiContext,
    bundle_type: str,
    name: str,
    version: str,
    description: str | None,
    path: Path,
) -> None:
    """Pack PATH into project storage and register it as a local bundle."""
    meta = BundleMeta(
        name=name,
        version=version,
        bundle_type=BundleType(bundle_type),
        path=ctx.cwd / path,
        description=description,
    )
    bundle = bundle_file(ctx, meta)
    user_output(f"Bundled {render_local(bundle)}")
