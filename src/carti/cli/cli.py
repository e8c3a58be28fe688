import logging

import click

from carti.cli.commands.bundle_cmd import bundle_cmd
from carti.cli.commands.config import config_group
from carti.cli.commands.fetch_cmd import fetch_cmd
from carti.cli.commands.install_cmd import install_cmd
from carti.cli.commands.list_cmd import list_cmd
from carti.cli.commands.machine import machine_group
from carti.cli.commands.publish import publish_group
from carti.cli.commands.repo import repo_group
from carti.cli.error_boundary import cli_error_boundary
from carti.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="carti")
@click.option("--debug", is_flag=True, help="Log debug output and full tracebacks.")
@click.option(
    "--non-interactive",
    is_flag=True,
    help="Never prompt; pick the first candidate when several bundles match.",
)
@click.pass_context
@cli_error_boundary
def cli(ctx: click.Context, debug: bool, non_interactive: bool) -> None:
    """Manage content bundles and build cartesi machines from them."""
    _configure_logging(debug)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(non_interactive=non_interactive)


cli.add_command(bundle_cmd)
cli.add_command(config_group)
cli.add_command(fetch_cmd)
cli.add_command(install_cmd)
cli.add_command(list_cmd)
cli.add_command(machine_group)
cli.add_command(publish_group)
cli.add_command(repo_group)


def main() -> None:
    """CLI entry point used by the `carti` console script."""
    cli()
