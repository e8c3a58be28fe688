"""Repo commands: manage the sources global listings are fetched from."""

import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import failure_mark, machine_output, success_mark, user_output
from carti.core.context import CartiContext


@click.group("repo")
def repo_group() -> None:
    """Manage repo sources serving bundle listings."""


@repo_group.command("add")
@click.argument("source")
@click.pass_obj
@cli_error_boundary
def repo_add(ctx: CartiContext, source: str) -> None:
    """Register SOURCE (directory, url or git remote) and fetch its listing."""
    count = ctx.repos.add(source)
    user_output(success_mark() + f"Added {ctx.repos.normalize(source)} ({count} bundles)")


@repo_group.command("update")
@click.argument("source", required=False)
@click.pass_obj
@cli_error_boundary
def repo_update(ctx: CartiContext, source: str | None) -> None:
    """Refresh the listing of SOURCE, or of every registered source."""
    results = ctx.repos.update(source)
    if not results:
        user_output("No repo sources registered. Add one with `carti repo add <source>`")
        return

    failed = 0
    for result in results:
        if result.ok:
            user_output(success_mark() + f"{result.source} ({result.bundle_count} bundles)")
        else:
            failed += 1
            user_output(failure_mark() + f"{result.source}: {result.error}")

    if failed:
        user_output(click.style("Error: ", fg="red") + f"{failed} of {len(results)} sources failed")
        raise SystemExit(1)


@repo_group.command("rm")
@click.argument("source")
@click.pass_obj
@cli_error_boundary
def repo_rm(ctx: CartiContext, source: str) -> None:
    """Forget SOURCE. Bundles already installed from it are kept."""
    ctx.repos.rm(source)
    user_output(success_mark() + f"Removed {ctx.repos.normalize(source)}")


@repo_group.command("list")
@click.pass_obj
@cli_error_boundary
def repo_list(ctx: CartiContext) -> None:
    """List registered repo sources."""
    sources = ctx.repos.sources()
    if not sources:
        user_output("No repo sources registered")
        return
    for source in sources:
        machine_output(source)
