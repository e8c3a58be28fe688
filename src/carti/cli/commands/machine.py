"""Machine commands: compose a machine package from bundles and build it."""

import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import success_mark, user_output
from carti.core.context import CartiContext
from carti.core.machine.orchestrator import (
    add_to_machine,
    build_project_machine,
    init_machine,
    install_machine,
)
from carti.core.machine.package import DriveRole, PackageEntryOptions
from carti.core.paths import STORED_MACHINE_DIR


def _load_machine_hint() -> str:
    return (
        "Run it with: docker run -it --rm -v $(pwd)/"
        f"{STORED_MACHINE_DIR}:/opt/carti/{STORED_MACHINE_DIR} cartesi/playground:0.1.1 "
        f"cartesi-machine --load=/opt/carti/{STORED_MACHINE_DIR}"
    )


@click.group("machine")
def machine_group() -> None:
    """Compose, install and build cartesi machine packages."""


@machine_group.command("init")
@click.pass_obj
@cli_error_boundary
def machine_init(ctx: CartiContext) -> None:
    """Write a default carti-machine-package.json, replacing any existing one."""
    path = init_machine(ctx.cwd)
    user_output(success_mark() + f"Wrote {path}")


@machine_group.command("build")
@click.pass_obj
@cli_error_boundary
def machine_build(ctx: CartiContext) -> None:
    """Build the machine described by this project's package."""
    stored = build_project_machine(ctx)
    user_output(success_mark() + f"Stored machine at {stored}")
    user_output(_load_machine_hint())


@machine_group.command("install")
@click.argument("uri")
@click.option("--nobuild", is_flag=True, help="Install assets without building the machine.")
@click.pass_obj
@cli_error_boundary
def machine_install(ctx: CartiContext, uri: str, nobuild: bool) -> None:
    """Install every bundle the machine package at URI needs, then build it."""
    installed = install_machine(ctx, uri, nobuild=nobuild)
    user_output(success_mark() + f"Installed {len(installed)} bundles")
    if not nobuild:
        user_output(_load_machine_hint())


@machine_group.group("add")
def machine_add() -> None:
    """Place a local bundle in a drive slot of the machine package."""


def _add(ctx: CartiContext, name: str, role: DriveRole, options: PackageEntryOptions) -> None:
    add_to_machine(ctx, name, role, options)
    user_output(success_mark() + f"Added {name} as {role.value}")


@machine_add.command("ram")
@click.argument("name")
@click.option("-l", "--length", required=True, help="RAM length, e.g. 0x4000000.")
@click.option("-r", "--resolvedpath", default=None, help="Image path used instead of the bundle.")
@click.pass_obj
@cli_error_boundary
def add_ram(ctx: CartiContext, name: str, length: str, resolvedpath: str | None) -> None:
    """Use bundle NAME as the RAM image."""
    _add(ctx, name, DriveRole.RAM, PackageEntryOptions(length=length, resolvedpath=resolvedpath))


@machine_add.command("rom")
@click.argument("name")
@click.option("-b", "--bootargs", default=None, help="Kernel command line.")
@click.option("-r", "--resolvedpath", default=None, help="Image path used instead of the bundle.")
@click.pass_obj
@cli_error_boundary
def add_rom(ctx: CartiContext, name: str, bootargs: str | None, resolvedpath: str | None) -> None:
    """Use bundle NAME as the ROM image."""
    _add(
        ctx, name, DriveRole.ROM, PackageEntryOptions(bootargs=bootargs, resolvedpath=resolvedpath)
    )


@machine_add.command("flash")
@click.argument("name")
@click.option("-s", "--start", required=True, help="Start address, e.g. 0x8000000000000000.")
@click.option("-l", "--length", required=True, help="Drive length, e.g. 0x100000.")
@click.option("--shared", is_flag=True, help="Write changes back to the image file.")
@click.option("-r", "--resolvedpath", default=None, help="Image path used instead of the bundle.")
@click.pass_obj
@cli_error_boundary
def add_flash(
    ctx: CartiContext,
    name: str,
    start: str,
    length: str,
    shared: bool,
    resolvedpath: str | None,
) -> None:
    """Add bundle NAME as a flash drive."""
    options = PackageEntryOptions(
        start=start, length=length, shared=shared, resolvedpath=resolvedpath
    )
    _add(ctx, name, DriveRole.FLASHDRIVE, options)
