"""Machine orchestration: init, compose, install and build a machine package."""

import logging
import shutil
import tempfile
from importlib import resources
from pathlib import Path

from carti.core.bundle import Bundle, render_local
from carti.core.chooser import pick_candidate
from carti.core.context import CartiContext
from carti.core.errors import BuildFailed, UnknownBundle, UnresolvableAsset
from carti.core.install import install_resolved
from carti.core.machine.assemble import assemble_machine
from carti.core.machine.lua import generate_lua_config
from carti.core.machine.package import (
    CartiPackage,
    DriveRole,
    PackageEntryOptions,
    load_package,
    parse_package,
    template_package,
    update_package_entry,
    write_package,
)
from carti.core.paths import BUILD_DIR_PREFIX, MACHINE_PACKAGE_FILE, STORED_MACHINE_DIR

logger = logging.getLogger(__name__)

ADD_PROMPT = "Which bundle would you like to add to your cartesi machine build"
MACHINE_CONFIG_FILE = "machine-config.lua"
RUN_CONFIG_FILE = "run-config.lua"


def package_path(project_dir: Path) -> Path:
    return project_dir / MACHINE_PACKAGE_FILE


def init_machine(project_dir: Path) -> Path:
    """Write the template descriptor, overwriting any existing one."""
    path = package_path(project_dir)
    write_package(path, template_package())
    return path


def add_to_machine(
    ctx: CartiContext,
    name: str,
    role: DriveRole,
    options: PackageEntryOptions,
) -> CartiPackage:
    """Place a locally installed bundle into a drive slot of the project descriptor.

    Raises:
        MachinePackageNotFound: If the project has no descriptor
        UnknownBundle: If the local listing has no bundle by that name
        InvalidPackageEntry: If options required by role are missing
        OverlappingRange: If a flash drive would overlap another
    """
    path = package_path(ctx.cwd)
    package = load_package(path)
    candidates = ctx.local_listing.get(name)
    if not candidates:
        raise UnknownBundle(name, hint=f"Run `carti install {name}` first")
    bundle = pick_candidate(ctx.chooser, ADD_PROMPT, candidates, render_local)
    updated = update_package_entry(bundle, package, options, role)
    write_package(path, updated)
    logger.debug("Added %s as %s to %s", bundle.id, role.value, path)
    return updated


def install_machine(ctx: CartiContext, uri: str, nobuild: bool = False) -> list[Bundle]:
    """Install every asset a machine descriptor references, then build it.

    Assets are processed in order and independently: each is looked up by id
    in the global listing and installed, skipping the fetch when its content
    is already stored. The first failure aborts the remaining assets; assets
    installed before it stay registered. The project's own descriptor is left
    untouched: the fetched descriptor is built directly.

    Args:
        ctx: Carti context
        uri: Path or url of a carti-machine-package.json
        nobuild: Stop after installing assets

    Returns:
        The installed bundle records, in asset order

    Raises:
        FetchFailed: If the descriptor or an asset cannot be fetched
        UnresolvableAsset: If no listing knows an asset's id
        BuildFailed: If the build fails
    """
    raw = ctx.fetchers.for_uri(uri).read_text()
    package = parse_package(raw, uri)

    installed: list[Bundle] = []
    for asset in package.assets:
        candidates = ctx.global_listing.get_by_id(asset.cid)
        if not candidates:
            raise UnresolvableAsset(asset.cid, asset.name)
        installed.append(install_resolved(ctx, candidates[0]))

    if not nobuild:
        build_machine(ctx, package)
    return installed


def build_machine(ctx: CartiContext, package: CartiPackage) -> Path:
    """Build a stored machine from a descriptor.

    A fresh work directory is created in the project, filled with the
    machine config and every referenced image, and handed to the build
    executor. On success the produced machine replaces
    <project>/stored_machine. The work directory is always removed.

    Returns:
        Path of the stored machine

    Raises:
        UnresolvableAsset: If referenced content is missing from project storage
        BuildFailed: If the build tool reports diagnostics. Nothing is relocated.
    """
    work_dir = Path(tempfile.mkdtemp(prefix=BUILD_DIR_PREFIX, dir=ctx.cwd))
    try:
        machine = assemble_machine(package, ctx.bundle_storage, work_dir)
        lua_config = generate_lua_config(machine)
        (work_dir / MACHINE_CONFIG_FILE).write_text(lua_config, encoding="utf-8")
        run_config = resources.files("carti.data").joinpath(RUN_CONFIG_FILE)
        run_config_text = run_config.read_text(encoding="utf-8")
        (work_dir / RUN_CONFIG_FILE).write_text(run_config_text, encoding="utf-8")

        logger.debug("Building machine in %s", work_dir)
        result = ctx.build_executor.build(work_dir)
        if not result.success:
            raise BuildFailed(result.diagnostics)
        if not result.output_dir.is_dir():
            raise BuildFailed(f"Build produced no machine at {result.output_dir}")

        stored = ctx.cwd / STORED_MACHINE_DIR
        if stored.exists():
            shutil.rmtree(stored)
        shutil.move(str(result.output_dir), str(stored))
        return stored
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)


def build_project_machine(ctx: CartiContext) -> Path:
    """Build the machine described by the project's own descriptor."""
    return build_machine(ctx, load_package(package_path(ctx.cwd)))
