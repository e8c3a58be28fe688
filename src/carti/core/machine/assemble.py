"""Turn a machine package into a concrete machine configuration.

Assembly copies every referenced bundle out of storage into the build work
directory and resolves each drive entry to an image path the build container
can open: a path relative to the work directory for bundles, an absolute
in-container path for defaults, or the operator-supplied resolvedpath.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from carti.core.errors import InvalidPackageEntry, UnresolvableAsset
from carti.core.machine.package import (
    DEFAULT_BOOTARGS,
    CartiPackage,
    FlashDriveEntry,
    _Entry,
    parse_hex,
)
from carti.core.storage import BundleStorage

logger = logging.getLogger(__name__)

CONTAINER_IMAGES_DIR = "/opt/cartesi/share/images"
DEFAULT_IMAGES = {
    "default-ram": "linux.bin",
    "default-rom": "rom.bin",
    "default-flash": "rootfs.ext2",
}


@dataclass(frozen=True)
class ResolvedFlashDrive:
    start: int
    length: int
    image_filename: str
    shared: bool
    label: str


@dataclass(frozen=True)
class ResolvedMachine:
    ram_length: int
    ram_image_filename: str
    rom_image_filename: str
    bootargs: str
    flash_drives: list[ResolvedFlashDrive]


def _flash_label(index: int, drive: FlashDriveEntry) -> str:
    return drive.label or f"drive{index}"


def compose_bootargs(base: str | None, flash_drives: list[FlashDriveEntry], boot_args: str) -> str:
    """Append the mtdparts layout of the flash drives to the kernel bootargs."""
    bootargs = base or DEFAULT_BOOTARGS
    if flash_drives and "mtdparts=" not in bootargs:
        parts = ";".join(
            f"flash.{i}:-({_flash_label(i, drive)})" for i, drive in enumerate(flash_drives)
        )
        bootargs = f"{bootargs} mtdparts={parts}"
    if boot_args:
        bootargs = f"{bootargs} -- {boot_args}"
    return bootargs


def _materialize(
    entry: _Entry, package: CartiPackage, storage: BundleStorage, work_dir: Path
) -> str:
    if entry.resolvedpath is not None:
        return entry.resolvedpath

    if entry.is_default:
        image = DEFAULT_IMAGES.get(entry.cid)
        if image is None:
            raise InvalidPackageEntry(f"Unknown default image: {entry.cid}")
        return f"{CONTAINER_IMAGES_DIR}/{image}"

    asset = package.asset(entry.cid)
    if asset is None:
        raise UnresolvableAsset(entry.cid, "<not listed in assets>")
    if not storage.exists(entry.cid):
        raise UnresolvableAsset(entry.cid, asset.name)

    relative = Path(entry.cid) / asset.file_name
    dest = work_dir / relative
    if not dest.exists():
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("wb") as f:
            for chunk in storage.get(entry.cid):
                f.write(chunk)
        logger.debug("Copied %s (%s) into %s", asset.name, entry.cid, dest)
    return relative.as_posix()


def assemble_machine(
    package: CartiPackage, storage: BundleStorage, work_dir: Path
) -> ResolvedMachine:
    """Materialize package contents into work_dir and resolve the machine config.

    Raises:
        UnresolvableAsset: If a referenced bundle is not in storage
        InvalidPackageEntry: If a default cid is unknown
    """
    cfg = package.machine_config
    flash_drives = [
        ResolvedFlashDrive(
            start=parse_hex(drive.start),
            length=parse_hex(drive.length),
            image_filename=_materialize(drive, package, storage, work_dir),
            shared=drive.shared,
            label=_flash_label(i, drive),
        )
        for i, drive in enumerate(cfg.flash_drive)
    ]
    return ResolvedMachine(
        ram_length=parse_hex(cfg.ram.length),
        ram_image_filename=_materialize(cfg.ram, package, storage, work_dir),
        rom_image_filename=_materialize(cfg.rom, package, storage, work_dir),
        bootargs=compose_bootargs(cfg.rom.bootargs, cfg.flash_drive, cfg.boot.args),
        flash_drives=flash_drives,
    )
