"""Machine package descriptor (carti-machine-package.json).

The descriptor has two halves. machineConfig holds one entry per drive slot
(ram, rom and a list of flash drives), each referencing content by cid along
with its options. assets maps every cid referenced by machineConfig to the
bundle name and file name needed to materialize it.

Entries whose cid starts with "default-" refer to images that ship inside the
build container rather than to bundles.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from carti.core.bundle import Bundle
from carti.core.errors import InvalidPackageEntry, MachinePackageNotFound, OverlappingRange

PACKAGE_VERSION = "0.0.1"
DEFAULT_CID_PREFIX = "default-"

DEFAULT_RAM_LENGTH = "0x4000000"
DEFAULT_FLASH_START = "0x8000000000000000"
DEFAULT_FLASH_LENGTH = "0x3c00000"
DEFAULT_BOOTARGS = "console=hvc0 rootfstype=ext2 root=/dev/mtdblock0 rw quiet"


class DriveRole(str, Enum):
    RAM = "ram"
    ROM = "rom"
    FLASHDRIVE = "flashdrive"


def parse_hex(value: str) -> int:
    """Parse a 0x-prefixed hexadecimal string.

    Raises:
        ValueError: If value is not hexadecimal
    """
    if not value.lower().startswith("0x"):
        raise ValueError(f"expected a hexadecimal value like 0x4000, got {value!r}")
    return int(value, 16)


def _validate_hex(value: str) -> str:
    parse_hex(value)
    return value


HexString = Annotated[str, AfterValidator(_validate_hex)]


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    cid: str = Field(..., min_length=1)
    resolvedpath: str | None = None

    @property
    def is_default(self) -> bool:
        return self.cid.startswith(DEFAULT_CID_PREFIX)


class RamEntry(_Entry):
    length: HexString


class RomEntry(_Entry):
    bootargs: str | None = None


class FlashDriveEntry(_Entry):
    start: HexString
    length: HexString
    shared: bool = False
    label: str | None = None

    def span(self) -> tuple[int, int]:
        """Half-open address range [start, end)."""
        start = parse_hex(self.start)
        return start, start + parse_hex(self.length)

    def overlaps(self, other: "FlashDriveEntry") -> bool:
        start, end = self.span()
        other_start, other_end = other.span()
        return start < other_end and other_start < end


class BootEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    args: str = ""


class MachineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    ram: RamEntry
    rom: RomEntry
    flash_drive: list[FlashDriveEntry] = Field(default_factory=list)
    boot: BootEntry = Field(default_factory=BootEntry)


class Asset(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    cid: str = Field(..., min_length=1)
    name: str
    file_name: str


class CartiPackage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    version: str = PACKAGE_VERSION
    machine_config: MachineConfig
    assets: list[Asset] = Field(default_factory=list)

    def asset(self, cid: str) -> Asset | None:
        for asset in self.assets:
            if asset.cid == cid:
                return asset
        return None

    def referenced_cids(self) -> list[str]:
        cfg = self.machine_config
        cids = [cfg.ram.cid, cfg.rom.cid, *(flash.cid for flash in cfg.flash_drive)]
        return [cid for cid in cids if not cid.startswith(DEFAULT_CID_PREFIX)]

    def to_json(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2) + "\n"


class PackageEntryOptions(BaseModel):
    """Options given to `machine add`."""

    model_config = ConfigDict(frozen=True)

    length: HexString | None = None
    start: HexString | None = None
    bootargs: str | None = None
    shared: bool = False
    resolvedpath: str | None = None


def template_package() -> CartiPackage:
    """The descriptor `machine init` writes: container-provided defaults only."""
    return CartiPackage(
        machine_config=MachineConfig(
            ram=RamEntry(cid="default-ram", length=DEFAULT_RAM_LENGTH),
            rom=RomEntry(cid="default-rom", bootargs=DEFAULT_BOOTARGS),
            flash_drive=[
                FlashDriveEntry(
                    cid="default-flash",
                    start=DEFAULT_FLASH_START,
                    length=DEFAULT_FLASH_LENGTH,
                    label="root",
                )
            ],
        ),
    )


def parse_package(raw: str, origin: str) -> CartiPackage:
    """Parse descriptor JSON.

    Raises:
        ValueError: If raw is not a valid descriptor
    """
    try:
        return CartiPackage.model_validate_json(raw)
    except ValueError as e:
        raise ValueError(f"Invalid machine package at {origin}: {e}") from e


def load_package(path: Path) -> CartiPackage:
    """Read a descriptor from disk.

    Raises:
        MachinePackageNotFound: If path does not exist
    """
    if not path.exists():
        raise MachinePackageNotFound(str(path))
    return parse_package(path.read_text(encoding="utf-8"), str(path))


def write_package(path: Path, package: CartiPackage) -> None:
    path.write_text(package.to_json(), encoding="utf-8")


def _prune_assets(package: CartiPackage) -> CartiPackage:
    referenced = set(package.referenced_cids())
    return package.model_copy(
        update={"assets": [asset for asset in package.assets if asset.cid in referenced]}
    )


def update_package_entry(
    bundle: Bundle,
    package: CartiPackage,
    options: PackageEntryOptions,
    role: DriveRole,
) -> CartiPackage:
    """Return a new descriptor with bundle placed in the given drive slot.

    ram and rom have a single slot which is replaced. Flash drives are a list:
    an entry with the same cid is updated in place. A new entry takes the
    place of any container default (default-*) drive it overlaps, and must
    not overlap any other bundle's drive.

    Raises:
        InvalidPackageEntry: If required options for the role are missing
        OverlappingRange: If a new flash drive overlaps another bundle's drive
    """
    cfg = package.machine_config

    if role == DriveRole.RAM:
        if options.length is None:
            raise InvalidPackageEntry("ram entries require --length")
        ram = RamEntry(cid=bundle.id, length=options.length, resolvedpath=options.resolvedpath)
        cfg = cfg.model_copy(update={"ram": ram})
    elif role == DriveRole.ROM:
        bootargs = options.bootargs if options.bootargs is not None else cfg.rom.bootargs
        cfg = cfg.model_copy(
            update={
                "rom": RomEntry(cid=bundle.id, bootargs=bootargs, resolvedpath=options.resolvedpath)
            }
        )
    else:
        if options.start is None or options.length is None:
            raise InvalidPackageEntry("flash drive entries require --start and --length")
        entry = FlashDriveEntry(
            cid=bundle.id,
            start=options.start,
            length=options.length,
            shared=options.shared,
            label=bundle.name,
            resolvedpath=options.resolvedpath,
        )
        drives: list[FlashDriveEntry] = []
        placed = False
        for drive in cfg.flash_drive:
            if drive.cid == bundle.id or (drive.is_default and entry.overlaps(drive)):
                if not placed:
                    drives.append(entry)
                    placed = True
                continue
            if entry.overlaps(drive):
                raise OverlappingRange(role.value, bundle.id, drive.cid)
            drives.append(drive)
        if not placed:
            drives.append(entry)
        cfg = cfg.model_copy(update={"flash_drive": drives})

    assets = [asset for asset in package.assets if asset.cid != bundle.id]
    assets.append(Asset(cid=bundle.id, name=bundle.name, file_name=bundle.file_name))
    updated = package.model_copy(update={"machine_config": cfg, "assets": assets})
    return _prune_assets(updated)
