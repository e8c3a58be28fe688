"""Bundle records, content identifiers and short descriptors.

A bundle is an immutable record describing one versioned piece of content
(a flash drive image, a rom, a ram image or a raw file). Its id is derived
from the content bytes, so two records with the same id always describe
byte-identical content.
"""

import base64
import hashlib
import re
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from carti.core.errors import CartiError

CONTENT_ID_PREFIX = "b"


class BundleType(str, Enum):
    """Kinds of content a bundle can hold."""

    RAM = "ram"
    ROM = "rom"
    FLASHDRIVE = "flashdrive"
    RAW = "raw"


class Bundle(BaseModel):
    """An immutable bundle record as stored in listings.

    uri is where the content can be fetched from (remote uri, absolute path
    or content store root). path is where the content lives once it has been
    materialized into a project.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    bundle_type: BundleType
    file_name: str = Field(..., min_length=1)
    description: str | None = None
    uri: str | None = None
    path: str | None = None

    def to_json_dict(self) -> dict[str, object]:
        """Serialize using the camelCase wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BundleMeta(BaseModel):
    """Metadata needed to pack a local file into a bundle."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    bundle_type: BundleType
    path: Path
    description: str | None = None


class ContentHasher:
    """Incrementally computes a content identifier."""

    def __init__(self) -> None:
        self._digest = hashlib.sha256()

    def update(self, chunk: bytes) -> None:
        self._digest.update(chunk)

    def content_id(self) -> str:
        encoded = base64.b32encode(self._digest.digest()).decode("ascii")
        return CONTENT_ID_PREFIX + encoded.lower().rstrip("=")


def compute_content_id(chunks: Iterable[bytes]) -> str:
    """Compute the content identifier of a byte stream."""
    hasher = ContentHasher()
    for chunk in chunks:
        hasher.update(chunk)
    return hasher.content_id()


# <bundleType>:<name>@<version>#<id>, optionally followed by " <- <uri>"
_SHORT_DESC_PATTERN = re.compile(
    r"^(?P<bundle_type>[a-z]+):(?P<name>[^@]+)@(?P<version>[^#]+)#(?P<id>\S+?)"
    r"(?: <- (?P<uri>.+))?$"
)


class ShortDesc(BaseModel):
    """Fields recovered from a short descriptor."""

    model_config = ConfigDict(frozen=True)

    bundle_type: str
    name: str
    version: str
    id: str
    uri: str | None = None


def short_desc(bundle: Bundle, uri: str | None = None) -> str:
    """Render a bundle as a one-line descriptor that round-trips its id.

    Args:
        bundle: Bundle to describe
        uri: Location to show after the descriptor. Defaults to the bundle's
            own uri; pass "local" for bundles that live in the project.
    """
    desc = f"{bundle.bundle_type.value}:{bundle.name}@{bundle.version}#{bundle.id}"
    shown_uri = uri if uri is not None else bundle.uri
    if shown_uri:
        desc += f" <- {shown_uri}"
    return desc


def parse_short_desc(desc: str) -> ShortDesc:
    """Parse a descriptor produced by short_desc.

    Raises:
        CartiError: If the descriptor is malformed
    """
    match = _SHORT_DESC_PATTERN.match(desc.strip())
    if match is None:
        raise CartiError(f"Malformed bundle descriptor: {desc}")
    return ShortDesc(**match.groupdict())


def render_local(bundle: Bundle) -> str:
    """Descriptor for bundles picked from the local listing."""
    return short_desc(bundle, uri="local")


def render_remote(bundle: Bundle) -> str:
    """Descriptor for bundles picked from the global listing."""
    return short_desc(bundle)
