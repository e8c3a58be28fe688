"""Publish orchestration: local bundle → target storage → published listings."""

import logging
from pathlib import Path

from carti.core.bundle import Bundle, BundleMeta, render_local
from carti.core.chooser import pick_candidate
from carti.core.context import CartiContext
from carti.core.errors import CartiError, UnknownBundle
from carti.core.storage import BundleStorage, pack_bundle

logger = logging.getLogger(__name__)

PUBLISH_PROMPT = "Which bundle would you like to publish"


def publish_bundle(
    ctx: CartiContext,
    name: str,
    storage: BundleStorage | None = None,
    uri: str | None = None,
    nosave: bool = False,
) -> Bundle:
    """Publish a locally installed bundle.

    Args:
        ctx: Carti context
        name: Name of a bundle in the local listing
        storage: Target storage the content is uploaded to. Unused with nosave.
        uri: Public location recorded for the bundle. Defaults to the target
            storage location of the content.
        nosave: Register the bundle without uploading its content

    Returns:
        The published record

    Raises:
        UnknownBundle: If the local listing has no bundle by that name
        CartiError: If the picked bundle has no local content to upload, or
            there is no target storage to upload it to
    """
    candidates = ctx.local_listing.get(name)
    if not candidates:
        raise UnknownBundle(name, hint="Install or bundle it into this project first")
    bundle = pick_candidate(ctx.chooser, PUBLISH_PROMPT, candidates, render_local)

    if nosave:
        published = bundle.model_copy(update={"uri": uri if uri is not None else bundle.uri})
    else:
        if storage is None:
            raise CartiError(f"No target storage to upload {bundle.name}#{bundle.id} to")
        if bundle.path is None:
            raise CartiError(f"Bundle {bundle.name}#{bundle.id} has no local content to publish")
        meta = BundleMeta(
            name=bundle.name,
            version=bundle.version,
            bundle_type=bundle.bundle_type,
            path=Path(bundle.path),
            description=bundle.description,
        )
        packed = pack_bundle(meta, storage)
        logger.debug("Uploaded %s to %s", packed.id, packed.uri)
        published = packed.model_copy(update={"uri": uri if uri is not None else packed.uri})

    # Listings never carry machine-local paths
    published = published.model_copy(update={"path": None})
    ctx.global_listing.add([published])
    ctx.publish_listing.add([published])
    return published
