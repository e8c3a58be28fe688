"""Install orchestration: global listing → project storage → local listing."""

import logging

from carti.core.bundle import Bundle, BundleMeta, render_remote
from carti.core.chooser import pick_candidate
from carti.core.context import CartiContext
from carti.core.errors import UnknownBundle
from carti.core.storage import pack_bundle

logger = logging.getLogger(__name__)

INSTALL_PROMPT = "Which bundle would you like to install"


def install_resolved(ctx: CartiContext, bundle: Bundle) -> Bundle:
    """Materialize a known bundle into project storage and register it locally.

    When the content id is already stored the fetch is skipped entirely; the
    bundle is still (re)registered in the local listing.

    Returns:
        The registered record, with path pointing into project storage

    Raises:
        FetchFailed: If the content cannot be retrieved
        ContentMismatch: If the fetched content does not hash to bundle.id
    """
    storage = ctx.bundle_storage
    if storage.exists(bundle.id):
        logger.debug("%s (%s) already in project storage", bundle.name, bundle.id)
    else:
        fetcher = ctx.fetchers.for_bundle(bundle)
        logger.debug("Fetching %s from %s", bundle.name, fetcher.uri)
        storage.add(fetcher.stream(), bundle.file_name, expected_id=bundle.id)

    installed = bundle.model_copy(update={"path": str(storage.path(bundle.id))})
    ctx.local_listing.add([installed])
    return installed


def install_bundle(ctx: CartiContext, name: str) -> Bundle:
    """Install a bundle by name from the global listing.

    Raises:
        UnknownBundle: If no listing knows the name. Storage is untouched.
        FetchFailed: If the content cannot be retrieved
        ContentMismatch: If the fetched content does not hash to its id
    """
    candidates = ctx.global_listing.get(name)
    if not candidates:
        raise UnknownBundle(name, hint="Run `carti repo update` to refresh repo listings")
    bundle = pick_candidate(ctx.chooser, INSTALL_PROMPT, candidates, render_remote)
    return install_resolved(ctx, bundle)


def bundle_file(ctx: CartiContext, meta: BundleMeta) -> Bundle:
    """Pack a local file into project storage and register it locally.

    Raises:
        FileNotFoundError: If meta.path does not exist
    """
    packed = pack_bundle(meta, ctx.bundle_storage)
    bundle = packed.model_copy(update={"path": str(ctx.bundle_storage.path(packed.id))})
    ctx.local_listing.add([bundle])
    return bundle
