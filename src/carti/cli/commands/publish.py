"""Publish commands: upload a local bundle and record where it can be fetched."""

from pathlib import Path

import click

from carti.cli.error_boundary import cli_error_boundary
from carti.output import success_mark, user_output
from carti.core.bundle import Bundle, render_remote
from carti.core.context import CartiContext
from carti.core.publish import publish_bundle
from carti.core.storage import BundleStorage, DiskProvider
from carti.core.storage.s3 import S3Provider


def _report(bundle: Bundle) -> None:
    user_output(success_mark() + f"Published {render_remote(bundle)}")


@click.group("publish")
def publish_group() -> None:
    """Publish a local bundle so other projects can install it."""


@publish_group.command("s3")
@click.argument("name")
@click.argument("uri")
@click.option("--bucket", required=True, help="Bucket the content is uploaded to.")
@click.option("--nosave", is_flag=True, help="Record the bundle without uploading it.")
@click.pass_obj
@cli_error_boundary
def publish_s3(ctx: CartiContext, name: str, uri: str, bucket: str, nosave: bool) -> None:
    """Upload bundle NAME to an S3 bucket; URI is its public location."""
    storage = BundleStorage(S3Provider(bucket, endpoint_url=ctx.config.s3_endpoint_url))
    _report(publish_bundle(ctx, name, storage, uri=uri, nosave=nosave))


@publish_group.command("disk")
@click.argument("name")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--nosave", is_flag=True, help="Record the bundle without copying it.")
@click.pass_obj
@cli_error_boundary
def publish_disk(ctx: CartiContext, name: str, path: Path, nosave: bool) -> None:
    """Copy bundle NAME into the content store at PATH."""
    root = (ctx.cwd / path).resolve()
    storage = BundleStorage(DiskProvider(root))
    _report(publish_bundle(ctx, name, storage, uri=str(root), nosave=nosave))


@publish_group.command("uri")
@click.argument("name")
@click.argument("uri")
@click.pass_obj
@cli_error_boundary
def publish_uri(ctx: CartiContext, name: str, uri: str) -> None:
    """Record that bundle NAME is already available at URI."""
    _report(publish_bundle(ctx, name, uri=uri, nosave=True))
