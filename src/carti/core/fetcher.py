"""Fetch strategies for bundle content and listing files.

A uri is classified into one of three retrieval strategies:

- no scheme (or file://): read from the local filesystem
- git remote (git@host:..., git://, git+https://, ssh://, *.git): shallow
  clone and read a named file from the checkout
- anything else: HTTP GET

Strategies are lazy. Nothing touches the disk or network until stream() is
iterated, and content is yielded in chunks rather than loaded wholesale.
Failures surface as FetchFailed; there is no retry at this layer.
"""

import logging
import subprocess
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

import httpx

from carti.core.bundle import Bundle
from carti.core.errors import FetchFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
HTTP_TIMEOUT_SECONDS = 30.0

UriKind = Literal["disk", "git", "http"]

_GIT_SCHEMES = {"git", "git+https", "git+ssh", "git+http", "ssh"}


def classify_uri(uri: str) -> UriKind:
    """Classify a uri into the retrieval strategy that handles it."""
    if uri.startswith("git@"):
        return "git"
    parsed = urlparse(uri)
    if parsed.scheme in _GIT_SCHEMES:
        return "git"
    # Single-letter schemes are windows drive letters
    if parsed.scheme in ("", "file") or len(parsed.scheme) == 1:
        return "disk"
    if parsed.path.endswith(".git"):
        return "git"
    return "http"


def _join_url(base: str, file_name: str) -> str:
    return base.rstrip("/") + "/" + file_name


class FetchStrategy(ABC):
    """A lazy producer of the bytes behind a uri."""

    uri: str

    @abstractmethod
    def stream(self) -> Iterator[bytes]:
        """Yield the content in chunks.

        Raises:
            FetchFailed: If the resource is unreachable or absent
        """
        ...

    def read_bytes(self) -> bytes:
        return b"".join(self.stream())

    def read_text(self) -> str:
        return self.read_bytes().decode("utf-8")


class DiskFetcher(FetchStrategy):
    def __init__(self, path: Path) -> None:
        self.path = path
        self.uri = str(path)

    def stream(self) -> Iterator[bytes]:
        if not self.path.is_file():
            raise FetchFailed(self.uri, "no such file")
        try:
            with self.path.open("rb") as f:
                while chunk := f.read(CHUNK_SIZE):
                    yield chunk
        except OSError as e:
            raise FetchFailed(self.uri, str(e)) from e


class HttpFetcher(FetchStrategy):
    def __init__(self, url: str, timeout: float = HTTP_TIMEOUT_SECONDS) -> None:
        self.uri = url
        self.timeout = timeout

    def stream(self) -> Iterator[bytes]:
        logger.debug("GET %s", self.uri)
        try:
            with httpx.stream("GET", self.uri, timeout=self.timeout, follow_redirects=True) as r:
                r.raise_for_status()
                yield from r.iter_bytes(CHUNK_SIZE)
        except httpx.HTTPError as e:
            raise FetchFailed(self.uri, str(e)) from e


class GitFetcher(FetchStrategy):
    """Shallow-clones a repository and streams one file from the checkout."""

    def __init__(self, repo_url: str, file_name: str, ref: str | None = None) -> None:
        self.repo_url = repo_url
        self.file_name = file_name
        self.ref = ref
        self.uri = f"{repo_url}#{file_name}"

    def _clone_command(self, dest: Path) -> list[str]:
        cmd = ["git", "clone", "--depth", "1", "--quiet"]
        if self.ref is not None:
            cmd.extend(["--branch", self.ref])
        url = self.repo_url.removeprefix("git+")
        cmd.extend([url, str(dest)])
        return cmd

    def stream(self) -> Iterator[bytes]:
        with tempfile.TemporaryDirectory(prefix="carti-git-") as tmp:
            checkout = Path(tmp) / "checkout"
            logger.debug("Cloning %s", self.repo_url)
            try:
                subprocess.run(
                    self._clone_command(checkout),
                    capture_output=True,
                    text=True,
                    check=True,
                )
            except subprocess.CalledProcessError as e:
                raise FetchFailed(self.uri, e.stderr.strip() or f"git exited {e.returncode}") from e
            except FileNotFoundError as e:
                raise FetchFailed(self.uri, "git executable not found") from e
            yield from DiskFetcher(checkout / self.file_name).stream()


def select_fetcher(uri: str, file_name: str | None = None) -> FetchStrategy:
    """Pick the retrieval strategy for a uri.

    Args:
        uri: Location of the resource, or of the directory/repository holding it
        file_name: File to read relative to uri. Required for git remotes.

    Raises:
        FetchFailed: If a git remote is given without a file name
    """
    kind = classify_uri(uri)
    if kind == "git":
        if file_name is None:
            raise FetchFailed(uri, "a file name is required to fetch from a git repository")
        return GitFetcher(uri, file_name)
    if kind == "disk":
        path = Path(urlparse(uri).path) if uri.startswith("file://") else Path(uri)
        if file_name is not None:
            path = path / file_name
        return DiskFetcher(path)
    if file_name is not None:
        return HttpFetcher(_join_url(uri, file_name))
    return HttpFetcher(uri)


def bundle_fetcher(bundle: Bundle) -> FetchStrategy:
    """Pick the retrieval strategy for a bundle's content.

    A local uri that is a directory is a content store root laid out as
    <root>/<id>/<fileName>. A local file is read directly. Remote uris
    point at the content itself.

    Raises:
        FetchFailed: If the bundle has no uri
    """
    if not bundle.uri:
        raise FetchFailed(f"{bundle.name}#{bundle.id}", "bundle has no uri to fetch from")
    if classify_uri(bundle.uri) == "disk":
        root = Path(bundle.uri)
        if root.is_dir():
            return DiskFetcher(root / bundle.id / bundle.file_name)
        return DiskFetcher(root)
    return select_fetcher(bundle.uri)


class Fetchers(ABC):
    """Fetcher selection as an injectable capability."""

    @abstractmethod
    def for_uri(self, uri: str, file_name: str | None = None) -> FetchStrategy: ...

    @abstractmethod
    def for_bundle(self, bundle: Bundle) -> FetchStrategy: ...


class RealFetchers(Fetchers):
    def for_uri(self, uri: str, file_name: str | None = None) -> FetchStrategy:
        return select_fetcher(uri, file_name)

    def for_bundle(self, bundle: Bundle) -> FetchStrategy:
        return bundle_fetcher(bundle)
