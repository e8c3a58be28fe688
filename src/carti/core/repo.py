"""Repo sources: remote or local providers of global listing entries.

A repo source is a location serving a bundles.json listing. Known sources are
recorded in <carti home>/repos.json and each source's last fetched listing is
cached in <carti home>/listings/<key>.json, which is what GlobalListing reads.
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from carti.core.errors import CartiError, FetchFailed, ListingSourceUnreachable
from carti.core.fetcher import Fetchers, classify_uri
from carti.core.listing import LISTING_FILE_NAME, parse_listing, serialize_listing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoUpdateResult:
    """Outcome of refreshing one source."""

    source: str
    bundle_count: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def listing_cache_key(source: str) -> str:
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]


class RepoManager:
    def __init__(self, repos_file: Path, listings_dir: Path, fetchers: Fetchers, cwd: Path) -> None:
        self.repos_file = repos_file
        self.listings_dir = listings_dir
        self.fetchers = fetchers
        self.cwd = cwd

    def normalize(self, source: str) -> str:
        """Local sources are stored as absolute paths; remote ones verbatim."""
        if classify_uri(source) == "disk":
            return str((self.cwd / source).resolve())
        return source.rstrip("/")

    def sources(self) -> list[str]:
        if not self.repos_file.exists():
            return []
        data = json.loads(self.repos_file.read_text(encoding="utf-8"))
        return list(data.get("repos", []))

    def _save_sources(self, sources: list[str]) -> None:
        self.repos_file.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps({"repos": sources}, indent=2) + "\n"
        self.repos_file.write_text(content, encoding="utf-8")

    def cache_path(self, source: str) -> Path:
        return self.listings_dir / f"{listing_cache_key(source)}.json"

    def _refresh(self, source: str) -> int:
        """Fetch, validate and cache one source's listing. Returns its bundle count."""
        try:
            raw = self.fetchers.for_uri(source, LISTING_FILE_NAME).read_text()
        except FetchFailed as e:
            raise ListingSourceUnreachable(source, e.cause) from e
        try:
            entries = parse_listing(json.loads(raw), source)
        except (json.JSONDecodeError, ValueError) as e:
            raise ListingSourceUnreachable(source, f"malformed listing: {e}") from e

        self.listings_dir.mkdir(parents=True, exist_ok=True)
        self.cache_path(source).write_text(serialize_listing(entries), encoding="utf-8")
        count = sum(len(bundles) for bundles in entries.values())
        logger.debug("Cached %d bundles from %s", count, source)
        return count

    def add(self, source: str) -> int:
        """Register a source and fetch its listing immediately.

        Returns:
            Number of bundles the source lists

        Raises:
            ListingSourceUnreachable: If the listing cannot be fetched or parsed.
                The source is not recorded in that case.
        """
        normalized = self.normalize(source)
        count = self._refresh(normalized)
        sources = self.sources()
        if normalized not in sources:
            sources.append(normalized)
            self._save_sources(sources)
        return count

    def update(self, source: str | None = None) -> list[RepoUpdateResult]:
        """Refresh one source, or every known source when source is None.

        Each source is refreshed independently: a failing source is reported
        in its result and the remaining sources are still refreshed.

        Raises:
            CartiError: If a specific source is given that is not registered
        """
        known = self.sources()
        if source is not None:
            normalized = self.normalize(source)
            if normalized not in known:
                raise CartiError(f"Unknown repo source: {normalized}, add it with `carti repo add`")
            targets = [normalized]
        else:
            targets = known

        results: list[RepoUpdateResult] = []
        for target in targets:
            try:
                count = self._refresh(target)
            except ListingSourceUnreachable as e:
                logger.debug("Refresh of %s failed: %s", target, e)
                results.append(RepoUpdateResult(source=target, bundle_count=0, error=e.cause))
                continue
            results.append(RepoUpdateResult(source=target, bundle_count=count))
        return results

    def rm(self, source: str) -> None:
        """Forget a source and drop its cached listing.

        Bundles already installed from it stay installed.

        Raises:
            CartiError: If the source is not registered
        """
        normalized = self.normalize(source)
        sources = self.sources()
        if normalized not in sources:
            raise CartiError(f"Unknown repo source: {normalized}")
        sources.remove(normalized)
        self._save_sources(sources)
        cache = self.cache_path(normalized)
        if cache.exists():
            cache.unlink()
