"""Bundle listings: JSON files mapping bundle name to bundle records.

Three listings exist at runtime:

- the local listing (.carti/local-bundles.json) records bundles materialized
  into the current project
- the publish listing (bundles.json) records bundles this project publishes;
  it is the file a repo source serves
- the global listing aggregates every cached repo listing under the carti
  home, plus the user's own published.json

Entries are looked up by name and disambiguated by content id; a (name, id)
pair is unique within one listing.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from carti.core.bundle import Bundle

logger = logging.getLogger(__name__)

LISTING_FILE_NAME = "bundles.json"


def parse_listing(data: object, origin: str) -> dict[str, list[Bundle]]:
    """Validate raw listing JSON.

    Raises:
        ValueError: If data is not a listing
    """
    if not isinstance(data, dict):
        raise ValueError(f"Listing at {origin} must be a JSON object")
    entries: dict[str, list[Bundle]] = {}
    for name, records in data.items():
        if not isinstance(records, list):
            raise ValueError(f"Listing at {origin}: entry {name!r} must be a list")
        try:
            entries[name] = [Bundle.model_validate(record) for record in records]
        except ValidationError as e:
            raise ValueError(f"Listing at {origin}: invalid bundle under {name!r}: {e}") from e
    return entries


def serialize_listing(entries: dict[str, list[Bundle]]) -> str:
    data = {
        name: [bundle.to_json_dict() for bundle in bundles]
        for name, bundles in sorted(entries.items())
    }
    return json.dumps(data, indent=2) + "\n"


class BundleListing:
    """A single file-backed listing.

    Loaded lazily on first access and written back on every mutation.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._entries: dict[str, list[Bundle]] | None = None

    def _load(self) -> dict[str, list[Bundle]]:
        if self._entries is None:
            if self.path.exists():
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                self._entries = parse_listing(raw, str(self.path))
            else:
                self._entries = {}
        return self._entries

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(serialize_listing(self._load()), encoding="utf-8")

    def entries(self) -> dict[str, list[Bundle]]:
        return {name: list(bundles) for name, bundles in self._load().items()}

    def get(self, name: str) -> list[Bundle]:
        return list(self._load().get(name, []))

    def get_by_id(self, cid: str) -> list[Bundle]:
        return [b for bundles in self._load().values() for b in bundles if b.id == cid]

    def add(self, bundles: Iterable[Bundle]) -> None:
        """Add bundles, overwriting any record with the same name and id."""
        entries = self._load()
        for bundle in bundles:
            existing = entries.setdefault(bundle.name, [])
            for i, current in enumerate(existing):
                if current.id == bundle.id:
                    existing[i] = bundle
                    break
            else:
                existing.append(bundle)
        self._save()

    def remove(self, name: str, cid: str | None = None) -> int:
        """Remove records by name (and optionally id). Returns how many were removed."""
        entries = self._load()
        if name not in entries:
            return 0
        before = len(entries[name])
        if cid is None:
            entries[name] = []
        else:
            entries[name] = [b for b in entries[name] if b.id != cid]
        removed = before - len(entries[name])
        if not entries[name]:
            del entries[name]
        self._save()
        return removed


class GlobalListing:
    """Read-only union of all cached listings plus the writable published listing."""

    def __init__(self, listings_dir: Path) -> None:
        self.listings_dir = listings_dir
        self.published = BundleListing(listings_dir / "published.json")

    def _listing_files(self) -> list[Path]:
        if not self.listings_dir.is_dir():
            return []
        # published.json first so the user's own records win over repo copies
        files = sorted(p for p in self.listings_dir.glob("*.json") if p.name != "published.json")
        published = self.listings_dir / "published.json"
        if published.exists():
            files.insert(0, published)
        return files

    def entries(self) -> dict[str, list[Bundle]]:
        merged: dict[str, list[Bundle]] = {}
        seen: set[tuple[str, str]] = set()
        for listing_file in self._listing_files():
            try:
                raw = json.loads(listing_file.read_text(encoding="utf-8"))
                entries = parse_listing(raw, str(listing_file))
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning("Ignoring unreadable cached listing %s: %s", listing_file, e)
                continue
            for name, bundles in entries.items():
                for bundle in bundles:
                    if (name, bundle.id) in seen:
                        continue
                    seen.add((name, bundle.id))
                    merged.setdefault(name, []).append(bundle)
        return merged

    def get(self, name: str) -> list[Bundle]:
        return self.entries().get(name, [])

    def get_by_id(self, cid: str) -> list[Bundle]:
        return [b for bundles in self.entries().values() for b in bundles if b.id == cid]

    def add(self, bundles: Iterable[Bundle]) -> None:
        """Record bundles the user published themselves."""
        self.published.add(bundles)
