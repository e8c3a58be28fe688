"""Error taxonomy for carti operations.

Every error a command can surface derives from CartiError. Errors are raised
where the condition is detected and bubble up to the CLI error boundary
(see carti.cli.error_boundary), which prints the message and exits non-zero.
"""


class CartiError(Exception):
    """Base class for all carti domain errors."""


class EmptyCandidateSet(CartiError):
    """Raised when a bundle must be picked from an empty candidate list."""

    def __init__(self, prompt: str) -> None:
        self.prompt = prompt
        super().__init__(f"No candidate bundles to choose from ({prompt})")


class UnknownBundle(CartiError):
    """Raised when no listing knows a bundle by the requested name."""

    def __init__(self, name: str, hint: str | None = None) -> None:
        self.name = name
        message = f"Unknown bundle: {name}"
        if hint is not None:
            message += f"\n{hint}"
        super().__init__(message)


class FetchFailed(CartiError):
    """Raised when a resource cannot be retrieved from its uri."""

    def __init__(self, uri: str, cause: str) -> None:
        self.uri = uri
        self.cause = cause
        super().__init__(f"Failed to fetch {uri}: {cause}")


class ContentMismatch(CartiError):
    """Raised when fetched content does not hash to the expected identifier."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Content mismatch: expected id {expected} but content hashed to {actual}. "
            "The listing may be stale or tampered with."
        )


class UnresolvableAsset(CartiError):
    """Raised when a machine package references content no listing can provide."""

    def __init__(self, cid: str, name: str) -> None:
        self.cid = cid
        self.name = name
        super().__init__(
            f"Could not resolve bundle for id:{cid} name:{name}, "
            "try adding the repo that publishes it with `carti repo add <source>`"
        )


class BuildFailed(CartiError):
    """Raised when the external build tool reports diagnostics."""

    def __init__(self, diagnostics: str) -> None:
        self.diagnostics = diagnostics
        super().__init__("Machine build failed, stored machine was not relocated")


class ListingSourceUnreachable(CartiError):
    """Raised when a repo source cannot be fetched or serves a malformed listing."""

    def __init__(self, source: str, cause: str) -> None:
        self.source = source
        self.cause = cause
        super().__init__(f"Could not load listing from {source}: {cause}")


class OverlappingRange(CartiError):
    """Raised when a drive entry would overlap another one of the same role."""

    def __init__(self, role: str, cid: str, other_cid: str) -> None:
        self.role = role
        self.cid = cid
        self.other_cid = other_cid
        super().__init__(
            f"{role} entry for {cid} overlaps the address range of existing entry {other_cid}"
        )


class InvalidPackageEntry(CartiError):
    """Raised when options for a machine package entry are incomplete or invalid."""


class MachinePackageNotFound(CartiError):
    """Raised when a command needs a machine package descriptor that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Machine package not found at {path}, run `carti machine init` to create one"
        )


class StorageUnavailable(CartiError):
    """Raised when a storage backend rejects a read or write."""

    def __init__(self, location: str, cause: str) -> None:
        self.location = location
        self.cause = cause
        super().__init__(f"Storage at {location} is unavailable: {cause}")
