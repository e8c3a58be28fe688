"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

import click

from carti.output import user_output
from carti.core.chooser import Chooser, FirstChoiceChooser, InteractiveChooser
from carti.core.config_store import CartiConfig, ConfigStore, RealConfigStore
from carti.core.fetcher import Fetchers, RealFetchers
from carti.core.listing import BundleListing, GlobalListing
from carti.core.paths import (
    BUNDLE_STORE_DIR,
    LISTINGS_DIR,
    LOCAL_LISTING_PATH,
    PUBLISH_LISTING_FILE,
    REPOS_FILE,
    carti_home,
)
from carti.core.repo import RepoManager
from carti.core.storage import BundleStorage, DiskProvider
from carti.ops.build_executor import BuildExecutor
from carti.ops.build_executor_real import DockerBuildExecutor


@dataclass(frozen=True)
class CartiContext:
    """Immutable context holding all dependencies for carti operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    cwd: Path  # Project directory: where carti was invoked
    home: Path  # Carti home holding config, repos and cached listings
    config: CartiConfig
    config_store: ConfigStore
    chooser: Chooser
    fetchers: Fetchers
    build_executor: BuildExecutor
    bundle_storage: BundleStorage
    local_listing: BundleListing
    global_listing: GlobalListing
    publish_listing: BundleListing
    repos: RepoManager

    @staticmethod
    def for_test(
        cwd: Path | None = None,
        home: Path | None = None,
        config: CartiConfig | None = None,
        config_store: ConfigStore | None = None,
        chooser: Chooser | None = None,
        fetchers: Fetchers | None = None,
        build_executor: BuildExecutor | None = None,
    ) -> "CartiContext":
        """Create test context with optional pre-configured dependencies.

        Storage and listings are real file-backed objects rooted at cwd and
        home, so tests should pass temporary directories (the default cwd is
        the process cwd, which CliRunner.isolated_filesystem() sets up).

        Args:
            cwd: Project directory. If None, uses Path.cwd().
            home: Carti home. If None, uses <cwd>/.carti-home.
            config: Loaded configuration. If None, uses defaults.
            config_store: If None, creates FakeConfigStore holding config.
            chooser: If None, creates FakeChooser that picks the first option.
            fetchers: If None, uses RealFetchers (disk fetches work offline).
            build_executor: If None, creates FakeBuildExecutor that succeeds.

        Example:
            >>> chooser = FakeChooser(picks=[1])
            >>> ctx = CartiContext.for_test(cwd=tmp_path, chooser=chooser)
        """
        from tests.fakes.build_executor import FakeBuildExecutor
        from tests.fakes.chooser import FakeChooser

        from carti.core.config_store import FakeConfigStore

        if cwd is None:
            cwd = Path.cwd()

        if home is None:
            home = cwd / ".carti-home"

        if config is None:
            config = CartiConfig()

        if config_store is None:
            config_store = FakeConfigStore(config)

        if chooser is None:
            chooser = FakeChooser()

        if fetchers is None:
            fetchers = RealFetchers()

        if build_executor is None:
            build_executor = FakeBuildExecutor()

        return _assemble(
            cwd=cwd,
            home=home,
            config=config,
            config_store=config_store,
            chooser=chooser,
            fetchers=fetchers,
            build_executor=build_executor,
        )


def _assemble(
    *,
    cwd: Path,
    home: Path,
    config: CartiConfig,
    config_store: ConfigStore,
    chooser: Chooser,
    fetchers: Fetchers,
    build_executor: BuildExecutor,
) -> CartiContext:
    listings_dir = home / LISTINGS_DIR
    return CartiContext(
        cwd=cwd,
        home=home,
        config=config,
        config_store=config_store,
        chooser=chooser,
        fetchers=fetchers,
        build_executor=build_executor,
        bundle_storage=BundleStorage(DiskProvider(cwd / BUNDLE_STORE_DIR)),
        local_listing=BundleListing(cwd / LOCAL_LISTING_PATH),
        global_listing=GlobalListing(listings_dir),
        publish_listing=BundleListing(cwd / PUBLISH_LISTING_FILE),
        repos=RepoManager(home / REPOS_FILE, listings_dir, fetchers, cwd),
    )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        Tuple of (path, error_message). If successful, returns (path, None).
        If cwd doesn't exist, returns (None, error_message).
    """
    try:
        cwd_str = os.getcwd()
    except FileNotFoundError:
        return (None, "Current working directory no longer exists")
    return (Path(cwd_str), None)


def create_context(*, non_interactive: bool = False) -> CartiContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        non_interactive: If True, bundle choices always take the first
            candidate instead of prompting

    Raises:
        ValueError: If the global config file is malformed
    """
    # 1. Capture cwd (no deps)
    cwd, error_msg = safe_cwd()
    if cwd is None:
        user_output(click.style("Error: ", fg="red") + str(error_msg))
        user_output("Please change to a valid directory and try again.")
        raise SystemExit(1)

    # 2. Load global config once
    home = carti_home()
    config_store = RealConfigStore(home)
    config = config_store.load_or_default()

    chooser: Chooser = FirstChoiceChooser() if non_interactive else InteractiveChooser()

    return _assemble(
        cwd=cwd,
        home=home,
        config=config,
        config_store=config_store,
        chooser=chooser,
        fetchers=RealFetchers(),
        build_executor=DockerBuildExecutor(config.build_image),
    )
