"""Tests for the repo command group."""

from click.testing import CliRunner

from carti.cli.cli import cli
from carti.core.listing import serialize_listing
from tests.fakes.fetchers import FakeFetchers
from tests.test_utils.env_helpers import carti_isolated_env, make_bundle

GOOD = "https://good.example.com"
BAD = "https://bad.example.com"


def _listing(name: str) -> bytes:
    return serialize_listing({name: [make_bundle(name.encode(), name=name)]}).encode()


def test_repo_add_then_list() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        fetchers = FakeFetchers(uris={f"{GOOD}/bundles.json": _listing("kernel")})
        test_ctx = env.build_context(fetchers=fetchers)

        added = runner.invoke(cli, ["repo", "add", GOOD], obj=test_ctx)
        listed = runner.invoke(cli, ["repo", "list"], obj=test_ctx)

        assert added.exit_code == 0, added.output
        assert f"Added {GOOD} (1 bundles)" in added.output
        assert listed.stdout.strip() == GOOD


def test_repo_add_unreachable_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["repo", "add", BAD], obj=env.build_context(fetchers=FakeFetchers()))

        assert result.exit_code == 1
        assert f"Error: Could not load listing from {BAD}" in result.output


def test_repo_update_reports_each_source_and_fails_if_any_failed() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        fetchers = FakeFetchers(
            uris={f"{GOOD}/bundles.json": _listing("kernel"), f"{BAD}/bundles.json": _listing("rom")}
        )
        test_ctx = env.build_context(fetchers=fetchers)
        runner.invoke(cli, ["repo", "add", BAD], obj=test_ctx)
        runner.invoke(cli, ["repo", "add", GOOD], obj=test_ctx)
        del fetchers.uris[f"{BAD}/bundles.json"]

        result = runner.invoke(cli, ["repo", "update"], obj=test_ctx)

        assert result.exit_code == 1
        assert f"✓ {GOOD} (1 bundles)" in result.output
        assert f"✗ {BAD}: not found" in result.output
        assert "1 of 2 sources failed" in result.output


def test_repo_update_without_sources() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["repo", "update"], obj=env.build_context())

        assert result.exit_code == 0
        assert "No repo sources registered" in result.output


def test_repo_rm() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        fetchers = FakeFetchers(uris={f"{GOOD}/bundles.json": _listing("kernel")})
        test_ctx = env.build_context(fetchers=fetchers)
        runner.invoke(cli, ["repo", "add", GOOD], obj=test_ctx)

        result = runner.invoke(cli, ["repo", "rm", GOOD], obj=test_ctx)

        assert result.exit_code == 0, result.output
        assert test_ctx.repos.sources() == []
        assert test_ctx.global_listing.get("kernel") == []


def test_repo_rm_unknown_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["repo", "rm", GOOD], obj=env.build_context())

        assert result.exit_code == 1
        assert "Unknown repo source" in result.output
