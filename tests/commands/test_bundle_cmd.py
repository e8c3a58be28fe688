"""Tests for the bundle and list commands."""

from click.testing import CliRunner

from carti.cli.cli import cli
from carti.core.bundle import compute_content_id
from tests.test_utils.env_helpers import carti_isolated_env


def test_bundle_registers_local_file() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        env.write_file("dapp.bin", b"dapp data")
        test_ctx = env.build_context()

        result = runner.invoke(
            cli,
            ["bundle", "-t", "flashdrive", "-n", "dapp-test-data", "-v", "1.0.0", "-d", "desc", "dapp.bin"],
            obj=test_ctx,
        )

        assert result.exit_code == 0, result.output
        cid = compute_content_id([b"dapp data"])
        assert f"flashdrive:dapp-test-data@1.0.0#{cid} <- local" in result.output
        [bundle] = test_ctx.local_listing.get("dapp-test-data")
        assert bundle.description == "desc"


def test_bundle_missing_file_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(
            cli,
            ["bundle", "-t", "raw", "-n", "x", "-v", "1", "missing.bin"],
            obj=env.build_context(),
        )

        assert result.exit_code == 1
        assert "Error: Bundle source file not found" in result.output


def test_bundle_rejects_unknown_type() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        env.write_file("f.bin", b"x")

        result = runner.invoke(
            cli, ["bundle", "-t", "disk", "-n", "x", "-v", "1", "f.bin"], obj=env.build_context()
        )

        assert result.exit_code == 2


def test_list_shows_local_bundles() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        env.write_file("dapp.bin", b"dapp data")
        test_ctx = env.build_context()
        runner.invoke(
            cli, ["bundle", "-t", "raw", "-n", "dapp", "-v", "2.1.0", "dapp.bin"], obj=test_ctx
        )

        result = runner.invoke(cli, ["list"], obj=test_ctx)

        assert result.exit_code == 0, result.output
        assert "dapp" in result.output
        assert "2.1.0" in result.output


def test_list_empty_project() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["list"], obj=env.build_context())

        assert result.exit_code == 0
        assert "No bundles in this project" in result.output


def test_list_global_shows_known_bundles() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        env.publish_remote(b"kernel", name="kernel", version="5.5.19")

        result = runner.invoke(cli, ["list", "--global"], obj=env.build_context())

        assert result.exit_code == 0, result.output
        assert "kernel" in result.output
        assert "5.5.19" in result.output
