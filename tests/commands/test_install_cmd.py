"""Tests for the install and fetch commands."""

from click.testing import CliRunner

from carti.cli.cli import cli
from tests.test_utils.env_helpers import carti_isolated_env


def test_install_success() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        bundle = env.publish_remote(b"image")
        test_ctx = env.build_context()

        result = runner.invoke(cli, ["install", "rootfs"], obj=test_ctx)

        assert result.exit_code == 0, result.output
        assert f"Installed flashdrive:rootfs@1.0.0#{bundle.id} <- local" in result.output
        assert (env.cwd / "carti_bundles" / bundle.id / "rootfs.ext2").exists()


def test_install_unknown_bundle_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["install", "nothing"], obj=env.build_context())

        assert result.exit_code == 1
        assert "Error: Unknown bundle: nothing" in result.output
        assert "carti repo update" in result.output


def test_fetch_lists_candidates_without_installing() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        v1 = env.publish_remote(b"v1", version="1.0.0")
        v2 = env.publish_remote(b"v2", version="2.0.0")

        result = runner.invoke(cli, ["fetch", "rootfs"], obj=env.build_context())

        assert result.exit_code == 0, result.output
        assert f"#{v1.id} <- {env.remote}" in result.output
        assert f"#{v2.id} <- {env.remote}" in result.output
        assert not (env.cwd / "carti_bundles").exists()
