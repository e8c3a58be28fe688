"""Tests for the machine command group."""

import json

from click.testing import CliRunner

from carti.cli.cli import cli
from carti.core.context import CartiContext
from carti.core.machine.package import (
    DriveRole,
    PackageEntryOptions,
    template_package,
    update_package_entry,
)
from tests.fakes.build_executor import FakeBuildExecutor
from tests.test_utils.env_helpers import CartiTestEnv, carti_isolated_env


def _package(env: CartiTestEnv) -> dict:
    return json.loads((env.cwd / "carti-machine-package.json").read_text())


def _bundle(runner: CliRunner, test_ctx: CartiContext, env: CartiTestEnv, name: str) -> None:
    env.write_file(f"{name}.bin", name.encode())
    result = runner.invoke(
        cli, ["bundle", "-t", "flashdrive", "-n", name, "-v", "1.0.0", f"{name}.bin"], obj=test_ctx
    )
    assert result.exit_code == 0, result.output


def test_machine_init_writes_template() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(cli, ["machine", "init"], obj=env.build_context())

        assert result.exit_code == 0, result.output
        assert _package(env)["machineConfig"]["ram"]["cid"] == "default-ram"


def test_machine_add_flash_updates_descriptor() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        _bundle(runner, test_ctx, env, "dapp")
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        result = runner.invoke(
            cli,
            ["machine", "add", "flash", "dapp", "-s", "0x9000000000000000", "-l", "0x100000", "--shared"],
            obj=test_ctx,
        )

        assert result.exit_code == 0, result.output
        drive = _package(env)["machineConfig"]["flash_drive"][1]
        assert drive["start"] == "0x9000000000000000"
        assert drive["shared"] is True
        assert [a["name"] for a in _package(env)["assets"]] == ["dapp"]


def test_machine_add_flash_over_default_drive_uses_its_slot() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        _bundle(runner, test_ctx, env, "dapp")
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        result = runner.invoke(
            cli,
            ["machine", "add", "flash", "dapp", "-s", "0x8000000000000000", "-l", "0x100000"],
            obj=test_ctx,
        )

        assert result.exit_code == 0, result.output
        drives = _package(env)["machineConfig"]["flash_drive"]
        assert [(d["start"], d["length"], d["label"]) for d in drives] == [
            ("0x8000000000000000", "0x100000", "dapp")
        ]


def test_machine_add_overlapping_flash_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        _bundle(runner, test_ctx, env, "dapp")
        _bundle(runner, test_ctx, env, "data")
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)
        first = runner.invoke(
            cli,
            ["machine", "add", "flash", "dapp", "-s", "0x9000000000000000", "-l", "0x100000"],
            obj=test_ctx,
        )
        assert first.exit_code == 0, first.output
        before = _package(env)

        result = runner.invoke(
            cli,
            ["machine", "add", "flash", "data", "-s", "0x9000000000000000", "-l", "0x1000"],
            obj=test_ctx,
        )

        assert result.exit_code == 1
        dapp_id = before["assets"][0]["cid"]
        assert f"overlaps the address range of existing entry {dapp_id}" in result.output
        assert _package(env) == before


def test_machine_add_ram_and_rom() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        _bundle(runner, test_ctx, env, "kernel")
        _bundle(runner, test_ctx, env, "rom")
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        ram = runner.invoke(cli, ["machine", "add", "ram", "kernel", "-l", "0x8000000"], obj=test_ctx)
        rom = runner.invoke(
            cli, ["machine", "add", "rom", "rom", "-b", "console=hvc0 quiet"], obj=test_ctx
        )

        assert ram.exit_code == 0, ram.output
        assert rom.exit_code == 0, rom.output
        config = _package(env)["machineConfig"]
        assert config["ram"]["length"] == "0x8000000"
        assert config["rom"]["bootargs"] == "console=hvc0 quiet"
        assert sorted(a["name"] for a in _package(env)["assets"]) == ["kernel", "rom"]


def test_machine_add_invalid_hex_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        result = runner.invoke(cli, ["machine", "add", "ram", "kernel", "-l", "64MB"], obj=test_ctx)

        assert result.exit_code == 1
        assert "hexadecimal" in result.output


def test_machine_add_without_descriptor_exits_nonzero() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        result = runner.invoke(
            cli, ["machine", "add", "ram", "kernel", "-l", "0x1000"], obj=env.build_context()
        )

        assert result.exit_code == 1
        assert "carti machine init" in result.output


def test_machine_build_success_prints_load_hint() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        test_ctx = env.build_context()
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        result = runner.invoke(cli, ["machine", "build"], obj=test_ctx)

        assert result.exit_code == 0, result.output
        assert (env.cwd / "stored_machine").is_dir()
        assert "cartesi-machine --load=/opt/carti/stored_machine" in result.output


def test_machine_build_failure_prints_diagnostics() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        executor = FakeBuildExecutor(diagnostics="lua: cannot open machine-config")
        test_ctx = env.build_context(build_executor=executor)
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)

        result = runner.invoke(cli, ["machine", "build"], obj=test_ctx)

        assert result.exit_code == 1
        assert "lua: cannot open machine-config" in result.output
        assert "Error: Machine build failed" in result.output
        assert not (env.cwd / "stored_machine").exists()


def test_machine_install_nobuild_only_resolves_assets() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        executor = FakeBuildExecutor()
        test_ctx = env.build_context(build_executor=executor)
        dapp = env.publish_remote(b"dapp data", name="dapp", file_name="dapp.bin")
        options = PackageEntryOptions(start="0x8000000000000000", length="0x100000")
        other = update_package_entry(dapp, template_package(), options, DriveRole.FLASHDRIVE)
        other_path = env.base / "other.json"
        other_path.write_text(other.to_json())
        runner.invoke(cli, ["machine", "init"], obj=test_ctx)
        before = (env.cwd / "carti-machine-package.json").read_bytes()

        result = runner.invoke(
            cli, ["machine", "install", str(other_path), "--nobuild"], obj=test_ctx
        )

        assert result.exit_code == 0, result.output
        assert "Installed 1 bundles" in result.output
        assert "--load" not in result.output
        assert executor.build_calls == []
        assert not (env.cwd / "stored_machine").exists()
        assert (env.cwd / "carti-machine-package.json").read_bytes() == before
        [installed] = test_ctx.local_listing.get("dapp")
        assert installed.id == dapp.id
        assert (env.cwd / "carti_bundles" / dapp.id / "dapp.bin").read_bytes() == b"dapp data"


def test_machine_install_builds_fetched_descriptor() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        executor = FakeBuildExecutor()
        test_ctx = env.build_context(build_executor=executor)
        dapp = env.publish_remote(b"dapp data", name="dapp", file_name="dapp.bin")
        options = PackageEntryOptions(start="0x9000000000000000", length="0x100000")
        other = update_package_entry(dapp, template_package(), options, DriveRole.FLASHDRIVE)
        other_path = env.base / "other.json"
        other_path.write_text(other.to_json())

        result = runner.invoke(cli, ["machine", "install", str(other_path)], obj=test_ctx)

        assert result.exit_code == 0, result.output
        assert len(executor.build_calls) == 1
        assert f'image_filename = "{dapp.id}/dapp.bin"' in executor.machine_configs[0]
        assert (env.cwd / "stored_machine").is_dir()
        assert not (env.cwd / "carti-machine-package.json").exists()
