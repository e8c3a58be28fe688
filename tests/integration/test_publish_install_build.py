"""End-to-end flow between two projects with separate carti homes.

The first project bundles a flash drive image and publishes it by uri. The
second project adds the first as a repo source, installs the bundle,
composes a machine from it and builds it. The first project then installs
the second's machine descriptor without building.
"""

import json
import os
from pathlib import Path

from click.testing import CliRunner

from carti.cli.cli import cli
from carti.core.context import CartiContext
from tests.fakes.build_executor import FakeBuildExecutor
from tests.test_utils.env_helpers import carti_isolated_env

BUNDLE_NAME = "dapp-test-data"
IMAGE = "dapp-test-data.ext2"


def _run(runner: CliRunner, ctx: CartiContext, args: list[str]) -> str:
    result = runner.invoke(cli, args, obj=ctx)
    assert result.exit_code == 0, (args, result.output)
    return result.output


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_publish_compose_build_and_install_machine_without_building() -> None:
    runner = CliRunner()
    with carti_isolated_env(runner) as env:
        # First project: bundle the image and publish it where it already lives
        first_executor = FakeBuildExecutor()
        first = env.build_context(build_executor=first_executor)
        env.write_file(IMAGE, b"hello world flash drive")
        bundle_args = ["bundle", "-t", "flashdrive", "-n", BUNDLE_NAME, "-v", "1.0.0"]
        _run(runner, first, [*bundle_args, "-d", "hello_world_flash_drive", IMAGE])
        content_store = env.cwd / "carti_bundles"
        _run(runner, first, ["publish", "uri", BUNDLE_NAME, str(content_store)])

        [published] = _read_json(env.cwd / "bundles.json")[BUNDLE_NAME]
        assert published["uri"] == str(content_store)
        bundle_id = published["id"]

        # Second project: its own carti home, so the bundle is only known via repo add
        second_dir = env.base / "second"
        second_dir.mkdir()
        os.chdir(second_dir)
        second_executor = FakeBuildExecutor()
        second = CartiContext.for_test(
            cwd=second_dir, home=env.base / "second-home", build_executor=second_executor
        )
        _run(runner, second, ["repo", "add", str(env.cwd)])
        _run(runner, second, ["install", BUNDLE_NAME])
        _run(runner, second, ["machine", "init"])
        flash_args = ["--start", "0x8000000000000000", "--length", "0x100000"]
        _run(runner, second, ["machine", "add", "flash", BUNDLE_NAME, *flash_args])
        build_output = _run(runner, second, ["machine", "build"])

        [installed] = _read_json(second_dir / ".carti" / "local-bundles.json")[BUNDLE_NAME]
        assert installed["id"] == bundle_id
        stored_image = second_dir / "carti_bundles" / bundle_id / IMAGE
        assert stored_image.read_bytes() == b"hello world flash drive"
        descriptor = _read_json(second_dir / "carti-machine-package.json")
        assert descriptor["machineConfig"]["flash_drive"] == [
            {
                "cid": bundle_id,
                "start": "0x8000000000000000",
                "length": "0x100000",
                "shared": False,
                "label": BUNDLE_NAME,
            }
        ]
        assert descriptor["assets"] == [
            {"cid": bundle_id, "name": BUNDLE_NAME, "fileName": IMAGE}
        ]
        assert f'image_filename = "{bundle_id}/{IMAGE}"' in second_executor.machine_configs[0]
        assert (second_dir / "stored_machine").is_dir()
        assert "cartesi-machine --load=/opt/carti/stored_machine" in build_output

        # First project: resolve the second project's machine assets only
        os.chdir(env.cwd)
        output = _run(
            runner,
            first,
            ["machine", "install", str(second_dir / "carti-machine-package.json"), "--nobuild"],
        )

        assert "Installed 1 bundles" in output
        assert first_executor.build_calls == []
        assert not (env.cwd / "stored_machine").exists()
        assert not (env.cwd / "carti-machine-package.json").exists()
        assert not list(env.cwd.glob("carti_build_package*"))
        [registered] = _read_json(env.cwd / ".carti" / "local-bundles.json")[BUNDLE_NAME]
        assert registered["id"] == bundle_id
