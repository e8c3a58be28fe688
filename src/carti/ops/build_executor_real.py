"""Real build executor using subprocess to call the Docker CLI."""

import getpass
import logging
import os
import subprocess
from pathlib import Path

from carti.ops.build_executor import MACHINE_OUTPUT_DIR, BuildExecutor, BuildResult

logger = logging.getLogger(__name__)

CONTAINER_PACKAGES_DIR = "/opt/carti/packages"
BUILD_SCRIPT = (
    f"cd {CONTAINER_PACKAGES_DIR} && luapp5.3 run-config.lua machine-config "
    "&& echo 'package built'"
)


class DockerBuildExecutor(BuildExecutor):
    """Runs run-config.lua inside the playground image.

    The work directory is mounted into the container and the host user's
    identity is passed through so the stored machine is owned by the caller.
    A non-zero exit or any output on stderr counts as a failed build.
    """

    def __init__(self, image: str) -> None:
        self.image = image

    def _env_vars(self) -> dict[str, str]:
        return {
            "USER": getpass.getuser(),
            "UID": str(os.getuid()),
            "GID": str(os.getgid()),
        }

    def command(self, work_dir: Path) -> list[str]:
        cmd = ["docker", "run", "--rm"]
        for key, value in self._env_vars().items():
            cmd.extend(["-e", f"{key}={value}"])
        cmd.extend(["-v", f"{work_dir.resolve()}:{CONTAINER_PACKAGES_DIR}"])
        cmd.extend([self.image, "/bin/bash", "-c", BUILD_SCRIPT])
        return cmd

    def build(self, work_dir: Path) -> BuildResult:
        # LBYL: Check the mount exists before handing it to Docker
        if not work_dir.exists():
            raise FileNotFoundError(f"Build directory not found: {work_dir}")

        cmd = self.command(work_dir)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            return BuildResult(
                success=False,
                output_dir=work_dir / MACHINE_OUTPUT_DIR,
                stdout="",
                diagnostics="docker executable not found, is Docker installed?",
            )

        diagnostics = result.stderr.strip()
        if result.returncode != 0 and not diagnostics:
            diagnostics = f"docker exited with status {result.returncode}"
        return BuildResult(
            success=result.returncode == 0 and not diagnostics,
            output_dir=work_dir / MACHINE_OUTPUT_DIR,
            stdout=result.stdout,
            diagnostics=diagnostics,
        )
