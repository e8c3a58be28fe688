"""Build executor interface for producing a stored machine from a work directory.

This module defines the abstract interface for the container build step,
following the ops pattern with ABC-based dependency injection for testability.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

MACHINE_OUTPUT_DIR = "cartesi-machine"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one build run.

    Attributes:
        success: Whether the build tool reported success
        output_dir: Directory holding the stored machine (valid only on success)
        stdout: Captured standard output of the build tool
        diagnostics: Captured diagnostics (stderr) of the build tool
    """

    success: bool
    output_dir: Path
    stdout: str
    diagnostics: str


class BuildExecutor(ABC):
    """Abstract interface for running the machine build.

    The work directory holds machine-config.lua, run-config.lua and every
    image referenced by the config. A successful build leaves the stored
    machine in <work_dir>/cartesi-machine.
    """

    @abstractmethod
    def build(self, work_dir: Path) -> BuildResult:
        """Run the build against a prepared work directory.

        Args:
            work_dir: Prepared build directory (must exist)

        Returns:
            BuildResult describing the outcome. A failed build is reported in
            the result, not raised.

        Raises:
            FileNotFoundError: If work_dir does not exist
        """
        ...
