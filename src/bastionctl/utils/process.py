"""External process execution.

Sessions block on their child process for its whole lifetime. Standard input
and output stay attached to the operator's terminal so interactive shells and
host-key prompts work. Ctrl+C reaches the child through the terminal's
process group; the parent keeps waiting, so the child's exit status decides
what happens next.
"""

import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Any, Final

from bastionctl.exceptions import ProcessLaunchError

logger: Final = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured standard error of a finished process."""

    returncode: int
    stderr: str = ""


class ProcessRunner:
    """Runs external executables attached to the current terminal."""

    def run_capturing_stderr(self, args: list[str]) -> ProcessResult:
        """Run ``args`` with stdin/stdout inherited and stderr captured.

        Standard error is spooled to a temporary file rather than a pipe so an
        interrupt while waiting cannot lose part of it.

        Raises:
            ProcessLaunchError: If the executable cannot be started.
        """
        with tempfile.TemporaryFile(mode="w+") as stderr_file:
            process = self._start(args, stderr=stderr_file)
            returncode = self._wait(process)
            stderr_file.seek(0)
            stderr = stderr_file.read()
        return ProcessResult(returncode=returncode, stderr=stderr)

    def run_interactive(self, args: list[str]) -> int:
        """Run ``args`` with all standard streams inherited.

        Returns:
            The exit status of the process.

        Raises:
            ProcessLaunchError: If the executable cannot be started.
        """
        return self._wait(self._start(args))

    def which(self, name: str) -> str | None:
        """Resolve ``name`` on PATH (or verify an explicit path)."""
        return shutil.which(name)

    @staticmethod
    def _start(args: list[str], **kwargs: Any) -> "subprocess.Popen[Any]":
        logger.debug(f"Executing: {' '.join(args)}")
        try:
            return subprocess.Popen(args, **kwargs)  # noqa: S603
        except OSError as e:
            raise ProcessLaunchError(f"failed to start {args[0]}: {e}") from e

    @staticmethod
    def _wait(process: "subprocess.Popen[Any]") -> int:
        while True:
            try:
                return process.wait()
            except KeyboardInterrupt:
                logger.info(f"Interrupt received, waiting for {process.args[0]} to exit")
