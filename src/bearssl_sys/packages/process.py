"""External process execution.

Version control, compiler, archiver and make invocations all go through
run_process(). It never raises on a nonzero exit: it returns a
ProcessResult, and the caller decides to propagate the failure with
ProcessResult.check().
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

log = logging.getLogger(__name__)

# Conventional shell status for "command not found".
COMMAND_NOT_FOUND = 127


class ExternalProcessError(Exception):
    """Raised when an external process exits unsuccessfully."""

    def __init__(
        self, stage: str, command: Sequence[str], returncode: int, stderr: str = ""
    ):
        self.stage = stage
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = (
            f"{stage}: process exited unsuccessfully (exit status {returncode}): "
            f"{shlex.join(self.command)}"
        )
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one external process invocation."""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True when the process exited with status 0."""
        return self.returncode == 0

    def check(self, stage: str) -> "ProcessResult":
        """Return self on success, raise on failure.

        Args:
            stage: Pipeline stage the process belongs to (for the message)

        Returns:
            This result, unchanged

        Raises:
            ExternalProcessError: If the process exited nonzero
        """
        if not self.ok:
            raise ExternalProcessError(
                stage, self.command, self.returncode, self.stderr
            )
        return self


def run_process(
    cmd: Sequence[Union[str, Path]],
    cwd: Optional[Path] = None,
    capture: bool = True,
) -> ProcessResult:
    """Run an external command to completion.

    Args:
        cmd: Command and arguments
        cwd: Working directory for the command
        capture: Capture stdout/stderr instead of inheriting them

    Returns:
        ProcessResult describing the exit status and output
    """
    command = [str(part) for part in cmd]
    log.debug("running %s (cwd=%s)", shlex.join(command), cwd)

    try:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=capture,
            text=True,
        )
    except FileNotFoundError as e:
        return ProcessResult(command, COMMAND_NOT_FOUND, "", str(e))

    return ProcessResult(
        command,
        result.returncode,
        result.stdout or "",
        result.stderr or "",
    )
