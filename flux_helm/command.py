"""Library for running external tools using asyncio and returning the result.

Both the helm release store and the kubectl resource tagger are driven
through `Command` so that they share the same failure and timeout handling.
"""

import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
import os

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


# No public API
__all__: list[str] = []


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    cwd: Path | None = None
    """Current working directory."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    env: dict[str, str] | None = None
    """Environment variables for the subprocess."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        if self.cwd:
            return f"({self.cwd}) {self.string}"
        return self.string

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the command, returning stdout.

        If the awaiting task is cancelled (e.g. on timeout) the child process
        is killed before the cancellation propagates.
        """
        _LOGGER.debug("Running command: %s", self)
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        proc = await asyncio.create_subprocess_shell(
            self.string,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=self.cwd,
            env=env,
        )
        try:
            out, err = await proc.communicate(stdin)
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        if proc.returncode:
            errors = [f"Command '{self}' failed with return code {proc.returncode}"]
            stderr = err.decode("utf-8") if err else ""
            if out:
                errors.append(out.decode("utf-8"))
            if stderr:
                errors.append(stderr)
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors), proc.returncode, stderr)
        return out


async def run(
    cmd: Command, stdin: str | None = None, timeout: float = DEFAULT_TIMEOUT
) -> str:
    """Run the specified command and return stdout.

    The command is killed and `cmd.exc` raised if it does not finish within
    `timeout` seconds.
    """
    try:
        out = await asyncio.wait_for(
            cmd.run(stdin.encode("utf-8") if stdin is not None else None), timeout
        )
    except asyncio.TimeoutError as err:
        raise cmd.exc(f"Command '{cmd}' timed out after {timeout}s") from err
    return out.decode("utf-8") if out else ""
