"""Library for issuing commands using asyncio and returning the result."""

import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
import os

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)


# No public API
__all__: list[str] = []


def format_path(path: Path) -> str:
    """Format path for debugging."""
    if path.is_absolute():
        cwd = Path.cwd()
        if path.is_relative_to(cwd):
            rel_path = str(path.relative_to(cwd))
            return f"{rel_path} (abs)"
    return str(path)


@dataclass(frozen=True)
class CommandResult:
    """Output of a finished command."""

    output: str
    """Captured stdout, with stderr merged in when captured together."""

    returncode: int
    """Process exit status."""


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
        cwd: str = ""
        if self.cwd:
            cwd = f"({format_path(self.cwd)}) "
        return f"{cwd}{self.string}"

    async def _spawn(self, stderr: int) -> asyncio.subprocess.Process:
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        try:
            return await asyncio.create_subprocess_shell(
                self.string,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=stderr,
                cwd=self.cwd,
                env=env,
            )
        except OSError as err:
            raise self.exc(f"Command '{self}' could not be started: {err}") from err

    async def run(self) -> bytes:
        """Run the command, returning stdout."""
        _LOGGER.debug("Running command: %s", self)
        proc = await self._spawn(subprocess.PIPE)
        out, err = await proc.communicate()
        if proc.returncode:
            errors = [f"Command '{self}' failed with return code {proc.returncode}"]
            if out:
                errors.append(out.decode("utf-8", errors="replace"))
            if err:
                errors.append(err.decode("utf-8", errors="replace"))
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors))
        return out

    async def capture(self) -> CommandResult:
        """Run the command with stderr merged into stdout, returning the exit status."""
        _LOGGER.debug("Running command: %s", self)
        proc = await self._spawn(subprocess.STDOUT)
        out, _ = await proc.communicate()
        returncode = proc.returncode or 0
        if returncode:
            _LOGGER.debug("Command '%s' failed with return code %d", self, returncode)
        return CommandResult(
            output=out.decode("utf-8", errors="replace"), returncode=returncode
        )


async def run(cmd: Command) -> str:
    """Run the specified command and return stdout."""
    out = await cmd.run()
    return out.decode("utf-8", errors="replace") if out else ""


async def capture(cmd: Command) -> CommandResult:
    """Run the specified command and return its combined output and status."""
    return await cmd.capture()
