"""Library for running `helm package` on a staged chart directory.

The packaging step is a collaborator of the pipeline so it can be replaced
in tests:
```python
from helm_packager.helm import HelmPackager

packager = HelmPackager("/usr/local/bin/helm")
result = await packager.package(Path("/tmp/staging/mychart"))
print(result.output)
```
"""

from abc import ABC, abstractmethod
import logging
from pathlib import Path

from . import command
from .command import CommandResult
from .exceptions import HelmException

__all__ = [
    "Packager",
    "PackageResult",
    "HelmPackager",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm"

PackageResult = CommandResult


class Packager(ABC):
    """Produces a chart archive from a staged chart directory."""

    @abstractmethod
    async def package(self, working_dir: Path) -> PackageResult:
        """Package the chart in `working_dir`, returning the captured output."""


class HelmPackager(Packager):
    """Packages charts with the helm executable."""

    def __init__(self, helm_bin: str | Path = HELM_BIN) -> None:
        """Initialize HelmPackager."""
        self._helm_bin = str(helm_bin)

    async def package(self, working_dir: Path) -> PackageResult:
        """Run `helm package` in the chart directory."""
        cmd = command.Command(
            [self._helm_bin, "package", "."], cwd=working_dir, exc=HelmException
        )
        return await command.capture(cmd)
