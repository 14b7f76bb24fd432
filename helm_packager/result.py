"""Library for reading the results of `helm package`."""

import logging
from pathlib import Path
import re

import aiofiles

from .exceptions import InputException, PackageNotFoundError
from .manifest import HelmResultMetadata

__all__ = [
    "find_generated_package",
    "parse_package_name",
    "write_results_metadata",
]

_LOGGER = logging.getLogger(__name__)


# Archive names look like `<name>-<version>.tgz`
PACKAGE_NAME = re.compile(r"(.+)-(\d[\w\-.]*)\.tgz")


def find_generated_package(output: str, cwd: Path | None = None) -> Path:
    """Find the archive path in the output of `helm package`.

    Helm reports the archive with a line like
    `Successfully packaged chart and saved it to: /tmp/out/mychart-1.2.3.tgz`.
    """
    for line in output.splitlines():
        _, sep, rest = line.partition(":")
        if not sep or not (candidate := rest.strip()):
            continue
        pkg = Path(candidate)
        if not pkg.is_absolute() and cwd is not None:
            pkg = cwd / pkg
        if pkg.is_file():
            return pkg
    raise PackageNotFoundError(output)


def parse_package_name(package_base: str) -> HelmResultMetadata:
    """Parse the chart name and version from an archive file name.

    The version is taken from the archive name rather than Chart.yaml since
    helm may rewrite it.
    """
    if not (match := PACKAGE_NAME.fullmatch(package_base)):
        raise InputException(f"Unable to parse file name: {package_base}")
    return HelmResultMetadata(name=match.group(1), version=match.group(2))


async def write_results_metadata(
    package_base: str, output: str | Path
) -> HelmResultMetadata:
    """Write the metadata for the archive named `package_base` to `output`."""
    metadata = parse_package_name(package_base)
    try:
        async with aiofiles.open(str(output), mode="w") as output_file:
            await output_file.write(metadata.json())
    except OSError as err:
        raise InputException(f"Unable to write {output}: {err}") from err
    return metadata
