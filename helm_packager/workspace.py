"""Library for staging the chart directory that helm packages."""

import logging
from pathlib import Path, PurePosixPath
import shutil

import aiofiles
import aiofiles.os
from aiofiles.ospath import exists

from .exceptions import InputException
from .manifest import (
    CHART_FILE,
    CHARTS_DIR,
    VALUES_FILE,
    read_data_manifest,
    read_deps_manifest,
)

__all__ = [
    "copy_file",
    "install_helm_content",
]

_LOGGER = logging.getLogger(__name__)

_rmtree = aiofiles.os.wrap(shutil.rmtree)


async def _write_text(path: Path, content: str) -> None:
    try:
        async with aiofiles.open(str(path), mode="w") as output_file:
            await output_file.write(content)
    except OSError as err:
        raise InputException(f"Unable to write {path}: {err}") from err


async def copy_file(src: str | Path, dest: Path) -> None:
    """Copy the contents of `src` to `dest`, creating parent directories."""
    try:
        await aiofiles.os.makedirs(str(dest.parent), exist_ok=True)
        async with aiofiles.open(str(src), mode="rb") as src_file:
            content = await src_file.read()
        async with aiofiles.open(str(dest), mode="wb") as dest_file:
            await dest_file.write(content)
    except OSError as err:
        raise InputException(f"Unable to copy {src} to {dest}: {err}") from err


def _chart_path(working_dir: Path, short_path: str) -> Path:
    """Return the destination of a data file, which must stay in the chart."""
    rel_path = PurePosixPath(short_path)
    if not short_path or rel_path.is_absolute() or ".." in rel_path.parts:
        raise InputException(f"Invalid chart file path: '{short_path}'")
    return working_dir / rel_path


async def install_helm_content(
    working_dir: Path,
    chart_content: str,
    values_content: str,
    data_manifest: str | Path,
    deps_manifest: str | Path | None = None,
) -> None:
    """Write the chart, values, templates and dependency charts into `working_dir`.

    Any existing content of `working_dir` is removed first.
    """
    try:
        if await exists(str(working_dir)):
            _LOGGER.debug("Removing stale staging directory %s", working_dir)
            await _rmtree(str(working_dir))
        await aiofiles.os.makedirs(str(working_dir), exist_ok=True)
    except OSError as err:
        raise InputException(f"Unable to prepare {working_dir}: {err}") from err

    await _write_text(working_dir / CHART_FILE, chart_content)
    await _write_text(working_dir / VALUES_FILE, values_content)

    data = await read_data_manifest(Path(data_manifest))
    destinations: dict[Path, str] = {}
    for full_path, short_path in data.items():
        dest = _chart_path(working_dir, short_path)
        if (other := destinations.get(dest)) is not None:
            raise InputException(
                f"Data files {other} and {full_path} both map to '{short_path}'"
            )
        destinations[dest] = full_path
    for dest, full_path in destinations.items():
        await copy_file(full_path, dest)
    _LOGGER.debug("Copied %d data files into %s", len(destinations), working_dir)

    if not deps_manifest:
        return
    deps = await read_deps_manifest(Path(deps_manifest))
    for dep in deps:
        await copy_file(dep, working_dir / CHARTS_DIR / Path(dep).name)
    _LOGGER.debug("Copied %d dependency charts into %s", len(deps), working_dir)
