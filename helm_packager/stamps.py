"""Library for reading build status files into stamp values.

A status file holds one `KEY VALUE` pair per line, e.g.:
```
STABLE_GIT_COMMIT 0a1b2c3
BUILD_TIMESTAMP 1700000000
```
"""

import logging
from pathlib import Path

from .manifest import read_text

__all__ = [
    "parse_stamps",
    "load_stamps",
]

_LOGGER = logging.getLogger(__name__)


def parse_stamps(content: str) -> dict[str, str]:
    """Parse the content of a status file.

    The key ends at the first space and the value is the rest of the line.
    Lines without a space are skipped.
    """
    stamps: dict[str, str] = {}
    for line in content.split("\n"):
        line = line.removesuffix("\r")
        key, sep, value = line.partition(" ")
        if not sep:
            continue
        stamps[key] = value
    return stamps


async def load_stamps(*status_files: str | Path | None) -> dict[str, str]:
    """Load stamp values from status files, later files taking precedence.

    Unset (`None` or empty) paths are skipped.
    """
    stamps: dict[str, str] = {}
    for status_file in status_files:
        if not status_file:
            continue
        content = await read_text(Path(status_file))
        values = parse_stamps(content)
        _LOGGER.debug("Read %d stamps from %s", len(values), status_file)
        stamps.update(values)
    return stamps
