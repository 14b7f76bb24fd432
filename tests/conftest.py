"""Shared fixtures for helm-packager tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


WriteExecutable = Callable[[str, str], Path]

# Writes an archive named after the staged chart, like `helm package`
FAKE_HELM = """\
#!/bin/sh
name=$(sed -n 's/^name: *//p' Chart.yaml | tr -d '"')
version=$(sed -n 's/^version: *//p' Chart.yaml | tr -d '"')
touch "$name-$version.tgz"
echo "Successfully packaged chart and saved it to: $PWD/$name-$version.tgz"
"""

FAKE_YQ = """\
#!/bin/sh
sed -n 's/.*"digest": *"\\([^"]*\\)".*/\\1/p' "$2" | head -n 1
"""


@pytest.fixture(name="write_executable")
def write_executable_fixture(tmp_path: Path) -> WriteExecutable:
    """Fixture that writes an executable script into a bin directory."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def write(name: str, content: str) -> Path:
        path = bin_dir / name
        path.write_text(content)
        path.chmod(0o755)
        return path

    return write


@pytest.fixture(name="fake_helm")
def fake_helm_fixture(write_executable: WriteExecutable) -> Path:
    """Fixture for a helm executable that only supports `helm package .`."""
    return write_executable("helm", FAKE_HELM)


@pytest.fixture(name="fake_yq")
def fake_yq_fixture(write_executable: WriteExecutable) -> Path:
    """Fixture for a yq executable that only supports reading a manifest digest."""
    return write_executable("yq", FAKE_YQ)
