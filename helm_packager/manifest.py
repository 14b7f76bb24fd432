"""Representation of the inputs and outputs of a chart packaging run.

The build system describes everything the packager consumes with small JSON
documents written next to the action inputs:
  - A data manifest maps template files to their path inside the chart.
  - A deps manifest lists dependency chart archives.
  - An image manifest lists descriptor bundles, one per container image.

The chart itself is described by `Chart.yaml`, and the result of a run is a
small JSON document with the name and version of the produced archive.
"""

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

import aiofiles
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField
import yaml

from .exceptions import InputException

__all__ = [
    "ImageManifest",
    "ImageBundle",
    "HelmChart",
    "HelmResultMetadata",
    "read_text",
    "read_data_manifest",
    "read_deps_manifest",
    "read_path_list",
]


CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"
CHARTS_DIR = "charts"


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True)
class ImageManifest:
    """A container image produced by the build."""

    label: str
    """The build target that produced the image."""

    registry: str
    """The registry host the image is pushed to."""

    repository: str
    """The repository within the registry."""

    digest: str
    """The content digest of the image manifest."""

    @property
    def registry_url(self) -> str:
        """Return the pinned image reference."""
        return f"{self.registry}/{self.repository}@{self.digest}"


@dataclass
class ImageBundle(BaseManifest):
    """A descriptor bundle for one image, as written by the build rules."""

    label: str = field(metadata=field_options(alias="Label"))
    """The build target that produced the image."""

    paths: list[str] = field(
        metadata=field_options(alias="Paths"), default_factory=list
    )
    """Supporting files: the image layout, the digest helper and the push script."""

    @classmethod
    def parse_json(cls, content: str) -> "ImageBundle":
        """Parse a serialized descriptor bundle."""
        try:
            doc = json.loads(content)
            if not isinstance(doc, dict):
                raise ValueError(f"expected an object: {doc}")
            return cls.from_dict(doc)
        except (ValueError, TypeError, MissingField) as err:
            raise InputException(f"Invalid image descriptor bundle: {err}") from err


def _placeholder_version(value: Any) -> Any:
    """Recover an unquoted `{KEY}` version.

    YAML reads `version: {KEY}` as a flow mapping with a single null value.
    """
    if isinstance(value, dict) and len(value) == 1:
        key, inner = next(iter(value.items()))
        if inner is None:
            return f"{{{key}}}"
    return value


@dataclass
class HelmChart(BaseManifest):
    """The fields of `Chart.yaml` read by the packager."""

    name: str
    """The name of the chart."""

    version: str | None = None
    """The version of the chart."""

    api_version: str | None = field(
        metadata=field_options(alias="apiVersion"), default=None
    )
    """The chart API version."""

    description: str | None = None
    """A single sentence description of the chart."""

    chart_type: str | None = field(metadata=field_options(alias="type"), default=None)
    """The chart type (application or library)."""

    app_version: str | None = field(
        metadata=field_options(alias="appVersion"), default=None
    )
    """The version of the app packaged by the chart."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "HelmChart":
        """Parse a HelmChart from a Chart.yaml document."""
        if not (name := doc.get("name")):
            raise InputException(f"Invalid {CHART_FILE} missing name: {doc}")
        values = {
            key: value
            for key, value in doc.items()
            if key in ("apiVersion", "description", "type", "appVersion")
            and value is not None
        }
        if (version := _placeholder_version(doc.get("version"))) is not None:
            if isinstance(version, (dict, list)):
                raise InputException(
                    f"Invalid {CHART_FILE} version is not a scalar: {version}"
                )
            values["version"] = version
        return cls.from_dict(
            {
                "name": str(name),
                **{key: str(value) for key, value in values.items()},
            }
        )

    @classmethod
    def parse_yaml(cls, content: str) -> "HelmChart":
        """Parse the text of a Chart.yaml file."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Unable to parse {CHART_FILE}: {err}") from err
        if not isinstance(doc, dict):
            raise InputException(f"Invalid {CHART_FILE} expected a mapping: {doc}")
        return cls.parse_doc(doc)


@dataclass
class HelmResultMetadata(BaseManifest):
    """Metadata describing the packaged chart archive."""

    name: str
    """The chart name taken from the archive file name."""

    version: str
    """The chart version taken from the archive file name."""

    def json(self) -> str:
        """Return the serialized metadata document."""
        return json.dumps(self.to_dict(), indent=4) + "\n"


async def read_text(path: Path) -> str:
    """Read a text input file."""
    try:
        async with aiofiles.open(str(path), encoding="utf-8") as input_file:
            return await input_file.read()
    except (OSError, UnicodeDecodeError) as err:
        raise InputException(f"Unable to read {path}: {err}") from err


async def _read_json(path: Path) -> Any:
    content = await read_text(path)
    try:
        return json.loads(content)
    except ValueError as err:
        raise InputException(f"Invalid JSON in {path}: {err}") from err


async def read_data_manifest(path: Path) -> dict[str, str]:
    """Read a data manifest mapping source files to chart relative paths."""
    data = await _read_json(path)
    if not isinstance(data, dict) or not all(
        isinstance(value, str) for value in data.values()
    ):
        raise InputException(
            f"Invalid data manifest {path} expected an object of paths: {data}"
        )
    return data


async def read_path_list(path: Path) -> list[str]:
    """Read a JSON array of file paths."""
    data = await _read_json(path)
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise InputException(
            f"Invalid manifest {path} expected a list of paths: {data}"
        )
    return data


async def read_deps_manifest(path: Path) -> list[str]:
    """Read a deps manifest listing dependency chart archives."""
    return await read_path_list(path)
