"""Configuration objects for helm-packager."""

from dataclasses import dataclass
from pathlib import Path


# Directory under the current directory where charts are staged
STAGING_DIR = ".rules_helm_pkg_dir"


@dataclass
class PackagerConfig:
    """Inputs and outputs of a single packaging run."""

    chart: Path
    """The `Chart.yaml` source file."""

    values: Path
    """The `values.yaml` source file."""

    data_manifest: Path
    """JSON object mapping template files to their path in the chart."""

    helm: Path
    """The helm executable."""

    output: Path
    """Where the packaged chart archive is written."""

    metadata_output: Path
    """Where the archive name and version are written."""

    deps_manifest: Path | None = None
    """JSON array of dependency chart archives."""

    image_manifest: Path | None = None
    """JSON array of image descriptor bundles."""

    stable_status_file: Path | None = None
    """Status file with stable stamp values."""

    volatile_status_file: Path | None = None
    """Status file with volatile stamp values."""

    workspace_name: str = ""
    """The name of the current build module."""

    staging_root: Path | None = None
    """Directory in which the chart is staged, defaults to the current directory."""

    def staging_dir(self, chart_name: str) -> Path:
        """Return the directory in which the chart is staged for packaging."""
        root = self.staging_root or Path.cwd() / STAGING_DIR
        return root.absolute() / chart_name
