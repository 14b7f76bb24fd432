"""Tests for the packaging pipeline."""

import json
from pathlib import Path

import pytest

from helm_packager.config import PackagerConfig
from helm_packager.exceptions import HelmException, PackageNotFoundError
from helm_packager.helm import HelmPackager, Packager, PackageResult
from helm_packager.manifest import HelmChart, HelmResultMetadata
from helm_packager.packager import collect_stamps, package_chart

CHART = """\
apiVersion: v2
name: mychart
description: A Helm chart for Kubernetes
type: application
version: "0.1.0-{BUILD_EMBED_LABEL}"
appVersion: "{STABLE_GIT_COMMIT}"
"""

VALUES = """\
image: "{@//app:image}"
commit: "{STABLE_GIT_COMMIT}"
"""

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ .Chart.Name }}
"""


class FakePackager(Packager):
    """A packager that archives nothing and records the staged chart."""

    def __init__(self, output: str | None = None, returncode: int = 0) -> None:
        self.output = output
        self.returncode = returncode
        self.chart: HelmChart | None = None
        self.files: list[str] = []

    async def package(self, working_dir: Path) -> PackageResult:
        self.chart = HelmChart.parse_yaml((working_dir / "Chart.yaml").read_text())
        self.files = sorted(
            str(p.relative_to(working_dir))
            for p in working_dir.rglob("*")
            if p.is_file()
        )
        pkg = working_dir / f"{self.chart.name}-{self.chart.version}.tgz"
        pkg.write_bytes(b"archive")
        output = self.output
        if output is None:
            output = f"Successfully packaged chart and saved it to: {pkg}\n"
        return PackageResult(output=output, returncode=self.returncode)


@pytest.fixture(name="config")
def config_fixture(tmp_path: Path) -> PackagerConfig:
    """Fixture for the inputs of a packaging run."""
    src = tmp_path / "src"
    (src / "templates").mkdir(parents=True)
    (src / "Chart.yaml").write_text(CHART)
    (src / "values.yaml").write_text(VALUES)
    (src / "templates" / "deployment.yaml").write_text(DEPLOYMENT)

    data_manifest = tmp_path / "data_manifest.json"
    data_manifest.write_text(
        json.dumps(
            {str(src / "templates" / "deployment.yaml"): "templates/deployment.yaml"}
        )
    )
    stable = tmp_path / "stable-status.txt"
    stable.write_text("STABLE_GIT_COMMIT 0a1b2c3\n")
    volatile = tmp_path / "volatile-status.txt"
    volatile.write_text("STABLE_GIT_COMMIT stale\nBUILD_TIMESTAMP 1700000000\n")

    return PackagerConfig(
        chart=src / "Chart.yaml",
        values=src / "values.yaml",
        data_manifest=data_manifest,
        helm=tmp_path / "bin" / "helm",
        output=tmp_path / "out" / "mychart.tgz",
        metadata_output=tmp_path / "out" / "mychart.metadata.json",
        stable_status_file=stable,
        volatile_status_file=volatile,
        workspace_name="ws",
        staging_root=tmp_path / "staging",
    )


async def test_collect_stamps(config: PackagerConfig) -> None:
    """Test the stable status file wins over the volatile one."""
    assert await collect_stamps(config) == {
        "STABLE_GIT_COMMIT": "0a1b2c3",
        "BUILD_TIMESTAMP": "1700000000",
    }


async def test_package_chart(config: PackagerConfig) -> None:
    """Test packaging a chart with a fake packager."""
    (config.output.parent).mkdir()
    packager = FakePackager()

    metadata = await package_chart(config, packager)

    assert metadata == HelmResultMetadata(
        name="mychart", version="0.1.0-BUILD-EMBED-LABEL"
    )
    assert packager.chart is not None
    assert packager.chart.app_version == "0a1b2c3"
    assert packager.files == [
        "Chart.yaml",
        "templates/deployment.yaml",
        "values.yaml",
    ]

    working_dir = config.staging_dir("mychart")
    assert (working_dir / "templates" / "deployment.yaml").read_text() == DEPLOYMENT
    assert (working_dir / "values.yaml").read_text() == (
        'image: "{@//app:image}"\ncommit: "0a1b2c3"\n'
    )
    assert config.output.read_bytes() == b"archive"
    assert json.loads(config.metadata_output.read_text()) == {
        "name": "mychart",
        "version": "0.1.0-BUILD-EMBED-LABEL",
    }


async def test_package_chart_with_helm(config: PackagerConfig, fake_helm: Path) -> None:
    """Test packaging a chart by running a helm executable."""
    (config.output.parent).mkdir()

    metadata = await package_chart(config, HelmPackager(fake_helm))

    assert metadata.version == "0.1.0-BUILD-EMBED-LABEL"
    assert config.output.exists()


async def test_package_chart_image_stamps(
    config: PackagerConfig, tmp_path: Path, fake_yq: Path
) -> None:
    """Test image references are stamped and override status file stamps."""
    (config.output.parent).mkdir()
    layout = tmp_path / "app_image"
    layout.mkdir()
    (layout / "index.json").write_text(
        json.dumps({"manifests": [{"digest": "sha256:1234"}]})
    )
    script = tmp_path / "push_app_image.sh"
    script.write_text('readonly FIXED_ARGS=("--repository" "ghcr.io/example/app")\n')
    bundle = tmp_path / "app_image.bundle.json"
    bundle.write_text(
        json.dumps(
            {
                "Label": "@@//app:image",
                "Paths": [str(layout), str(fake_yq), str(script)],
            }
        )
    )
    config.image_manifest = tmp_path / "image_manifest.json"
    config.image_manifest.write_text(json.dumps([str(bundle)]))
    assert config.stable_status_file
    config.stable_status_file.write_text("@//app:image overridden\n")

    stamps = await collect_stamps(config)
    assert stamps["@//app:image"] == "ghcr.io/example/app@sha256:1234"
    assert stamps["@ws//app:image"] == "ghcr.io/example/app@sha256:1234"

    await package_chart(config, FakePackager())
    working_dir = config.staging_dir("mychart")
    assert (working_dir / "values.yaml").read_text() == (
        'image: "ghcr.io/example/app@sha256:1234"\ncommit: "stale"\n'
    )


async def test_package_chart_helm_failure(config: PackagerConfig) -> None:
    """Test a failing packager aborts with its output."""
    packager = FakePackager(
        output="Error: validation: chart.metadata.name is required", returncode=1
    )

    with pytest.raises(HelmException, match="chart.metadata.name is required"):
        await package_chart(config, packager)
    assert not config.metadata_output.exists()


async def test_package_chart_not_found(config: PackagerConfig) -> None:
    """Test the packager output is kept when the archive can't be found."""
    packager = FakePackager(output="Packaged chart somewhere else")

    with pytest.raises(PackageNotFoundError) as exc_info:
        await package_chart(config, packager)
    assert exc_info.value.output == "Packaged chart somewhere else"
