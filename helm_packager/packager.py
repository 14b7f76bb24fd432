"""Library that packages a chart from build produced sources.

The main things that happen are:
  - Stamp values are collected from the status files and image bundles
  - The chart and values sources are stamped
  - A chart directory is staged with the templates and dependency charts
  - `helm package` is run and the archive and its metadata are written out

```python
from helm_packager.config import PackagerConfig
from helm_packager.helm import HelmPackager
from helm_packager.packager import package_chart

metadata = await package_chart(config, HelmPackager(config.helm))
```
"""

import logging
from pathlib import Path

from .config import PackagerConfig
from .chart import get_chart_name, stamp_chart
from .context import stage
from .exceptions import HelmException
from .helm import Packager
from .image import load_image_stamps
from .manifest import HelmResultMetadata, read_text
from .result import find_generated_package, write_results_metadata
from .stamps import load_stamps
from .workspace import copy_file, install_helm_content

__all__ = [
    "collect_stamps",
    "package_chart",
]

_LOGGER = logging.getLogger(__name__)


async def collect_stamps(config: PackagerConfig) -> dict[str, str]:
    """Collect all stamp values, image references taking precedence."""
    stamps = await load_stamps(config.volatile_status_file, config.stable_status_file)
    image_stamps = await load_image_stamps(config.image_manifest, config.workspace_name)
    return {**stamps, **image_stamps}


async def package_chart(
    config: PackagerConfig, packager: Packager
) -> HelmResultMetadata:
    """Build the chart archive described by `config`."""
    chart_content = await read_text(Path(config.chart))
    values_content = await read_text(Path(config.values))

    with stage("stamp"):
        stamps = await collect_stamps(config)
        stamped_chart, stamped_values = stamp_chart(
            chart_content, values_content, stamps
        )

    with stage("install"):
        working_dir = config.staging_dir(get_chart_name(stamped_chart))
        await install_helm_content(
            working_dir,
            stamped_chart,
            stamped_values,
            config.data_manifest,
            config.deps_manifest,
        )

    with stage("package"):
        result = await packager.package(working_dir)
    if result.returncode:
        raise HelmException(
            f"Error running helm package (return code {result.returncode}), "
            f"output: {result.output}"
        )

    with stage("results"):
        pkg = find_generated_package(result.output, cwd=working_dir)
        _LOGGER.info("Packaged chart %s", pkg)
        await copy_file(pkg, Path(config.output))
        return await write_results_metadata(pkg.name, config.metadata_output)
