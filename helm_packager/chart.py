"""Library for stamping the top level chart sources."""

from collections.abc import Mapping
import logging
import re

from .manifest import HelmChart
from .template import apply_stamping

__all__ = [
    "sanitize_chart_content",
    "get_chart_name",
    "stamp_chart",
]

_LOGGER = logging.getLogger(__name__)


# A version still holding an unresolved placeholder
UNRESOLVED_VERSION = re.compile(r".*\{.+\}.*")

# Characters of a placeholder that are invalid in a chart version
VERSION_REPLACEMENTS = str.maketrans({"{": "", "}": "", "_": "-"})


def sanitize_chart_content(content: str) -> str:
    """Rewrite an unresolved placeholder in the chart version into a valid version.

    For example `{BUILD_EMBED_LABEL}` becomes `BUILD-EMBED-LABEL`.
    """
    chart = HelmChart.parse_yaml(content)
    if chart.version is None:
        return content
    if not (match := UNRESOLVED_VERSION.search(chart.version)):
        return content
    unresolved = match.group(0)
    replacement = unresolved.translate(VERSION_REPLACEMENTS)
    _LOGGER.warning(
        "Chart %s version %s has unresolved stamps, using %s",
        chart.name,
        unresolved,
        replacement,
    )
    return content.replace(unresolved, replacement)


def get_chart_name(content: str) -> str:
    """Return the name of the chart."""
    return HelmChart.parse_yaml(content).name


def stamp_chart(
    chart_content: str, values_content: str, stamps: Mapping[str, str]
) -> tuple[str, str]:
    """Stamp the chart and values text, returning both."""
    stamped_values = apply_stamping(values_content, stamps)
    stamped_chart = sanitize_chart_content(apply_stamping(chart_content, stamps))
    return stamped_chart, stamped_values
