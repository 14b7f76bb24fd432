"""Command line tool for packaging a helm chart from build outputs."""

import argparse
import asyncio
import logging
import pathlib
import sys
import traceback

from helm_packager.config import PackagerConfig
from helm_packager.context import collect_timings
from helm_packager.exceptions import PackageNotFoundError, PackagerException
from helm_packager.helm import HelmPackager
from helm_packager.packager import package_chart

_LOGGER = logging.getLogger(__name__)


def _optional_path(value: str | None) -> pathlib.Path | None:
    """Build rules pass an empty string for unset optional inputs."""
    if not value:
        return None
    return pathlib.Path(value)


def _add_path_argument(
    parser: argparse.ArgumentParser, name: str, help_text: str, required: bool = False
) -> None:
    """Register a flag under both its dashed and underscored spelling."""
    parser.add_argument(
        f"--{name}",
        f"--{name.replace('-', '_')}",
        type=str,
        default="",
        required=required,
        help=help_text,
    )


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Package a helm chart from build produced templates, images and stamps."
        ),
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    _add_path_argument(parser, "chart", "The helm `Chart.yaml` file", required=True)
    _add_path_argument(parser, "values", "The helm `values.yaml` file", required=True)
    _add_path_argument(
        parser,
        "data-manifest",
        "A JSON file mapping all helm data files to their path in the chart",
        required=True,
    )
    _add_path_argument(
        parser,
        "deps-manifest",
        "A JSON file listing all helm dependency (`charts/*.tgz`) files",
    )
    _add_path_argument(parser, "helm", "The path to a helm executable", required=True)
    _add_path_argument(
        parser, "output", "The path to write the packaged chart to", required=True
    )
    _add_path_argument(
        parser,
        "metadata-output",
        "The path to write the packaged chart metadata to",
        required=True,
    )
    _add_path_argument(
        parser,
        "image-manifest",
        "A JSON file listing descriptor bundles of images used by the chart",
    )
    _add_path_argument(
        parser, "stable-status-file", "The stable status file with stamp values"
    )
    _add_path_argument(
        parser, "volatile-status-file", "The volatile status file with stamp values"
    )
    parser.add_argument(
        "--workspace-name",
        "--workspace_name",
        type=str,
        default="",
        help="The name of the current build workspace",
    )
    _add_path_argument(
        parser,
        "staging-root",
        "Directory in which to stage the chart (default: ./.rules_helm_pkg_dir)",
    )
    return parser


def _make_config(args: argparse.Namespace) -> PackagerConfig:
    cwd = pathlib.Path.cwd()
    return PackagerConfig(
        chart=pathlib.Path(args.chart),
        values=pathlib.Path(args.values),
        data_manifest=pathlib.Path(args.data_manifest),
        # The helm path is relative to the execution root, not the staging dir
        helm=cwd / args.helm,
        output=pathlib.Path(args.output),
        metadata_output=pathlib.Path(args.metadata_output),
        deps_manifest=_optional_path(args.deps_manifest),
        image_manifest=_optional_path(args.image_manifest),
        stable_status_file=_optional_path(args.stable_status_file),
        volatile_status_file=_optional_path(args.volatile_status_file),
        workspace_name=args.workspace_name,
        staging_root=_optional_path(args.staging_root),
    )


async def _run(config: PackagerConfig) -> None:
    with collect_timings() as timings:
        metadata = await package_chart(config, HelmPackager(config.helm))
    _LOGGER.info(
        "Packaged %s %s (%s)", metadata.name, metadata.version, timings.summary()
    )


def main(argv: list[str] | None = None) -> None:
    """Helm-packager command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    try:
        asyncio.run(_run(_make_config(args)))
    except PackagerException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        if isinstance(err, PackageNotFoundError):
            print(err.output, file=sys.stderr)
        print("helm-packager error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
