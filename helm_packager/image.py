"""Helper functions for resolving build produced container images.

Each image built alongside the chart is described by a descriptor bundle. The
bundle is resolved to a pinned `registry/repository@digest` reference which is
then registered as a stamp under every spelling of the image's label, so a
chart may refer to the image as `{@//app:image}`, `{@@//app:image}` or
`{@my_workspace//app:image}` and get the same result.
"""

from collections.abc import Awaitable, Callable
import logging
from pathlib import Path

from . import command
from .exceptions import DigestException, InputException
from .manifest import ImageBundle, ImageManifest, read_path_list, read_text

__all__ = [
    "label_spellings",
    "read_oci_image_manifest",
    "load_image_stamps",
]

_LOGGER = logging.getLogger(__name__)


# Prefixes of a label that refers to a target in the current module. The
# `_main` name is reserved by the module resolution subsystem for the root module.
SAME_MODULE_PREFIXES = [
    "@//",
    "@@//",
    "@@_main//",
]

# Every spelling of a same module label. `{target}` is the package and target
# name (e.g. `app:image`) and `{workspace}` the current module name.
LABEL_SPELLINGS = [
    "@//{target}",
    "@@//{target}",
    "@{workspace}//{target}",
    "@@{workspace}//{target}",
]

# Marker line in the push script holding the `registry/repository` argument
PUSH_SCRIPT_MARKER = "readonly FIXED_ARGS"
PUSH_SCRIPT_SUFFIX = ".sh"
DIGEST_HELPER_SUFFIX = "yq"
DIGEST_QUERY = ".manifests[0].digest"
LAYOUT_INDEX = "index.json"


def label_spellings(label: str, workspace_name: str) -> set[str]:
    """Return every spelling that refers to the same target as `label`."""
    spellings = {label}
    for prefix in SAME_MODULE_PREFIXES:
        if label.startswith(prefix):
            target = label[len(prefix) :]
            break
    else:
        return spellings
    for template in LABEL_SPELLINGS:
        if "{workspace}" in template and not workspace_name:
            continue
        spellings.add(template.format(workspace=workspace_name, target=target))
    return spellings


def _parse_push_script(content: str) -> tuple[str, str] | None:
    """Extract the registry and repository from an image push script."""
    for line in content.splitlines():
        if not line.startswith(PUSH_SCRIPT_MARKER):
            continue
        tokens = line.split(" ")
        if len(tokens) < 3:
            raise InputException(f"Unable to parse image push arguments: {line}")
        image = tokens[2].replace('"', "").replace(")", "")
        registry, sep, repository = image.partition("/")
        if not sep or not registry or not repository:
            raise InputException(f"Unable to parse image repository: {line}")
        return registry, repository
    return None


async def _query_digest(helper: Path, layout: Path) -> str:
    """Read the image digest from the index of an OCI image layout."""
    out = await command.run(
        command.Command(
            [str(helper), DIGEST_QUERY, str(layout / LAYOUT_INDEX)],
            exc=DigestException,
        )
    )
    return out.replace("\n", "")


async def read_oci_image_manifest(content: str) -> ImageManifest:
    """Resolve a descriptor bundle into an ImageManifest."""
    bundle = ImageBundle.parse_json(content)
    registry: tuple[str, str] | None = None
    layout: Path | None = None
    helper: Path | None = None
    for bundle_path in bundle.paths:
        path = Path(bundle_path)
        if path.is_dir():
            layout = path
        elif path.name.endswith(DIGEST_HELPER_SUFFIX):
            helper = path
        elif path.name.endswith(PUSH_SCRIPT_SUFFIX):
            if (found := _parse_push_script(await read_text(path))) is not None:
                registry = found
        elif not path.exists():
            raise InputException(f"Image {bundle.label} file does not exist: {path}")
    if registry is None:
        raise InputException(
            f"Image {bundle.label} has no push script with a repository"
        )
    if layout is None:
        raise InputException(f"Image {bundle.label} has no image layout directory")
    if helper is None:
        raise InputException(f"Image {bundle.label} has no digest helper")
    digest = await _query_digest(helper, layout)
    if not digest:
        raise DigestException(f"Image {bundle.label} has an empty digest in {layout}")
    return ImageManifest(
        label=bundle.label,
        registry=registry[0],
        repository=registry[1],
        digest=digest,
    )


ReadManifest = Callable[[str], Awaitable[ImageManifest]]


async def load_image_stamps(
    image_manifest: str | Path | None,
    workspace_name: str,
    read_manifest: ReadManifest = read_oci_image_manifest,
) -> dict[str, str]:
    """Load the image reference stamps for every image in the image manifest."""
    images: dict[str, str] = {}
    if not image_manifest:
        return images
    for bundle_path in await read_path_list(Path(image_manifest)):
        manifest = await read_manifest(await read_text(Path(bundle_path)))
        registry_url = manifest.registry_url
        for spelling in label_spellings(manifest.label, workspace_name):
            images[spelling] = registry_url
    _LOGGER.debug("Image stamps: %s", images)
    return images
