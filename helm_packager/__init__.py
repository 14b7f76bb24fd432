"""Package a helm chart from build produced templates, images and stamps."""

__all__ = [
    "template",
    "stamps",
    "image",
    "chart",
    "workspace",
    "result",
    "helm",
    "manifest",
    "packager",
    "config",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
