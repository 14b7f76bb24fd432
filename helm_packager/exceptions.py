"""Exceptions related to helm-packager."""

__all__ = [
    "PackagerException",
    "InputException",
    "CommandException",
    "HelmException",
    "DigestException",
    "PackageNotFoundError",
]


class PackagerException(Exception):
    """Generic base exception used for this library."""


class InputException(PackagerException):
    """Raised when the input files or values are not formatted as expected."""


class CommandException(PackagerException):
    """Raised when there is a failure running a subcommand."""


class HelmException(CommandException):
    """Raised when there is a failure running a helm command."""


class DigestException(CommandException):
    """Raised when the image digest helper fails."""


class PackageNotFoundError(PackagerException):
    """Raised when the packaged chart can't be located from the helm output."""

    def __init__(self, output: str) -> None:
        super().__init__("Failed to find package in helm output")
        self.output = output
