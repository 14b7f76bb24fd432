"""Test helpers for helm-packager tools."""

from pathlib import Path

from helm_packager.command import Command, CommandResult, capture

HELM_PACKAGER_BIN = "helm-packager"


async def run_command(args: list[str], cwd: Path | None = None) -> CommandResult:
    return await capture(Command([HELM_PACKAGER_BIN] + args, cwd=cwd))
