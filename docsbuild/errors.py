"""Exception types raised while building the docs."""

from __future__ import annotations


class DocsBuildError(Exception):
    """Base class for docsbuild failures."""


class ClassificationError(DocsBuildError):
    """A markdown file's document type could not be determined."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot classify {path}: {reason}")


class ConverterExitError(DocsBuildError):
    """An external converter exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{command[0]} exited with status {returncode}")


class ServerStartError(DocsBuildError):
    """The background HTTP server could not be brought to a ready state."""
