"""Errors raised while provisioning OpenVPN configurations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pathlib


class PrivopError(Exception):
    """Base class for all provisioning errors."""


class ConfigError(PrivopError):
    """The privop settings file is unreadable or invalid."""


class KeyGenerationError(PrivopError):
    """The static key couldn't be generated."""


class RandomSourceError(PrivopError):
    """The operating system couldn't supply random bytes."""


class TemplateError(PrivopError):
    """The configuration template is malformed."""


class PathCollisionError(PrivopError):
    """A configuration or key file already exists."""

    def __init__(self, path: pathlib.Path) -> None:
        super().__init__(f"Refusing to overwrite existing file '{path}'.")
        self.path = path


class WriteError(PrivopError):
    """A configuration or key file couldn't be written."""

    def __init__(self, path: pathlib.Path, reason: str) -> None:
        super().__init__(f"Failed to write '{path}': {reason}")
        self.path = path
