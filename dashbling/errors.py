"""
Error types raised while loading a dashbling project configuration.
"""

from __future__ import annotations

from typing import List


class DashblingError(Exception):
    """Base error for dashbling."""


class ValidationError(DashblingError):
    """Config validation error carrying every violated constraint."""

    def __init__(self, errors: List[str]):
        super().__init__("\n".join(errors))
        self.errors = list(errors)


class ConfigLoadError(DashblingError):
    """The configuration source could not be loaded at all."""

    def __init__(self, path: str):
        super().__init__(f"Unable to load configuration at path '{path}'.")
        self.path = path
