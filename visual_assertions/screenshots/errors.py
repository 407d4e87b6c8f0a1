"""Errors raised by the visual assertions core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from visual_assertions.models.identity import ScreenshotIdentity


class VisualAssertionError(Exception):
    """Base class for visual assertion errors."""


class DuplicatedScreenshotInSession(VisualAssertionError):
    """The same screenshot identity was checked twice during one run."""

    def __init__(self, identity: "ScreenshotIdentity"):
        self.identity = identity
        super().__init__(f"Screenshot '{identity.full_name}' was already checked in this session")


class InvariantViolation(VisualAssertionError):
    """Stored data breaks an assumption the core relies on."""
