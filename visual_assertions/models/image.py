"""Image payload type and blind region value object."""

from __future__ import annotations

import base64
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer


def _decode_image(value: Any) -> Any:
    # JSON payloads carry images as base64 text; in-process callers pass raw bytes
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


def _encode_image(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


ImageBytes = Annotated[
    bytes,
    BeforeValidator(_decode_image),
    PlainSerializer(_encode_image, return_type=str, when_used="json"),
]


class BlindRegion(BaseModel):
    """Rectangle excluded from pixel comparison."""

    model_config = ConfigDict(frozen=True)

    left: int = Field(ge=0)
    top: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def box(self) -> tuple[int, int, int, int]:
        """PIL-style (left, upper, right, lower) box."""
        return (self.left, self.top, self.right, self.bottom)

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x < self.right and self.top <= y < self.bottom
