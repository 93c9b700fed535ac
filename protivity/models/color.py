"""Platform-neutral color value for workspaces."""

import base64
import binascii
import json
from typing import Any, Sequence

from pydantic import BaseModel, Field


class RGBColor(BaseModel):
    """Three normalized channels in [0, 1]."""

    red: float = Field(..., ge=0.0, le=1.0)
    green: float = Field(..., ge=0.0, le=1.0)
    blue: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_components(cls, components: Sequence[float]) -> "RGBColor":
        """Build from a component list; anything short of three channels falls back to blue."""
        if len(components) < 3:
            return BLUE.model_copy()
        return cls(red=float(components[0]), green=float(components[1]), blue=float(components[2]))

    @classmethod
    def coerce_legacy(cls, value: Any) -> Any:
        """Convert older persisted color shapes into the channel mapping.

        Legacy records hold either a raw component list or a base64 string
        wrapping a JSON component list. Anything else is passed through for
        normal validation.
        """
        if isinstance(value, (list, tuple)):
            return cls.from_components(value)
        if isinstance(value, str):
            try:
                components = json.loads(base64.b64decode(value, validate=True))
            except (binascii.Error, ValueError):
                return BLUE.model_copy()
            if isinstance(components, list):
                return cls.from_components(components)
            return BLUE.model_copy()
        return value


BLUE = RGBColor(red=0.0, green=0.478, blue=1.0)
ORANGE = RGBColor(red=1.0, green=0.584, blue=0.0)
GREEN = RGBColor(red=0.204, green=0.78, blue=0.349)
