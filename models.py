"""Configuration models for saturating integer types.

An IntegerSpec describes a fixed-width integer type the way it shows up
in external configuration or format descriptions (``"uint32"``,
``{"bits": 16, "signed": false}``).  This module defines the data model
only; building the type is delegated to satint.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from bounds import Bounds
from satint import SaturatingInt, saturating_int

_NAME_RE = re.compile(r"^(u?)int(\d+)$")


class IntegerSpec(BaseModel):
    """Width and signedness of a saturating integer type."""

    model_config = ConfigDict(frozen=True)

    bits: int = Field(..., ge=1, le=64, description="Bit width, e.g. 8 or 32")
    signed: bool = True

    @classmethod
    def parse(cls, name: str) -> IntegerSpec:
        """Parse a C-style type name such as 'int8' or 'UInt64'."""
        match = _NAME_RE.match(name.strip().lower())
        if match is None:
            raise ValueError(f"Unknown integer type name: {name!r}")
        return cls(bits=int(match.group(2)), signed=not match.group(1))

    @property
    def name(self) -> str:
        return f"{'int' if self.signed else 'uint'}{self.bits}"

    @property
    def bounds(self) -> Bounds:
        return Bounds.for_width(self.bits, self.signed)

    def build(self) -> type[SaturatingInt]:
        """Return the (cached) saturating type this spec describes."""
        return saturating_int(self.bits, self.signed)
