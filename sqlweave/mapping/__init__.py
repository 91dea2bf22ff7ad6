"""Mapping layer - transform row dicts into typed objects."""

from __future__ import annotations

from sqlweave.mapping.model import ModelMapper
from sqlweave.mapping.protocol import Mapper, nest_row

__all__ = [
    "Mapper",
    "ModelMapper",
    "nest_row",
]
