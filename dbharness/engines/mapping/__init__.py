"""
Record mapping: value conversion and record shapes.

The row mapper itself lives in ``dbharness.engines.mapping.mapper``.
"""

from .convert import ConversionError, convert_value, zero_value
from .shape import RecordShape, RowPopulatable, RowView, shape_of

__all__ = [
    "ConversionError",
    "convert_value",
    "zero_value",
    "RecordShape",
    "RowPopulatable",
    "RowView",
    "shape_of",
]
