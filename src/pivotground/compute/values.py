"""Kinds of values that cells of a table can hold.

Arrow columns are typed, but when reshaping data the
same column ends up holding values that came from
different columns. To decide if that is possible
we classify types and values in a few broad kinds:

* ``NUMBER`` integers, floating point and decimals.
* ``TEXT`` strings.
* ``BOOLEAN`` true/false values.
* ``MISSING`` the absence of a value. In Arrow this is a null,
  which is tracked by the validity bitmap of the array and thus
  never overlaps with any valid value.
* ``OTHER`` anything else, like dates or nested types.

>>> kind_of_type(pa.int32())
<ValueKind.NUMBER: 'number'>
>>> kind_of(pa.scalar(None, type=pa.float64()))
<ValueKind.MISSING: 'missing'>
"""

import enum

import pyarrow as pa


class ValueKind(enum.Enum):
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    MISSING = "missing"
    OTHER = "other"


def kind_of_type(arrow_type: pa.DataType) -> ValueKind:
    """Classify an Arrow data type."""
    if pa.types.is_null(arrow_type):
        return ValueKind.MISSING
    if pa.types.is_dictionary(arrow_type):
        return kind_of_type(arrow_type.value_type)
    if (
        pa.types.is_integer(arrow_type)
        or pa.types.is_floating(arrow_type)
        or pa.types.is_decimal(arrow_type)
    ):
        return ValueKind.NUMBER
    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return ValueKind.TEXT
    if pa.types.is_boolean(arrow_type):
        return ValueKind.BOOLEAN
    return ValueKind.OTHER


def kind_of(value: pa.Scalar) -> ValueKind:
    """Classify a single cell, a null cell is always ``MISSING``."""
    if not value.is_valid:
        return ValueKind.MISSING
    return kind_of_type(value.type)
