"""Reshape data between long and wide formats.

The same observations can be laid out in two ways.
In **long** format each row is a single measurement,
a *key* column names what was measured and a *value*
column holds the measurement::

    plot, genus, mean_weight
    1,    A,     5
    1,    B,     7
    2,    A,     3

In **wide** format each row is an observational unit,
identified by the *identifier* columns, and each measured
variable gets its own column::

    plot, A, B
    1,    5, 7
    2,    3, NA

:func:`widen` (also known as *spread* or *pivot*) converts long data to
wide data, :func:`lengthen` (also known as *gather* or *melt*) converts
wide data back to long data. The two are inverse of each other, so
``widen(lengthen(data))`` gives back ``data`` as far as each identifier
tuple appears only once.

>>> import pyarrow as pa
>>> long = pa.table({
...     "plot": [1, 1, 2],
...     "genus": ["A", "B", "A"],
...     "mean_weight": [5, 7, 3],
... })
>>> wide = widen(long, ["plot"], "genus", "mean_weight")
>>> wide.to_pylist()
[{'plot': 1, 'A': 5, 'B': 7}, {'plot': 2, 'A': 3, 'B': None}]
>>> lengthen(wide, ["plot"], "genus", "mean_weight").to_pylist()
[{'plot': 1, 'genus': 'A', 'mean_weight': 5},
 {'plot': 1, 'genus': 'B', 'mean_weight': 7},
 {'plot': 2, 'genus': 'A', 'mean_weight': 3},
 {'plot': 2, 'genus': 'B', 'mean_weight': None}]
"""

import math
from typing import Any, Iterable

import pyarrow as pa
import pyarrow.compute as pc

from ..utils.logging import get_logger
from .base import QueryPlanNode, collect_table, table_batches
from .values import ValueKind, kind_of_type

__all__ = (
    "widen",
    "lengthen",
    "WidenNode",
    "LengthenNode",
    "ReshapeError",
    "DuplicateKeyError",
    "UnknownColumnError",
    "ColumnNameCollisionError",
    "MissingKeyValueError",
    "ValueTypeMismatchError",
)

log = get_logger(__name__)

ARROW_CONVERSION_ERRORS = (pa.ArrowInvalid, pa.ArrowTypeError, pa.ArrowNotImplementedError)


def widen(
    table: pa.Table | pa.RecordBatch,
    identifier_columns: list[str] | None = None,
    key_column: str | None = None,
    value_column: str | None = None,
    fill_value: Any = None,
) -> pa.Table:
    """Spread a key/value pair of columns into one column per key.

    Rows are grouped by the values of the identifier columns,
    each group becomes a row of the result. For every distinct value
    of the key column a new column is created, holding the value
    of the row of the group that has that key.

    When a group has no row for a key, ``fill_value`` is used.
    By default that's a missing value (a null).

    >>> import pyarrow as pa
    >>> long = pa.table({"id": [1, 2], "key": ["a", "b"], "value": [10, 20]})
    >>> widen(long, ["id"], "key", "value", fill_value=0).to_pylist()
    [{'id': 1, 'a': 10, 'b': 0}, {'id': 2, 'a': 0, 'b': 20}]

    Groups and generated columns are both sorted by the order in which
    their values first appear in the data, so that widening data that
    was just lengthened restores the original column order.

    :param table: The data in long format.
    :param identifier_columns: The columns identifying each row of the result.
                               ``None`` means all columns apart from the key and value ones.
    :param key_column: The column whose values become the names of the new columns.
    :param value_column: The column whose values fill the new columns.
    :param fill_value: The value for identifier/key combinations missing from the data.
    :raises DuplicateKeyError: if the same key appears twice for the same identifiers.
    """
    table = _as_table(table)
    if key_column is None and value_column is None:
        # Nothing to spread, the data is already as wide as it gets.
        return table
    if key_column is None or value_column is None:
        raise ValueError("key_column and value_column must be provided together")

    _check_columns_exist(table, [key_column, value_column])
    if identifier_columns is None:
        identifier_columns = [
            name for name in table.column_names if name not in (key_column, value_column)
        ]
    else:
        _check_columns_exist(table, identifier_columns)
        if key_column in identifier_columns or value_column in identifier_columns:
            raise ValueError("key and value columns can't be identifier columns")

    # Dictionary encoding the keys gives us the distinct keys,
    # in order of first appearance, and for each row the index
    # of its key within the distinct ones.
    # Keys that are already dictionary encoded are decoded first,
    # their dictionary can hold unused entries in any order.
    key_values = table.column(key_column)
    if pa.types.is_dictionary(key_values.type):
        key_values = key_values.cast(key_values.type.value_type)
    keys = pc.dictionary_encode(key_values.combine_chunks())
    if keys.null_count:
        raise MissingKeyValueError(
            f"Column {key_column!r} has {keys.null_count} missing values, "
            "they can't be used as column names"
        )
    new_columns = [str(k) for k in keys.dictionary.to_pylist()]
    collisions = [name for name in new_columns if name in identifier_columns]
    if collisions:
        raise ColumnNameCollisionError(
            f"Values of {key_column!r} clash with identifier columns: {collisions}"
        )

    group_of_row, first_row_of_group = group_rows(table, identifier_columns)

    # For each group and each key, remember which row provides the value.
    # cells[key_index][group_index] -> row_index or None
    cells: list[list[int | None]] = [
        [None] * len(first_row_of_group) for _ in new_columns
    ]
    for row_index, (group_index, key_index) in enumerate(
        zip(group_of_row, keys.indices.to_pylist())
    ):
        if cells[key_index][group_index] is not None:
            identifiers = {
                name: table.column(name)[row_index].as_py()
                for name in identifier_columns
            }
            raise DuplicateKeyError(
                f"Key {new_columns[key_index]!r} appears more than once for {identifiers}"
            )
        cells[key_index][group_index] = row_index

    result: dict[str, pa.Array | pa.ChunkedArray] = {}
    first_rows = pa.array(first_row_of_group, type=pa.int64())
    for name in identifier_columns:
        result[name] = table.column(name).take(first_rows)

    values = table.column(value_column).combine_chunks()
    for name, rows in zip(new_columns, cells):
        # Taking a null index produces a null, which is how the
        # identifier/key combinations with no data become missing.
        column = values.take(pa.array(rows, type=pa.int64()))
        if fill_value is not None:
            column = _fill_absent(column, rows, fill_value, name)
        result[name] = column

    if not new_columns:
        log.info("No keys in %r to spread, only identifier columns emitted", key_column)
    log.debug(
        "Widened %d rows into %d rows and %d columns",
        table.num_rows,
        len(first_row_of_group),
        len(result),
    )
    return pa.table(result)


def lengthen(
    table: pa.Table | pa.RecordBatch,
    id_columns: list[str] | None = None,
    key_column_name: str = "key",
    value_column_name: str = "value",
    columns_to_gather: list[str] | None = None,
) -> pa.Table:
    """Gather multiple columns into key/value pairs.

    For every row and every gathered column a new row is emitted,
    which contains the identifier columns, the name of the gathered
    column as the key and the cell as the value.
    The result has ``rows * len(columns_to_gather)`` rows.

    Columns that are neither identifiers nor gathered are discarded,
    missing cells are kept as missing values so that no
    information is lost.

    >>> import pyarrow as pa
    >>> wide = pa.table({"plot": [1, 2], "A": [5, 3], "B": [7.5, None], "note": ["x", "y"]})
    >>> lengthen(wide, ["plot"], "genus", "weight", ["A", "B"]).to_pydict()
    {'plot': [1, 1, 2, 2], 'genus': ['A', 'B', 'A', 'B'],
     'weight': [5.0, 7.5, 3.0, None]}

    :param table: The data in wide format.
    :param id_columns: The columns to keep unchanged in each row.
                       ``None`` means all the columns that are not gathered.
    :param key_column_name: The name of the new column holding the gathered column names.
    :param value_column_name: The name of the new column holding the gathered values.
    :param columns_to_gather: The columns to fold into key/value pairs.
                              ``None`` means all the columns that are not identifiers.
    """
    table = _as_table(table)
    if id_columns is None and columns_to_gather is None:
        raise ValueError("Either id_columns or columns_to_gather must be provided")
    if id_columns is None:
        _check_columns_exist(table, columns_to_gather)
        id_columns = [c for c in table.column_names if c not in columns_to_gather]
    else:
        _check_columns_exist(table, id_columns)
        if columns_to_gather is None:
            columns_to_gather = [c for c in table.column_names if c not in id_columns]
        else:
            _check_columns_exist(table, columns_to_gather)
    if set(id_columns) & set(columns_to_gather):
        raise ValueError("A column can't be both an identifier and gathered")

    new_names = [key_column_name, value_column_name]
    collisions = [n for n in new_names if n in id_columns]
    if collisions or key_column_name == value_column_name:
        raise ColumnNameCollisionError(
            f"Key and value column names {new_names} clash with each other "
            f"or with identifier columns {id_columns}"
        )

    value_type = _common_type(table, columns_to_gather)
    num_rows = table.num_rows
    num_gathered = len(columns_to_gather)

    # Output rows are emitted row by row, so for each input row
    # we repeat its identifiers once per gathered column:
    #   row_indices = [0, 0, 1, 1, 2, 2]  (with 2 gathered columns)
    row_indices = pa.array(
        [row for row in range(num_rows) for _ in range(num_gathered)], type=pa.int64()
    )
    # The gathered columns are concatenated one after the other,
    # so the cell at (row, column) is at column * num_rows + row.
    cell_indices = pa.array(
        [c * num_rows + row for row in range(num_rows) for c in range(num_gathered)],
        type=pa.int64(),
    )
    if columns_to_gather:
        try:
            gathered = pa.concat_arrays(
                [
                    table.column(name).combine_chunks().cast(value_type)
                    for name in columns_to_gather
                ]
            )
        except ARROW_CONVERSION_ERRORS as e:
            raise ValueTypeMismatchError(f"Unable to gather {columns_to_gather}: {e}") from e
    else:
        gathered = pa.nulls(0, type=value_type)

    result: dict[str, pa.Array | pa.ChunkedArray] = {}
    for name in id_columns:
        result[name] = table.column(name).take(row_indices)
    result[key_column_name] = pa.array(
        [name for _ in range(num_rows) for name in columns_to_gather], type=pa.string()
    )
    result[value_column_name] = gathered.take(cell_indices)

    log.debug(
        "Lengthened %d rows x %d gathered columns into %d rows",
        num_rows,
        num_gathered,
        len(row_indices),
    )
    return pa.table(result)


def group_rows(
    table: pa.Table, columns: list[str]
) -> tuple[list[int], list[int]]:
    """Assign each row of the table to a group.

    Rows belong to the same group when they have the same
    values in ``columns``. Groups are numbered in the order
    they first appear in the table.

    Returns the group of each row and the first row of each group::

        >>> group_rows(pa.table({"a": [1, 2, 1, 3]}), ["a"])
        ([0, 1, 0, 2], [0, 1, 3])

    When ``columns`` is empty all rows are part of the same group.

    Floating point values are compared by value and sign,
    so ``0.0`` and ``-0.0`` are different groups while
    all the ``NaN`` values end up in the same group::

        >>> group_rows(pa.table({"a": [0.0, -0.0, float("nan"), float("nan")]}), ["a"])
        ([0, 1, 2, 2], [0, 1, 2])
    """
    # Arrow provides no way to hash rows of multiple columns,
    # so we build the tuples of values in Python.
    # It's slower, but it makes explicit how grouping works.
    values = [table.column(name).to_pylist() for name in columns]
    groups: dict[tuple, int] = {}
    group_of_row: list[int] = []
    first_row_of_group: list[int] = []
    for row_index in range(table.num_rows):
        row_key = group_key(column[row_index] for column in values)
        group_index = groups.get(row_key)
        if group_index is None:
            group_index = groups[row_key] = len(first_row_of_group)
            first_row_of_group.append(row_index)
        group_of_row.append(group_index)
    return group_of_row, first_row_of_group


def group_key(values: Iterable[Any]) -> tuple:
    """Build the hashable key of a group from the values of its row.

    >>> group_key([1, "A"])
    (1, 'A')
    >>> group_key([-0.0]) == group_key([0.0])
    False
    """
    return tuple(_group_value(value) for value in values)


def _group_value(value: Any) -> Any:
    if isinstance(value, float):
        if math.isnan(value):
            return _NAN_GROUP
        return (value, math.copysign(1.0, value))
    return value


_NAN_GROUP = ("nan",)


class WidenNode(QueryPlanNode):
    """Spread a key/value pair of columns of the child data.

    See :func:`widen` for the details of the transformation.
    As a key might appear in any batch, all the batches of the
    child are accumulated before widening them.

    >>> import pyarrow as pa
    >>> from pivotground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"day": [1, 1, 2], "city": ["Rome", "Milan", "Rome"], "temp": [30, 25, 28]})
    >>> node = WidenNode(["day"], "city", "temp", PyArrowTableDataSource(data))
    >>> next(node.batches()).to_pylist()
    [{'day': 1, 'Rome': 30, 'Milan': 25}, {'day': 2, 'Rome': 28, 'Milan': None}]
    """

    def __init__(
        self,
        identifier_columns: list[str] | None,
        key_column: str,
        value_column: str,
        child: QueryPlanNode,
        fill_value: Any = None,
    ) -> None:
        """
        :param identifier_columns: The columns identifying each row of the result.
        :param key_column: The column whose values become the new columns.
        :param value_column: The column whose values fill the new columns.
        :param child: The node emitting the data in long format.
        :param fill_value: The value for identifier/key combinations without data.
        """
        self.identifier_columns = identifier_columns
        self.key_column = key_column
        self.value_column = value_column
        self.child = child
        self.fill_value = fill_value

    def __str__(self) -> str:
        return (
            f"WidenNode(identifiers={self.identifier_columns}, key={self.key_column}, "
            f"value={self.value_column}, fill={self.fill_value!r}, {self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        table = widen(
            collect_table(self.child),
            self.identifier_columns,
            self.key_column,
            self.value_column,
            fill_value=self.fill_value,
        )
        yield from table_batches(table.combine_chunks())


class LengthenNode(QueryPlanNode):
    """Gather columns of the child data into key/value pairs.

    See :func:`lengthen` for the details of the transformation.
    Each row is lengthened independently from the others,
    so batches are processed one at the time as they arrive.
    """

    def __init__(
        self,
        id_columns: list[str] | None,
        key_column_name: str,
        value_column_name: str,
        columns_to_gather: list[str] | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param id_columns: The columns to keep unchanged in each row.
        :param key_column_name: The name of the column holding the gathered column names.
        :param value_column_name: The name of the column holding the gathered values.
        :param columns_to_gather: The columns to fold into key/value pairs.
        :param child: The node emitting the data in wide format.
        """
        self.id_columns = id_columns
        self.key_column_name = key_column_name
        self.value_column_name = value_column_name
        self.columns_to_gather = columns_to_gather
        self.child = child

    def __str__(self) -> str:
        return (
            f"LengthenNode(identifiers={self.id_columns}, key={self.key_column_name}, "
            f"value={self.value_column_name}, gather={self.columns_to_gather}, {self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        for batch in self.child.batches():
            table = lengthen(
                batch,
                self.id_columns,
                self.key_column_name,
                self.value_column_name,
                self.columns_to_gather,
            )
            yield from table_batches(table.combine_chunks())


def _as_table(data: pa.Table | pa.RecordBatch) -> pa.Table:
    if isinstance(data, pa.RecordBatch):
        return pa.Table.from_batches([data])
    return data


def _check_columns_exist(table: pa.Table, columns: list[str]) -> None:
    missing = [name for name in columns if name not in table.column_names]
    if missing:
        raise UnknownColumnError(
            f"Columns {missing} not found, available columns are {table.column_names}"
        )


def _common_type(table: pa.Table, columns: list[str]) -> pa.DataType:
    """Find the type that can hold the values of all the columns.

    Columns with only missing values fit any type,
    numbers of different width or precision are promoted,
    but columns of different kinds, like text and numbers,
    can't be mixed.
    """
    types = [table.schema.field(name).type for name in columns]
    kinds = {kind_of_type(t) for t in types} - {ValueKind.MISSING}
    if len(kinds) > 1:
        found = {name: kind_of_type(t).value for name, t in zip(columns, types)}
        raise ValueTypeMismatchError(f"Can't gather values of different kinds: {found}")
    if not types:
        return pa.null()
    try:
        schema = pa.unify_schemas(
            [pa.schema([("value", t)]) for t in types], promote_options="permissive"
        )
    except ARROW_CONVERSION_ERRORS as e:
        raise ValueTypeMismatchError(f"Can't gather columns {columns}: {e}") from e
    return schema.field("value").type


def _fill_absent(
    column: pa.Array, rows: list[int | None], fill_value: Any, name: str
) -> pa.Array:
    """Replace the cells that had no row in the long data with ``fill_value``.

    Cells that come from a row whose value was missing stay missing.
    """
    absent = [row is None for row in rows]
    if pa.types.is_null(column.type):
        # The value column holds no data at all, the type comes from the fill value.
        return pa.array([fill_value if a else None for a in absent])
    try:
        fill = pa.scalar(fill_value, type=column.type)
    except (pa.ArrowException, TypeError, ValueError) as e:
        raise ValueTypeMismatchError(
            f"Can't fill column {name!r} of type {column.type} with {fill_value!r}"
        ) from e
    return pc.if_else(pa.array(absent, type=pa.bool_()), fill, column)


class ReshapeError(Exception):
    """The data can't be reshaped as requested."""


class DuplicateKeyError(ReshapeError):
    """A key appears more than once for the same identifiers.

    The cell of the wide table would be ambiguous,
    aggregate the data before widening it.
    """


class UnknownColumnError(ReshapeError):
    """A column involved in the reshape does not exist."""


class ColumnNameCollisionError(ReshapeError):
    """A column generated by the reshape has the name of an existing one."""


class MissingKeyValueError(ReshapeError):
    """The key column has missing values, which can't name columns."""


class ValueTypeMismatchError(ReshapeError):
    """Values of incompatible types would end up in the same column."""
