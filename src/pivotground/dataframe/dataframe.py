"""The Dataframe object itself."""
from typing import Any, Self

import pyarrow as pa
import pyarrow.csv

from ..compute import (
  AggregateNode,
  CSVDataSource,
  DropMissingNode,
  FilterNode,
  LengthenNode,
  PyArrowTableDataSource,
  WidenNode,
  collect_table,
)
from ..compute.aggregate import Aggregation
from ..compute.base import Expression, QueryPlanNode
from ..utils.logging import get_logger

log = get_logger(__name__)


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and perform transformations over it.

  The pivotground dataframe object is lazy, which means that
  any transformation or analysis will be applied only when the
  ``.collect()`` method will be invoked and no data is kept
  in memory until that moment (unless it already was).

  >>> import pyarrow as pa
  >>> df = Dataframe(pa.table({"plot": [1, 1, 2], "genus": ["A", "B", "A"], "weight": [5, 7, 3]}))
  >>> df.widen(["plot"], "genus", "weight", fill_value=0).to_pylist()
  [{'plot': 1, 'A': 5, 'B': 7}, {'plot': 2, 'A': 3, 'B': 0}]
  """
  def __init__(self, node_or_table: QueryPlanNode|pa.Table|pa.RecordBatch) -> None:
    """
    :param node_or_table: A compute engine node expected to emit
                          the data for the dataframe or a `pyarrow.Table`.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  def __str__(self) -> str:
    return f"Dataframe({self.node})"

  @classmethod
  def open_csv(cls, filename: str, null_values: list[str]|None = None) -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    :param null_values: Strings to read as missing values.
    """
    return cls(CSVDataSource(filename, null_values=null_values))

  def filter(self, expression: Expression) -> Self:
    """Apply a filter to the data and return a new Dataframe.

    :param expression: The expression representing the predicate.
                       for example `A > B`.
    """
    return self.__class__(FilterNode(expression, self.node))

  def drop_missing(self, columns: list[str]|None = None) -> Self:
    """Keep only the rows that have no missing values in ``columns``."""
    return self.__class__(DropMissingNode(columns, self.node))

  def aggregate(self, keys: list[str], aggregations: dict[str, Aggregation]) -> Self:
    """Group the data by ``keys`` and compute the aggregations for each group.

    :param keys: The columns to group by.
    :param aggregations: The aggregations in the form of {"new_col_name": Aggregation}.
    """
    return self.__class__(AggregateNode(keys, aggregations, self.node))

  def widen(
    self,
    identifier_columns: list[str]|None,
    key_column: str,
    value_column: str,
    fill_value: Any = None,
  ) -> Self:
    """Spread the key/value columns in one column per key.

    See :func:`pivotground.compute.reshape.widen`.
    """
    return self.__class__(
      WidenNode(identifier_columns, key_column, value_column, self.node, fill_value=fill_value)
    )

  def lengthen(
    self,
    id_columns: list[str]|None,
    key_column_name: str = "key",
    value_column_name: str = "value",
    columns_to_gather: list[str]|None = None,
  ) -> Self:
    """Gather columns into key/value pairs.

    See :func:`pivotground.compute.reshape.lengthen`.
    """
    return self.__class__(
      LengthenNode(id_columns, key_column_name, value_column_name, columns_to_gather, self.node)
    )

  def collect(self) -> Self:
    """Collect all data of the dataframe in memory.

    Returns a new Dataframe that has all data from the
    previous dataframe eagerly loaded in memory.
    """
    return self.__class__(collect_table(self.node))

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    return collect_table(self.node)

  def to_pylist(self) -> list[dict[str, Any]]:
    """Collect all the data as a list of rows."""
    return self.to_arrow().to_pylist()

  def to_csv(self, filename: str) -> None:
    """Collect all the data and write it to a CSV file.

    Missing values are written as empty cells.

    :param filename: The path of the CSV file to create.
    """
    table = self.to_arrow()
    pa.csv.write_csv(table, filename)
    log.debug("Wrote %d rows to %s", table.num_rows, filename)
