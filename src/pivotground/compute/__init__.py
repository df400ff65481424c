"""The PivotGround Compute Engine

The compute engine defines the in-memory
format for query plans and the plan nodes
supported.

The compute engine is tightly bound to Apache Arrow,
thus the engine will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of the node execution::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

Missing values are Arrow nulls, so they are never confused
with any valid value of a column.

The typical reshaping pipeline loads some observations,
discards the incomplete ones, summarises them and spreads
the summary in one column per measured variable:

>>> import pyarrow as pa
>>> from pivotground.compute import (PyArrowTableDataSource, DropMissingNode,
...                                  AggregateNode, MeanAggregation, WidenNode)
>>> surveys = pa.table({
...     "plot": [1, 1, 1, 2, 2],
...     "genus": ["Dipodomys", "Dipodomys", "Onychomys", "Dipodomys", "Onychomys"],
...     "weight": [40, 48, 22, 35, None],
... })
>>> query = WidenNode(
...     ["plot"], "genus", "mean_weight",
...     AggregateNode(
...         ["plot", "genus"], {"mean_weight": MeanAggregation("weight")},
...         DropMissingNode(["weight"], PyArrowTableDataSource(surveys))
...     )
... )
>>> for data in query.batches():
...     print(data.to_pylist())
[{'plot': 1, 'Dipodomys': 44.0, 'Onychomys': 22.0}, {'plot': 2, 'Dipodomys': 35.0, 'Onychomys': None}]
"""

from .aggregate import (
    AggregateNode,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from .base import ColumnRef, col, collect_table, lit
from .datasources import CSVDataSource, PyArrowTableDataSource
from .expressions import FunctionCallExpression
from .filtering import DropMissingNode, FilterNode
from .reshape import (
    ColumnNameCollisionError,
    DuplicateKeyError,
    LengthenNode,
    MissingKeyValueError,
    ReshapeError,
    UnknownColumnError,
    ValueTypeMismatchError,
    WidenNode,
    lengthen,
    widen,
)
from .values import ValueKind

__all__ = (
    "CSVDataSource",
    "PyArrowTableDataSource",
    "FilterNode",
    "DropMissingNode",
    "FunctionCallExpression",
    "col",
    "lit",
    "ColumnRef",
    "collect_table",
    "AggregateNode",
    "CountAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "SumAggregation",
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
    "ValueKind",
)
