"""Base classes and interfaces for Compute Engine

This module defines the base components that are
necessary to represent a query plan and execute it.

Every node consumes and emits :class:`pyarrow.RecordBatch`
objects. Nodes are expected to always emit at least one
batch, even when it has no rows, so that the schema of the
data can flow to the next node in the plan.
"""

import abc
from typing import Any, Iterator

import pyarrow as pa


class QueryPlanNode(abc.ABC):
    """A node of a query execution plan.

    The Query plan is represented as a tree
    of nodes. Each node is a step in the execution
    and all previous steps are children of the
    last one.

    For example a plan that loads survey data,
    averages the weights and spreads them by genus::

        CSVDataSource -> AggregateNode -> WidenNode

    Each Node accepts :class:`pyarrow.RecordBatch`
    data as its input and emits a new
    :class:`pyarrow.RecordBatch` as its output.

    A node that forwards the data as is after
    printing it can be implemented as::

        class DebugDataNode(QueryPlanNode):
            def __init__(self, child):
                self.child = child

            def batches(self):
                for b in self.child.batches():
                    print(b)
                    yield b

            def __str__(self):
                return f"DebugDataNode({self.child})"
    """

    RecordBatchesGenerator = Iterator[pa.RecordBatch]

    @abc.abstractmethod
    def batches(self) -> RecordBatchesGenerator:
        """Emits the batches for the next node.

        Usually this happens by consuming data from its
        child nodes, transforming it somehow, and yielding
        it back to the next consumer.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the node."""
        ...


class Expression(abc.ABC):
    """Expression to apply to a RecordBatch.

    Applying an expression to a batch always results
    in a new column, thus in a :class:`pyarrow.Array`
    (or a scalar for literals) that contains the data
    for that column.
    """

    @abc.abstractmethod
    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Apply the expression to a RecordBatch."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...


class ColumnRef(Expression):
    """References a column in a record batch.

    >>> batch = pa.record_batch({"weight": [10, None, 32]})
    >>> col("weight").apply(batch).to_pylist()
    [10, None, 32]
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Get the data for the column."""
        return batch.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Literals are converted to :class:`pyarrow.Scalar`,
    compute functions broadcast them against the columns
    they are combined with.
    """

    def __init__(self, value: Any) -> None:
        """
        :param value: The python value of the literal.
        """
        self.value = value

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        return pa.scalar(self.value)

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


col = ColumnRef
lit = Literal


def table_batches(table: pa.Table) -> list[pa.RecordBatch]:
    """Split a table in batches, always providing at least one.

    A table with zero rows might have no chunks at all,
    in that case an empty batch carrying the schema is returned.
    """
    return table.to_batches() or [
        pa.RecordBatch.from_pylist([], schema=table.schema)
    ]


def collect_table(node: QueryPlanNode) -> pa.Table:
    """Consume all the batches emitted by a node into a single table."""
    batches = list(node.batches())
    if not batches:
        raise ValueError(f"{node} emitted no data")
    return pa.Table.from_batches(batches)
