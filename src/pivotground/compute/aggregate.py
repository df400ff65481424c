"""Query plan nodes that compute aggregations.

Data in long format frequently has more than one
observation for the same identifiers, in that case
it has to be summarised before it can be widened,
as each cell of the wide table can hold only one value.

For example, given the weights of the animals caught in each plot::

    plot, genus,     weight
    1,    Dipodomys, 40
    1,    Dipodomys, 48
    1,    Onychomys, 22
    2,    Dipodomys, 35

We could group by plot and genus and compute the mean weight to get::

    plot, genus,     mean_weight
    1,    Dipodomys, 44.0
    1,    Onychomys, 22.0
    2,    Dipodomys, 35.0

Which has one value per plot and genus and can thus
be spread in one column per genus.
"""

import abc
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode, table_batches
from .reshape import group_key, group_rows

__all__ = (
    "AggregateNode",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "CountAggregation",
    "MeanAggregation",
)


class AggregateNode(QueryPlanNode):
    """Group data and compute aggregations.

    Groups are emitted in the order they first appear in the data.

    >>> import pyarrow as pa
    >>> from pivotground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    'plot': pa.array([1, 1, 1, 2]),
    ...    'genus': pa.array(['Dipodomys', 'Dipodomys', 'Onychomys', 'Dipodomys']),
    ...    'weight': pa.array([40, 48, 22, 35])
    ... })
    >>> aggregate = AggregateNode(["plot", "genus"], {"mean_weight": MeanAggregation("weight")},
    ...                           PyArrowTableDataSource(data))
    >>> next(aggregate.batches()).to_pydict()
    {'plot': [1, 1, 2], 'genus': ['Dipodomys', 'Onychomys', 'Dipodomys'], 'mean_weight': [44.0, 22.0, 35.0]}
    """

    def __init__(
        self,
        keys: list[str],
        aggregations: dict[str, "Aggregation"],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: The columns to group by.
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
        :param child: The child node that will provide the data to aggregate.
        """
        self.keys = keys
        self.aggregations = aggregations
        self.child = child

    def __str__(self) -> str:
        return f"AggregateNode(keys={self.keys}, aggregations={self.aggregations}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Group the rows of the child node and aggregate them.

        Each batch is aggregated on its own, which requires to
        keep in memory only one batch at the time and the partial
        results, which are far smaller::

            {(1, "Dipodomys"): {"mean_weight": [(2, 88), (1, 40)]}}

        Once all batches were consumed the partial results are
        reduced to the final ones.
        """
        # Keys are stored as arrays of one element, so that
        # the result has the same types of the grouped columns.
        group_keys: dict[tuple, dict[str, pa.Array]] = {}
        chunks_data: dict[tuple, dict[str, list[Any]]] = {}
        schema = None
        for batch in self.child.batches():
            schema = batch.schema
            table = pa.Table.from_batches([batch])
            group_of_row, first_row_of_group = group_rows(table, self.keys)

            rows_of_group: list[list[int]] = [[] for _ in first_row_of_group]
            for row_index, group_index in enumerate(group_of_row):
                rows_of_group[group_index].append(row_index)

            for first_row, rows in zip(first_row_of_group, rows_of_group):
                key = group_key(batch.column(k)[first_row].as_py() for k in self.keys)
                if key not in group_keys:
                    group_keys[key] = {
                        k: batch.column(k).slice(first_row, 1) for k in self.keys
                    }
                    chunks_data[key] = {name: [] for name in self.aggregations}

                group_batch = batch.take(pa.array(rows, type=pa.int64()))
                for name, aggregation in self.aggregations.items():
                    chunks_data[key][name].append(
                        aggregation.compute_chunk(group_batch)
                    )

        if schema is None:
            raise ValueError(f"{self.child} emitted no data")
        yield from table_batches(self.reduce_aggregations(group_keys, chunks_data, schema))

    def reduce_aggregations(
        self,
        group_keys: dict[tuple, dict[str, pa.Array]],
        chunks_data: dict[tuple, dict[str, list[Any]]],
        schema: pa.Schema,
    ) -> pa.Table:
        """Reduce the partial aggregation results to the final aggregation results.

        For example if the group was found in 3 batches and the chunks_data is::

            {("New York",): {"total_employees": [10, 20, 30]}}

        The result will be::

            {"city": ["New York"], "total_employees": [60]}
        """
        result: dict[str, pa.Array] = {}
        for key in self.keys:
            field = schema.field(key)
            chunks = [group_keys[g][key] for g in group_keys]
            result[key] = (
                pa.concat_arrays(chunks) if chunks else pa.array([], type=field.type)
            )
        for name, aggregation in self.aggregations.items():
            result[name] = pa.array(
                [aggregation.reduce(chunks_data[g][name]) for g in chunks_data],
                type=aggregation.result_type(schema.field(aggregation.column).type),
            )
        return pa.table(result)


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation is expected to implement
    a method to compute any needed intermediate results
    on a single chunk of data and then provide a reduce method
    to combine the intermediate results into a final result.

    Missing values are ignored, an aggregation over
    only missing values is missing itself.
    """

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> Any: ...

    @abc.abstractmethod
    def result_type(self, input_type: pa.DataType) -> pa.DataType:
        """The type of the aggregation results for a column of ``input_type``."""


class SimpleAggregation(Aggregation):
    """Provide a base implementation for simple aggregations like min,max,sum.

    For those the function applied on a chunk is the same used to combine
    the intermediate results, ``sum([1, 2, 3])`` is the same as ``sum([sum([1, 2]), 3])``.
    """

    @abc.abstractmethod
    def _aggregate(self, data: pa.Array) -> pa.Scalar: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return self._aggregate(batch.column(self.column)).as_py()

    def reduce(self, chunks: list[Any]) -> Any:
        partials = [c for c in chunks if c is not None]
        if not partials:
            return None
        return self._aggregate(pa.array(partials)).as_py()

    def result_type(self, input_type: pa.DataType) -> pa.DataType:
        # Same type the compute function gives, sums of int32 are int64.
        return self._aggregate(pa.array([], type=input_type)).type


class SumAggregation(SimpleAggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.sum(data)


class MinAggregation(SimpleAggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.max(data)


class CountAggregation(Aggregation):
    """Count the values that are not missing.

    The counts of each batch are summed to compute the final result.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> int:
        return pc.count(batch.column(self.column)).as_py()

    def reduce(self, chunks: list[int]) -> int:
        return sum(chunks)

    def result_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.int64()


class MeanAggregation(Aggregation):
    """Compute the mean of an aggregated column.

    Count and sum of the values are computed for each batch,
    then the total sum is divided by the total count.
    The result is always a floating point number.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> tuple[int, Any]:
        column = batch.column(self.column)
        return (pc.count(column).as_py(), pc.sum(column).as_py())

    def reduce(self, chunks: list[tuple[int, Any]]) -> float | None:
        count = sum(chunk[0] for chunk in chunks)
        if not count:
            return None
        total = sum(chunk[1] for chunk in chunks if chunk[1] is not None)
        return float(total) / count

    def result_type(self, input_type: pa.DataType) -> pa.DataType:
        return pa.float64()
