"""Query plan nodes that implement filtering of rows.

Before reshaping or aggregating survey data it's common
to discard the observations that are not usable,
like those where the measurement is missing or
outside of the range of interest.
"""

import pyarrow.compute as pc

from .base import Expression, QueryPlanNode


class FilterNode(QueryPlanNode):
    """Filter data based on a predicate expression.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from pivotground.compute import col, lit, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"weight": [12, 40, 8]})
    >>> predicate = FunctionCallExpression(pc.greater, col("weight"), lit(10))
    >>> next(FilterNode(predicate, PyArrowTableDataSource(data)).batches()).to_pydict()
    {'weight': [12, 40]}
    """

    def __init__(self, expression: Expression, child: QueryPlanNode) -> None:
        """
        :param expression: The predicate expression to filter with.
        :param child: The node emitting the data to be filtered.
        """
        self.expression = expression
        self.child = child

    def __str__(self) -> str:
        return f"FilterNode(filter={self.expression}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Keep only the rows where the predicate is ``true``.

        Rows where the predicate is missing are discarded too.
        """
        for batch in self.child.batches():
            mask = self.expression.apply(batch)
            yield batch.filter(mask)


class DropMissingNode(QueryPlanNode):
    """Discard the rows that have missing values.

    Only the complete cases are preserved, so the rows
    where none of the checked columns is missing.

    >>> import pyarrow as pa
    >>> from pivotground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"species": ["DM", None, "PF"], "weight": [40, 12, None]})
    >>> next(DropMissingNode(["weight"], PyArrowTableDataSource(data)).batches()).to_pydict()
    {'species': ['DM', None], 'weight': [40, 12]}
    """

    def __init__(self, columns: list[str] | None, child: QueryPlanNode) -> None:
        """
        :param columns: The columns that must not be missing.
                        ``None`` means all columns.
        :param child: The node emitting the data to be filtered.
        """
        self.columns = columns
        self.child = child

    def __str__(self) -> str:
        return f"DropMissingNode(columns={self.columns}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        for batch in self.child.batches():
            columns = self.columns if self.columns is not None else batch.column_names
            mask = None
            for name in columns:
                valid = pc.is_valid(batch.column(name))
                mask = valid if mask is None else pc.and_(mask, valid)
            yield batch if mask is None else batch.filter(mask)
