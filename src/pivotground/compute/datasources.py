"""Query Plan nodes that load data

The datasource nodes fetch the data from some source,
convert it into Arrow format and forward it
to the next node in the plan.
"""

from abc import abstractmethod

import pyarrow as pa
import pyarrow.csv

from .base import QueryPlanNode, table_batches

DEFAULT_NULL_VALUES = ["", "NA", "NaN", "null"]
"""Strings that mark a missing value in CSV files."""


class DataSourceNode(QueryPlanNode):
    """Base class for nodes that load data from a source."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the data source without loading its content."""
        ...


class CSVDataSource(DataSourceNode):
    """Load data from a CSV file.

    Cells matching one of ``null_values`` are loaded as missing
    values, for any column type including text ones. This way
    an empty cell and a ``NA`` cell are the same missing
    value and not strings.
    """

    def __init__(
        self,
        filename: str,
        block_size: int | None = None,
        null_values: list[str] | None = None,
    ) -> None:
        """
        :param filename: The path of the local CSV file.
        :param block_size: How big to make batches of data,
                           Influences how many batches will be produced
        :param null_values: Strings to read as missing values,
                            defaults to :data:`DEFAULT_NULL_VALUES`.
        """
        self.filename = filename
        self.block_size = block_size
        self.null_values = (
            null_values if null_values is not None else DEFAULT_NULL_VALUES
        )

    def __str__(self) -> str:
        return f"CSVDataSource({self.filename}, block_size={self.block_size})"

    def _open(self) -> pa.csv.CSVStreamingReader:
        return pa.csv.open_csv(
            self.filename,
            read_options=pa.csv.ReadOptions(block_size=self.block_size),
            convert_options=pa.csv.ConvertOptions(
                null_values=self.null_values, strings_can_be_null=True
            ),
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open CSV file and emit the batches.

        A file with only the header emits one empty batch.
        """
        with self._open() as reader:
            emitted = False
            for batch in reader:
                emitted = True
                yield batch
            if not emitted:
                yield pa.RecordBatch.from_pylist([], schema=reader.schema)

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the CSV file."""
        with self._open() as reader:
            return reader.schema


class PyArrowTableDataSource(DataSourceNode):
    """Load data from an in-memory pyarrow.Table or pyarrow.RecordBatch."""

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the data contained in the Table for consumption by other node."""
        if isinstance(self.table, pa.RecordBatch):
            yield self.table
        else:
            yield from table_batches(self.table)

    def poll_schema(self) -> pa.Schema:
        return self.table.schema
