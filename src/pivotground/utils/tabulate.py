"""Format tabular data into a text table for print.

Missing values are shown as ``NA``, so that they are never
confused with an empty string, floats are shown with 2 decimals
and numbers are aligned to the right::

    >>> import pyarrow as pa
    >>> table = pa.table({
    ...     "plot": [1, 2],
    ...     "genus": ["Dipodomys", "Onychomys"],
    ...     "mean_weight": [44.0, None],
    ... })
    >>> print(tabulate(table))
    plot | genus     | mean_weight
    ---- | --------- | -----------
       1 | Dipodomys |       44.00
       2 | Onychomys |          NA
"""

from typing import Any

import pyarrow as pa

from ..compute.values import ValueKind, kind_of_type

MISSING = "NA"


def tabulate(data: pa.Table | pa.RecordBatch, max_rows: int = 20) -> str:
    """Format a Table or RecordBatch into a text table.

    Only the first ``max_rows`` rows are shown,
    followed by a count of the rows left out.
    """
    cols = data.column_names
    numeric = [kind_of_type(f.type) is ValueKind.NUMBER for f in data.schema]
    rows = [
        [format_value(row[c]) for c in cols]
        for row in data.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes, rjust=numeric) for row in rows]

    table = "\n".join(header + separator + textrows)
    if data.num_rows > max_rows:
        table += f"\n... and {data.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(
    cols: list[str],
    colsizes: list[int],
    fillvalue: str = " ",
    rjust: list[bool] | None = None,
) -> str:
    """Make a table row with the given column sizes."""
    rjust = rjust or [False] * len(cols)
    return " | ".join(
        col.rjust(colsizes[idx], fillvalue) if rjust[idx] else col.ljust(colsizes[idx], fillvalue)
        for idx, col in enumerate(cols)
    ).rstrip()


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    >>> [format_value(v) for v in (None, 2.5, True, "x" * 40)]
    ['NA', '2.50', 'true', 'xxxxxxxxxxxxxxxxxxxxxxxxxxx...']
    """
    if v is None:
        return MISSING
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
