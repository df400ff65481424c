"""Expressions executed by compute engine nodes.

Filters need a *predicate*, an expression that returns
``true`` or ``false`` for each row, like ``weight > 10``.
Predicates are built combining :func:`col` and :func:`lit`
with any :mod:`pyarrow.compute` function::

    FunctionCallExpression(pyarrow.compute.greater, col("weight"), lit(10))
"""

from typing import Any, Callable

import pyarrow as pa

from .base import Expression


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Arguments that are expressions are applied to the batch
    first, anything else is passed to the function as is.

    >>> import pyarrow.compute as pc
    >>> from pivotground.compute import col
    >>> batch = pa.record_batch({"weight": [10, None, 42]})
    >>> FunctionCallExpression(pc.is_null, col("weight")).apply(batch).to_pylist()
    [False, True, False]
    """

    def __init__(self, func: Callable[..., Any], *args: Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param args: The arguments for the function.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"{name}({','.join(map(str, self.args))})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        args = tuple(
            arg.apply(batch) if isinstance(arg, Expression) else arg
            for arg in self.args
        )
        return self.func(*args)
