import pyarrow as pa
import pytest

from pivotground.compute import PyArrowTableDataSource
from pivotground.compute.aggregate import (
    AggregateNode,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)

TEST_DATA = pa.record_batch(
    {
        "plot": pa.array([2, 2, 1, 1, 2]),
        "genus": pa.array(["Dipodomys", "Onychomys", "Dipodomys", "Perognathus", "Onychomys"]),
        "weight": pa.array([40, 22, 48, None, 26]),
    }
)


@pytest.mark.parametrize(
    "aggregation, by_plot, by_plot_and_genus",
    [
        (SumAggregation("weight"), [88, 48], [40, 48, 48, None]),
        (MinAggregation("weight"), [22, 48], [40, 22, 48, None]),
        (MaxAggregation("weight"), [40, 48], [40, 26, 48, None]),
        (CountAggregation("weight"), [3, 1], [1, 2, 1, 0]),
        (MeanAggregation("weight"), [88 / 3, 48.0], [40.0, 24.0, 48.0, None]),
    ],
)
def test_aggregations(aggregation, by_plot, by_plot_and_genus):
    result = next(
        AggregateNode(["plot"], {"result": aggregation}, PyArrowTableDataSource(TEST_DATA)).batches()
    )
    assert result.column_names == ["plot", "result"]
    assert result.column("plot").to_pylist() == [2, 1]
    assert result.column("result").to_pylist() == by_plot

    result = next(
        AggregateNode(
            ["plot", "genus"], {"result": aggregation}, PyArrowTableDataSource(TEST_DATA)
        ).batches()
    )
    assert result.column_names == ["plot", "genus", "result"]
    assert result.column("genus").to_pylist() == [
        "Dipodomys",
        "Onychomys",
        "Dipodomys",
        "Perognathus",
    ]
    assert result.column("result").to_pylist() == by_plot_and_genus


def test_aggregate_node_str():
    aggregate = AggregateNode(
        ["plot"],
        {"total_weight": SumAggregation("weight")},
        PyArrowTableDataSource(TEST_DATA),
    )
    assert str(aggregate) == (
        "AggregateNode(keys=['plot'], aggregations={'total_weight': SumAggregation(weight)}, "
        "PyArrowTableDataSource(columns=['plot', 'genus', 'weight'], rows=5))"
    )


def test_aggregate_across_batches():
    table = pa.Table.from_batches([TEST_DATA.slice(0, 2), TEST_DATA.slice(2)])
    aggregate = AggregateNode(
        ["genus"],
        {"n": CountAggregation("weight"), "mean_weight": MeanAggregation("weight")},
        PyArrowTableDataSource(table),
    )
    result = pa.Table.from_batches(list(aggregate.batches()))
    assert result.to_pydict() == {
        "genus": ["Dipodomys", "Onychomys", "Perognathus"],
        "n": [2, 2, 0],
        "mean_weight": [44.0, 24.0, None],
    }


def test_aggregate_preserves_key_types():
    aggregate = AggregateNode(
        ["plot"], {"total": SumAggregation("weight")}, PyArrowTableDataSource(TEST_DATA)
    )
    result = next(aggregate.batches())
    assert result.schema.field("plot").type == pa.int64()


def test_aggregate_without_keys():
    aggregate = AggregateNode(
        [], {"total": SumAggregation("weight")}, PyArrowTableDataSource(TEST_DATA)
    )
    assert next(aggregate.batches()).to_pydict() == {"total": [136]}


def test_aggregate_many_groups():
    data = {"plot": [], "genus": [], "weight": []}
    for plot in range(5):
        for genus in range(10):
            for _ in range(2):
                data["plot"].append(plot)
                data["genus"].append(f"Genus{genus}")
                data["weight"].append(10)
    aggregate = AggregateNode(
        ["plot", "genus"],
        {"n": CountAggregation("weight")},
        PyArrowTableDataSource(pa.record_batch(data)),
    )
    result = next(aggregate.batches())
    assert result.num_rows == 50
    assert result.column("n").to_pylist() == [2] * 50
    assert result.column("genus").to_pylist()[:3] == ["Genus0", "Genus1", "Genus2"]


def test_aggregate_result_types():
    data = pa.record_batch(
        {
            "plot": pa.array([1, 2], type=pa.int32()),
            "weight": pa.array([None, None], type=pa.int32()),
        }
    )
    aggregate = AggregateNode(
        ["plot"],
        {
            "total": SumAggregation("weight"),
            "smallest": MinAggregation("weight"),
            "largest": MaxAggregation("weight"),
            "n": CountAggregation("weight"),
            "mean": MeanAggregation("weight"),
        },
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())
    assert result.schema.field("total").type == pa.int64()
    assert result.schema.field("smallest").type == pa.int32()
    assert result.schema.field("largest").type == pa.int32()
    assert result.schema.field("n").type == pa.int64()
    assert result.schema.field("mean").type == pa.float64()
    assert result.column("total").to_pylist() == [None, None]
