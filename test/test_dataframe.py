import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.csv as csv
import pytest

from pivotground.compute import (
    DuplicateKeyError,
    FunctionCallExpression,
    MeanAggregation,
    PyArrowTableDataSource,
)
from pivotground.dataframe import Dataframe, col, lit

SURVEYS = pa.table(
    {
        "plot": [1, 1, 1, 2, 2, 3],
        "genus": ["Dipodomys", "Dipodomys", "Onychomys", "Dipodomys", "Onychomys", "Onychomys"],
        "weight": pa.array([40, 48, 22, 35, None, 20], type=pa.int64()),
    }
)


def test_invalid_input():
    with pytest.raises(ValueError):
        Dataframe({"plot": [1]})


def test_accepts_nodes_and_batches():
    assert Dataframe(PyArrowTableDataSource(SURVEYS)).to_arrow().equals(SURVEYS)
    assert Dataframe(SURVEYS.to_batches()[0]).to_arrow().equals(SURVEYS)


def test_lesson_pipeline():
    wide = (
        Dataframe(SURVEYS)
        .drop_missing(["weight"])
        .aggregate(["plot", "genus"], {"mean_weight": MeanAggregation("weight")})
        .widen(["plot"], "genus", "mean_weight", fill_value=0)
    )
    assert wide.to_pylist() == [
        {"plot": 1, "Dipodomys": 44.0, "Onychomys": 22.0},
        {"plot": 2, "Dipodomys": 35.0, "Onychomys": 0.0},
        {"plot": 3, "Dipodomys": 0.0, "Onychomys": 20.0},
    ]


def test_filter():
    heavy = Dataframe(SURVEYS).filter(
        FunctionCallExpression(pc.greater_equal, col("weight"), lit(40))
    )
    assert heavy.to_arrow().column("weight").to_pylist() == [40, 48]


def test_widen_then_lengthen():
    df = Dataframe(SURVEYS).drop_missing().aggregate(
        ["plot", "genus"], {"mean_weight": MeanAggregation("weight")}
    )
    long = df.collect()
    round_trip = long.widen(["plot"], "genus", "mean_weight").lengthen(
        ["plot"], "genus", "mean_weight"
    )
    result = round_trip.drop_missing(["mean_weight"]).to_arrow()
    assert result.equals(long.to_arrow())


def test_widen_without_aggregating():
    with pytest.raises(DuplicateKeyError):
        Dataframe(SURVEYS).widen(["plot"], "genus", "weight").to_arrow()


def test_collect_is_eager():
    collected = Dataframe(SURVEYS).drop_missing().collect()
    assert isinstance(collected.node, PyArrowTableDataSource)
    assert collected.to_arrow().num_rows == 5


def test_open_and_export_csv(tmp_path):
    source = tmp_path / "surveys.csv"
    source.write_text("plot,genus,mean_weight\n1,A,5\n1,B,7\n2,A,3\n")
    target = tmp_path / "surveys_wide.csv"

    Dataframe.open_csv(str(source)).widen(["plot"], "genus", "mean_weight").to_csv(str(target))

    exported = csv.read_csv(str(target))
    assert exported.to_pylist() == [
        {"plot": 1, "A": 5, "B": 7},
        {"plot": 2, "A": 3, "B": None},
    ]


def test_str():
    df = Dataframe(SURVEYS).drop_missing(["weight"])
    assert str(df) == (
        "Dataframe(DropMissingNode(columns=['weight'], "
        "child=PyArrowTableDataSource(columns=['plot', 'genus', 'weight'], rows=6)))"
    )
