import pyarrow as pa
import pytest

from pivotground.compute import PyArrowTableDataSource
from pivotground.compute.base import QueryPlanNode, collect_table
from pivotground.compute.reshape import DuplicateKeyError, LengthenNode, WidenNode


class MockQueryPlanNode(QueryPlanNode):
    def __init__(self, batches):
        self._batches = batches

    def batches(self):
        for batch in self._batches:
            yield batch

    def __str__(self):
        return "MockQueryPlanNode"


LONG_BATCHES = [
    pa.record_batch({"plot": [1, 1], "genus": ["A", "B"], "mean_weight": [5.0, 7.0]}),
    pa.record_batch({"plot": [2, 3], "genus": ["A", "C"], "mean_weight": [3.0, 1.5]}),
]


def test_widen_node_str():
    node = WidenNode(["plot"], "genus", "mean_weight", MockQueryPlanNode([]), fill_value=0)
    assert str(node) == (
        "WidenNode(identifiers=['plot'], key=genus, value=mean_weight, fill=0, MockQueryPlanNode)"
    )


def test_widen_node_across_batches():
    node = WidenNode(["plot"], "genus", "mean_weight", MockQueryPlanNode(LONG_BATCHES))
    result = collect_table(node)
    assert result.column_names == ["plot", "A", "B", "C"]
    assert result.to_pylist() == [
        {"plot": 1, "A": 5.0, "B": 7.0, "C": None},
        {"plot": 2, "A": 3.0, "B": None, "C": None},
        {"plot": 3, "A": None, "B": None, "C": 1.5},
    ]


def test_widen_node_duplicate_key_across_batches():
    batches = [
        pa.record_batch({"id": [1], "key": ["a"], "value": [10]}),
        pa.record_batch({"id": [1], "key": ["a"], "value": [20]}),
    ]
    node = WidenNode(["id"], "key", "value", MockQueryPlanNode(batches))
    with pytest.raises(DuplicateKeyError):
        list(node.batches())


def test_widen_node_empty_data():
    empty = pa.table({"plot": pa.array([], type=pa.int64()),
                      "genus": pa.array([], type=pa.string()),
                      "mean_weight": pa.array([], type=pa.float64())})
    node = WidenNode(["plot"], "genus", "mean_weight", PyArrowTableDataSource(empty))
    batches = list(node.batches())
    assert len(batches) == 1
    assert batches[0].column_names == ["plot"]
    assert batches[0].num_rows == 0


def test_lengthen_node_str():
    node = LengthenNode(["plot"], "genus", "mean_weight", ["A"], MockQueryPlanNode([]))
    assert str(node) == (
        "LengthenNode(identifiers=['plot'], key=genus, value=mean_weight, gather=['A'], MockQueryPlanNode)"
    )


def test_lengthen_node_streams_batches():
    batches = [
        pa.record_batch({"plot": [1], "A": [5.0], "B": [7.0]}),
        pa.record_batch({"plot": [2, 3], "A": [3.0, None], "B": [None, 1.5]}),
    ]
    node = LengthenNode(["plot"], "genus", "mean_weight", None, MockQueryPlanNode(batches))
    result = list(node.batches())
    assert [b.num_rows for b in result] == [2, 4]
    assert pa.Table.from_batches(result).to_pylist()[2:4] == [
        {"plot": 2, "genus": "A", "mean_weight": 3.0},
        {"plot": 2, "genus": "B", "mean_weight": None},
    ]


def test_nodes_round_trip():
    wide = pa.table({"plot": [1, 2], "A": [5, 3], "B": pa.array([7, None], type=pa.int64())})
    node = WidenNode(
        ["plot"],
        "genus",
        "mean_weight",
        LengthenNode(["plot"], "genus", "mean_weight", ["A", "B"], PyArrowTableDataSource(wide)),
    )
    assert collect_table(node).equals(wide)


def test_collect_table_without_batches():
    with pytest.raises(ValueError):
        collect_table(MockQueryPlanNode([]))
