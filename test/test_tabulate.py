import pyarrow as pa

from pivotground.utils.tabulate import format_value, tabulate


def test_tabulate_recordbatch():
    batch = pa.record_batch({"genus": ["Dipodomys", "Onychomys"], "count": [12, 3]})
    assert tabulate(batch) == "\n".join(
        [
            "genus     | count",
            "--------- | -----",
            "Dipodomys |    12",
            "Onychomys |     3",
        ]
    )


def test_tabulate_missing_values():
    table = pa.table({"genus": ["A", None], "flag": pa.array([True, None])})
    assert tabulate(table).splitlines()[2:] == ["A     | true", "NA    | NA"]


def test_tabulate_max_rows():
    table = pa.table({"n": list(range(5))})
    text = tabulate(table, max_rows=2)
    assert text.splitlines()[2:] == ["0", "1", "... and 3 more rows"]


def test_format_value():
    assert format_value(3) == "3"
    assert format_value(1 / 3) == "0.33"
    assert format_value(False) == "false"
    assert format_value(None) == "NA"
