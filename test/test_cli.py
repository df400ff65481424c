import pyarrow.csv as csv
import pytest

from pivotground.commands.reshape import main, parse_value

LONG_CSV = "plot,genus,mean_weight\n1,A,5\n1,B,7\n2,A,3\n"
WIDE_CSV = "plot,A,B\n1,5,7\n2,3,\n"


@pytest.fixture
def long_csv(tmp_path):
    path = tmp_path / "long.csv"
    path.write_text(LONG_CSV)
    return str(path)


@pytest.fixture
def wide_csv(tmp_path):
    path = tmp_path / "wide.csv"
    path.write_text(WIDE_CSV)
    return str(path)


def test_widen_prints_table(long_csv, capsys):
    assert main(["widen", long_csv, "--id", "plot", "--key", "genus", "--value", "mean_weight"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "plot | A | B",
        "---- | - | --",
        "   1 | 5 |  7",
        "   2 | 3 | NA",
    ]


def test_widen_fill_to_file(long_csv, tmp_path):
    output = str(tmp_path / "wide.csv")
    assert main(["widen", long_csv, "--key", "genus", "--value", "mean_weight",
                 "--fill", "0", "-o", output]) == 0
    assert csv.read_csv(output).to_pylist() == [
        {"plot": 1, "A": 5, "B": 7},
        {"plot": 2, "A": 3, "B": 0},
    ]


def test_lengthen_to_file(wide_csv, tmp_path):
    output = str(tmp_path / "long.csv")
    assert main(["lengthen", wide_csv, "--id", "plot", "--key-name", "genus",
                 "--value-name", "mean_weight", "-o", output]) == 0
    assert csv.read_csv(output).to_pylist() == [
        {"plot": 1, "genus": "A", "mean_weight": 5},
        {"plot": 1, "genus": "B", "mean_weight": 7},
        {"plot": 2, "genus": "A", "mean_weight": 3},
        {"plot": 2, "genus": "B", "mean_weight": None},
    ]


def test_reshape_error(tmp_path, capsys):
    path = tmp_path / "duplicated.csv"
    path.write_text("id,key,value\n1,a,10\n1,a,20\n")
    assert main(["widen", str(path), "--key", "key", "--value", "value"]) == 1
    assert capsys.readouterr().out.startswith("Unable to reshape, Key 'a' appears more than once")


def test_lengthen_without_columns(wide_csv, capsys):
    assert main(["lengthen", wide_csv]) == 1
    assert "Unable to reshape" in capsys.readouterr().out


def test_missing_subcommand():
    with pytest.raises(SystemExit):
        main([])


def test_parse_value():
    assert parse_value("0") == 0
    assert parse_value("0.5") == 0.5
    assert parse_value("NA") == "NA"
