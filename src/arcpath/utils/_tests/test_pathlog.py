import numpy as np
import pandas as pd
import pytest

from arcpath.algorithms.continuation.types import ContinuationPoint
from arcpath.utils.io import PathLogWriter
from arcpath.utils.io.pathlog import log_columns


def _tip(state):
    # Two tracked points: the first two dofs as x and y
    return np.array([[state[0], 0.0, 0.0], [0.0, state[1], 0.0]])


def test_header_is_written_on_creation(tmp_path):
    path = tmp_path / "data.csv"
    PathLogWriter(path)
    assert path.read_text().strip() == "Deformation norm,Lambda,Indicator"


def test_header_with_tracked_points(tmp_path):
    writer = PathLogWriter(tmp_path / "data.csv", tracked_points=_tip, ndof=2)
    assert writer.columns == log_columns(2)
    assert writer.columns[1:4] == ["point 0 - x", "point 0 - y", "point 0 - z"]
    assert writer.columns[-2:] == ["Lambda", "Indicator"]


def test_rows_are_appended(tmp_path):
    writer = PathLogWriter(tmp_path / "sub" / "data.csv", tracked_points=_tip, ndof=2)
    writer.append(ContinuationPoint(np.array([3.0, 4.0]), 0.5), indicator=2.0)
    writer.append(ContinuationPoint(np.array([6.0, 8.0]), 1.0), indicator=-1.0)

    df = writer.read()
    assert writer.rows == 2
    assert len(df) == 2
    np.testing.assert_allclose(df["Deformation norm"], [5.0, 10.0])
    np.testing.assert_allclose(df["point 1 - y"], [4.0, 8.0])
    np.testing.assert_allclose(df["Lambda"], [0.5, 1.0])
    np.testing.assert_allclose(df["Indicator"], [2.0, -1.0])


@pytest.mark.parametrize("precision, expected", [(6, "0.333333"), (20, "0.33333333333333331483")])
def test_precision(tmp_path, precision, expected):
    path = tmp_path / "data.csv"
    writer = PathLogWriter(path, precision=precision)
    writer.append(ContinuationPoint(np.zeros(1), 1.0 / 3.0), indicator=0.0)
    row = path.read_text().splitlines()[1].split(",")
    assert row[1] == expected


def test_invalid_arguments(tmp_path):
    with pytest.raises(ValueError):
        PathLogWriter(tmp_path / "a.csv", precision=10)
    with pytest.raises(ValueError):
        PathLogWriter(tmp_path / "b.csv", tracked_points=_tip)
    with pytest.raises(ValueError):
        PathLogWriter(tmp_path / "c.csv", tracked_points=lambda u: np.zeros((1, 2)), ndof=2)


def test_existing_log_is_truncated(tmp_path):
    path = tmp_path / "data.csv"
    first = PathLogWriter(path)
    first.append(ContinuationPoint(np.zeros(1), 1.0), 0.0)
    PathLogWriter(path)
    assert len(pd.read_csv(path)) == 0
