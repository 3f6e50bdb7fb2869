import math

import pandas as pd
import pytest

from solar_twin.exceptions import InvalidDimension, OutOfRangeFault
from solar_twin.grid_layout import (
    PanelPlacement,
    adjust_panel_size,
    compute_grid_shape,
    count_faulty,
    fault_table_from_records,
    healthy_fault_table,
    layout_panels,
    placements_to_dataframe,
)
from solar_twin.twin_config import DEFAULT_FAULT_TABLE, FrameSpec, PanelSpec


@pytest.fixture
def frame() -> FrameSpec:
    return FrameSpec(length=50, depth=50, height=5)


@pytest.fixture
def panel() -> PanelSpec:
    return PanelSpec(length=10, depth=10, height=3)


@pytest.fixture
def faults() -> list:
    return list(DEFAULT_FAULT_TABLE)


def test_reference_layout(frame, panel, faults):
    """50x50 frame with 10x10 panels gives 25 row-major placements, slot 16 faulty."""
    placements = layout_panels(frame, panel, 25, faults)

    assert len(placements) == 25
    assert [p.index for p in placements] == list(range(25))
    assert placements[16].has_error is True
    assert all(not p.has_error for i, p in enumerate(placements) if i != 16)
    for p in placements:
        assert p.size[0] == pytest.approx(9.2)
        assert p.size[2] == pytest.approx(9.2)
        assert p.size[1] == 3


def test_row_major_order(frame, panel, faults):
    """Columns vary fastest; index == row * columns + column."""
    placements = layout_panels(frame, panel, 25, faults)
    assert [(p.row, p.column) for p in placements[:6]] == [
        (0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (1, 0)
    ]
    for p in placements:
        assert p.index == p.row * 5 + p.column


@pytest.mark.parametrize("frame_dims, panel_dims, max_count", [
    ((50, 50), (10, 10), 25),
    ((50, 50), (10, 10), 7),
    ((35.5, 21), (10, 10), 100),
    ((100, 40), (12.5, 7), 30),
    ((9, 9), (10, 10), 5),
])
def test_count_matches_grid_formula(frame_dims, panel_dims, max_count):
    """Placed count is min(columns * rows, max_count)."""
    frame = {"length": frame_dims[0], "depth": frame_dims[1], "height": 5}
    panel = {"length": panel_dims[0], "depth": panel_dims[1], "height": 1}
    columns = math.floor(frame_dims[0] / panel_dims[0])
    rows = math.floor(frame_dims[1] / panel_dims[1])

    placements = layout_panels(frame, panel, max_count, healthy_fault_table(max_count))

    assert compute_grid_shape(frame, panel) == (columns, rows)
    assert len(placements) == min(columns * rows, max_count)


def test_max_count_stops_enumeration(frame, panel, faults):
    """A cap of 7 fills row 0 and the first two slots of row 1 only."""
    placements = layout_panels(frame, panel, 7, faults)
    assert len(placements) == 7
    assert placements[-1].row == 1
    assert placements[-1].column == 1


def test_layout_is_idempotent(frame, panel, faults):
    first = layout_panels(frame, panel, 25, faults)
    second = layout_panels(frame, panel, 25, faults)
    assert first == second
    assert first is not second


def test_grid_is_centred(frame, panel, faults):
    """Mean x and z of a full grid are zero."""
    placements = layout_panels(frame, panel, 25, faults)
    xs = [p.position[0] for p in placements]
    zs = [p.position[2] for p in placements]
    assert sum(xs) / len(xs) == pytest.approx(0.0, abs=1e-9)
    assert sum(zs) / len(zs) == pytest.approx(0.0, abs=1e-9)


def test_grid_fills_frame_edge_to_edge(frame, panel, faults):
    placements = layout_panels(frame, panel, 25, faults)
    first, last = placements[0], placements[-1]
    assert first.position[0] - first.size[0] / 2 == pytest.approx(-25.0)
    assert last.position[0] + last.size[0] / 2 == pytest.approx(25.0)
    assert last.position[2] + last.size[2] / 2 == pytest.approx(25.0)


def test_adjacent_centres_are_panel_plus_gap(frame, panel, faults):
    placements = layout_panels(frame, panel, 25, faults)
    row_zero = [p for p in placements if p.row == 0]
    for left, right in zip(row_zero, row_zero[1:]):
        assert right.position[0] - left.position[0] == pytest.approx(left.size[0] + 1.0)


def test_custom_gap(frame, panel, faults):
    placements = layout_panels(frame, panel, 25, faults, gap=2.5)
    assert placements[0].size[0] == pytest.approx((50 - 4 * 2.5) / 5)
    assert placements[1].position[0] - placements[0].position[0] == pytest.approx(placements[0].size[0] + 2.5)


def test_vertical_offset_shared(frame, panel, faults):
    default = layout_panels(frame, panel, 25, faults)
    half_height = layout_panels(frame, panel, 25, faults, panel_offset=None)
    assert {p.position[1] for p in default} == {0.5}
    assert {p.position[1] for p in half_height} == {1.5}


def test_faults_propagate(frame, panel):
    faults = [i % 3 == 0 for i in range(25)]
    placements = layout_panels(frame, panel, 25, faults)
    assert [p.has_error for p in placements] == faults
    assert count_faulty(placements) == 9


def test_longer_fault_table_is_fine(frame, panel):
    placements = layout_panels(frame, panel, 4, [False] * 3 + [True] * 40)
    assert len(placements) == 4
    assert placements[3].has_error


def test_oversized_panel_gives_empty_layout(frame, faults):
    panel = PanelSpec(length=60, depth=10, height=3)
    assert layout_panels(frame, panel, 25, faults) == []


def test_short_fault_table_raises(frame, panel):
    with pytest.raises(OutOfRangeFault) as excinfo:
        layout_panels(frame, panel, 25, [False] * 10)
    assert excinfo.value.required == 25
    assert excinfo.value.available == 10
    assert isinstance(excinfo.value, IndexError)


@pytest.mark.parametrize("bad_frame", [
    {"length": 0, "depth": 50, "height": 5},
    {"length": 50, "depth": -1, "height": 5},
    {"length": 50, "depth": 50, "height": 0},
])
def test_invalid_frame_dimensions(bad_frame, panel, faults):
    with pytest.raises(InvalidDimension):
        layout_panels(bad_frame, panel, 25, faults)


def test_invalid_panel_dimensions(frame, faults):
    with pytest.raises(InvalidDimension):
        layout_panels(frame, {"length": 10, "depth": 10, "height": -3}, 25, faults)


@pytest.mark.parametrize("max_count", [0, -4, 2.5])
def test_invalid_max_count(frame, panel, faults, max_count):
    with pytest.raises(InvalidDimension):
        layout_panels(frame, panel, max_count, faults)


def test_invalid_gap(frame, panel, faults):
    with pytest.raises(InvalidDimension):
        layout_panels(frame, panel, 25, faults, gap=0)


def test_breadth_alias_accepted(faults):
    frame = {"length": 50, "breadth": 50, "height": 5}
    panel = {"length": 10, "breadth": 10, "height": 3}
    assert len(layout_panels(frame, panel, 25, faults)) == 25


def test_adjust_panel_size(frame):
    assert adjust_panel_size(frame, 5, 5) == pytest.approx((9.2, 9.2))
    assert adjust_panel_size(frame, 1, 2, gap=1.0) == pytest.approx((50.0, 24.5))
    with pytest.raises(ValueError):
        adjust_panel_size(frame, 0, 5)


def test_fault_table_from_records():
    records = {"panels": [{"hasError": False}, {"hasError": True}, {}]}
    assert fault_table_from_records(records) == [False, True, False]
    assert fault_table_from_records(records["panels"]) == [False, True, False]


def test_placements_are_frozen(frame, panel, faults):
    placement = layout_panels(frame, panel, 1, faults)[0]
    assert isinstance(placement, PanelPlacement)
    with pytest.raises(Exception):
        placement.has_error = True


def test_placements_to_dataframe(frame, panel, faults):
    df = placements_to_dataframe(layout_panels(frame, panel, 25, faults))
    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == [
        "index", "row", "column", "x", "y", "z", "length", "height", "depth", "has_error"
    ]
    assert len(df) == 25
    assert df["has_error"].sum() == 1
    assert df.loc[16, "has_error"]


def test_placements_to_dataframe_empty():
    df = placements_to_dataframe([])
    assert df.empty
    assert "has_error" in df.columns


@pytest.mark.parametrize("gap", [float("nan"), float("inf"), -1.0])
def test_non_finite_gap_rejected(frame, panel, faults, gap):
    with pytest.raises(InvalidDimension):
        layout_panels(frame, panel, 25, faults, gap=gap)
