import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from solar_twin.exceptions import InvalidDimension, OutOfRangeFault
from solar_twin.twin_config import FrameSpec, PanelSpec, coerce_model, require_positive

_LOGGER = logging.getLogger(__name__)

DEFAULT_PANEL_GAP = 1.0
DEFAULT_PANEL_OFFSET = 0.5

# ------------------------------
# 1. Panel grid layout
# ------------------------------


class PanelPlacement(BaseModel):
    """
    One placed panel. Coordinates are y-up: x along the frame length,
    z along the frame depth, y vertical. ``size`` is (length, height, depth).
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    position: Tuple[float, float, float]
    size: Tuple[float, float, float]
    has_error: bool = False


def compute_grid_shape(
        frame: Union[dict, FrameSpec],
        panel: Union[dict, PanelSpec]
    ) -> Tuple[int, int]:
    """
    Number of columns (along the length) and rows (along the depth) that fit
    using the requested, not yet gap-adjusted, panel size.

    Returns:
    - Tuple[int, int]: (columns, rows)
    """
    frame = coerce_model(FrameSpec, frame)
    panel = coerce_model(PanelSpec, panel)
    columns = math.floor(frame.length / panel.length)
    rows = math.floor(frame.depth / panel.depth)
    return columns, rows


def adjust_panel_size(
        frame: Union[dict, FrameSpec],
        columns: int,
        rows: int,
        gap: float = DEFAULT_PANEL_GAP
    ) -> Tuple[float, float]:
    """
    Shrink the panels uniformly so that ``columns`` panels plus
    ``columns - 1`` gaps exactly span the frame length (same for rows/depth).

    Returns:
    - Tuple[float, float]: (adjusted length, adjusted depth)
    """
    frame = coerce_model(FrameSpec, frame)
    if columns < 1 or rows < 1:
        raise ValueError("columns and rows must both be at least 1")
    available_length = frame.length - (columns - 1) * gap
    available_depth = frame.depth - (rows - 1) * gap
    return available_length / columns, available_depth / rows


def layout_panels(
        frame: Union[dict, FrameSpec],
        panel: Union[dict, PanelSpec],
        max_count: int,
        faults: Sequence[bool],
        gap: float = DEFAULT_PANEL_GAP,
        panel_offset: Optional[float] = DEFAULT_PANEL_OFFSET
    ) -> List[PanelPlacement]:
    """
    Place an evenly spaced grid of panels centred on the frame footprint.

    Slots are enumerated row-major (rows outer, columns inner) and the fault
    flag of slot ``i`` is ``faults[i]``. Enumeration stops once
    ``min(columns * rows, max_count)`` panels are placed.

    Parameters:
    - frame (dict or FrameSpec): Outer frame dimensions.
    - panel (dict or PanelSpec): Requested panel dimensions.
    - max_count (int): Upper bound on placed panels (>= 1).
    - faults (Sequence[bool]): Row-major fault flags, at least one per placed panel.
    - gap (float): Spacing between adjacent panels on both axes.
    - panel_offset (float or None): Vertical centre of the panels; None uses half the panel height.

    Returns:
    - List[PanelPlacement]: Fresh placements, empty when the frame is smaller than one panel.

    Raises:
    - InvalidDimension: non-positive dimension, gap or max_count.
    - OutOfRangeFault: fewer fault flags than panels to place.
    """
    frame = coerce_model(FrameSpec, frame)
    panel = coerce_model(PanelSpec, panel)
    if isinstance(max_count, bool) or int(max_count) != max_count or max_count < 1:
        raise InvalidDimension(f"max_count must be a positive integer, got {max_count!r}")
    require_positive("gap", gap)

    columns, rows = compute_grid_shape(frame, panel)
    if columns == 0 or rows == 0:
        _LOGGER.info(
            "Panel %sx%s does not fit frame %sx%s, empty layout",
            panel.length, panel.depth, frame.length, frame.depth
        )
        return []

    total_panels = min(columns * rows, int(max_count))
    if len(faults) < total_panels:
        raise OutOfRangeFault(required=total_panels, available=len(faults))

    adj_length, adj_depth = adjust_panel_size(frame, columns, rows, gap)
    y_pos = panel.height / 2 if panel_offset is None else panel_offset
    size = (adj_length, panel.height, adj_depth)

    placements = []
    for row in range(rows):
        z_pos = row * (adj_depth + gap) - frame.depth / 2 + adj_depth / 2
        for col in range(columns):
            index = len(placements)
            x_pos = col * (adj_length + gap) - frame.length / 2 + adj_length / 2
            placements.append(PanelPlacement(
                index=index,
                row=row,
                column=col,
                position=(x_pos, y_pos, z_pos),
                size=size,
                has_error=bool(faults[index])
            ))
            if len(placements) >= total_panels:
                break
        if len(placements) >= total_panels:
            break

    _LOGGER.debug(
        "Placed %d panels on a %dx%d grid (adjusted %.3f x %.3f)",
        len(placements), columns, rows, adj_length, adj_depth
    )
    return placements


# ------------------------------
# 2. Fault tables and export
# ------------------------------

def healthy_fault_table(n_panels: int) -> List[bool]:
    """Fault table with ``n_panels`` healthy slots."""
    return [False] * n_panels


def fault_table_from_records(
        records: Union[Mapping, Iterable[Mapping]],
        key: str = "hasError"
    ) -> List[bool]:
    """
    Build a row-major fault table from panel status records, either a list of
    ``{"hasError": bool}`` entries or a ``{"panels": [...]}`` document.
    """
    if isinstance(records, Mapping):
        records = records["panels"]
    return [bool(record.get(key, False)) for record in records]


def count_faulty(placements: Iterable[PanelPlacement]) -> int:
    return sum(1 for p in placements if p.has_error)


def placements_to_dataframe(placements: Iterable[PanelPlacement]) -> pd.DataFrame:
    """
    Flatten placements into one row per panel with columns
    index, row, column, x, y, z, length, height, depth, has_error.
    """
    columns = ["index", "row", "column", "x", "y", "z", "length", "height", "depth", "has_error"]
    rows = [
        (p.index, p.row, p.column, *p.position, *p.size, p.has_error)
        for p in placements
    ]
    return pd.DataFrame(rows, columns=columns)
