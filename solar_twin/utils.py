import matplotlib.pyplot as plt
import pandas as pd
import numpy as np
from matplotlib.patches import Rectangle
from typing import Iterable, Union

from solar_twin.grid_layout import PanelPlacement
from solar_twin.twin_config import FrameSpec, coerce_model

HEALTHY_COLOR = "#0033cc"
FAULT_COLOR = "#ff6666"


def plot_panel_layout(
    placements: Iterable[PanelPlacement],
    frame: Union[dict, FrameSpec],
    ax=None,
    show: bool = False
):
    """
    Top-down view of a panel layout: frame outline plus one rectangle per
    panel, faulty panels in red.

    Parameters:
    - placements: Output of layout_panels.
    - frame (dict or FrameSpec): Frame the placements were computed for.
    - ax: Optional matplotlib axes to draw on.
    - show (bool): Call plt.show() when done.

    Returns:
    - The matplotlib axes.
    """
    frame = coerce_model(FrameSpec, frame)
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    ax.add_patch(Rectangle(
        (-frame.length / 2, -frame.depth / 2), frame.length, frame.depth,
        fill=False, edgecolor="black", linewidth=1.5
    ))
    for p in placements:
        x, _, z = p.position
        length, _, depth = p.size
        ax.add_patch(Rectangle(
            (x - length / 2, z - depth / 2), length, depth,
            facecolor=FAULT_COLOR if p.has_error else HEALTHY_COLOR,
            edgecolor="none"
        ))
        ax.annotate(str(p.index), (x, z), ha="center", va="center", color="white", fontsize=8)

    margin = 0.05 * max(frame.length, frame.depth)
    ax.set_xlim(-frame.length / 2 - margin, frame.length / 2 + margin)
    ax.set_ylim(-frame.depth / 2 - margin, frame.depth / 2 + margin)
    ax.set_aspect("equal")
    ax.set_xlabel("Length")
    ax.set_ylabel("Depth")
    ax.set_title("Panel layout (top view)")

    if show:
        plt.show()
    return ax


def plot_sun_path(track: pd.DataFrame, ax=None, show: bool = False):
    """
    Plot sun altitude (degrees) over time from calculate_sun_track output,
    shading the hours where the sun is below the horizon.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 4))

    altitude_deg = np.degrees(track["altitude"].values)
    ax.plot(track.index, altitude_deg, color="orange", linewidth=2, label="Sun altitude")
    ax.axhline(0, color="black", linewidth=0.8)
    ax.fill_between(track.index, altitude_deg, 0, where=altitude_deg < 0, color="grey", alpha=0.3)
    ax.set_xlabel("Time (UTC)")
    ax.set_ylabel("Altitude [deg]")
    ax.grid(True)
    ax.legend(loc="upper right")

    if show:
        plt.show()
    return ax
