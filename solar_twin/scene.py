import logging
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from solar_twin.grid_layout import PanelPlacement, count_faulty, layout_panels
from solar_twin.solar_position import AngleSource, select_sun_strategy
from solar_twin.twin_config import TwinConfig, coerce_model

_LOGGER = logging.getLogger(__name__)

# Cover sits just above the frame, as thick as one unit
GLASS_OFFSET = 5.0
GLASS_THICKNESS = 1.0


class Box(BaseModel):
    """Axis-aligned box centred at ``center``; size is (length, height, depth)."""
    model_config = ConfigDict(frozen=True)

    center: Tuple[float, float, float]
    size: Tuple[float, float, float]


class SceneDescription(BaseModel):
    """
    Everything a renderer needs to draw one frame of the twin.

    Panel and box coordinates are relative to the mount origin, which is
    raised ``mount_height`` above the ground. The sun is in world coordinates.
    """
    model_config = ConfigDict(frozen=True)

    frame_box: Box
    glass_surface: Box
    mount_height: float
    placements: List[PanelPlacement]
    sun: Tuple[float, float, float]
    sun_intensity: float
    faulty_count: int


def build_scene(
        config: Union[dict, TwinConfig],
        faults: Sequence[bool],
        when=None,
        max_count: Optional[int] = None,
        angle_source: Optional[AngleSource] = None
    ) -> SceneDescription:
    """
    Compose the panel layout and the sun for one configuration.

    Parameters:
    - config (dict or TwinConfig): Scene configuration.
    - faults (Sequence[bool]): Row-major fault flags.
    - when: Timestamp for the ephemeris sun; elapsed seconds or a timestamp for the orbit sun.
    - max_count (int): Panel cap; defaults to the fault table length (at least 1).
    - angle_source: Optional replacement for the pvlib angle calculation.

    Returns:
    - SceneDescription
    """
    config = coerce_model(TwinConfig, config)
    if max_count is None:
        # An empty table still lays out a frame-only scene
        max_count = max(len(faults), 1)

    placements = layout_panels(
        config.frame,
        config.panel,
        max_count,
        faults,
        gap=config.panel_gap,
        panel_offset=config.panel_offset
    )
    sun = select_sun_strategy(config, angle_source=angle_source).position(when)

    frame = config.frame
    scene = SceneDescription(
        frame_box=Box(center=(0.0, 0.0, 0.0), size=(frame.length, frame.height, frame.depth)),
        glass_surface=Box(
            center=(0.0, GLASS_OFFSET, 0.0),
            size=(frame.length, GLASS_THICKNESS, frame.depth)
        ),
        mount_height=config.height_from_ground,
        placements=placements,
        sun=sun,
        sun_intensity=config.sun_intensity,
        faulty_count=count_faulty(placements)
    )
    _LOGGER.info(
        "Scene built: %d panels (%d faulty), sun at (%.1f, %.1f, %.1f)",
        len(placements), scene.faulty_count, *sun
    )
    return scene
