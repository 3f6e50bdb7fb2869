import logging

import pandas as pd

from solar_twin.grid_layout import placements_to_dataframe
from solar_twin.logging_config import setup_logging
from solar_twin.scene import build_scene
from solar_twin.solar_position import calculate_sun_track
from solar_twin.twin_config import DEFAULT_FAULT_TABLE, GeoPoint, default_twin_config
from solar_twin.utils import plot_panel_layout, plot_sun_path

_LOGGER = logging.getLogger("solar_twin.run_twin")


if __name__ == "__main__":
    setup_logging(logging.INFO)

    # --- Step 1: Orbit sun with the default frame ---
    cfg = default_twin_config
    scene = build_scene(cfg, DEFAULT_FAULT_TABLE, when=2.5)
    print(placements_to_dataframe(scene.placements).round(2))

    # --- Step 2: Same frame, sun from the ephemeris ---
    munich = GeoPoint(latitude=48.14951, longitude=11.56999, elevation=516)
    geo_cfg = cfg.model_copy(update={"location": munich})
    noon = pd.Timestamp("2024-06-21 11:00", tz="UTC")
    geo_scene = build_scene(geo_cfg, DEFAULT_FAULT_TABLE, when=noon)
    _LOGGER.info("Sun at %s: %s", noon, tuple(round(c, 1) for c in geo_scene.sun))

    # --- Step 3: Previews ---
    track = calculate_sun_track(
        pd.date_range("2024-06-21", periods=96, freq="15min", tz="UTC"),
        munich,
        cfg.sun_distance
    )
    plot_panel_layout(scene.placements, cfg.frame)
    plot_sun_path(track, show=True)
