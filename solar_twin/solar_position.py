import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from pvlib import solarposition

from solar_twin.twin_config import GeoPoint, TwinConfig, coerce_model, require_positive

_LOGGER = logging.getLogger(__name__)

SunPosition = Tuple[float, float, float]
AngleSource = Callable[..., Dict[str, float]]

# ------------------------------
# 1. Solar ephemeris
# ------------------------------


def _as_utc_index(times) -> pd.DatetimeIndex:
    # Naive timestamps are read as UTC
    index = pd.DatetimeIndex(times)
    if index.tz is None:
        return index.tz_localize("UTC")
    return index


def _to_utc(timestamp) -> pd.Timestamp:
    timestamp = pd.Timestamp(timestamp)
    if timestamp.tz is None:
        return timestamp.tz_localize("UTC")
    return timestamp.tz_convert("UTC")


def calculate_sun_angles(
        timestamp: Union[str, datetime, pd.Timestamp],
        latitude: float,
        longitude: float,
        elevation: float = 0.0
    ) -> Dict[str, float]:
    """
    Sun altitude and azimuth for one instant using pvlib's solar position
    algorithm.

    Parameters:
    - timestamp: Anything pandas can parse; naive values are treated as UTC.
    - latitude, longitude (float): Decimal degrees.
    - elevation (float): Observer elevation in meters.

    Returns:
    - dict: ``altitude`` (radians above the horizon, negative at night) and
      ``azimuth`` (radians, clockwise from north).
    """
    times = _as_utc_index([pd.Timestamp(timestamp)])
    solar_pos = solarposition.get_solarposition(
        time=times,
        latitude=latitude,
        longitude=longitude,
        altitude=elevation
    )
    return {
        "altitude": math.radians(float(solar_pos["apparent_elevation"].iloc[0])),
        "azimuth": math.radians(float(solar_pos["azimuth"].iloc[0])),
    }


def angles_to_cartesian(altitude: float, azimuth: float, distance: float) -> SunPosition:
    """
    Place the sun ``distance`` units from the origin, y-up.
    A negative y (sun below the horizon) is returned as is.
    """
    require_positive("distance", distance)
    horizontal = distance * math.cos(altitude)
    return (
        horizontal * math.sin(azimuth),
        distance * math.sin(altitude),
        horizontal * math.cos(azimuth),
    )


def sun_position(
        timestamp: Union[str, datetime, pd.Timestamp],
        location: Union[dict, GeoPoint],
        distance: float,
        angle_source: Optional[AngleSource] = None
    ) -> SunPosition:
    """
    Cartesian sun position for a timestamp and location.

    ``angle_source`` is any callable ``(timestamp, latitude, longitude) ->
    {"altitude", "azimuth"}``; it defaults to :func:`calculate_sun_angles`.
    Errors raised by the source propagate unchanged.
    """
    location = coerce_model(GeoPoint, location)
    require_positive("distance", distance)

    if angle_source is None:
        angles = calculate_sun_angles(
            timestamp, location.latitude, location.longitude, elevation=location.elevation
        )
    else:
        angles = angle_source(timestamp, location.latitude, location.longitude)
    return angles_to_cartesian(angles["altitude"], angles["azimuth"], distance)


def calculate_sun_track(
        times,
        location: Union[dict, GeoPoint],
        distance: float
    ) -> pd.DataFrame:
    """
    Vectorised sun path over many timestamps.

    Returns:
    - pd.DataFrame indexed by UTC time with columns altitude, azimuth
      (radians) and x, y, z.
    """
    location = coerce_model(GeoPoint, location)
    require_positive("distance", distance)

    index = _as_utc_index(times)
    solar_pos = solarposition.get_solarposition(
        time=index,
        latitude=location.latitude,
        longitude=location.longitude,
        altitude=location.elevation
    )
    altitude = np.radians(solar_pos["apparent_elevation"].values)
    azimuth = np.radians(solar_pos["azimuth"].values)

    track = pd.DataFrame(index=index)
    track["altitude"] = altitude
    track["azimuth"] = azimuth
    track["x"] = distance * np.cos(altitude) * np.sin(azimuth)
    track["y"] = distance * np.sin(altitude)
    track["z"] = distance * np.cos(altitude) * np.cos(azimuth)
    return track


# ------------------------------
# 2. Circular orbit
# ------------------------------

def orbit_position(elapsed: float, radius: float, period: float) -> SunPosition:
    """Position on a horizontal circle after ``elapsed`` seconds."""
    require_positive("orbit radius", radius)
    require_positive("orbit period", period)
    angle = elapsed * 2 * math.pi / period
    return (radius * math.cos(angle), 0.0, radius * math.sin(angle))


# ------------------------------
# 3. Interchangeable strategies
# ------------------------------

class EphemerisSun:
    """Sun placed from geolocation and time."""

    def __init__(
            self,
            location: Union[dict, GeoPoint],
            distance: float,
            angle_source: Optional[AngleSource] = None
        ):
        self.location = coerce_model(GeoPoint, location)
        require_positive("distance", distance)
        self.distance = distance
        self.angle_source = angle_source

    def position(self, when=None) -> SunPosition:
        """``when`` is a timestamp; None means now (UTC)."""
        if when is None:
            when = pd.Timestamp.now(tz="UTC")
        return sun_position(when, self.location, self.distance, angle_source=self.angle_source)


class OrbitSun:
    """Sun animated on a fixed circular orbit, used when no location is known."""

    def __init__(
            self,
            radius: float = 100.0,
            period: float = 10.0,
            epoch: Optional[Union[datetime, pd.Timestamp]] = None
        ):
        require_positive("orbit radius", radius)
        require_positive("orbit period", period)
        self.radius = radius
        self.period = period
        self.epoch = None if epoch is None else _to_utc(epoch)

    def position(self, when=None) -> SunPosition:
        """
        ``when`` is elapsed seconds, a timedelta, or a timestamp. Timestamps
        are measured from ``epoch``, or from midnight UTC of their own day
        when no epoch is set. None means the start of the orbit.
        """
        if when is None:
            elapsed = 0.0
        elif isinstance(when, timedelta):
            elapsed = when.total_seconds()
        elif isinstance(when, datetime):
            when = _to_utc(when)
            epoch = self.epoch if self.epoch is not None else when.normalize()
            elapsed = (when - epoch).total_seconds()
        else:
            elapsed = float(when)
        return orbit_position(elapsed, self.radius, self.period)


def select_sun_strategy(
        config: Union[dict, TwinConfig],
        angle_source: Optional[AngleSource] = None
    ) -> Union[EphemerisSun, OrbitSun]:
    """Ephemeris when the config has a location, orbit otherwise."""
    config = coerce_model(TwinConfig, config)
    if config.location is not None:
        _LOGGER.debug("Using ephemeris sun at %s", config.location)
        return EphemerisSun(config.location, config.sun_distance, angle_source=angle_source)
    orbit = config.orbit
    _LOGGER.debug("No location configured, using orbit sun r=%s T=%s", orbit.radius, orbit.period)
    return OrbitSun(orbit.radius, orbit.period, epoch=orbit.epoch)
