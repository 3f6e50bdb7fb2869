# Description: Configuration models for the solar twin
"""
Solar Twin Configuration
    FrameSpec: outer dimensions of the mounting frame (length, depth, height).
    PanelSpec: requested dimensions of a single panel before gap adjustment.
    GeoPoint: latitude/longitude in decimal degrees, elevation in meters.
    OrbitSpec: radius and period (seconds) of the animated circular sun orbit,
        plus an optional epoch that timestamps are measured from.
    TwinConfig: everything a scene needs, including the optional location
        that switches the sun from the orbit to the solar ephemeris.
"""

import math
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from solar_twin.exceptions import InvalidDimension


class FrameSpec(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    length: float = Field(..., gt=0)
    depth: float = Field(..., gt=0, alias="breadth")
    height: float = Field(..., gt=0)


class PanelSpec(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    length: float = Field(..., gt=0)
    depth: float = Field(..., gt=0, alias="breadth")
    height: float = Field(..., gt=0)


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation: float = Field(0.0, description="Elevation in meters above sea level, negative below it")


class OrbitSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    radius: float = Field(100.0, gt=0)
    period: float = Field(10.0, gt=0, description="Seconds per full revolution")
    epoch: Optional[datetime] = Field(
        None, description="Orbit start for timestamp input; None starts at midnight UTC of that day"
    )


class TwinConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame: FrameSpec
    panel: PanelSpec
    panel_gap: float = Field(1.0, gt=0)
    panel_offset: Optional[float] = Field(
        0.5, description="Vertical centre of every panel; None uses half the panel height"
    )
    height_from_ground: float = Field(3.0, ge=0)
    sun_intensity: float = Field(25.0, ge=0)
    sun_distance: float = Field(300.0, gt=0)
    location: Optional[GeoPoint] = None
    orbit: OrbitSpec = OrbitSpec()

    @field_validator("frame", "panel", mode="before")
    @classmethod
    def coerce_sequence(cls, v):
        # [length, depth, height], the order the dimension inputs are entered in
        if isinstance(v, (list, tuple)):
            length, depth, height = v
            return {"length": length, "depth": depth, "height": height}
        return v


def require_positive(name: str, value: float) -> float:
    """Raise InvalidDimension unless ``value`` is finite and strictly positive."""
    if not (math.isfinite(value) and value > 0):
        raise InvalidDimension(f"{name} must be positive, got {value!r}")
    return value


def coerce_model(model_cls, value: Union[dict, BaseModel]):
    """
    Return ``value`` as an instance of ``model_cls``.

    Dicts are validated; validation failures surface as InvalidDimension so
    callers only ever see the core's error taxonomy.
    """
    if isinstance(value, model_cls):
        return value
    try:
        if isinstance(value, BaseModel):
            return model_cls.model_validate(value.model_dump())
        return model_cls.model_validate(value)
    except ValidationError as exc:
        raise InvalidDimension(f"Invalid {model_cls.__name__}: {exc}") from exc


# Optional: default config instance
default_twin_config = TwinConfig(
    frame=FrameSpec(length=50, depth=50, height=5),
    panel=PanelSpec(length=10, depth=10, height=3),
    height_from_ground=3,
    sun_intensity=25,
)

# One flag per slot, row-major. Slot 16 is the known faulty panel.
DEFAULT_FAULT_TABLE = tuple(i == 16 for i in range(25))
