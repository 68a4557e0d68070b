"""Persisted calibration and measurement records."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from grind_analyzer.core.config import MeasurementParams, Thresholds
from grind_analyzer.processing.statistics import DistributionStats


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CalibrationMethod(str, Enum):
    """How a calibration's scale was obtained."""

    TWO_POINT = "two_point"
    AUTO = "auto"


class Calibration(BaseModel):
    """A saved pixel-to-micron scale."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(default_factory=_new_id)
    name: str
    date_created: datetime = Field(default_factory=_now)
    notes: str | None = None
    microns_per_pixel: float = Field(gt=0)
    pixel_distance: float = Field(gt=0)
    real_distance_mm: float = Field(gt=0)
    method: CalibrationMethod = CalibrationMethod.TWO_POINT
    warnings: list[str] = Field(default_factory=list)


class Measurement(BaseModel):
    """A saved grind analysis."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(default_factory=_new_id)
    date_created: datetime = Field(default_factory=_now)
    grinder: str | None = None
    setting: str | None = None
    coffee: str | None = None
    calibration_id: str
    # Copied from the calibration so the record stays valid on its own
    microns_per_pixel: float = Field(gt=0)
    thresholds: Thresholds
    params: MeasurementParams
    stats: DistributionStats
    sample_size: int = Field(ge=0)
    fine_pct: float
    coarse_pct: float
