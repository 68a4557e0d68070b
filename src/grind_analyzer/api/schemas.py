"""Pydantic schemas for API request/response models."""

from pydantic import BaseModel, Field

from grind_analyzer.processing.phone_specs import AspectRatio
from grind_analyzer.storage.records import Calibration, Measurement


class Coordinates(BaseModel):
    """2D coordinates in image pixels."""

    x: float
    y: float


class TwoPointCalibrationRequest(BaseModel):
    """Ruler calibration from two picked points."""

    points: list[Coordinates] = Field(description="Picked points; the first two are used")
    real_distance_mm: float = Field(description="Real distance between the points in millimeters")
    name: str = Field(default="Ruler #1", min_length=1)
    notes: str | None = None
    save: bool = Field(default=True, description="Store the calibration for later analyses")


class TwoPointCalibrationResponse(BaseModel):
    """Result of a ruler calibration."""

    pixel_distance: float
    microns_per_pixel: float
    calibration: Calibration
    saved: bool


class AutoCalibrationResponse(BaseModel):
    """Optical scale estimate; lower confidence than a ruler calibration."""

    model: str | None = None
    lens: str | None = None
    focal_length_mm: float
    equivalent_35mm_focal_length_mm: float | None = None
    sensor_diagonal_mm: float
    sensor_width_mm: float
    subject_distance_mm: float
    scene_width_mm: float
    image_width_px: int
    microns_per_pixel: float
    warnings: list[str] = Field(description="Fallbacks taken because EXIF data was missing")
    calibration: Calibration | None = Field(default=None, description="Saved record, if requested")


class PhoneLensInfo(BaseModel):
    """A phone camera lens."""

    name: str
    focal_length_mm: float
    equivalent_35mm_focal_length_mm: float
    aspect_ratio: AspectRatio


class PhoneModelInfo(BaseModel):
    """A phone model from the reference table."""

    brand: str
    model: str
    year: int | None = None
    lenses: list[PhoneLensInfo]


class DistributionStatsInfo(BaseModel):
    """Diameter distribution summary in microns."""

    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    p10: float = Field(description="D10")
    p50: float = Field(description="D50 (median)")
    p90: float = Field(description="D90")
    mode_bin_center: float
    span: float = Field(description="(D90 - D10) / D50")
    coefficient_of_variation: float = Field(description="Standard deviation divided by mean")


class HistogramBinInfo(BaseModel):
    """One histogram bar."""

    x0: float
    x1: float
    mid: float
    count: int


class AnalysisResponse(BaseModel):
    """Complete analysis response."""

    success: bool
    empty: bool = Field(description="True when no particles were detected")
    messages: list[str] = Field(default_factory=list)
    processing_time_ms: int
    calibration_id: str
    microns_per_pixel: float
    sample_size: int
    rejected_count: int = Field(description="Contours outside the area bounds")
    stats: DistributionStatsInfo
    histogram: list[HistogramBinInfo]
    fine_pct: float
    coarse_pct: float
    diameters_um: list[float]
    measurement: Measurement | None = None


class ErrorDetail(BaseModel):
    """Error response detail."""

    code: str
    message: str
    details: dict = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: ErrorDetail
