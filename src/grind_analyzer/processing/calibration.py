"""Pixel-to-micron calibration: two-point ruler and EXIF/phone optics estimate."""

import logging
import math
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from grind_analyzer.core.config import (
    DEFAULT_DISTANCE_MM,
    FALLBACK_FOCAL_MM,
    FALLBACK_SENSOR_DIAGONAL_MM,
)
from grind_analyzer.core.exceptions import InvalidCalibrationInput
from grind_analyzer.storage.records import Calibration, CalibrationMethod
from .geometry import (
    Point2D,
    aspect_width_factor,
    distance,
    horizontal_fov,
    scene_width,
    sensor_diagonal_from_focal_pair,
)
from .phone_specs import AspectRatio, PhoneLensSpec, PhoneModelSpec

logger = logging.getLogger(__name__)


def _require_finite(message: str, **values) -> None:
    """Reject infinite or NaN inputs; details carry them as text so they stay JSON-safe."""
    bad = {name: str(value) for name, value in values.items() if not math.isfinite(value)}
    if bad:
        raise InvalidCalibrationInput(message, details=bad)


def two_point_scale(points: Sequence[Point2D], real_distance_mm: float) -> tuple[float, float]:
    """
    Scale factor from two picked points a known distance apart.

    Args:
        points: At least two image points; only the first two are used
        real_distance_mm: Real-world distance between the points

    Returns:
        (pixel_distance, microns_per_pixel)

    Raises:
        InvalidCalibrationInput: If points are missing, coincide, or the distance
            is not positive
    """
    if len(points) < 2:
        raise InvalidCalibrationInput(
            "Two points are required for calibration",
            details={"points": len(points)},
        )
    _require_finite(
        "Calibration points must have finite coordinates",
        x0=points[0].x, y0=points[0].y, x1=points[1].x, y1=points[1].y,
    )
    if real_distance_mm is not None:
        _require_finite("Real distance must be a finite number", real_distance_mm=real_distance_mm)
    if real_distance_mm is None or real_distance_mm <= 0:
        raise InvalidCalibrationInput(
            "Real distance must be greater than zero",
            details={"real_distance_mm": real_distance_mm},
        )

    pixel_distance = distance(points[0], points[1])
    if pixel_distance == 0:
        raise InvalidCalibrationInput(
            "Calibration points must not coincide",
            details={"pixel_distance": pixel_distance},
        )

    microns_per_pixel = real_distance_mm * 1000 / pixel_distance
    _require_finite(
        "Calibration points are too far apart",
        pixel_distance=pixel_distance,
        microns_per_pixel=microns_per_pixel,
    )
    return pixel_distance, microns_per_pixel


def create_two_point_calibration(
    points: Sequence[Point2D],
    real_distance_mm: float,
    name: str,
    notes: str | None = None,
) -> Calibration:
    """Build a calibration record from a ruler measurement."""
    pixel_distance, microns_per_pixel = two_point_scale(points, real_distance_mm)
    return Calibration(
        name=name,
        notes=notes,
        microns_per_pixel=microns_per_pixel,
        pixel_distance=pixel_distance,
        real_distance_mm=real_distance_mm,
        method=CalibrationMethod.TWO_POINT,
    )


@dataclass
class AutoCalibrationResult:
    """Optical estimate of the image scale. Approximate; see ``warnings``."""

    focal_length_mm: float
    sensor_diagonal_mm: float
    sensor_width_mm: float
    subject_distance_mm: float
    scene_width_mm: float
    image_width_px: int
    microns_per_pixel: float
    model: str | None = None
    lens: str | None = None
    equivalent_35mm_focal_length_mm: float | None = None
    warnings: list[str] = field(default_factory=list)

    def to_calibration(self, name: str, notes: str | None = None) -> Calibration:
        """Wrap the estimate into a calibration record for saving."""
        return Calibration(
            name=name,
            notes=notes,
            microns_per_pixel=self.microns_per_pixel,
            pixel_distance=float(self.image_width_px),
            real_distance_mm=self.scene_width_mm,
            method=CalibrationMethod.AUTO,
            warnings=list(self.warnings),
        )


def _positive(value) -> float | None:
    """Usable positive number or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value > 0 and value != float("inf") else None


def estimate_microns_per_pixel(
    image_width_px: int,
    exif: Mapping | None = None,
    distance_cm: float | None = None,
    phone: PhoneModelSpec | None = None,
    lens: PhoneLensSpec | None = None,
) -> AutoCalibrationResult:
    """
    Estimate the image scale from camera optics.

    EXIF values win over the selected phone lens, which wins over generic
    defaults. Every fallback taken adds a warning to the result; missing
    metadata never makes the estimate fail.

    Args:
        image_width_px: Width of the photo in pixels
        exif: Tags as returned by ``read_exif``
        distance_cm: Operator-measured camera-to-subject distance
        phone: Selected phone model, used when EXIF is incomplete
        lens: Selected lens of that phone

    Returns:
        AutoCalibrationResult with the estimate and its warnings

    Raises:
        InvalidCalibrationInput: If the image width or operator distance is not
            positive
    """
    if not image_width_px or image_width_px <= 0:
        raise InvalidCalibrationInput(
            "Image width must be positive",
            details={"image_width_px": image_width_px},
        )
    if distance_cm is not None:
        _require_finite("Subject distance must be a finite number", distance_cm=distance_cm)
    if distance_cm is not None and distance_cm <= 0:
        raise InvalidCalibrationInput(
            "Subject distance must be greater than zero",
            details={"distance_cm": distance_cm},
        )

    exif = exif or {}
    warnings = []

    exif_focal = _positive(exif.get("FocalLength"))
    exif_equiv = _positive(exif.get("FocalLengthIn35mmFilm"))
    exif_distance_m = _positive(exif.get("SubjectDistance"))

    # Step 1: actual focal length
    if exif_focal is not None:
        focal_mm = exif_focal
    elif lens is not None:
        focal_mm = lens.focal_length_mm
        warnings.append(
            f"FocalLength missing from EXIF; used {focal_mm} mm from the selected lens."
        )
    else:
        focal_mm = None
        warnings.append(
            f"FocalLength missing from EXIF and no lens selected; assumed {FALLBACK_FOCAL_MM} mm."
        )

    # Step 2: 35mm equivalent
    if exif_equiv is not None:
        equiv_mm = exif_equiv
    elif lens is not None:
        equiv_mm = lens.equivalent_35mm_focal_length_mm
        warnings.append(
            f"FocalLengthIn35mmFilm missing from EXIF; used {equiv_mm} mm from the selected lens."
        )
    else:
        equiv_mm = None
        warnings.append("FocalLengthIn35mmFilm missing from EXIF and no lens selected.")

    # Step 3: subject distance
    if exif_distance_m is not None:
        distance_mm = exif_distance_m * 1000
    elif distance_cm is not None:
        distance_mm = distance_cm * 10
        warnings.append(
            f"SubjectDistance missing from EXIF; used the entered {distance_mm / 10:g} cm."
        )
    else:
        distance_mm = DEFAULT_DISTANCE_MM
        warnings.append(
            f"SubjectDistance missing from EXIF; assumed {DEFAULT_DISTANCE_MM / 10:g} cm (adjustable)."
        )

    # Step 4: sensor diagonal
    sensor_diagonal_mm = sensor_diagonal_from_focal_pair(focal_mm, equiv_mm)
    if sensor_diagonal_mm is None:
        sensor_diagonal_mm = FALLBACK_SENSOR_DIAGONAL_MM
        warnings.append(
            f"Incomplete focal data: assumed a typical {FALLBACK_SENSOR_DIAGONAL_MM} mm sensor diagonal."
        )

    if focal_mm is None:
        focal_mm = FALLBACK_FOCAL_MM

    # Steps 5-8: sensor width, field of view, scene width, scale
    aspect = lens.aspect_ratio if lens is not None else AspectRatio.FOUR_THREE
    sensor_width_mm = sensor_diagonal_mm * aspect_width_factor(aspect)
    hfov = horizontal_fov(sensor_width_mm, focal_mm)
    scene_width_mm = scene_width(distance_mm, hfov)
    microns_per_pixel = scene_width_mm * 1000 / image_width_px
    _require_finite(
        "Image scale could not be estimated",
        scene_width_mm=scene_width_mm,
        microns_per_pixel=microns_per_pixel,
    )

    model = exif.get("Model") or exif.get("Make") or (phone.label if phone else None)

    if warnings:
        logger.warning("Auto-calibration used %d fallback(s): %s", len(warnings), "; ".join(warnings))

    return AutoCalibrationResult(
        focal_length_mm=focal_mm,
        sensor_diagonal_mm=sensor_diagonal_mm,
        sensor_width_mm=sensor_width_mm,
        subject_distance_mm=distance_mm,
        scene_width_mm=scene_width_mm,
        image_width_px=int(image_width_px),
        microns_per_pixel=microns_per_pixel,
        model=str(model) if model else None,
        lens=lens.name if lens is not None else None,
        equivalent_35mm_focal_length_mm=equiv_mm,
        warnings=warnings,
    )
