"""Pure geometry helpers shared by calibration and statistics."""

import math
from dataclasses import dataclass
from typing import Sequence

from grind_analyzer.core.exceptions import EmptyInputError

# Diagonal of a 36x24 mm full-frame sensor
FULL_FRAME_DIAGONAL_MM = math.hypot(36.0, 24.0)

_ASPECT_SIDES = {
    "4:3": (4, 3),
    "3:2": (3, 2),
    "16:9": (16, 9),
}


@dataclass(frozen=True)
class Point2D:
    """Image pixel coordinates."""

    x: float
    y: float


def distance(p0: Point2D, p1: Point2D) -> float:
    """Euclidean distance between two points in pixels."""
    return math.hypot(p1.x - p0.x, p1.y - p0.y)


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """
    Linearly interpolated quantile of an already sorted sequence.

    Args:
        sorted_values: Values in ascending order
        q: Quantile in [0, 1]

    Returns:
        Interpolated value between the neighbouring order statistics

    Raises:
        EmptyInputError: If the sequence is empty
    """
    n = len(sorted_values)
    if n == 0:
        raise EmptyInputError("Cannot take a quantile of an empty sequence", details={"q": q})

    idx = (n - 1) * q
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return float(sorted_values[lo])
    return float(sorted_values[lo] + (sorted_values[hi] - sorted_values[lo]) * (idx - lo))


def sensor_diagonal_from_focal_pair(
    actual_focal_mm: float | None, equivalent_focal_mm: float | None
) -> float | None:
    """Infer the sensor diagonal from a focal length and its 35mm equivalent."""
    if not actual_focal_mm or not equivalent_focal_mm:
        return None
    # equivalent = actual * (full_frame_diagonal / sensor_diagonal)
    return actual_focal_mm * (FULL_FRAME_DIAGONAL_MM / equivalent_focal_mm)


def aspect_width_factor(aspect) -> float:
    """Ratio of sensor width to sensor diagonal; unknown aspects count as 4:3."""
    key = getattr(aspect, "value", aspect)
    width, height = _ASPECT_SIDES.get(key, _ASPECT_SIDES["4:3"])
    return width / math.sqrt(width * width + height * height)


def horizontal_fov(sensor_width_mm: float, focal_mm: float) -> float:
    """Horizontal field of view in radians."""
    return 2 * math.atan((sensor_width_mm / 2) / focal_mm)


def scene_width(distance_mm: float, hfov: float) -> float:
    """Physical width covered by the frame at the given subject distance."""
    return 2 * distance_mm * math.tan(hfov / 2)


def equivalent_diameter(area_px: float, microns_per_pixel: float) -> float:
    """Diameter in microns of the circle with the given pixel area."""
    return 2 * math.sqrt(area_px / math.pi) * microns_per_pixel
