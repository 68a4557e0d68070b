"""Application configuration."""

import math
import os
from dataclasses import dataclass
from pathlib import Path

from grind_analyzer.core.exceptions import InvalidInputError


@dataclass
class MeasurementParams:
    """Tunable parameters for particle segmentation and binning."""

    blur_kernel_px: int = 5
    open_kernel_px: int = 3
    min_area_px: float = 8.0
    max_area_px: float = 1_000_000.0
    invert_binary: bool = True
    bin_width_microns: float = 25.0

    def validate(self) -> None:
        """Reject parameters no analysis can run with."""
        bad = {
            name: str(value)
            for name, value in (
                ("min_area_px", self.min_area_px),
                ("max_area_px", self.max_area_px),
                ("bin_width_microns", self.bin_width_microns),
            )
            if not math.isfinite(value)
        }
        if bad:
            raise InvalidInputError("Measurement parameters must be finite numbers", details=bad)
        if self.min_area_px < 0:
            raise InvalidInputError(
                "Minimum particle area cannot be negative",
                details={"min_area_px": self.min_area_px},
            )
        if self.max_area_px < self.min_area_px:
            raise InvalidInputError(
                "Maximum particle area must not be below the minimum",
                details={"min_area_px": self.min_area_px, "max_area_px": self.max_area_px},
            )
        if self.bin_width_microns <= 0:
            raise InvalidInputError(
                "Histogram bin width must be positive",
                details={"bin_width_microns": self.bin_width_microns},
            )


@dataclass
class Thresholds:
    """Fine/coarse classification cut points in microns."""

    fine_microns: float = 200.0
    coarse_microns: float = 700.0

    def validate(self) -> None:
        if not (math.isfinite(self.fine_microns) and math.isfinite(self.coarse_microns)):
            raise InvalidInputError(
                "Fine and coarse thresholds must be finite numbers",
                details={"fine_microns": str(self.fine_microns), "coarse_microns": str(self.coarse_microns)},
            )
        if self.fine_microns <= 0 or self.coarse_microns <= 0:
            raise InvalidInputError(
                "Fine and coarse thresholds must be positive",
                details={"fine_microns": self.fine_microns, "coarse_microns": self.coarse_microns},
            )


# Auto-calibration fallbacks
DEFAULT_DISTANCE_MM = 200.0
FALLBACK_FOCAL_MM = 5.5
FALLBACK_SENSOR_DIAGONAL_MM = 9.0  # between 1/1.7" and 1/1.9" main sensors

MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB
MAX_HISTOGRAM_BINS = 10_000
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/tiff"}

DATA_DIR = Path(os.environ.get("GRIND_ANALYZER_DATA_DIR", Path.home() / ".grind_analyzer"))
