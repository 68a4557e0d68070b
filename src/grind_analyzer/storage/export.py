"""CSV export of saved measurements."""

import csv
import io
from typing import Iterable

from .records import Calibration, Measurement

CSV_HEADER = [
    "date",
    "grinder",
    "setting",
    "coffee",
    "calibration_name",
    "microns_per_pixel",
    "n",
    "mean",
    "std",
    "D10",
    "D50",
    "D90",
    "span",
    "cov",
    "fine_pct",
    "coarse_pct",
    "bin_width",
    "min_area_px",
    "max_area_px",
    "blur",
    "open",
    "invert",
]


def measurement_row(measurement: Measurement, calibration_name: str = "") -> list:
    """Flatten a measurement into CSV column order."""
    stats = measurement.stats
    params = measurement.params
    return [
        measurement.date_created.isoformat(),
        measurement.grinder or "",
        measurement.setting or "",
        measurement.coffee or "",
        calibration_name,
        measurement.microns_per_pixel,
        measurement.sample_size,
        stats.mean,
        stats.std_dev,
        stats.p10,
        stats.p50,
        stats.p90,
        stats.span,
        stats.coefficient_of_variation,
        measurement.fine_pct,
        measurement.coarse_pct,
        params.bin_width_microns,
        params.min_area_px,
        params.max_area_px,
        params.blur_kernel_px,
        params.open_kernel_px,
        str(params.invert_binary).lower(),
    ]


def measurements_to_csv(
    measurements: Iterable[Measurement], calibrations: Iterable[Calibration] = ()
) -> str:
    """
    Render measurements as CSV, header first.

    Measurements whose calibration no longer exists export an empty calibration
    name; their copied scale is still exported.
    """
    names = {c.id: c.name for c in calibrations}

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for measurement in measurements:
        writer.writerow(measurement_row(measurement, names.get(measurement.calibration_id, "")))
    return buffer.getvalue()
