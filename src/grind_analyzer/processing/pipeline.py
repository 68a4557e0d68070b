"""Main measurement pipeline orchestration."""

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from grind_analyzer.core.config import MeasurementParams, Thresholds
from grind_analyzer.core.exceptions import NoParticlesDetectedError
from grind_analyzer.storage.records import Calibration, Measurement
from grind_analyzer.storage.repository import RecordStore
from .geometry import equivalent_diameter
from .segmentation import ParticleSegmenter
from .statistics import DistributionStats, HistogramBin, build_histogram, classify, compute_stats

logger = logging.getLogger(__name__)

EMPTY_RESULT_MESSAGE = (
    "No particles detected. Adjust the parameters or use a photo with better contrast."
)


@dataclass
class AnalysisResult:
    """Complete analysis of one photo."""

    calibration: Calibration
    params: MeasurementParams
    thresholds: Thresholds
    diameters_um: list[float]
    stats: DistributionStats
    histogram: list[HistogramBin]
    fine_pct: float
    coarse_pct: float
    processing_time_ms: int
    rejected_count: int = 0
    messages: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.stats.count == 0


def filter_areas(areas: list[float], min_area_px: float, max_area_px: float) -> list[float]:
    """Keep areas inside ``[min_area_px, max_area_px]``."""
    return [a for a in areas if min_area_px <= a <= max_area_px]


class MeasurementPipeline:
    """Orchestrates segmentation, unit conversion and statistics for a saved calibration."""

    def __init__(self, store: RecordStore, segmenter: ParticleSegmenter | None = None):
        self.store = store
        self.segmenter = segmenter or ParticleSegmenter()

    def analyze(
        self,
        image: np.ndarray,
        calibration_id: str,
        params: MeasurementParams | None = None,
        thresholds: Thresholds | None = None,
    ) -> AnalysisResult:
        """
        Run the measurement pipeline on an image.

        Args:
            image: Photo of the grounds
            calibration_id: Id of a stored calibration
            params: Segmentation and binning parameters
            thresholds: Fine/coarse cut points

        Returns:
            AnalysisResult; ``is_empty`` is set when no particle survives filtering

        Raises:
            CalibrationNotFoundError: If the calibration does not exist
            InvalidInputError: If params or thresholds are unusable
        """
        params = params or MeasurementParams()
        thresholds = thresholds or Thresholds()
        params.validate()
        thresholds.validate()

        start_time = time.time()

        # Step 1: Resolve the scale
        calibration = self.store.get_calibration(calibration_id)

        # Step 2: Segment particles
        areas = self.segmenter.segment(image, params)

        # Step 3: Filter by area and convert to micron diameters
        kept = filter_areas(areas, params.min_area_px, params.max_area_px)
        diameters = [equivalent_diameter(a, calibration.microns_per_pixel) for a in kept]

        # Step 4: Calculate statistics
        stats = compute_stats(diameters, params.bin_width_microns)
        histogram = build_histogram(diameters, params.bin_width_microns)
        fine_pct, coarse_pct = classify(diameters, thresholds)

        processing_time_ms = int((time.time() - start_time) * 1000)

        messages = []
        if not diameters:
            messages.append(EMPTY_RESULT_MESSAGE)
            logger.info("No particles left after filtering %d contours", len(areas))
        else:
            logger.info(
                "Analyzed %d particles (D50=%.1f um) in %d ms",
                stats.count,
                stats.p50,
                processing_time_ms,
            )

        return AnalysisResult(
            calibration=calibration,
            params=params,
            thresholds=thresholds,
            diameters_um=diameters,
            stats=stats,
            histogram=histogram,
            fine_pct=fine_pct,
            coarse_pct=coarse_pct,
            processing_time_ms=processing_time_ms,
            rejected_count=len(areas) - len(kept),
            messages=messages,
        )

    def save(
        self,
        result: AnalysisResult,
        grinder: str | None = None,
        setting: str | None = None,
        coffee: str | None = None,
    ) -> Measurement:
        """
        Persist an analysis as a measurement record.

        Raises:
            NoParticlesDetectedError: If the analysis found no particles
        """
        if result.is_empty:
            raise NoParticlesDetectedError()

        measurement = Measurement(
            grinder=grinder or None,
            setting=setting or None,
            coffee=coffee or None,
            calibration_id=result.calibration.id,
            microns_per_pixel=result.calibration.microns_per_pixel,
            thresholds=result.thresholds,
            params=result.params,
            stats=result.stats,
            sample_size=result.stats.count,
            fine_pct=result.fine_pct,
            coarse_pct=result.coarse_pct,
        )
        return self.store.add_measurement(measurement)
