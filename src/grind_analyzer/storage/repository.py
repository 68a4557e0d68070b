"""Whole-collection JSON storage for calibrations and measurements.

Each collection is read completely, modified in memory and written back as a
unit, most recent record first. Writes are not coordinated across processes;
running several writers against the same data directory is unsupported.
"""

import logging
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from grind_analyzer.core.exceptions import CalibrationInUseError, CalibrationNotFoundError
from .records import Calibration, Measurement

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

CALIBRATIONS_FILE = "calibrations.json"
MEASUREMENTS_FILE = "measurements.json"


class JsonCollection(Generic[RecordT]):
    """An ordered list of records persisted as one JSON array."""

    def __init__(self, path: Path, record_type: type[RecordT]):
        self.path = path
        self._adapter = TypeAdapter(list[record_type])

    def load(self) -> list[RecordT]:
        """Read all records; missing or malformed data yields an empty list."""
        if not self.path.exists():
            return []
        try:
            return self._adapter.validate_json(self.path.read_bytes())
        except (ValidationError, OSError) as e:
            logger.warning("Discarding unreadable collection %s: %s", self.path, e)
            return []

    def save(self, records: list[RecordT]) -> None:
        """Replace the stored collection."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(self._adapter.dump_json(records, indent=2))

    def prepend(self, record: RecordT) -> RecordT:
        """Insert a record at the front of the collection."""
        records = self.load()
        records.insert(0, record)
        self.save(records)
        return record


class RecordStore:
    """Calibration and measurement collections in one data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.calibrations = JsonCollection(self.data_dir / CALIBRATIONS_FILE, Calibration)
        self.measurements = JsonCollection(self.data_dir / MEASUREMENTS_FILE, Measurement)

    def list_calibrations(self) -> list[Calibration]:
        return self.calibrations.load()

    def get_calibration(self, calibration_id: str) -> Calibration:
        """
        Find a calibration by id.

        Raises:
            CalibrationNotFoundError: If no calibration has this id
        """
        for calibration in self.calibrations.load():
            if calibration.id == calibration_id:
                return calibration
        raise CalibrationNotFoundError(
            "Calibration not found", details={"calibration_id": calibration_id}
        )

    def add_calibration(self, calibration: Calibration) -> Calibration:
        logger.info(
            "Saving calibration %s (%s): %.4f um/px",
            calibration.id,
            calibration.name,
            calibration.microns_per_pixel,
        )
        return self.calibrations.prepend(calibration)

    def delete_calibration(self, calibration_id: str) -> None:
        """
        Remove a calibration no measurement refers to.

        Raises:
            CalibrationNotFoundError: If no calibration has this id
            CalibrationInUseError: If saved measurements reference it
        """
        calibrations = self.calibrations.load()
        remaining = [c for c in calibrations if c.id != calibration_id]
        if len(remaining) == len(calibrations):
            raise CalibrationNotFoundError(
                "Calibration not found", details={"calibration_id": calibration_id}
            )

        referencing = [m.id for m in self.measurements.load() if m.calibration_id == calibration_id]
        if referencing:
            raise CalibrationInUseError(
                "Calibration is used by saved measurements",
                details={"calibration_id": calibration_id, "measurement_ids": referencing},
            )

        self.calibrations.save(remaining)
        logger.info("Deleted calibration %s", calibration_id)

    def list_measurements(self) -> list[Measurement]:
        return self.measurements.load()

    def add_measurement(self, measurement: Measurement) -> Measurement:
        logger.info(
            "Saving measurement %s: n=%d, D50=%.1f um",
            measurement.id,
            measurement.sample_size,
            measurement.stats.p50,
        )
        return self.measurements.prepend(measurement)
