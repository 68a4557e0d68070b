"""Tests for the record store and CSV export."""

import csv
import io

import pytest

from grind_analyzer.core.config import MeasurementParams, Thresholds
from grind_analyzer.core.exceptions import CalibrationInUseError, CalibrationNotFoundError
from grind_analyzer.processing.calibration import create_two_point_calibration
from grind_analyzer.processing.geometry import Point2D
from grind_analyzer.processing.statistics import compute_stats
from grind_analyzer.storage.export import CSV_HEADER, measurements_to_csv
from grind_analyzer.storage.records import Measurement
from grind_analyzer.storage.repository import CALIBRATIONS_FILE, MEASUREMENTS_FILE


def make_calibration(name: str, real_distance_mm: float = 10):
    return create_two_point_calibration(
        [Point2D(0, 0), Point2D(0, 500)], real_distance_mm=real_distance_mm, name=name
    )


def make_measurement(calibration, grinder: str = "Comandante") -> Measurement:
    values = [100.0, 150.0, 150.0, 200.0, 800.0]
    return Measurement(
        grinder=grinder,
        setting="24 clicks",
        coffee="Huila washed",
        calibration_id=calibration.id,
        microns_per_pixel=calibration.microns_per_pixel,
        thresholds=Thresholds(),
        params=MeasurementParams(),
        stats=compute_stats(values, 25),
        sample_size=len(values),
        fine_pct=40.0,
        coarse_pct=20.0,
    )


class TestRecordStore:
    """Tests for whole-collection JSON persistence."""

    def test_missing_files_are_empty(self, store) -> None:
        assert store.list_calibrations() == []
        assert store.list_measurements() == []

    def test_most_recent_first(self, store) -> None:
        first = store.add_calibration(make_calibration("first"))
        second = store.add_calibration(make_calibration("second"))
        assert [c.id for c in store.list_calibrations()] == [second.id, first.id]

    def test_calibration_round_trip(self, store) -> None:
        cal = store.add_calibration(make_calibration("ruler"))
        assert store.get_calibration(cal.id).model_dump() == cal.model_dump()

    def test_measurement_round_trip(self, store, calibration) -> None:
        measurement = store.add_measurement(make_measurement(calibration))
        loaded = store.list_measurements()[0]
        assert loaded.model_dump() == measurement.model_dump()
        assert loaded.stats.p90 == pytest.approx(560.0)

    @pytest.mark.parametrize("content", ["not json", '{"id": 1}', '[{"name": "no scale"}]'])
    def test_corrupt_collection_resets_to_empty(self, store, content) -> None:
        store.data_dir.mkdir(parents=True, exist_ok=True)
        (store.data_dir / CALIBRATIONS_FILE).write_text(content)
        (store.data_dir / MEASUREMENTS_FILE).write_text(content)

        assert store.list_calibrations() == []
        assert store.list_measurements() == []

    def test_unknown_calibration(self, store) -> None:
        with pytest.raises(CalibrationNotFoundError):
            store.get_calibration("nope")

    def test_delete_calibration(self, store) -> None:
        keep = store.add_calibration(make_calibration("keep"))
        drop = store.add_calibration(make_calibration("drop"))

        store.delete_calibration(drop.id)
        assert [c.id for c in store.list_calibrations()] == [keep.id]

    def test_delete_missing_calibration(self, store) -> None:
        with pytest.raises(CalibrationNotFoundError):
            store.delete_calibration("nope")

    def test_delete_referenced_calibration_is_refused(self, store, calibration) -> None:
        measurement = store.add_measurement(make_measurement(calibration))

        with pytest.raises(CalibrationInUseError) as exc_info:
            store.delete_calibration(calibration.id)
        assert exc_info.value.details["measurement_ids"] == [measurement.id]
        assert [c.id for c in store.list_calibrations()] == [calibration.id]


class TestCsvExport:
    """Tests for the measurement history export."""

    def test_header_only_when_empty(self) -> None:
        assert measurements_to_csv([]) == ",".join(CSV_HEADER) + "\n"

    def test_one_row_per_measurement(self, calibration) -> None:
        measurements = [make_measurement(calibration, "A"), make_measurement(calibration, "B")]
        rows = list(csv.DictReader(io.StringIO(measurements_to_csv(measurements, [calibration]))))

        assert [r["grinder"] for r in rows] == ["A", "B"]
        row = rows[0]
        assert row["calibration_name"] == "Ruler #1"
        assert float(row["microns_per_pixel"]) == 20.0
        assert row["n"] == "5"
        assert float(row["D50"]) == 150.0
        assert float(row["fine_pct"]) == 40.0
        assert row["blur"] == "5"
        assert row["invert"] == "true"

    def test_deleted_calibration_exports_blank_name(self, calibration) -> None:
        rows = list(csv.DictReader(io.StringIO(measurements_to_csv([make_measurement(calibration)]))))
        assert rows[0]["calibration_name"] == ""
        assert float(rows[0]["microns_per_pixel"]) == 20.0

    def test_text_fields_are_quoted(self, calibration) -> None:
        measurement = make_measurement(calibration, grinder="Niche, Zero")
        rows = list(csv.reader(io.StringIO(measurements_to_csv([measurement]))))
        assert rows[1][1] == "Niche, Zero"
        assert len(rows[1]) == len(CSV_HEADER)
