"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from grind_analyzer.api.routes import get_store
from grind_analyzer.main import app
from grind_analyzer.processing.calibration import create_two_point_calibration
from grind_analyzer.processing.geometry import Point2D
from grind_analyzer.storage.repository import RecordStore


@pytest.fixture
def store(tmp_path) -> RecordStore:
    return RecordStore(tmp_path / "data")


@pytest.fixture
def calibration(store):
    """A saved ruler calibration of exactly 20 um/px."""
    cal = create_two_point_calibration(
        [Point2D(100, 100), Point2D(100, 600)], real_distance_mm=10, name="Ruler #1"
    )
    return store.add_calibration(cal)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
