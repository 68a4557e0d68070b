"""API endpoint definitions."""

import logging
from dataclasses import asdict

import cv2
import numpy as np
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

from grind_analyzer.core.config import (
    ALLOWED_CONTENT_TYPES,
    DATA_DIR,
    MAX_FILE_SIZE,
    MeasurementParams,
    Thresholds,
)
from grind_analyzer.core.exceptions import (
    GrindAnalysisError,
    ImageFormatError,
    ImageTooLargeError,
    InvalidInputError,
)
from grind_analyzer.processing.calibration import (
    create_two_point_calibration,
    estimate_microns_per_pixel,
)
from grind_analyzer.processing.exif import read_exif
from grind_analyzer.processing.geometry import Point2D
from grind_analyzer.processing.phone_specs import PHONE_SPECS, find_lens, list_brands
from grind_analyzer.processing.pipeline import MeasurementPipeline
from grind_analyzer.storage.export import measurements_to_csv
from grind_analyzer.storage.records import Calibration, Measurement
from grind_analyzer.storage.repository import RecordStore
from .schemas import (
    AnalysisResponse,
    AutoCalibrationResponse,
    DistributionStatsInfo,
    ErrorDetail,
    ErrorResponse,
    HistogramBinInfo,
    PhoneLensInfo,
    PhoneModelInfo,
    TwoPointCalibrationRequest,
    TwoPointCalibrationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def get_store() -> RecordStore:
    """Record store backed by the configured data directory."""
    return RecordStore(DATA_DIR)


def _http_error(e: Exception) -> HTTPException:
    """Convert an exception into an HTTP error with an ErrorDetail body."""
    if isinstance(e, GrindAnalysisError):
        error_detail = ErrorDetail(
            code=e.code,
            message=e.message,
            details=e.details,
            suggestions=getattr(e, "suggestions", []),
        )
        return HTTPException(status_code=e.status_code, detail=error_detail.model_dump())

    logger.exception("Unexpected error")
    error_detail = ErrorDetail(code="INTERNAL_ERROR", message=str(e))
    return HTTPException(status_code=500, detail=error_detail.model_dump())


async def validate_and_load_image(file: UploadFile) -> tuple[bytes, np.ndarray]:
    """Validate uploaded file and decode it; returns raw bytes and the OpenCV image."""
    # Check content type
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ImageFormatError(f"Unsupported format: {file.content_type}")

    # Read file in chunks to check size
    chunks = []
    total_size = 0

    while chunk := await file.read(1024 * 1024):  # 1MB chunks
        total_size += len(chunk)
        if total_size > MAX_FILE_SIZE:
            raise ImageTooLargeError(f"File exceeds {MAX_FILE_SIZE // (1024*1024)}MB limit")
        chunks.append(chunk)

    file_bytes = b"".join(chunks)
    nparr = np.frombuffer(file_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if image is None:
        raise ImageFormatError("Could not decode image data")

    return file_bytes, image


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "grind-analyzer"}


@router.get("/phones", response_model=list[PhoneModelInfo])
async def list_phones(brand: str | None = None):
    """Reference optics for phones, optionally limited to one brand."""
    return [
        PhoneModelInfo(
            brand=spec.brand,
            model=spec.model,
            year=spec.year,
            lenses=[PhoneLensInfo(**asdict(lens)) for lens in spec.lenses],
        )
        for spec in PHONE_SPECS
        if brand is None or spec.brand == brand
    ]


@router.get("/phones/brands", response_model=list[str])
async def list_phone_brands():
    return list_brands()


@router.post(
    "/calibrations/two-point", response_model=TwoPointCalibrationResponse, responses=ERROR_RESPONSES
)
async def calibrate_two_point(
    request: TwoPointCalibrationRequest, store: RecordStore = Depends(get_store)
):
    """Calibrate from two points on a ruler and the real distance between them."""
    try:
        points = [Point2D(p.x, p.y) for p in request.points]
        calibration = create_two_point_calibration(
            points, request.real_distance_mm, name=request.name, notes=request.notes
        )
        if request.save:
            store.add_calibration(calibration)

        return TwoPointCalibrationResponse(
            pixel_distance=calibration.pixel_distance,
            microns_per_pixel=calibration.microns_per_pixel,
            calibration=calibration,
            saved=request.save,
        )
    except Exception as e:
        raise _http_error(e)


@router.post("/calibrations/auto", response_model=AutoCalibrationResponse, responses=ERROR_RESPONSES)
async def calibrate_auto(
    image: UploadFile = File(..., description="Photo taken with the phone to calibrate"),
    brand: str | None = Form(default=None, description="Phone brand, used when EXIF is incomplete"),
    model: str | None = Form(default=None, description="Phone model from the reference table"),
    lens: str | None = Form(default=None, description="Lens name; main camera when omitted"),
    distance_cm: float | None = Form(default=None, gt=0, description="Camera to grounds distance"),
    name: str = Form(default="Auto (EXIF)"),
    notes: str | None = Form(default=None),
    save: bool = Form(default=False),
    store: RecordStore = Depends(get_store),
):
    """
    Estimate the scale from the photo's EXIF data and phone optics.

    The estimate is approximate; every fallback taken is listed in ``warnings``.
    """
    try:
        file_bytes, img = await validate_and_load_image(image)
        exif = await run_in_threadpool(read_exif, file_bytes)

        phone = selected_lens = None
        if brand and model:
            found = find_lens(brand, model, lens)
            if found is None:
                raise InvalidInputError(
                    "Unknown phone or lens",
                    details={"brand": brand, "model": model, "lens": lens},
                )
            phone, selected_lens = found

        result = estimate_microns_per_pixel(
            image_width_px=img.shape[1],
            exif=exif,
            distance_cm=distance_cm,
            phone=phone,
            lens=selected_lens,
        )

        calibration = None
        if save:
            calibration = store.add_calibration(result.to_calibration(name, notes))

        return AutoCalibrationResponse(**asdict(result), calibration=calibration)
    except Exception as e:
        raise _http_error(e)


@router.get("/calibrations", response_model=list[Calibration])
async def list_calibrations(store: RecordStore = Depends(get_store)):
    """Saved calibrations, most recent first."""
    return store.list_calibrations()


@router.get("/calibrations/{calibration_id}", response_model=Calibration, responses=ERROR_RESPONSES)
async def get_calibration(calibration_id: str, store: RecordStore = Depends(get_store)):
    try:
        return store.get_calibration(calibration_id)
    except Exception as e:
        raise _http_error(e)


@router.delete("/calibrations/{calibration_id}", status_code=204, responses=ERROR_RESPONSES)
async def delete_calibration(calibration_id: str, store: RecordStore = Depends(get_store)):
    """Delete a calibration that no saved measurement uses."""
    try:
        store.delete_calibration(calibration_id)
    except Exception as e:
        raise _http_error(e)
    return Response(status_code=204)


@router.post("/measurements/analyze", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze_grounds(
    image: UploadFile = File(..., description="Photo of ground coffee spread on a contrasting surface"),
    calibration_id: str = Form(..., description="Saved calibration to convert pixels to microns"),
    blur_kernel_px: int = Form(default=MeasurementParams.blur_kernel_px, ge=1),
    open_kernel_px: int = Form(default=MeasurementParams.open_kernel_px, ge=1),
    min_area_px: float = Form(default=MeasurementParams.min_area_px, ge=0),
    max_area_px: float = Form(default=MeasurementParams.max_area_px, gt=0),
    invert_binary: bool = Form(default=MeasurementParams.invert_binary),
    bin_width_microns: float = Form(default=MeasurementParams.bin_width_microns, gt=0),
    fine_microns: float = Form(default=Thresholds.fine_microns, gt=0),
    coarse_microns: float = Form(default=Thresholds.coarse_microns, gt=0),
    grinder: str | None = Form(default=None),
    setting: str | None = Form(default=None),
    coffee: str | None = Form(default=None),
    save: bool = Form(default=False, description="Store the result in the history"),
    store: RecordStore = Depends(get_store),
):
    """
    Measure the particle-size distribution of the grounds in an uploaded photo.

    A photo with no detectable particles is not an error: the response has
    ``empty`` set and explains what to adjust. Saving such a result is refused.
    """
    try:
        _, img = await validate_and_load_image(image)

        params = MeasurementParams(
            blur_kernel_px=blur_kernel_px,
            open_kernel_px=open_kernel_px,
            min_area_px=min_area_px,
            max_area_px=max_area_px,
            invert_binary=invert_binary,
            bin_width_microns=bin_width_microns,
        )
        thresholds = Thresholds(fine_microns=fine_microns, coarse_microns=coarse_microns)

        pipeline = MeasurementPipeline(store)
        result = pipeline.analyze(img, calibration_id, params, thresholds)

        measurement = None
        if save:
            measurement = pipeline.save(result, grinder=grinder, setting=setting, coffee=coffee)

        return AnalysisResponse(
            success=True,
            empty=result.is_empty,
            messages=result.messages,
            processing_time_ms=result.processing_time_ms,
            calibration_id=result.calibration.id,
            microns_per_pixel=result.calibration.microns_per_pixel,
            sample_size=result.stats.count,
            rejected_count=result.rejected_count,
            stats=DistributionStatsInfo(**asdict(result.stats)),
            histogram=[HistogramBinInfo(**asdict(b)) for b in result.histogram],
            fine_pct=result.fine_pct,
            coarse_pct=result.coarse_pct,
            diameters_um=result.diameters_um,
            measurement=measurement,
        )
    except Exception as e:
        raise _http_error(e)


@router.get("/measurements", response_model=list[Measurement])
async def list_measurements(store: RecordStore = Depends(get_store)):
    """Saved measurements, most recent first."""
    return store.list_measurements()


@router.get("/measurements/export.csv")
async def export_measurements(store: RecordStore = Depends(get_store)):
    """Measurement history as CSV."""
    content = measurements_to_csv(store.list_measurements(), store.list_calibrations())
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="grind-history.csv"'},
    )
