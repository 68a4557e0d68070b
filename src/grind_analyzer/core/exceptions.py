"""Custom exceptions for grind analysis."""


class GrindAnalysisError(Exception):
    """Base exception for grind analysis errors."""

    code: str = "ANALYSIS_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(GrindAnalysisError):
    """Operator input that cannot be computed with."""

    code = "INVALID_INPUT"
    status_code = 400


class InvalidCalibrationInput(InvalidInputError):
    """Calibration points or distances are unusable."""

    code = "INVALID_CALIBRATION_INPUT"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, details)
        self.suggestions = [
            "Pick two distinct points on the ruler",
            "Enter the real distance between the points in millimeters",
        ]


class EmptyInputError(GrindAnalysisError):
    """A statistic was requested over an empty sequence."""

    code = "EMPTY_INPUT"
    status_code = 422


class CalibrationNotFoundError(GrindAnalysisError):
    """No stored calibration has the requested id."""

    code = "CALIBRATION_NOT_FOUND"
    status_code = 404


class CalibrationInUseError(GrindAnalysisError):
    """Calibration is referenced by stored measurements."""

    code = "CALIBRATION_IN_USE"
    status_code = 409


class NoParticlesDetectedError(GrindAnalysisError):
    """An analysis without particles cannot be saved."""

    code = "NO_PARTICLES_DETECTED"
    status_code = 422

    def __init__(self, message: str = "No particles detected in the image"):
        super().__init__(message)
        self.suggestions = [
            "Use a photo with better contrast between grounds and background",
            "Toggle binary inversion if particles are lighter than the background",
            "Relax the minimum and maximum particle area",
        ]


class ImageFormatError(GrindAnalysisError):
    """Unsupported or corrupt image."""

    code = "INVALID_IMAGE"
    status_code = 400


class ImageTooLargeError(GrindAnalysisError):
    """Image exceeds size limits."""

    code = "IMAGE_TOO_LARGE"
    status_code = 413
