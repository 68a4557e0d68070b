"""Particle segmentation from a photo of spread coffee grounds."""

import logging

import cv2
import numpy as np

from grind_analyzer.core.config import MeasurementParams

logger = logging.getLogger(__name__)


def odd_kernel(size: float) -> int:
    """Coerce a kernel size to an odd integer >= 1 (even sizes round up)."""
    return max(1, int(size)) | 1


class ParticleSegmenter:
    """Finds particle outlines and reports their pixel areas."""

    def segment(self, image: np.ndarray, params: MeasurementParams) -> list[float]:
        """
        Segment particles from the image.

        Args:
            image: BGR, BGRA or grayscale image of grounds on a contrasting surface
            params: Blur/opening kernel sizes and binary inversion flag

        Returns:
            Pixel area of every external contour, unfiltered
        """
        mask = self._create_particle_mask(image, params)

        # Outer boundaries only; holes inside a particle are not particles
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        areas = [float(cv2.contourArea(contour)) for contour in contours]

        logger.debug("Segmented %d contours", len(areas))
        return areas

    def _create_particle_mask(self, image: np.ndarray, params: MeasurementParams) -> np.ndarray:
        """Create binary mask with particles in white."""
        if image.ndim == 2:
            gray = image
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        blur_k = odd_kernel(params.blur_kernel_px)
        blurred = cv2.GaussianBlur(gray, (blur_k, blur_k), 0)

        # Otsu picks the global threshold from the bimodal histogram
        _, mask = cv2.threshold(blurred, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)

        # Dark grounds on a light background come out black; flip them to white
        if params.invert_binary:
            mask = cv2.bitwise_not(mask)

        # Opening removes specks and thin bridges between particles
        open_k = odd_kernel(params.open_kernel_px)
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (open_k, open_k))
        return cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)
