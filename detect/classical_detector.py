"""Classical CV detector using colour thresholding and contour shape filters."""

from __future__ import annotations

import math
import time
from typing import List, Optional

import cv2
import numpy as np

from contracts import BallCandidate, Frame
from detect import telemetry
from detect.config import DetectorConfig
from detect.detector import BallDetector, DetectionContext
from detect.filters import (
    apply_area_filter,
    apply_circularity_filter,
    apply_continuity_filter,
    resolve_single,
    split_blurred,
)
from detect.types import BlobDetection, to_candidate
from log_config.logger import get_logger

logger = get_logger(__name__)


class ClassicalDetector(BallDetector):
    """Finds a ball-coloured, ball-shaped blob in a single BGR frame."""

    name = "classical"

    def __init__(self, config: Optional[DetectorConfig] = None) -> None:
        self._config = config or DetectorConfig()
        size = max(1, int(self._config.morph_kernel_px))
        self._kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))

    def detect(
        self, frame: Frame, context: Optional[DetectionContext] = None
    ) -> Optional[BallCandidate]:
        if frame.image is None:
            return None
        start = time.perf_counter()
        blobs = self.find_blobs(frame.image)
        blobs = apply_area_filter(blobs, self._config.filters)
        sharp, blurred = split_blurred(blobs, self._config.filters)
        sharp = apply_circularity_filter(sharp, self._config.filters)

        candidates = apply_continuity_filter([to_candidate(b) for b in sharp], context)
        result = resolve_single(candidates, self._config.ambiguity_ratio)
        if result is None and blurred and not candidates:
            logger.debug(f"frame {frame.frame_index}: {len(blurred)} blurred blob(s) rejected")
        elif result is None and candidates:
            logger.debug(f"frame {frame.frame_index}: ambiguous, {len(candidates)} candidates")

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        telemetry.log_timing(self.name, frame.frame_index, elapsed_ms, self._config.runtime_budget_ms)
        return result

    def find_blobs(self, image: np.ndarray) -> List[BlobDetection]:
        mask = self._colour_mask(image)
        mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel)
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return [blob for blob in (_contour_to_blob(c) for c in contours) if blob is not None]

    def _colour_mask(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        hsv = cv2.cvtColor(image, cv2.COLOR_BGR2HSV)
        mask = np.zeros(hsv.shape[:2], dtype=np.uint8)
        for low, high in self._config.hsv_ranges:
            mask |= cv2.inRange(hsv, np.array(low, dtype=np.uint8), np.array(high, dtype=np.uint8))
        return mask


def _contour_to_blob(contour: np.ndarray) -> Optional[BlobDetection]:
    area = float(cv2.contourArea(contour))
    if area <= 0.0:
        return None
    moments = cv2.moments(contour)
    if moments["m00"] == 0:
        return None
    cx = moments["m10"] / moments["m00"]
    cy = moments["m01"] / moments["m00"]
    perimeter = float(cv2.arcLength(contour, True))
    circularity = 4 * math.pi * area / (perimeter**2) if perimeter > 0 else 0.0
    _, radius = cv2.minEnclosingCircle(contour)
    fill_ratio = area / (math.pi * radius * radius) if radius > 0 else 0.0
    (_, _), (w, h), _ = cv2.minAreaRect(contour)
    elongation = max(w, h) / min(w, h) if min(w, h) > 0 else float("inf")
    return BlobDetection(
        centroid=(float(cx), float(cy)),
        area=area,
        perimeter=perimeter,
        radius=float(radius),
        circularity=min(1.0, float(circularity)),
        elongation=float(elongation),
        fill_ratio=min(1.0, float(fill_ratio)),
    )
