"""ONNX ball detector run through OpenCV DNN."""

from __future__ import annotations

from typing import List, Optional, Tuple

import cv2
import numpy as np

from contracts import BallCandidate, Frame, Position
from detect.detector import BallDetector, DetectionContext
from detect.filters import apply_continuity_filter, resolve_single
from exceptions import DetectionError

OUTPUT_FORMATS = ("yolo_v5", "yolo_v8")


class MlDetector(BallDetector):
    """Single-class ball detector for YOLO-style ONNX exports.

    The network is loaded lazily on the first frame. A ``cv2.dnn.Net`` is
    not safe to call from several threads, so run this detector inline.
    """

    name = "ml"

    def __init__(
        self,
        model_path: Optional[str] = None,
        input_size: Tuple[int, int] = (640, 640),
        conf_threshold: float = 0.25,
        class_id: int = 0,
        output_format: str = "yolo_v8",
        nms_threshold: float = 0.45,
        ambiguity_ratio: float = 0.8,
    ) -> None:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {output_format!r}")
        self.model_path = model_path
        self.input_size = input_size
        self.conf_threshold = conf_threshold
        self.class_id = class_id
        self.output_format = output_format
        self.nms_threshold = nms_threshold
        self.ambiguity_ratio = ambiguity_ratio
        self._net: Optional[cv2.dnn.Net] = None

    def detect(
        self, frame: Frame, context: Optional[DetectionContext] = None
    ) -> Optional[BallCandidate]:
        if frame.image is None:
            return None
        net = self._network()
        if net is None:
            return None
        net.setInput(
            cv2.dnn.blobFromImage(frame.image, scalefactor=1 / 255.0, size=self.input_size, swapRB=True)
        )
        height, width = frame.image.shape[:2]
        candidates = parse_outputs(
            net.forward(),
            image_size=(width, height),
            input_size=self.input_size,
            conf_threshold=self.conf_threshold,
            class_id=self.class_id,
            output_format=self.output_format,
            nms_threshold=self.nms_threshold,
        )
        return resolve_single(apply_continuity_filter(candidates, context), self.ambiguity_ratio)

    def _network(self) -> Optional[cv2.dnn.Net]:
        if self.model_path is None:
            return None
        if self._net is None:
            try:
                self._net = cv2.dnn.readNetFromONNX(self.model_path)
            except cv2.error as e:
                raise DetectionError(f"Failed to load ball model {self.model_path}: {e}") from e
        return self._net


def parse_outputs(
    outputs,
    image_size: Tuple[int, int],
    input_size: Tuple[int, int],
    conf_threshold: float,
    class_id: int,
    output_format: str = "yolo_v8",
    nms_threshold: float = 0.45,
) -> List[BallCandidate]:
    """Decode raw network output into ball candidates in image pixels.

    v5 rows are ``cx, cy, w, h, objectness, class scores...``; v8 rows drop
    objectness and are usually exported transposed. Boxes given in
    normalized coordinates are rescaled to the network input first.
    """
    rows = np.asarray(outputs[0] if isinstance(outputs, (list, tuple)) else outputs, dtype=np.float32)
    if rows.ndim == 3:
        rows = rows[0]
    if output_format == "yolo_v8" and rows.shape[0] < rows.shape[1]:
        rows = rows.T
    if rows.size == 0:
        return []

    first_score = 5 if output_format == "yolo_v5" else 4
    scores = rows[:, first_score:]
    best = scores.argmax(axis=1)
    conf = scores[np.arange(len(rows)), best]
    if output_format == "yolo_v5":
        conf = conf * rows[:, 4]
    keep = (best == class_id) & (conf >= conf_threshold)
    if not np.any(keep):
        return []

    boxes = rows[keep, :4].copy()
    conf = np.minimum(conf[keep], 1.0)
    input_w, input_h = input_size
    normalized = boxes.max(axis=1) <= 1.5
    boxes[normalized] *= np.array([input_w, input_h, input_w, input_h], dtype=np.float32)
    width, height = image_size
    boxes *= np.array([width / input_w, height / input_h] * 2, dtype=np.float32)

    rects = [
        [int(cx - w / 2), int(cy - h / 2), int(w), int(h)] for cx, cy, w, h in boxes.tolist()
    ]
    indices = cv2.dnn.NMSBoxes(rects, conf.tolist(), conf_threshold, nms_threshold)
    candidates = []
    for i in np.array(indices, dtype=int).reshape(-1):
        cx, cy, w, h = boxes[i]
        candidates.append(
            BallCandidate(
                position=Position(float(cx), float(cy)),
                confidence=float(conf[i]),
                radius_px=float(max(w, h) / 2.0),
            )
        )
    return candidates
