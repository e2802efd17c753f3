"""Video-file frame source backed by OpenCV."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

import cv2

from contracts import Frame
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class VideoInfo:
    """Video file metadata.

    Attributes:
        path: Path to video file
        width: Frame width in pixels
        height: Frame height in pixels
        fps: Frames per second reported by the container
        total_frames: Frame count reported by the container (may be 0)
        fourcc: Video codec FourCC code
    """

    path: Path
    width: int
    height: int
    fps: float
    total_frames: int
    fourcc: str

    @property
    def duration_ms(self) -> float:
        return (self.total_frames / self.fps) * 1000.0 if self.fps > 0 else 0.0


class VideoFrameSource:
    """Decodes a video file into Frames with monotonically increasing indices.

    Timestamps are derived from the frame index and frame rate, so a
    variable-rate container still yields evenly spaced, non-decreasing
    times. ``fps`` overrides the container rate when calibration knows
    better.

    Example:
        >>> with VideoFrameSource(Path("delivery.mp4")) as source:
        ...     for frame in source:
        ...         print(frame.frame_index, frame.timestamp_ms)
    """

    def __init__(self, path: Union[str, Path], fps: Optional[float] = None):
        self._path = Path(path)
        self._fps_override = fps
        self._capture: Optional[cv2.VideoCapture] = None
        self._info: Optional[VideoInfo] = None

    @property
    def info(self) -> Optional[VideoInfo]:
        return self._info

    def open(self) -> VideoInfo:
        """Open the video file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If OpenCV cannot open the file
        """
        self.close()
        if not self._path.exists():
            raise FileNotFoundError(f"Video not found: {self._path}")
        capture = cv2.VideoCapture(str(self._path))
        if not capture.isOpened():
            raise ValueError(f"Failed to open video: {self._path}")
        self._capture = capture
        fourcc_int = int(capture.get(cv2.CAP_PROP_FOURCC))
        self._info = VideoInfo(
            path=self._path,
            width=int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            fps=float(capture.get(cv2.CAP_PROP_FPS)),
            total_frames=int(capture.get(cv2.CAP_PROP_FRAME_COUNT)),
            fourcc="".join(chr((fourcc_int >> 8 * i) & 0xFF) for i in range(4)),
        )
        logger.info(
            f"Video opened: {self._info.total_frames} frames @ {self._info.fps:.1f} fps, "
            f"{self._info.width}x{self._info.height} ({self._info.fourcc})"
        )
        return self._info

    def __iter__(self) -> Iterator[Frame]:
        if self._capture is None:
            self.open()
        fps = self._fps_override or (self._info.fps if self._info and self._info.fps > 0 else 30.0)
        index = 0
        while self._capture is not None:
            ok, image = self._capture.read()
            if not ok:
                logger.debug(f"End of video after {index} frame(s)")
                return
            height, width = image.shape[:2]
            yield Frame(
                frame_index=index,
                timestamp_ms=index * 1000.0 / fps,
                image=image,
                width=width,
                height=height,
            )
            index += 1

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> "VideoFrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
