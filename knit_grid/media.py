"""Image and video inputs for the knit renderer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Union

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".webm", ".avi", ".mkv"}

DEFAULT_FPS = 10


def is_video(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Load an image file as an RGBA uint8 array.

    Raises:
        ValueError: If the file cannot be read as an image.
    """
    try:
        with Image.open(path) as image:
            rgba = image.convert("RGBA")
            return np.array(rgba)
    except Exception as e:
        raise ValueError(f"Failed to load image {path}: {e}") from e


def crop_square(frame: np.ndarray) -> np.ndarray:
    """Centre-crop a frame to its smaller dimension."""
    h, w = frame.shape[:2]
    side = min(h, w)
    y0 = (h - side) // 2
    x0 = (w - side) // 2
    return frame[y0:y0 + side, x0:x0 + side]


def _open_capture(path: Union[str, Path]) -> "cv2.VideoCapture":
    capture = cv2.VideoCapture(str(path))
    if not capture.isOpened():
        capture.release()
        raise ValueError(f"Failed to open video: {path}")
    return capture


def read_video_frames(path: Union[str, Path], fps: float = DEFAULT_FPS) -> Iterator[np.ndarray]:
    """Yield square RGB frames sampled every ``1 / fps`` seconds of video time.

    Frames are decoded sequentially; the generator pulls the next frame only
    when the caller asks for it.
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    capture = _open_capture(path)
    try:
        source_fps = capture.get(cv2.CAP_PROP_FPS) or 0.0
        if source_fps <= 0:
            logger.warning("%s reports no frame rate; using every frame", path)
            source_fps = fps
        step = source_fps / fps

        index = 0
        next_pick = 0.0
        emitted = 0
        while True:
            ok, bgr = capture.read()
            if not ok:
                break
            if index + 1e-9 >= next_pick:
                emitted += 1
                next_pick += step
                yield crop_square(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
            index += 1
        logger.info("Read %d frame(s) from %s at %.1f fps", emitted, path, fps)
    finally:
        capture.release()


def first_video_frame(path: Union[str, Path], at_seconds: float = 0.1) -> np.ndarray:
    """Grab a single square RGB frame near ``at_seconds`` (falls back to frame 0)."""
    capture = _open_capture(path)
    try:
        capture.set(cv2.CAP_PROP_POS_MSEC, at_seconds * 1000.0)
        ok, bgr = capture.read()
        if not ok:
            capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, bgr = capture.read()
        if not ok:
            raise ValueError(f"Video has no decodable frames: {path}")
        return crop_square(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
    finally:
        capture.release()
