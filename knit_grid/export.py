"""Still, GIF and video writers for rendered frames."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

import cv2
import numpy as np
from PIL import Image

from .config import EXPORT_SIZE

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _resize_crisp(frame: np.ndarray, size: int) -> Image.Image:
    image = Image.fromarray(np.ascontiguousarray(frame[:, :, :3]).astype(np.uint8))
    if image.size != (size, size):
        image = image.resize((size, size), Image.Resampling.NEAREST)
    return image


def export_png(frame: np.ndarray, path: PathLike, size: int = EXPORT_SIZE) -> Path:
    """Write one frame as PNG, scaled with nearest-neighbour to ``size``."""
    path = Path(path)
    _resize_crisp(frame, size).save(path, format="PNG")
    logger.info("PNG saved: %s", path)
    return path


def export_gif(
    frames: Iterable[np.ndarray],
    path: PathLike,
    delay_ms: int = 100,
    size: int = EXPORT_SIZE,
) -> Path:
    """Write a looping animated GIF.

    Raises:
        ValueError: If ``frames`` is empty.
    """
    path = Path(path)
    images = [_resize_crisp(frame, size) for frame in frames]
    if not images:
        raise ValueError("No frames to export")
    images[0].save(
        path,
        format="GIF",
        save_all=True,
        append_images=images[1:],
        duration=delay_ms,
        loop=0,
    )
    logger.info("GIF saved: %s (%d frames)", path, len(images))
    return path


def export_video(
    frames: Iterable[np.ndarray],
    path: PathLike,
    fps: float = 10,
    size: int = EXPORT_SIZE,
    fourcc: str = "mp4v",
) -> Path:
    """Write frames to a video container with OpenCV.

    Raises:
        ValueError: If ``frames`` is empty.
        OSError: If the writer cannot be opened for ``path``.
    """
    path = Path(path)
    writer = None
    count = 0
    try:
        for frame in frames:
            if writer is None:
                writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*fourcc), float(fps), (size, size))
                if not writer.isOpened():
                    raise OSError(f"Could not open video writer for {path}")
            rgb = np.asarray(_resize_crisp(frame, size))
            writer.write(cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
            count += 1
    finally:
        if writer is not None:
            writer.release()

    if count == 0:
        raise ValueError("No frames to export")
    logger.info("Video saved: %s (%d frames @ %.1f fps)", path, count, fps)
    return path
