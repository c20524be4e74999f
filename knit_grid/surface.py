"""Drawing surfaces the renderer issues commands against.

``CanvasSurface`` rasterises onto an RGB numpy array with OpenCV;
``RecordingSurface`` only keeps the command list, which is what the tests
inspect.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
RGBA8 = Tuple[int, int, int, float]  # 0-255 channels, alpha in [0, 1]

# Fixed-point bits used for sub-pixel circle and polygon coordinates
SUBPIXEL_SHIFT = 4


class SurfaceUnavailableError(RuntimeError):
    """Raised when a render is requested without a usable drawing surface."""


class Surface(ABC):
    """Minimal 2D raster interface the frame renderer needs."""

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: RGBA8) -> None:
        ...

    @abstractmethod
    def fill_circle(self, cx: float, cy: float, radius: float, color: RGBA8) -> None:
        ...

    @abstractmethod
    def fill_polygon(self, points: Sequence[Point], color: RGBA8) -> None:
        ...

    @abstractmethod
    def stroke_line(self, start: Point, end: Point, color: RGBA8, width: int = 1) -> None:
        ...

    @abstractmethod
    def set_smoothing(self, enabled: bool) -> None:
        ...


@dataclass(frozen=True)
class DrawCommand:
    """One draw instruction; ``points`` meaning depends on ``op``.

    - ``rect``: ``((x, y), (w, h))``
    - ``circle``: ``((cx, cy),)`` with ``radius``
    - ``polygon``: the vertices
    - ``line``: ``(start, end)`` with ``width``
    """

    op: str
    points: Tuple[Point, ...]
    color: RGBA8
    radius: float = 0.0
    width: int = 0

    def apply(self, surface: Surface) -> None:
        if self.op == "rect":
            (x, y), (w, h) = self.points
            surface.fill_rect(x, y, w, h, self.color)
        elif self.op == "circle":
            (cx, cy), = self.points
            surface.fill_circle(cx, cy, self.radius, self.color)
        elif self.op == "polygon":
            surface.fill_polygon(self.points, self.color)
        elif self.op == "line":
            start, end = self.points
            surface.stroke_line(start, end, self.color, self.width)
        else:
            raise ValueError(f"Unknown draw op: {self.op}")


class RecordingSurface(Surface):
    """Collects draw calls as ``DrawCommand`` values without rasterising."""

    def __init__(self):
        self.commands: List[DrawCommand] = []
        self.smoothing = True

    def fill_rect(self, x, y, w, h, color):
        self.commands.append(DrawCommand("rect", ((x, y), (w, h)), color))

    def fill_circle(self, cx, cy, radius, color):
        self.commands.append(DrawCommand("circle", ((cx, cy),), color, radius=radius))

    def fill_polygon(self, points, color):
        self.commands.append(DrawCommand("polygon", tuple(tuple(p) for p in points), color))

    def stroke_line(self, start, end, color, width=1):
        self.commands.append(DrawCommand("line", (tuple(start), tuple(end)), color, width=width))

    def set_smoothing(self, enabled):
        self.smoothing = bool(enabled)

    def ops(self) -> List[str]:
        return [c.op for c in self.commands]


def _fixed(value: float) -> int:
    return int(round(value * (1 << SUBPIXEL_SHIFT)))


class CanvasSurface(Surface):
    """Square RGB canvas drawn with OpenCV primitives.

    Smoothing off draws with ``LINE_8`` for hard, pixel-aligned edges;
    smoothing on switches to ``LINE_AA``. Colours with alpha below 1 are
    blended over the region they touch.
    """

    def __init__(self, width: int, height: Optional[int] = None):
        height = width if height is None else height
        if width <= 0 or height <= 0:
            raise SurfaceUnavailableError(f"Cannot allocate a {width}x{height} canvas")
        self.pixels = np.zeros((int(height), int(width), 3), dtype=np.uint8)
        self.line_type = cv2.LINE_8

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.pixels.shape[:2]
        return w, h

    def to_array(self) -> np.ndarray:
        return self.pixels.copy()

    def set_smoothing(self, enabled):
        self.line_type = cv2.LINE_AA if enabled else cv2.LINE_8

    def _draw(self, color: RGBA8, bbox: Tuple[float, float, float, float], paint) -> None:
        """Run ``paint(target, rgb)``, alpha-blending within ``bbox`` when needed."""
        rgb = tuple(int(c) for c in color[:3])
        alpha = float(color[3]) if len(color) > 3 else 1.0
        if alpha >= 1.0:
            paint(self.pixels, rgb)
            return
        if alpha <= 0.0:
            return

        h, w = self.pixels.shape[:2]
        x0 = max(0, int(np.floor(bbox[0])) - 1)
        y0 = max(0, int(np.floor(bbox[1])) - 1)
        x1 = min(w, int(np.ceil(bbox[2])) + 2)
        y1 = min(h, int(np.ceil(bbox[3])) + 2)
        if x1 <= x0 or y1 <= y0:
            return

        region = self.pixels[y0:y1, x0:x1]
        overlay = region.copy()
        paint(overlay, rgb, (x0, y0))
        region[:] = cv2.addWeighted(overlay, alpha, region, 1.0 - alpha, 0.0)

    def fill_rect(self, x, y, w, h, color):
        def paint(target, rgb, origin=(0, 0)):
            ox, oy = origin
            x0, y0 = int(round(x)) - ox, int(round(y)) - oy
            x1, y1 = int(round(x + w)) - 1 - ox, int(round(y + h)) - 1 - oy
            if x1 >= x0 and y1 >= y0:
                cv2.rectangle(target, (x0, y0), (x1, y1), rgb, thickness=-1)

        self._draw(color, (x, y, x + w, y + h), paint)

    def fill_circle(self, cx, cy, radius, color):
        def paint(target, rgb, origin=(0, 0)):
            ox, oy = origin
            center = (_fixed(cx - ox), _fixed(cy - oy))
            cv2.circle(target, center, _fixed(radius), rgb, thickness=-1,
                       lineType=self.line_type, shift=SUBPIXEL_SHIFT)

        self._draw(color, (cx - radius, cy - radius, cx + radius, cy + radius), paint)

    def fill_polygon(self, points, color):
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)

        def paint(target, rgb, origin=(0, 0)):
            shifted = np.round((pts - np.asarray(origin)) * (1 << SUBPIXEL_SHIFT)).astype(np.int32)
            cv2.fillPoly(target, [shifted], rgb, lineType=self.line_type, shift=SUBPIXEL_SHIFT)

        self._draw(color, (pts[:, 0].min(), pts[:, 1].min(), pts[:, 0].max(), pts[:, 1].max()), paint)

    def stroke_line(self, start, end, color, width=1):
        def paint(target, rgb, origin=(0, 0)):
            ox, oy = origin
            p0 = (int(round(start[0])) - ox, int(round(start[1])) - oy)
            p1 = (int(round(end[0])) - ox, int(round(end[1])) - oy)
            cv2.line(target, p0, p1, rgb, max(1, int(width)), lineType=self.line_type)

        pad = max(1, int(width))
        bbox = (
            min(start[0], end[0]) - pad,
            min(start[1], end[1]) - pad,
            max(start[0], end[0]) + pad,
            max(start[1], end[1]) + pad,
        )
        self._draw(color, bbox, paint)
