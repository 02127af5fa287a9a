"""Drawing helpers on numpy RGB buffers shaped (height, width, 3)."""

from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

Color = Tuple[int, int, int]
Buffer = NDArray[np.uint8]


def new_buffer(width: int, height: int) -> Buffer:
    return np.zeros((height, width, 3), dtype=np.uint8)


def vertical_gradient(buffer: Buffer, top: Color, bottom: Color) -> None:
    """Fill buffer with a top-to-bottom linear gradient."""
    t = np.linspace(0.0, 1.0, buffer.shape[0], dtype=np.float32)[:, None]
    rows = (1 - t) * np.asarray(top, dtype=np.float32) + t * np.asarray(bottom, dtype=np.float32)
    buffer[:] = np.rint(rows).astype(np.uint8)[:, None, :]


def _clip(buffer: Buffer, x0: int, y0: int, x1: int, y1: int) -> Optional[Tuple[int, int, int, int]]:
    """Intersect [x0, x1) x [y0, y1) with the buffer, or None if empty."""
    h, w = buffer.shape[:2]
    x0, x1 = max(0, x0), min(w, x1)
    y0, y1 = max(0, y0), min(h, y1)
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def draw_box(
    buffer: Buffer,
    x: int,
    y: int,
    width: int,
    height: int,
    color: Color,
    border: Optional[Color] = None,
    border_width: int = 2,
) -> None:
    """
    Filled rectangle with an optional inner border, clipped to the buffer.

    The border is measured from the rectangle's own edges, so a box that
    hangs off the buffer keeps its visible border where its edge is visible.
    """
    area = _clip(buffer, x, y, x + width, y + height)
    if area is None:
        return
    x0, y0, x1, y1 = area
    buffer[y0:y1, x0:x1] = color
    if border is None or border_width <= 0:
        return

    for edge in (
        (x, y, x + width, y + border_width),                        # top
        (x, y + height - border_width, x + width, y + height),      # bottom
        (x, y, x + border_width, y + height),                       # left
        (x + width - border_width, y, x + width, y + height),       # right
    ):
        part = _clip(buffer, *edge)
        if part is not None:
            px0, py0, px1, py1 = part
            buffer[py0:py1, px0:px1] = border


def draw_disc(
    buffer: Buffer,
    cx: int,
    cy: int,
    radius: int,
    color: Optional[Color],
    outline: Optional[Color] = None,
    ring: int = 2,
) -> None:
    """
    Circle centred on (cx, cy).

    ``color`` fills the disc (None leaves the inside untouched); ``outline``
    paints a ring of ``ring`` pixels just inside ``radius``. Only the
    bounding square is touched.
    """
    area = _clip(buffer, cx - radius, cy - radius, cx + radius + 1, cy + radius + 1)
    if area is None:
        return
    x0, y0, x1, y1 = area
    ys, xs = np.ogrid[y0:y1, x0:x1]
    dist_sq = (xs - cx) ** 2 + (ys - cy) ** 2
    inside = dist_sq <= radius ** 2
    window = buffer[y0:y1, x0:x1]

    if color is not None:
        window[inside] = color
    if outline is not None:
        inner = max(0, radius - ring)
        window[inside & (dist_sq > inner ** 2)] = outline
