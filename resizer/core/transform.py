"""
Resize and center-crop geometry.

All proportional math is done on integers so the same source always yields the
same canvas, and the cover-resize never undershoots either target dimension.
"""

from typing import Tuple

from PIL import Image

RESAMPLE = Image.Resampling.LANCZOS


def _scale(value: int, numerator: int, denominator: int) -> int:
    """Return round(value * numerator / denominator), half-up, never below 1."""
    return max(1, (2 * value * numerator + denominator) // (2 * denominator))


def fit_width(src_size: Tuple[int, int], width: int) -> Tuple[int, int]:
    """Size that makes the width exactly `width`, height following the aspect ratio."""
    src_w, src_h = src_size
    return width, _scale(src_h, width, src_w)


def fit_height(src_size: Tuple[int, int], height: int) -> Tuple[int, int]:
    src_w, src_h = src_size
    return _scale(src_w, height, src_h), height


def cover_size(src_size: Tuple[int, int], width: int, height: int) -> Tuple[int, int]:
    """
    Smallest proportional size that covers `width` x `height`.

    A source relatively wider than the target is fitted on height, otherwise on width.
    """
    src_w, src_h = src_size
    # src_w / src_h > width / height, without floats
    if src_w * height > width * src_h:
        return fit_height(src_size, height)
    return fit_width(src_size, width)


def crop_box(canvas_size: Tuple[int, int], width: int, height: int) -> Tuple[int, int, int, int]:
    """Centered `width` x `height` box on the canvas. Offsets are clamped to zero."""
    canvas_w, canvas_h = canvas_size
    start_x = max(0, (canvas_w - width) // 2)
    start_y = max(0, (canvas_h - height) // 2)
    return start_x, start_y, start_x + width, start_y + height


def transform_image(im: Image.Image, width: int, height: int, crop: bool) -> Image.Image:
    """
    Resize `im` for the requested geometry.

    Without crop the width is matched and the height is free, so `height` is ignored.
    With crop the result is exactly `width` x `height`.
    """
    if not crop:
        return im.resize(fit_width(im.size, width), RESAMPLE)

    resized = im.resize(cover_size(im.size, width, height), RESAMPLE)
    return resized.crop(crop_box(resized.size, width, height))
