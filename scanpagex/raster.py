"""Frame enumeration for plain (multi-frame) raster images."""

from __future__ import annotations

import logging
from typing import BinaryIO, Iterator

from PIL import ExifTags, Image, UnidentifiedImageError

from .exceptions import UnrecognizedFormatError
from .models import FrameDimension, RasterFramePage

LOGGER = logging.getLogger("scanpagex.raster")

# Same mapping Pillow's ImageOps.exif_transpose applies.
_ORIENTATION_TRANSPOSE = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}

_ANIMATED_FORMATS = {"GIF", "PNG", "WEBP", "FLI", "APNG"}


def check_image_rotate(image: Image.Image) -> Image.Transpose | None:
    """Return the transpose that brings *image* upright, if it needs one."""

    try:
        orientation = image.getexif().get(ExifTags.Base.Orientation)
    except (OSError, SyntaxError, ValueError) as exc:
        LOGGER.debug("Ignoring unreadable EXIF block: %s", exc)
        return None
    method = _ORIENTATION_TRANSPOSE.get(orientation)
    if method is not None:
        LOGGER.debug("EXIF orientation %s requires %s", orientation, method.name)
    return method


def frame_dimension(image: Image.Image) -> FrameDimension:
    frame_count = int(getattr(image, "n_frames", 1) or 1)
    kind = "time" if (image.format or "").upper() in _ANIMATED_FORMATS else "page"
    return FrameDimension(kind=kind, frame_count=frame_count)


class RasterHandle:
    """Opened raster image shared by every :class:`RasterFramePage` of a document.

    Selecting a frame mutates the underlying Pillow image, so rendering is
    only correct when frames are requested one at a time.
    """

    def __init__(self, image: Image.Image, transpose: Image.Transpose | None = None) -> None:
        self.image = image
        self.transpose = transpose

    def render_frame(self, dimension: FrameDimension, index: int) -> Image.Image:
        if not 0 <= index < dimension.frame_count:
            raise IndexError(f"Frame {index} out of range for {dimension.frame_count} frame(s)")
        self.image.seek(index)
        frame = self.image.copy()
        if self.transpose is not None:
            frame = frame.transpose(self.transpose)
        return frame


def open_raster(stream: BinaryIO) -> RasterHandle:
    """Open *stream* as a raster image and normalise its orientation."""

    try:
        image = Image.open(stream)
    except UnidentifiedImageError as exc:
        raise UnrecognizedFormatError("Input is neither a PDF nor a supported raster image") from exc
    LOGGER.info("Opened %s raster image %sx%s", image.format, image.width, image.height)
    return RasterHandle(image, check_image_rotate(image))


def iter_raster_pages(handle: RasterHandle) -> Iterator[RasterFramePage]:
    """Yield one descriptor per frame without decoding any pixel data."""

    dimension = frame_dimension(handle.image)
    LOGGER.debug("Enumerating %d %s frame(s)", dimension.frame_count, dimension.kind)
    for frame in range(dimension.frame_count):
        yield RasterFramePage(handle=handle, dimension=dimension, frame_index=frame)


__all__ = [
    "RasterHandle",
    "check_image_rotate",
    "frame_dimension",
    "open_raster",
    "iter_raster_pages",
]
