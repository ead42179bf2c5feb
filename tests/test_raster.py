from __future__ import annotations

import io
import types

import pytest
from PIL import Image

from scanpagex import PageKind, RasterFramePage, parse
from scanpagex.raster import RasterHandle, check_image_rotate, frame_dimension, open_raster


def test_one_page_per_tiff_frame(tiff_stack, frame_sizes) -> None:
    document = parse(tiff_stack)
    pages = list(document)

    assert document.source_kind == "raster"
    assert document.extra["format"] == "TIFF"
    assert [page.page_number for page in pages] == [0, 1, 2]
    assert all(isinstance(page, RasterFramePage) for page in pages)
    assert all(page.kind is PageKind.RASTER_FRAME for page in pages)
    assert [page.get_image().size for page in pages] == frame_sizes


def test_frames_keep_their_own_pixels(tiff_stack) -> None:
    pages = list(parse(tiff_stack))
    assert [page.get_image().getpixel((0, 0)) for page in pages] == [0, 60, 120]


def test_single_frame_image_has_one_page(raster_factory) -> None:
    pages = list(parse(raster_factory(size=(32, 16))))

    assert len(pages) == 1
    assert pages[0].page_number == 0
    assert pages[0].get_image().size == (32, 16)


def test_exif_orientation_is_applied(raster_factory) -> None:
    exif = Image.Exif()
    exif[0x0112] = 6
    source = raster_factory(size=(40, 20), fmt="JPEG", exif=exif.tobytes())

    page = next(iter(parse(source)))

    assert page.handle.transpose is Image.Transpose.ROTATE_270
    assert page.get_image().size == (20, 40)


def test_check_image_rotate_without_exif() -> None:
    assert check_image_rotate(Image.new("RGB", (4, 4))) is None


def test_frame_dimension_kinds(tiff_stack) -> None:
    with Image.open(tiff_stack) as tiff:
        assert frame_dimension(tiff).kind == "page"
        assert frame_dimension(tiff).frame_count == 3

    buffer = io.BytesIO()
    frames = [Image.new("P", (10, 10), color) for color in (1, 2)]
    for frame in frames:
        frame.putpalette([0, 0, 0, 255, 0, 0, 0, 255, 0] + [0] * (768 - 9))
    frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])
    buffer.seek(0)
    with Image.open(buffer) as gif:
        dimension = frame_dimension(gif)
    assert dimension.kind == "time"
    assert dimension.frame_count == 2


def test_enumeration_does_not_decode(tiff_stack, monkeypatch: pytest.MonkeyPatch) -> None:
    rendered: list[int] = []
    original = RasterHandle.render_frame

    def tracking(self, dimension, index):  # type: ignore[no-untyped-def]
        rendered.append(index)
        return original(self, dimension, index)

    monkeypatch.setattr(RasterHandle, "render_frame", tracking)

    document = parse(tiff_stack)
    assert isinstance(document.pages, types.GeneratorType)
    pages = list(document)
    assert rendered == []

    pages[1].get_image()
    assert rendered == [1]


def test_render_frame_out_of_range(tiff_stack) -> None:
    handle = open_raster(tiff_stack)
    page = RasterFramePage(handle=handle, dimension=frame_dimension(handle.image), frame_index=3)
    with pytest.raises(IndexError):
        page.get_image()
