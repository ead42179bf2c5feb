from __future__ import annotations

import io
import sys
import zlib
from pathlib import Path
from typing import Callable, Iterable

import pytest
from PIL import Image, ImageDraw
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    NumberObject,
    StreamObject,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def _filter_value(filters: str | Iterable[str]) -> NameObject | ArrayObject:
    if isinstance(filters, str):
        return NameObject(f"/{filters}")
    return ArrayObject(NameObject(f"/{name}") for name in filters)


class PdfBuilder:
    """Assemble small PDFs whose pages reference hand-made image XObjects."""

    def __init__(self) -> None:
        self.writer = PdfWriter()

    def add_object(self, obj: object) -> IndirectObject:
        return self.writer._add_object(obj)

    def stream(self, data: bytes, **entries: object) -> StreamObject:
        stream = StreamObject()
        stream._data = data
        for key, value in entries.items():
            stream[NameObject(f"/{key}")] = value
        return stream

    def image(
        self,
        data: bytes,
        *,
        width: int,
        height: int,
        filters: str | Iterable[str] | None = None,
        bits: int = 8,
        color_space: object | None = "DeviceGray",
        decode_parms: object | None = None,
        **entries: object,
    ) -> IndirectObject:
        stream = self.stream(
            data,
            Type=NameObject("/XObject"),
            Subtype=NameObject("/Image"),
            Width=NumberObject(width),
            Height=NumberObject(height),
            BitsPerComponent=NumberObject(bits),
            **entries,
        )
        if isinstance(color_space, str):
            stream[NameObject("/ColorSpace")] = NameObject(f"/{color_space}")
        elif color_space is not None:
            stream[NameObject("/ColorSpace")] = color_space
        if filters is not None:
            stream[NameObject("/Filter")] = _filter_value(filters)
        if decode_parms is not None:
            stream[NameObject("/DecodeParms")] = decode_parms
        return self.add_object(stream)

    def form(self) -> IndirectObject:
        stream = self.stream(
            b"0 0 m 10 10 l S",
            Type=NameObject("/XObject"),
            Subtype=NameObject("/Form"),
            BBox=ArrayObject([NumberObject(0), NumberObject(0), NumberObject(10), NumberObject(10)]),
        )
        return self.add_object(stream)

    def add_page(
        self,
        xobjects: dict[str, IndirectObject] | None = None,
        *,
        resources: bool = True,
    ) -> None:
        page = self.writer.add_blank_page(width=200, height=200)
        if not resources:
            if NameObject("/Resources") in page:
                del page[NameObject("/Resources")]
            return
        resource_dict = DictionaryObject()
        if xobjects is not None:
            resource_dict[NameObject("/XObject")] = DictionaryObject(
                {NameObject(f"/{name}"): ref for name, ref in xobjects.items()}
            )
        page[NameObject("/Resources")] = resource_dict

    def build(self) -> io.BytesIO:
        buffer = io.BytesIO()
        self.writer.write(buffer)
        buffer.seek(0)
        return buffer


class RecordingJBIG2Engine:
    """Stand-in for jbig2dec that records its inputs and returns a PNG."""

    def __init__(self, size: tuple[int, int] = (50, 70)) -> None:
        self.size = size
        self.calls: list[tuple[bytes, bytes | None]] = []

    def decode(self, data: bytes, globals_data: bytes | None = None) -> bytes:
        self.calls.append((data, globals_data))
        buffer = io.BytesIO()
        Image.new("1", self.size, 1).save(buffer, format="PNG")
        return buffer.getvalue()


@pytest.fixture()
def pdf_builder() -> PdfBuilder:
    return PdfBuilder()


@pytest.fixture()
def jbig2_engine() -> RecordingJBIG2Engine:
    return RecordingJBIG2Engine()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (60, 40), (200, 30, 30)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture()
def gray_samples() -> tuple[bytes, int, int]:
    width, height = 16, 8
    data = bytes((x * 16 + y) % 256 for y in range(height) for x in range(width))
    return data, width, height


@pytest.fixture()
def flate_gray(gray_samples: tuple[bytes, int, int]) -> tuple[bytes, int, int]:
    data, width, height = gray_samples
    return zlib.compress(data), width, height


def _ccitt_strip(compression: str) -> tuple[bytes, int, int]:
    width, height = 64, 32
    bitmap = Image.new("1", (width, height), 1)
    ImageDraw.Draw(bitmap).rectangle((8, 8, 40, 20), fill=0)
    buffer = io.BytesIO()
    bitmap.save(buffer, format="TIFF", compression=compression)
    raw = buffer.getvalue()
    with Image.open(io.BytesIO(raw)) as tiff:
        offsets = tiff.tag_v2[273]
        counts = tiff.tag_v2[279]
    if isinstance(offsets, int):
        offsets, counts = (offsets,), (counts,)
    assert len(offsets) == 1, "fixture expects a single-strip TIFF"
    return raw[offsets[0] : offsets[0] + counts[0]], width, height


@pytest.fixture()
def g4_strip() -> tuple[bytes, int, int]:
    """Return a bare CCITT Group 4 bitstream with its width and height."""

    return _ccitt_strip("group4")


@pytest.fixture()
def g3_strip() -> tuple[bytes, int, int]:
    """Return a bare one-dimensional CCITT Group 3 bitstream."""

    return _ccitt_strip("group3")


@pytest.fixture()
def frame_sizes() -> list[tuple[int, int]]:
    return [(40, 30), (50, 30), (60, 30)]


@pytest.fixture()
def tiff_stack(frame_sizes: list[tuple[int, int]]) -> io.BytesIO:
    frames = [Image.new("L", size, index * 60) for index, size in enumerate(frame_sizes)]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="TIFF", save_all=True, append_images=frames[1:])
    buffer.seek(0)
    return buffer


@pytest.fixture()
def raster_factory() -> Callable[..., io.BytesIO]:
    def _create(size: tuple[int, int] = (40, 20), fmt: str = "PNG", **save_kwargs: object) -> io.BytesIO:
        buffer = io.BytesIO()
        Image.new("RGB", size, (10, 120, 200)).save(buffer, format=fmt, **save_kwargs)
        buffer.seek(0)
        return buffer

    return _create
