"""Filter-chain resolution and decoding for PDF image XObjects.

PDF image streams reach a generic raster decoder in one of two shapes:

* a self-describing container (JPEG, JPEG 2000, a synthesized CCITT TIFF or
  the PNG produced by the JBIG2 decoder), opened with :func:`PIL.Image.open`;
* raw samples (Flate or uncompressed data), unpacked with
  :func:`PIL.Image.frombytes` using the geometry declared on the image
  dictionary.

Resolution is order-sensitive. General-purpose layers such as
``FlateDecode`` wrapped around an image-specific filter are removed first;
the last filter in the chain decides how the remaining bytes are read.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from typing import Any, Callable

from PIL import Image
from pypdf.filters import (
    ASCII85Decode,
    ASCIIHexDecode,
    FlateDecode,
    LZWDecode,
    RunLengthDecode,
)
from pypdf.generic import ArrayObject, DictionaryObject, NameObject, StreamObject, TextStringObject

from .exceptions import UnsupportedFilterError, UnsupportedPixelFormatError
from .jbig2 import JBIG2Engine, Jbig2decEngine
from .utils import clean_name

LOGGER = logging.getLogger("scanpagex.filters")

Resolver = Callable[[Any], Any]

FLATE = "FlateDecode"
DCT = "DCTDecode"
JPX = "JPXDecode"
CCITT = "CCITTFaxDecode"
JBIG2 = "JBIG2Decode"

# Abbreviations are only legal on inline images, accept them anyway.
_ABBREVIATIONS = {
    "Fl": FLATE,
    "LZW": "LZWDecode",
    "A85": "ASCII85Decode",
    "AHx": "ASCIIHexDecode",
    "RL": "RunLengthDecode",
    "DCT": DCT,
    "CCF": CCITT,
}

_GENERAL_PURPOSE = {
    FLATE: FlateDecode,
    "LZWDecode": LZWDecode,
    "ASCII85Decode": ASCII85Decode,
    "ASCIIHexDecode": ASCIIHexDecode,
    "RunLengthDecode": RunLengthDecode,
}

_PASSTHROUGH = {DCT, JPX}

_KNOWN_TERMINALS = {*_GENERAL_PURPOSE, *_PASSTHROUGH, CCITT, JBIG2}

_TIFF_SHORT = 3
_TIFF_LONG = 4


@dataclass(frozen=True, slots=True)
class FilterStep:
    name: str
    parms: DictionaryObject | None = None


@dataclass(frozen=True, slots=True)
class FilterChain:
    """Filters to apply to a raw image stream.

    ``layers`` are general-purpose filters applied in order before the
    ``terminal`` filter is dispatched. ``terminal`` is ``None`` for
    uncompressed image data.
    """

    layers: tuple[FilterStep, ...]
    terminal: FilterStep | None

    @property
    def names(self) -> list[str]:
        names = [step.name for step in self.layers]
        if self.terminal is not None:
            names.append(self.terminal.name)
        return names


@dataclass(frozen=True, slots=True)
class DecodedPayload:
    """Bytes ready for Pillow.

    ``container`` payloads are self-describing files; otherwise ``data``
    holds raw samples laid out per the image dictionary.
    """

    data: bytes
    container: bool
    filter_name: str | None = None


def _identity(obj: Any) -> Any:
    return obj


def _normalise_name(name: object) -> str:
    cleaned = clean_name(name)
    return _ABBREVIATIONS.get(cleaned, cleaned)


def _filter_names(filter_obj: object | None, resolve: Resolver) -> list[str]:
    filter_obj = resolve(filter_obj)
    if filter_obj is None:
        return []
    if isinstance(filter_obj, ArrayObject):
        return [_normalise_name(resolve(item)) for item in filter_obj]
    return [_normalise_name(filter_obj)]


def _decode_parms(parms_obj: object | None, count: int, resolve: Resolver) -> list[DictionaryObject | None]:
    parms_obj = resolve(parms_obj)
    if isinstance(parms_obj, ArrayObject):
        parms: list[DictionaryObject | None] = []
        for item in parms_obj:
            item = resolve(item)
            parms.append(item if isinstance(item, DictionaryObject) else None)
    elif isinstance(parms_obj, DictionaryObject):
        # A lone dictionary belongs to the last filter, the one that needs parameters.
        parms = [None] * max(count - 1, 0) + [parms_obj]
    else:
        parms = []
    parms.extend([None] * (count - len(parms)))
    return parms[:count]


def resolve_filter_chain(
    filter_obj: object | None,
    parms_obj: object | None = None,
    resolve: Resolver = _identity,
) -> FilterChain:
    """Work out which filters to apply to an image stream.

    ``[/FlateDecode /CCITTFaxDecode]`` resolves to an inflate layer followed
    by the CCITT terminal, ``[/CCITTFaxDecode]`` and ``/CCITTFaxDecode`` to
    the CCITT terminal alone.

    Raises:
        UnsupportedFilterError: If a known image filter is followed by
            further filters.
    """

    names = _filter_names(filter_obj, resolve)
    parms = _decode_parms(parms_obj, len(names), resolve)
    steps = [FilterStep(name, parm) for name, parm in zip(names, parms)]
    if not steps:
        return FilterChain(layers=(), terminal=None)

    index = 0
    while index < len(steps) - 1 and steps[index].name in _GENERAL_PURPOSE:
        index += 1
    if index != len(steps) - 1:
        raise UnsupportedFilterError(steps[index].name, names)
    return FilterChain(layers=tuple(steps[:index]), terminal=steps[index])


def _apply_general(step: FilterStep, data: bytes) -> bytes:
    decoder = _GENERAL_PURPOSE[step.name]
    LOGGER.debug("Applying %s to %d bytes", step.name, len(data))
    return decoder.decode(data, step.parms)


def _int_entry(dictionary: DictionaryObject | None, key: str, default: int) -> int:
    if dictionary is None or NameObject(key) not in dictionary:
        return default
    value = dictionary[NameObject(key)]
    if value is None:
        return default
    return int(value)


def _is_true(value: object | None) -> bool:
    return bool(getattr(value, "value", value))


def _bool_entry(dictionary: DictionaryObject | None, key: str) -> bool:
    if dictionary is None or NameObject(key) not in dictionary:
        return False
    return _is_true(dictionary[NameObject(key)])


def ccitt_tiff_header(
    width: int,
    height: int,
    data_length: int,
    *,
    bits_per_sample: int = 1,
    k: int = -1,
    black_is_1: bool = False,
) -> bytes:
    """Return a little-endian TIFF header wrapping one CCITT strip.

    The strip data must be appended directly after the header. *black_is_1*
    mirrors the ``/BlackIs1`` decode parameter: 1 bits are black instead of white.
    """

    compression = 4 if k < 0 else 3
    entries = [
        (256, _TIFF_LONG, width),  # ImageWidth
        (257, _TIFF_LONG, height),  # ImageLength
        (258, _TIFF_SHORT, bits_per_sample),  # BitsPerSample
        (259, _TIFF_SHORT, compression),  # Compression
        (262, _TIFF_SHORT, 1 if black_is_1 else 0),  # PhotometricInterpretation
        (273, _TIFF_LONG, 0),  # StripOffsets, patched below
        (277, _TIFF_SHORT, 1),  # SamplesPerPixel
        (278, _TIFF_LONG, height),  # RowsPerStrip
        (279, _TIFF_LONG, data_length),  # StripByteCounts
    ]
    if compression == 3:
        entries.append((292, _TIFF_LONG, 1 if k > 0 else 0))  # T4Options

    header_size = 8 + 2 + 12 * len(entries) + 4
    ifd = bytearray(struct.pack("<H", len(entries)))
    for tag, field_type, value in entries:
        if tag == 273:
            value = header_size
        # SHORT values are left-justified in the 4-byte value slot.
        ifd += struct.pack("<HHII", tag, field_type, 1, value)
    ifd += struct.pack("<I", 0)
    return struct.pack("<2sHI", b"II", 42, 8) + bytes(ifd)


def wrap_ccitt(image: DictionaryObject, data: bytes, parms: DictionaryObject | None) -> bytes:
    width = _int_entry(image, "/Width", 0)
    height = _int_entry(image, "/Height", 0)
    bits = _int_entry(image, "/BitsPerComponent", 1)
    k = _int_entry(parms, "/K", -1)
    black_is_1 = _bool_entry(parms, "/BlackIs1")
    LOGGER.debug("Wrapping %d bytes of CCITT data (%sx%s, K=%s) in TIFF", len(data), width, height, k)
    return ccitt_tiff_header(width, height, len(data), bits_per_sample=bits, k=k, black_is_1=black_is_1) + data


def _jbig2_globals(parms: DictionaryObject | None, resolve: Resolver) -> bytes | None:
    if parms is None:
        LOGGER.warning("JBIG2 image has no /DecodeParms; decoding without global segments")
        return None
    reference = parms.get(NameObject("/JBIG2Globals"))
    if reference is None:
        LOGGER.warning("JBIG2 image has no /JBIG2Globals; decoding without global segments")
        return None
    globals_obj = resolve(reference)
    if not isinstance(globals_obj, StreamObject):
        LOGGER.warning("JBIG2 globals %r did not resolve to a stream; ignoring", reference)
        return None
    return globals_obj.get_data()


def _raw_stream_bytes(stream: StreamObject) -> bytes:
    raw = getattr(stream, "_data", None)
    return bytes(raw) if raw is not None else b""


class ImageStreamDecoder:
    """Turn image XObject streams into Pillow images.

    Args:
        resolve: Resolves indirect references inside the document.
        jbig2_engine: Decoder used for ``JBIG2Decode`` streams.
    """

    def __init__(self, resolve: Resolver = _identity, jbig2_engine: JBIG2Engine | None = None) -> None:
        self.resolve = resolve
        self.jbig2_engine = jbig2_engine

    def decode_stream(self, image: StreamObject) -> DecodedPayload:
        """Run the filter chain of *image* and return the decoded payload.

        Raises:
            UnsupportedFilterError: If the chain ends in an unknown filter.
        """

        chain = resolve_filter_chain(
            image.get(NameObject("/Filter")),
            image.get(NameObject("/DecodeParms")),
            self.resolve,
        )
        terminal = chain.terminal
        if terminal is not None and terminal.name not in _KNOWN_TERMINALS:
            raise UnsupportedFilterError(terminal.name, chain.names)

        data = _raw_stream_bytes(image)
        for layer in chain.layers:
            data = _apply_general(layer, data)

        if terminal is None:
            return DecodedPayload(data=data, container=False)
        name = terminal.name
        if name in _GENERAL_PURPOSE:
            return DecodedPayload(data=_apply_general(terminal, data), container=False, filter_name=name)
        if name in _PASSTHROUGH:
            return DecodedPayload(data=data, container=True, filter_name=name)
        if name == CCITT:
            return DecodedPayload(data=wrap_ccitt(image, data, terminal.parms), container=True, filter_name=name)
        return DecodedPayload(data=self._decode_jbig2(data, terminal.parms), container=True, filter_name=JBIG2)

    def _decode_jbig2(self, data: bytes, parms: DictionaryObject | None) -> bytes:
        if self.jbig2_engine is None:
            self.jbig2_engine = Jbig2decEngine()
        globals_data = _jbig2_globals(parms, self.resolve)
        return self.jbig2_engine.decode(data, globals_data)

    def render(self, image: StreamObject) -> Image.Image:
        payload = self.decode_stream(image)
        if payload.container:
            return decode_first_frame(payload.data)
        return self._frombytes(image, payload.data)

    def _frombytes(self, image: StreamObject, data: bytes) -> Image.Image:
        width = _int_entry(image, "/Width", 0)
        height = _int_entry(image, "/Height", 0)
        if _is_true(self.resolve(image.get(NameObject("/ImageMask")))):
            bits, components, palette = 1, 1, None
        else:
            bits = _int_entry(image, "/BitsPerComponent", 8)
            components, palette = self._color_components(image.get(NameObject("/ColorSpace")))
            if components is None:
                components = _infer_components(len(data), width, height, bits)
        mode, rawmode = raw_layout(bits, components, indexed=palette is not None)
        bitmap = Image.frombytes(mode, (width, height), data, "raw", rawmode)
        if palette is not None:
            bitmap.putpalette(palette)
        return bitmap

    def _color_components(self, color_space: object | None) -> tuple[int | None, bytes | None]:
        color_space = self.resolve(color_space)
        if isinstance(color_space, ArrayObject) and color_space:
            family = clean_name(self.resolve(color_space[0]))
            if family == "Indexed" and len(color_space) >= 4:
                return 1, self._palette(color_space)
            if family == "ICCBased" and len(color_space) > 1:
                profile = self.resolve(color_space[1])
                if isinstance(profile, DictionaryObject):
                    return _int_entry(profile, "/N", 3), None
                return None, None
            return _family_components(family), None
        if color_space is None:
            return None, None
        return _family_components(clean_name(color_space)), None

    def _palette(self, color_space: ArrayObject) -> bytes:
        base_components, _ = self._color_components(color_space[1])
        hival = int(self.resolve(color_space[2]))
        lookup = self.resolve(color_space[3])
        if isinstance(lookup, StreamObject):
            table = lookup.get_data()
        elif isinstance(lookup, TextStringObject):
            # Bytes as read; get_original_bytes() re-encodes as UTF-16.
            table = lookup.original_bytes
        elif isinstance(lookup, (bytes, bytearray)):
            table = bytes(lookup)
        else:
            table = bytes(str(lookup), "latin1") if lookup is not None else b""
        table = table[: (hival + 1) * (base_components or 1)]
        if base_components == 1:
            table = bytes(value for value in table for _ in range(3))
        elif base_components != 3:
            raise UnsupportedPixelFormatError(8, base_components or 0)
        return table


def _family_components(family: str) -> int | None:
    if family in {"DeviceGray", "CalGray", "G"}:
        return 1
    if family in {"DeviceRGB", "CalRGB", "Lab", "RGB"}:
        return 3
    if family in {"DeviceCMYK", "CMYK"}:
        return 4
    return None


def _infer_components(length: int, width: int, height: int, bits: int) -> int:
    for components in (1, 3, 4):
        row_bytes = (width * components * bits + 7) // 8
        if row_bytes * height == length:
            return components
    return 1


_RAW_LAYOUTS = {
    (1, 1, False): ("1", "1"),
    (2, 1, False): ("L", "L;2"),
    (4, 1, False): ("L", "L;4"),
    (8, 1, False): ("L", "L"),
    (16, 1, False): ("I;16B", "I;16B"),
    (8, 3, False): ("RGB", "RGB"),
    (16, 3, False): ("RGB", "RGB;16B"),
    (8, 4, False): ("CMYK", "CMYK"),
    (1, 1, True): ("P", "P;1"),
    (2, 1, True): ("P", "P;2"),
    (4, 1, True): ("P", "P;4"),
    (8, 1, True): ("P", "P"),
}


def raw_layout(bits: int, components: int, *, indexed: bool = False) -> tuple[str, str]:
    """Return the Pillow ``(mode, rawmode)`` pair for raw PDF samples."""

    try:
        return _RAW_LAYOUTS[(bits, components, indexed)]
    except KeyError:
        raise UnsupportedPixelFormatError(bits, components) from None


def decode_first_frame(data: bytes) -> Image.Image:
    """Decode a raster container and return a copy of its first frame."""

    with Image.open(io.BytesIO(data)) as container:
        container.seek(0)
        return container.copy()


__all__ = [
    "FilterStep",
    "FilterChain",
    "DecodedPayload",
    "ImageStreamDecoder",
    "resolve_filter_chain",
    "ccitt_tiff_header",
    "wrap_ccitt",
    "raw_layout",
    "decode_first_frame",
]
