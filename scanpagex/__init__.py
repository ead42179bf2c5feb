"""Per-page raster extraction for scanned PDF and multi-frame image documents."""

from __future__ import annotations

from .config import ParserConfig
from .exceptions import (
    DecoderUnavailableError,
    EncryptedPDFError,
    JBIG2DecodeError,
    ScanPageXError,
    UnrecognizedFormatError,
    UnsupportedFilterError,
    UnsupportedPixelFormatError,
)
from .filters import DecodedPayload, FilterChain, ImageStreamDecoder, resolve_filter_chain
from .jbig2 import JBIG2Engine, Jbig2decEngine
from .models import (
    DocumentMetadata,
    FrameDimension,
    PageImage,
    PageKind,
    PdfEmbeddedImagePage,
    RasterFramePage,
)
from .parser import is_pdf_stream, iter_page_bitmaps, parse, parse_file

__version__ = "1.0.0"

__all__ = [
    "parse",
    "parse_file",
    "iter_page_bitmaps",
    "is_pdf_stream",
    "resolve_filter_chain",
    "ImageStreamDecoder",
    "FilterChain",
    "DecodedPayload",
    "JBIG2Engine",
    "Jbig2decEngine",
    "ParserConfig",
    "DocumentMetadata",
    "PageImage",
    "PageKind",
    "FrameDimension",
    "RasterFramePage",
    "PdfEmbeddedImagePage",
    "ScanPageXError",
    "UnrecognizedFormatError",
    "EncryptedPDFError",
    "UnsupportedFilterError",
    "UnsupportedPixelFormatError",
    "DecoderUnavailableError",
    "JBIG2DecodeError",
    "__version__",
]
