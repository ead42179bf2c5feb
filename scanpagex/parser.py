"""Document entry points: sniff the container and enumerate its pages."""

from __future__ import annotations

import io
import logging
import zlib
from typing import BinaryIO, Iterator

from PIL import Image
from pypdf.errors import PyPdfError

from .config import ParserConfig
from .exceptions import ScanPageXError
from .jbig2 import JBIG2Engine
from .models import DocumentMetadata, PageImage
from .pdf import iter_pdf_pages, open_pdf
from .raster import iter_raster_pages, open_raster
from .utils import PathLike, ensure_seekable, has_pdf_header, peek, resolve_path

LOGGER = logging.getLogger("scanpagex.parser")


def is_pdf_stream(stream: BinaryIO, window: int = 1024) -> bool:
    """Return ``True`` if the first *window* bytes of *stream* hold a PDF header."""

    return has_pdf_header(peek(stream, window))


def parse(
    stream: BinaryIO,
    *,
    config: ParserConfig | None = None,
    jbig2_engine: JBIG2Engine | None = None,
) -> DocumentMetadata:
    """Open *stream* and return a lazy sequence of its page images.

    PDF input yields one page per embedded image XObject; anything else is
    opened as a (multi-frame) raster image yielding one page per frame.
    *stream* is not closed and must stay open while pages are consumed.

    Args:
        stream: Readable binary stream.
        config: Parsing options. Defaults to :meth:`ParserConfig.from_env`.
        jbig2_engine: Decoder used for JBIG2 images instead of ``jbig2dec``.

    Raises:
        UnrecognizedFormatError: If neither the PDF nor the raster opener
            accepts the stream.
    """

    config = config or ParserConfig.from_env()
    stream = ensure_seekable(stream)

    if is_pdf_stream(stream, config.sniff_window):
        LOGGER.debug("Detected PDF header")
        document = open_pdf(stream, config, jbig2_engine)
        return DocumentMetadata(
            pages=iter_pdf_pages(document),
            source_kind="pdf",
            extra={"page_count": document.page_count},
        )

    LOGGER.debug("No PDF header found, opening as raster image")
    handle = open_raster(stream)
    return DocumentMetadata(
        pages=iter_raster_pages(handle),
        source_kind="raster",
        extra={"format": handle.image.format},
    )


def parse_file(path: PathLike, **kwargs: object) -> DocumentMetadata:
    """Parse the document stored at *path*.

    The file is read into memory so no handle is left open.
    """

    source = resolve_path(path)
    LOGGER.debug("Reading %s", source)
    return parse(io.BytesIO(source.read_bytes()), **kwargs)  # type: ignore[arg-type]


def iter_page_bitmaps(
    document: DocumentMetadata,
    *,
    skip_errors: bool = False,
) -> Iterator[tuple[PageImage, Image.Image]]:
    """Materialize every page of *document* in the order it was produced.

    With ``skip_errors`` a page whose image cannot be decoded is logged and
    skipped instead of aborting the iteration.
    """

    for page in document.pages:
        try:
            bitmap = page.get_image()
        except (ScanPageXError, PyPdfError, zlib.error, OSError, ValueError) as exc:
            if not skip_errors:
                raise
            LOGGER.warning("Skipping page %s (%s): %s", page.page_number, page.kind.value, exc)
            continue
        yield page, bitmap


__all__ = ["is_pdf_stream", "parse", "parse_file", "iter_page_bitmaps"]
