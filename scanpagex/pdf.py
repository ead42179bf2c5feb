"""Embedded image enumeration for PDF documents."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Iterator

from PIL import Image
from pypdf import PasswordType, PdfReader
from pypdf.errors import PyPdfError
from pypdf.generic import (
    DictionaryObject,
    IndirectObject,
    NameObject,
    NullObject,
    StreamObject,
)

from .config import ParserConfig
from .exceptions import EncryptedPDFError, UnrecognizedFormatError
from .filters import ImageStreamDecoder
from .jbig2 import JBIG2Engine, Jbig2decEngine
from .models import PdfEmbeddedImagePage

LOGGER = logging.getLogger("scanpagex.pdf")


class PdfDocumentGraph:
    """Object-graph view of a parsed PDF shared by all of its page descriptors.

    The document owns every dictionary and stream; references between them
    are looked up through :meth:`resolve` and never copied.
    """

    def __init__(self, reader: PdfReader, jbig2_engine: JBIG2Engine | None = None) -> None:
        self.reader = reader
        self.decoder = ImageStreamDecoder(self.resolve, jbig2_engine)

    def resolve(self, obj: Any) -> Any | None:
        """Resolve *obj* if it is an indirect reference or ``(idnum, generation)`` key.

        Returns ``None`` when the reference cannot be resolved; any other
        value is returned unchanged.
        """

        if isinstance(obj, tuple):
            obj = IndirectObject(obj[0], obj[1], self.reader)
        if not isinstance(obj, IndirectObject):
            return obj
        try:
            resolved = obj.get_object()
        except Exception as exc:  # pragma: no cover - reader errors vary
            LOGGER.warning("Unable to resolve %s: %s", obj, exc)
            return None
        return None if isinstance(resolved, NullObject) else resolved

    def render_image(self, image: StreamObject) -> Image.Image:
        return self.decoder.render(image)

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)


def open_pdf(
    stream: BinaryIO,
    config: ParserConfig | None = None,
    jbig2_engine: JBIG2Engine | None = None,
) -> PdfDocumentGraph:
    """Open *stream* as a PDF and wrap it in a :class:`PdfDocumentGraph`."""

    config = config or ParserConfig()
    try:
        reader = PdfReader(stream, strict=config.strict)
    except (PyPdfError, ValueError, OSError) as exc:
        LOGGER.error("Failed to read PDF: %s", exc)
        raise UnrecognizedFormatError("Input has a PDF header but could not be parsed") from exc

    if reader.is_encrypted:
        LOGGER.debug("Attempting to decrypt encrypted PDF")
        try:
            outcome = reader.decrypt(config.password or "")
        except Exception as exc:  # pragma: no cover - decrypt errors vary
            LOGGER.error("Failed to decrypt PDF: %s", exc)
            raise EncryptedPDFError("Unable to decrypt encrypted PDF") from exc
        if outcome == PasswordType.NOT_DECRYPTED:
            LOGGER.error("Encrypted PDF rejected the configured password")
            raise EncryptedPDFError("Encrypted PDF cannot be decrypted with the configured password")

    if jbig2_engine is None:
        jbig2_engine = Jbig2decEngine(config.jbig2dec_path)
    document = PdfDocumentGraph(reader, jbig2_engine)
    try:
        page_count = document.page_count
    except (PyPdfError, ValueError, KeyError) as exc:
        LOGGER.error("Failed to read PDF page tree: %s", exc)
        raise UnrecognizedFormatError("PDF page tree could not be read") from exc
    LOGGER.info("Opened PDF with %d page(s)", page_count)
    return document


def _is_image_xobject(obj: object) -> bool:
    if not isinstance(obj, DictionaryObject):
        return False
    subtype = obj.get(NameObject("/Subtype"))
    return isinstance(subtype, NameObject) and subtype == NameObject("/Image")


def iter_pdf_pages(document: PdfDocumentGraph) -> Iterator[PdfEmbeddedImagePage]:
    """Yield one descriptor per image XObject, page by page.

    Pages without ``/Resources`` or ``/XObject`` contribute nothing.
    """

    for page_number, page in enumerate(document.reader.pages, start=1):
        resources = document.resolve(page.get(NameObject("/Resources")))
        if not isinstance(resources, DictionaryObject):
            LOGGER.debug("Page %d has no resources", page_number)
            continue
        xobjects = document.resolve(resources.get(NameObject("/XObject")))
        if not isinstance(xobjects, DictionaryObject):
            LOGGER.debug("Page %d has no XObjects", page_number)
            continue
        for name, reference in xobjects.items():
            xobject = document.resolve(reference)
            if xobject is None:
                LOGGER.warning("Skipping unresolvable XObject %s on page %d", name, page_number)
                continue
            if not _is_image_xobject(xobject):
                continue
            LOGGER.debug("Found image %s on page %d", name, page_number)
            yield PdfEmbeddedImagePage(document=document, image=xobject, page_number=page_number)


__all__ = ["PdfDocumentGraph", "open_pdf", "iter_pdf_pages"]
