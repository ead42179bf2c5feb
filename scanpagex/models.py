"""Page descriptors and document metadata produced by :func:`scanpagex.parse`.

A page descriptor only records *where* a page bitmap lives. Pixel data is
decoded by :meth:`get_image` on every call and is never cached.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Iterator, Union

from PIL import Image

if TYPE_CHECKING:
    from pypdf.generic import StreamObject

    from .pdf import PdfDocumentGraph
    from .raster import RasterHandle


class PageKind(str, enum.Enum):
    RASTER_FRAME = "raster_frame"
    PDF_IMAGE = "pdf_image"


@dataclass(frozen=True, slots=True)
class FrameDimension:
    """Immutable description of how frames are laid out in a raster file.

    ``kind`` is ``"page"`` for page stacks such as multi-page TIFF and
    ``"time"`` for animations.
    """

    kind: str
    frame_count: int


@dataclass(slots=True, eq=False)
class RasterFramePage:
    """One frame of a multi-frame raster image.

    ``page_number`` is the 0-based frame index. All frames of a document
    share one :class:`~scanpagex.raster.RasterHandle`, so frames must be
    materialized in the order they were produced and never concurrently.
    """

    kind: ClassVar[PageKind] = PageKind.RASTER_FRAME

    handle: "RasterHandle"
    dimension: FrameDimension
    frame_index: int
    id: str | None = None

    @property
    def page_number(self) -> int:
        return self.frame_index

    def get_image(self) -> Image.Image:
        return self.handle.render_frame(self.dimension, self.frame_index)


@dataclass(slots=True, eq=False)
class PdfEmbeddedImagePage:
    """An image XObject found in the resources of a PDF page.

    ``page_number`` is the 1-based position of the source page, so every
    image on the same page carries the same number.
    """

    kind: ClassVar[PageKind] = PageKind.PDF_IMAGE

    document: "PdfDocumentGraph"
    image: "StreamObject"
    page_number: int
    id: str | None = None

    def get_image(self) -> Image.Image:
        return self.document.render_image(self.image)


PageImage = Union[RasterFramePage, PdfEmbeddedImagePage]


@dataclass(slots=True)
class DocumentMetadata:
    """Result of parsing one document.

    ``pages`` is a single-pass generator; re-iterating requires parsing the
    source again.
    """

    pages: Iterator[PageImage]
    source_kind: str
    extra: dict[str, object] = field(default_factory=dict)

    def __iter__(self) -> Iterator[PageImage]:
        return self.pages


__all__ = [
    "PageKind",
    "FrameDimension",
    "RasterFramePage",
    "PdfEmbeddedImagePage",
    "PageImage",
    "DocumentMetadata",
]
