"""Utility helpers shared by :mod:`scanpagex` modules."""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import BinaryIO, Union

PathLike = Union[str, Path]

_PDF_HEADER = re.compile(rb"%PDF-\d\.\d")


def resolve_path(path: PathLike | None) -> Path:
    if path is None:
        raise ValueError("Path must not be None")
    return Path(path).expanduser().resolve()


def ensure_seekable(stream: BinaryIO) -> BinaryIO:
    """Return *stream* itself, or an in-memory copy if it cannot seek."""

    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        return stream
    return io.BytesIO(stream.read())


def peek(stream: BinaryIO, size: int) -> bytes:
    """Read up to *size* bytes without moving the stream position."""

    position = stream.tell()
    try:
        return stream.read(size)
    finally:
        stream.seek(position)


def has_pdf_header(head: bytes) -> bool:
    """Return ``True`` if *head* contains a ``%PDF-x.y`` header."""

    return _PDF_HEADER.search(head) is not None


def clean_name(name: object) -> str:
    raw = str(name)
    return raw[1:] if raw.startswith("/") else raw


__all__ = [
    "PathLike",
    "resolve_path",
    "ensure_seekable",
    "peek",
    "has_pdf_header",
    "clean_name",
]
