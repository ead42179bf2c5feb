"""Custom exceptions raised by :mod:`scanpagex`."""

from __future__ import annotations

from typing import Sequence


class ScanPageXError(Exception):
    """Base exception for all errors raised by :mod:`scanpagex`."""


class UnrecognizedFormatError(ScanPageXError):
    """Raised when the input is neither a readable PDF nor a raster image."""


class EncryptedPDFError(ScanPageXError):
    """Raised when an encrypted PDF cannot be decrypted with the configured password."""


class UnsupportedFilterError(ScanPageXError):
    """Raised when an image stream declares a filter that cannot be resolved."""

    def __init__(self, filter_name: str, chain: Sequence[str] | None = None) -> None:
        self.filter_name = filter_name
        self.chain = list(chain) if chain is not None else [filter_name]
        message = f"Don't know how to decode PDF image filter {filter_name!r}"
        if len(self.chain) > 1:
            message += f" in filter chain {self.chain!r}"
        super().__init__(message)


class UnsupportedPixelFormatError(ScanPageXError):
    """Raised when raw image samples use a layout Pillow cannot unpack."""

    def __init__(self, bits_per_component: int, components: int) -> None:
        self.bits_per_component = bits_per_component
        self.components = components
        super().__init__(
            f"Unsupported raw image layout: {bits_per_component} bits per component, "
            f"{components} component(s)"
        )


class DecoderUnavailableError(ScanPageXError):
    """Raised when an external decoder binary is not installed."""


class JBIG2DecodeError(ScanPageXError):
    """Raised when the JBIG2 decoder fails on a stream."""

    def __init__(self, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no diagnostic output"
        super().__init__(f"jbig2dec exited with status {returncode}: {detail}")


__all__ = [
    "ScanPageXError",
    "UnrecognizedFormatError",
    "EncryptedPDFError",
    "UnsupportedFilterError",
    "UnsupportedPixelFormatError",
    "DecoderUnavailableError",
    "JBIG2DecodeError",
]
