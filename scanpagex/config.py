"""Runtime configuration for :mod:`scanpagex`."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}

PASSWORD_ENV_VAR = "SCANPAGEX_PDF_PASSWORD"
JBIG2DEC_ENV_VAR = "SCANPAGEX_JBIG2DEC"
SNIFF_WINDOW_ENV_VAR = "SCANPAGEX_SNIFF_WINDOW"
STRICT_ENV_VAR = "SCANPAGEX_STRICT"

DEFAULT_SNIFF_WINDOW = 1024


def _env_flag(name: str) -> bool:
    value = os.getenv(name)
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Options controlling how documents are opened.

    Attributes:
        password: Password used to decrypt encrypted PDFs. ``None`` tries the
            empty user password.
        jbig2dec_path: Explicit path to the ``jbig2dec`` executable. When
            ``None`` the executable is looked up on ``PATH``.
        sniff_window: Number of leading bytes searched for a PDF header.
        strict: Forwarded to :class:`pypdf.PdfReader`.
    """

    password: str | None = None
    jbig2dec_path: str | None = None
    sniff_window: int = DEFAULT_SNIFF_WINDOW
    strict: bool = False

    @classmethod
    def from_env(cls) -> "ParserConfig":
        """Build a configuration from ``SCANPAGEX_*`` environment variables."""

        return cls(
            password=os.getenv(PASSWORD_ENV_VAR),
            jbig2dec_path=os.getenv(JBIG2DEC_ENV_VAR) or None,
            sniff_window=_env_int(SNIFF_WINDOW_ENV_VAR, DEFAULT_SNIFF_WINDOW),
            strict=_env_flag(STRICT_ENV_VAR),
        )


__all__ = [
    "ParserConfig",
    "PASSWORD_ENV_VAR",
    "JBIG2DEC_ENV_VAR",
    "SNIFF_WINDOW_ENV_VAR",
    "STRICT_ENV_VAR",
    "DEFAULT_SNIFF_WINDOW",
]
