"""JBIG2 decoding through the :command:`jbig2dec` command-line decoder."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from .exceptions import DecoderUnavailableError, JBIG2DecodeError

LOGGER = logging.getLogger("scanpagex.jbig2")


class JBIG2Engine(Protocol):
    """Anything able to turn embedded JBIG2 segments into a raster container."""

    def decode(self, data: bytes, globals_data: bytes | None = None) -> bytes:
        """Decode *data*, using *globals_data* as the shared segment context."""


class Jbig2decEngine:
    """Decode PDF-embedded JBIG2 streams with :command:`jbig2dec`.

    The decoder is run in embedded mode so it accepts the segment streams
    found inside PDFs, where the file header is stripped and shared symbol
    dictionaries live in a separate globals stream. The result is PNG bytes.
    """

    def __init__(self, executable: str | None = None) -> None:
        self._executable = executable

    def executable(self) -> str:
        candidate = self._executable or "jbig2dec"
        resolved = shutil.which(candidate)
        if not resolved:
            raise DecoderUnavailableError(
                f"jbig2dec not found ({candidate!r}); install jbig2dec to decode JBIG2 images"
            )
        return resolved

    def decode(self, data: bytes, globals_data: bytes | None = None) -> bytes:
        executable = self.executable()
        with tempfile.TemporaryDirectory(prefix="scanpagex-jbig2-") as tmp:
            directory = Path(tmp)
            inputs: list[Path] = []
            if globals_data is not None:
                globals_path = directory / "globals.jbig2"
                globals_path.write_bytes(globals_data)
                inputs.append(globals_path)
            page_path = directory / "page.jbig2"
            page_path.write_bytes(data)
            inputs.append(page_path)
            output_path = directory / "page.png"

            command = [
                executable,
                "--embedded",
                "--format",
                "png",
                "--output",
                str(output_path),
                *(str(path) for path in inputs),
            ]
            environment = dict(os.environ, LC_ALL="C")
            LOGGER.debug("Running %s", " ".join(command))
            result = subprocess.run(command, capture_output=True, env=environment)
            stderr = result.stderr.decode("utf-8", "replace") if result.stderr else ""
            if result.returncode != 0 or not output_path.exists():
                LOGGER.error("jbig2dec failed with status %s: %s", result.returncode, stderr)
                raise JBIG2DecodeError(result.returncode, stderr)
            return output_path.read_bytes()


__all__ = ["JBIG2Engine", "Jbig2decEngine"]
