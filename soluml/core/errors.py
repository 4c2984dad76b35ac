"""Exception types raised by soluml.

Every error carries the input needed to diagnose it without re-running:
the contract address and raw payload for fetch failures, the source text
for parse failures, the dot text for layout failures and the file paths
for raster and write failures.
"""

from pathlib import Path
from typing import Any, Optional


class SolUmlError(RuntimeError):
    """Base class for all soluml failures."""


class SourceFetchError(SolUmlError):
    """Verified source code could not be retrieved or unpacked."""

    def __init__(self, message: str, address: str, payload: Any = None):
        super().__init__(message)
        self.address = address
        self.payload = payload


class SourceParseError(SolUmlError):
    """The source parser rejected a Solidity file."""

    def __init__(self, message: str, filename: str, source: str):
        super().__init__(message)
        self.filename = filename
        self.source = source


class LayoutError(SolUmlError):
    """The layout engine failed to turn dot text into an image."""

    def __init__(self, message: str, dot: str):
        super().__init__(message)
        self.dot = dot


class RasterError(SolUmlError):
    """An SVG file could not be converted to PNG."""

    def __init__(self, message: str, svg_path: Path, png_path: Optional[Path] = None):
        super().__init__(message)
        self.svg_path = svg_path
        self.png_path = png_path


class OutputWriteError(SolUmlError):
    """A diagram file could not be written."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path
