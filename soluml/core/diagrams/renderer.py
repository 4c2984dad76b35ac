"""Graphviz dot -> SVG layout and SVG -> PNG rasterization.

Layout:  the ``graphviz`` package piping dot text through the Graphviz
         ``dot`` executable (engine overridable via SOLUML_DOT_ENGINE).
Raster:  ``rsvg-convert`` run as a subprocess on the SVG file
         (binary overridable via SOLUML_RSVG_CONVERT).

Both are exposed behind small abstract interfaces so the render pipeline
can be driven with substitutes in tests or by callers with their own
tooling.
"""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import graphviz

from ..constants import (
    DEFAULT_DOT_ENGINE,
    DEFAULT_RSVG_CONVERT,
    DOT_ENGINE_ENV,
    RSVG_CONVERT_ENV,
)
from ..errors import LayoutError, RasterError

logger = logging.getLogger(__name__)


class LayoutEngine(ABC):
    """Turns dot text into a vector image."""

    @abstractmethod
    def layout(self, dot: str) -> bytes:
        """Lay out a dot graph.

        Args:
            dot: Graphviz dot source

        Returns:
            SVG document bytes

        Raises:
            LayoutError: If the graph could not be laid out
        """
        ...


class Rasterizer(ABC):
    """Turns an SVG file into a PNG file."""

    @abstractmethod
    def rasterize(self, svg_path: Path, out_dir: Path) -> Path:
        """Convert an SVG file to a PNG with the same base name in out_dir.

        Returns:
            Path of the PNG written

        Raises:
            RasterError: If conversion failed
        """
        ...


class GraphvizLayoutEngine(LayoutEngine):
    """Layout via the Graphviz executables."""

    def __init__(self, engine: Optional[str] = None):
        self.engine = engine or os.getenv(DOT_ENGINE_ENV, DEFAULT_DOT_ENGINE)

    def layout(self, dot: str) -> bytes:
        logger.debug("About to lay out dot with %s (%d chars)", self.engine, len(dot))
        try:
            svg = graphviz.pipe(self.engine, "svg", dot.encode("utf-8"))
        except graphviz.ExecutableNotFound as e:
            raise LayoutError(
                f"Graphviz executable '{self.engine}' not found, install Graphviz", dot
            ) from e
        except graphviz.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise LayoutError(
                f"Failed to convert dot to SVG (exit={e.returncode}): {stderr[:300]}", dot
            ) from e

        logger.debug("Laid out dot to SVG (%d bytes)", len(svg))
        return svg


# ---------------------------------------------------------------------------
# rsvg-convert availability (checked once per process)
# ---------------------------------------------------------------------------

_rsvg_checked = False
_rsvg_path: Optional[str] = None


def _resolve_rsvg_convert() -> Optional[str]:
    """Return the rsvg-convert executable path, or None if not installed."""
    global _rsvg_checked, _rsvg_path

    if _rsvg_checked:
        return _rsvg_path

    _rsvg_checked = True
    configured = os.getenv(RSVG_CONVERT_ENV, DEFAULT_RSVG_CONVERT)
    _rsvg_path = shutil.which(configured)
    if _rsvg_path is None:
        logger.info("%s not found, PNG output unavailable", configured)
    else:
        logger.info("rsvg-convert available at %s", _rsvg_path)
    return _rsvg_path


class RsvgRasterizer(Rasterizer):
    """Rasterization via the librsvg ``rsvg-convert`` command."""

    def __init__(self, executable: Optional[str] = None):
        self._executable = executable

    def rasterize(self, svg_path: Path, out_dir: Path) -> Path:
        svg_path = Path(svg_path).resolve()
        png_path = Path(out_dir) / (svg_path.stem + ".png")

        executable = self._executable or _resolve_rsvg_convert()
        if executable is None:
            raise RasterError(
                f"Failed to convert SVG file {svg_path} to PNG file {png_path}: "
                f"rsvg-convert is not installed",
                svg_path,
                png_path,
            )

        cmd = [executable, "--format", "png", "--output", str(png_path), str(svg_path)]
        logger.debug("About to convert svg file %s to png file %s", svg_path, png_path)

        try:
            result = subprocess.run(cmd, capture_output=True)
        except OSError as e:
            raise RasterError(
                f"Failed to convert SVG file {svg_path} to PNG file {png_path}: {e}",
                svg_path,
                png_path,
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RasterError(
                f"Failed to convert SVG file {svg_path} to PNG file {png_path} "
                f"(exit={result.returncode}): {stderr[:300] or '(empty)'}",
                svg_path,
                png_path,
            )

        return png_path
