"""DiagramService — orchestrator for class diagram rendering and export.

Pipeline, strictly in order:
  class entities -> dot text -> (layout) SVG -> (raster) PNG -> files

Dot text is always generated fresh from the entities. The SVG is written
to disk whenever a PNG is wanted because the rasterizer works on files,
not in-memory bytes.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..constants import DEFAULT_OUTPUT_BASENAME
from ..errors import OutputWriteError
from .models import ClassEntity, ClassOptions, OutputFormat
from .renderer import GraphvizLayoutEngine, LayoutEngine, Rasterizer, RsvgRasterizer
from .structural import SubgraphCounter, generate_class_diagram

logger = logging.getLogger(__name__)


def resolve_output_path(
    base_name: Union[str, Path],
    output_format: OutputFormat,
    output_filename: Optional[Union[str, Path]] = None,
    cwd: Optional[Path] = None,
) -> Path:
    """Decide where diagram files are written.

    Policy:
      1. An explicit output_filename is used as-is. It names the dot file
         for ``dot``, the SVG for ``svg`` and ``all``; for ``png`` the SVG
         and PNG are written beside it with its stem.
      2. Otherwise ``<base_name>.<ext>``, where ext is the output format
         (``svg`` when every format is requested).
      3. If base_name is an existing directory, the file is placed inside
         it and named after the working directory, e.g. running in
         ``/work/token`` with base_name ``out/`` gives ``out/token.svg``
         (``classDiagram`` when the working directory is the root).

    Args:
        base_name: Requested base name, usually the input file or folder
        output_format: Requested format
        output_filename: Explicit path that overrides the policy
        cwd: Working directory. Defaults to the process working directory.

    Returns:
        The primary output path. Sibling .dot/.svg/.png files share its stem.
    """
    if output_filename:
        return Path(output_filename)

    ext = "svg" if output_format is OutputFormat.ALL else output_format.value
    base = Path(base_name)

    if base.is_dir():
        cwd = cwd or Path(os.getcwd())
        # The filesystem root has no name to borrow
        base = base / (cwd.name or DEFAULT_OUTPUT_BASENAME)

    return base.with_name(f"{base.name}.{ext}")


def _write(path: Path, content: Union[str, bytes], kind: str) -> Path:
    """Write a diagram file. Missing directories are not created."""
    logger.debug("About to write %s file to %s", kind, path)
    try:
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(f"Failed to write {kind} file to {path}: {e}", path) from e

    logger.info("Generated %s file %s", kind, path)
    return path


class DiagramService:
    """Renders class entities to dot, SVG and PNG."""

    def __init__(
        self,
        layout_engine: Optional[LayoutEngine] = None,
        rasterizer: Optional[Rasterizer] = None,
    ):
        """Initialize DiagramService.

        Args:
            layout_engine: dot -> SVG engine. Defaults to Graphviz.
            rasterizer: SVG file -> PNG converter. Defaults to rsvg-convert.
        """
        self._layout_engine = layout_engine or GraphvizLayoutEngine()
        self._rasterizer = rasterizer or RsvgRasterizer()

    def render(
        self,
        entities: Sequence[ClassEntity],
        cluster_folders: bool = False,
        options: Optional[ClassOptions] = None,
    ) -> str:
        """Generate dot text. Every call uses its own subgraph counter."""
        return generate_class_diagram(
            entities,
            cluster_folders=cluster_folders,
            options=options,
            counter=SubgraphCounter(cluster_folders),
        )

    def render_svg(
        self,
        entities: Sequence[ClassEntity],
        cluster_folders: bool = False,
        options: Optional[ClassOptions] = None,
    ) -> str:
        """Generate the SVG diagram in memory without writing any files."""
        dot = self.render(entities, cluster_folders, options)
        return self._layout_engine.layout(dot).decode("utf-8")

    def render_and_export(
        self,
        entities: Sequence[ClassEntity],
        base_name: Union[str, Path] = DEFAULT_OUTPUT_BASENAME,
        output_format: Union[OutputFormat, str] = OutputFormat.SVG,
        output_filename: Optional[Union[str, Path]] = None,
        cluster_folders: bool = False,
        options: Optional[ClassOptions] = None,
    ) -> List[Path]:
        """Render entities and write the requested diagram files.

        Args:
            entities: Parsed class entities
            base_name: Base name for output files (see resolve_output_path)
            output_format: dot, svg, png or all
            output_filename: Explicit output path
            cluster_folders: Draw source folders as boxes
            options: What to hide

        Returns:
            Paths of the files written, in the order they were written.

        Raises:
            LayoutError: dot -> SVG failed
            RasterError: SVG -> PNG failed
            OutputWriteError: a file could not be written
        """
        output_format = OutputFormat(output_format)
        dot = self.render(entities, cluster_folders, options)
        target = resolve_output_path(base_name, output_format, output_filename)
        written: List[Path] = []

        # An explicit filename names the primary artifact exactly; siblings share its stem
        explicit = bool(output_filename)

        if output_format in (OutputFormat.DOT, OutputFormat.ALL):
            dot_path = target if explicit and output_format is OutputFormat.DOT else target.with_suffix(".dot")
            written.append(_write(dot_path, dot, "dot"))
            if output_format is OutputFormat.DOT:
                return written

        svg = self._layout_engine.layout(dot)

        if explicit and output_format in (OutputFormat.SVG, OutputFormat.ALL):
            svg_path = target
        else:
            svg_path = target.with_suffix(".svg")
        written.append(_write(svg_path, svg, "svg"))

        if output_format in (OutputFormat.PNG, OutputFormat.ALL):
            png_path = self._rasterizer.rasterize(svg_path, svg_path.parent)
            logger.info("Generated png file %s", png_path)
            written.append(png_path)

        return written
