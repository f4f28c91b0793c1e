"""
Coordinate projection

One code path projects a panel's mm geometry into pixels at any DPI. The
editor calls it with its screen DPI, the exporter with the print DPI; the DPI
is always supplied by the caller. Nothing here rounds.

Frame: the bleed box's top-left is pixel (0, 0). Trim-relative content
(design elements, fold lines) is shifted by the trim offset.
"""

from dataclasses import dataclass
from typing import Tuple

from card_builder.spec.print_spec import Box, FoldLine, PrintSide
from card_builder.units import mm_to_px


@dataclass(frozen=True)
class PanelProjection:
    """A panel's boxes and fold lines in pixels at ``dpi``."""
    dpi: float
    bleed_box: Box
    trim_box: Box
    safe_box: Box
    fold_lines: Tuple[FoldLine, ...]

    @property
    def trim_offset(self) -> float:
        return self.trim_box.x

    def content_to_surface(self, x_px: float, y_px: float) -> Tuple[float, float]:
        """Trim-relative content pixels to bleed-origin surface pixels."""
        return x_px + self.trim_box.x, y_px + self.trim_box.y

    def surface_to_content(self, x_px: float, y_px: float) -> Tuple[float, float]:
        return x_px - self.trim_box.x, y_px - self.trim_box.y

    def to_dict(self):
        return {
            "dpi": self.dpi,
            "bleedBoxPx": self.bleed_box.to_dict(),
            "trimBoxPx": self.trim_box.to_dict(),
            "safeBoxPx": self.safe_box.to_dict(),
            "foldLinesPx": [line.to_dict() for line in self.fold_lines],
        }


def project_panel(side: PrintSide, dpi: float) -> PanelProjection:
    """
    Project a panel's derived mm boxes and fold lines into pixels.

    Args:
        side: panel to project
        dpi: target resolution (screen or print)

    Returns:
        PanelProjection in the bleed-origin pixel frame
    """
    trim_offset = mm_to_px(side.bleed_mm, dpi)
    return PanelProjection(
        dpi=dpi,
        bleed_box=_box_to_px(side.bleed_box(), dpi),
        trim_box=_box_to_px(side.trim_box(), dpi),
        safe_box=_box_to_px(side.safe_box(), dpi),
        fold_lines=tuple(_line_to_px(line, dpi).translated(trim_offset, trim_offset) for line in side.fold_lines),
    )


def _box_to_px(box: Box, dpi: float) -> Box:
    return Box(mm_to_px(box.x, dpi), mm_to_px(box.y, dpi), mm_to_px(box.w, dpi), mm_to_px(box.h, dpi))


def _line_to_px(line: FoldLine, dpi: float) -> FoldLine:
    return FoldLine(mm_to_px(line.x1, dpi), mm_to_px(line.y1, dpi), mm_to_px(line.x2, dpi), mm_to_px(line.y2, dpi), line.kind)


def project_panel_to_screen(side: PrintSide, screen_dpi: float) -> PanelProjection:
    return project_panel(side, screen_dpi)


def project_panel_to_print(side: PrintSide, print_dpi: float) -> PanelProjection:
    return project_panel(side, print_dpi)


def content_point_to_surface(side: PrintSide, x_mm: float, y_mm: float, dpi: float) -> Tuple[float, float]:
    """Trim-relative mm point to bleed-origin pixels."""
    offset = mm_to_px(side.bleed_mm, dpi)
    return mm_to_px(x_mm, dpi) + offset, mm_to_px(y_mm, dpi) + offset


def reproject_px(value_px: float, from_dpi: float, to_dpi: float) -> float:
    """Re-express a pixel length drawn at ``from_dpi`` at ``to_dpi``."""
    return value_px * (mm_to_px(1.0, to_dpi) / mm_to_px(1.0, from_dpi))


@dataclass(frozen=True)
class ViewportFit:
    width: float
    height: float
    scale: float


def fit_to_viewport(side: PrintSide, max_w_px: float, max_h_px: float, dpi: float) -> ViewportFit:
    """Display size of the bleed surface inside a viewport; shrinks only."""
    box = project_panel(side, dpi).bleed_box
    scale = min(1.0, max_w_px / box.w, max_h_px / box.h)
    shown = box.scaled(scale)
    return ViewportFit(width=shown.w, height=shown.h, scale=scale)
