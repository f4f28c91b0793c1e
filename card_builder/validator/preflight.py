"""
Preflight checks run before export.

Blocking problems become errors and make the result invalid; everything else
is a warning. Checks never raise: they collect issues into a PreflightResult
and the export path calls ensure_exportable() as its gate.
"""

import logging
import math
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional

from PIL import Image

from card_builder.config.settings import settings
from card_builder.design.model import DesignDocument, ImageElement, LabelElement, TextElement
from card_builder.errors import AssetFetchError, PreflightFailedError
from card_builder.renderer.assets import fetch_asset
from card_builder.spec.print_spec import Box, PrintSide, PrintSpec
from card_builder.units import mm_to_px, points_to_mm

logger = logging.getLogger(__name__)

# Average glyph advance as a fraction of the font size
CHAR_WIDTH_RATIO = 0.6
MIN_FONT_SIZE_PT = 7.0
# On-screen footprint below which an image is likely upscaled at print size
MIN_IMAGE_FOOTPRINT_PX = 200
MIN_EFFECTIVE_DPI = 300
MIN_STROKE_MM = 0.25
TEXT_PREVIEW_CHARS = 30


@dataclass
class PreflightIssue:
    level: str  # "error" | "warning"
    message: str
    page_id: Optional[str] = None
    element_id: Optional[str] = None


@dataclass
class PreflightResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    issues: List[PreflightIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _text_run(element):
    """(text, font size pt) for text-bearing elements, else None."""
    if isinstance(element, TextElement):
        return element.text, element.font_size_pt
    if isinstance(element, LabelElement):
        return element.text_props.text, element.text_props.font_size_pt
    return None


def estimate_text_box(element, text: str, font_size_pt: float) -> Box:
    """
    Approximate bounding box of a text run in trim-relative mm.

    Uses an average glyph width of 0.6 em; real metrics would need the font
    files, which are not available at validation time.
    """
    font_mm = points_to_mm(font_size_pt)
    width = len(text) * font_mm * CHAR_WIDTH_RATIO * element.scale_x
    height = font_mm * element.scale_y
    return Box(element.x_mm, element.y_mm, width, height)


def in_rounded_corner_danger(rect: Box, safe: Box, radius: float) -> bool:
    """True if ``rect`` reaches into the area a rounded corner of ``radius`` cuts from ``safe``."""
    if radius <= 0:
        return False
    r = min(radius, safe.w / 2, safe.h / 2)
    corners = (
        (Box(safe.x, safe.y, r, r), safe.x + r, safe.y + r),
        (Box(safe.right - r, safe.y, r, r), safe.right - r, safe.y + r),
        (Box(safe.x, safe.bottom - r, r, r), safe.x + r, safe.bottom - r),
        (Box(safe.right - r, safe.bottom - r, r, r), safe.right - r, safe.bottom - r),
    )
    for square, cx, cy in corners:
        if not square.intersects(rect):
            continue
        # Part of rect inside this corner square; its farthest point from the arc centre decides
        x1, x2 = max(square.x, rect.x), min(square.right, rect.right)
        y1, y2 = max(square.y, rect.y), min(square.bottom, rect.bottom)
        dx = max(abs(x1 - cx), abs(x2 - cx))
        dy = max(abs(y1 - cy), abs(y2 - cy))
        if math.hypot(dx, dy) > r:
            return True
    return False


def _effective_dpi(element: ImageElement, data: bytes) -> float:
    with Image.open(BytesIO(data)) as img:
        px_w, px_h = img.size
    if element.crop_rect is not None:
        px_w *= element.crop_rect.w
        px_h *= element.crop_rect.h
    dpis = []
    if element.w_mm > 0:
        dpis.append(px_w / (element.w_mm * element.scale_x / 25.4))
    if element.h_mm > 0:
        dpis.append(px_h / (element.h_mm * element.scale_y / 25.4))
    return min(dpis) if dpis else float("inf")


class _Collector:
    def __init__(self):
        self.issues: List[PreflightIssue] = []

    def error(self, message: str, page_id=None, element_id=None):
        self.issues.append(PreflightIssue("error", message, page_id, element_id))

    def warning(self, message: str, page_id=None, element_id=None):
        self.issues.append(PreflightIssue("warning", message, page_id, element_id))

    def result(self) -> PreflightResult:
        errors = [i.message for i in self.issues if i.level == "error"]
        warnings = [i.message for i in self.issues if i.level == "warning"]
        return PreflightResult(is_valid=not errors, errors=errors, warnings=warnings, issues=list(self.issues))


def _check_side(side: PrintSide, elements, screen_dpi: float, fetcher, out: _Collector):
    safe = side.safe_box_trim_relative()
    label = side.name or side.id
    corner_radius = side.corner_radius_mm if side.corner_style == "rounded" else 0.0

    for element in elements:
        run = _text_run(element)
        if run is not None:
            text, size_pt = run
            effective_pt = size_pt * element.scale_y
            if effective_pt < MIN_FONT_SIZE_PT:
                out.warning(
                    f"Font size {effective_pt:.1f}pt on {label} may be too small for print readability",
                    side.id,
                    element.id,
                )
            # Empty text has nothing to clip; label backgrounds may run into the bleed
            if text:
                box = estimate_text_box(element, text, size_pt)
                if not safe.contains(box):
                    out.error(
                        f'Text "{text[:TEXT_PREVIEW_CHARS]}..." on {label} is outside the safe area',
                        side.id,
                        element.id,
                    )
                elif in_rounded_corner_danger(box, safe, corner_radius):
                    out.warning(
                        f'Text "{text[:TEXT_PREVIEW_CHARS]}..." on {label} may be clipped by the rounded corners',
                        side.id,
                        element.id,
                    )

        if isinstance(element, LabelElement) and element.stroke is not None and element.stroke.enabled:
            if element.stroke.width_mm < MIN_STROKE_MM:
                out.warning(
                    f"Border on {label} is thinner than {MIN_STROKE_MM}mm and may not print",
                    side.id,
                    element.id,
                )

        if isinstance(element, ImageElement) and element.src:
            w_px = mm_to_px(element.w_mm * element.scale_x, screen_dpi)
            h_px = mm_to_px(element.h_mm * element.scale_y, screen_dpi)
            if w_px < MIN_IMAGE_FOOTPRINT_PX or h_px < MIN_IMAGE_FOOTPRINT_PX:
                out.warning(f"Image on {label} may have low resolution for print quality", side.id, element.id)
            if fetcher is not None:
                _check_image_dpi(element, side, fetcher, out)


def _check_image_dpi(element: ImageElement, side: PrintSide, fetcher, out: _Collector):
    label = side.name or side.id
    try:
        dpi = _effective_dpi(element, fetch_asset(fetcher, element.src))
    except (AssetFetchError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("Could not inspect image %s: %s", element.id, exc)
        out.warning(f"Image on {label} could not be loaded for a resolution check", side.id, element.id)
        return
    if dpi < MIN_EFFECTIVE_DPI:
        out.warning(
            f"Image on {label} prints at about {dpi:.0f} DPI (recommended {MIN_EFFECTIVE_DPI})",
            side.id,
            element.id,
        )


def run_preflight(
    print_spec: PrintSpec,
    design: DesignDocument,
    screen_dpi: Optional[float] = None,
    fetcher=None,
) -> PreflightResult:
    """
    Check a design against the panels of ``print_spec``.

    Args:
        print_spec: physical spec the design will be printed on
        design: document snapshot to check
        screen_dpi: DPI used for the image footprint heuristic (default from settings)
        fetcher: optional asset fetcher; enables the effective-DPI image check

    Returns:
        PreflightResult; is_valid is False when any blocking error was found
    """
    screen_dpi = settings.screen_dpi if screen_dpi is None else screen_dpi
    out = _Collector()

    pages = {page.id: page for page in design.pages}
    for side in print_spec.sides:
        page = pages.get(side.id)
        if page is None:
            continue
        _check_side(side, page.paint_order(), screen_dpi, fetcher, out)

    for page in design.pages:
        if page.id not in print_spec.side_ids and page.elements:
            out.warning(f"Page '{page.id}' has no matching panel in {print_spec.name} and will not be printed", page.id)

    result = out.result()
    logger.debug("Preflight %s: %d error(s), %d warning(s)", print_spec.id, len(result.errors), len(result.warnings))
    return result


def ensure_exportable(result: PreflightResult) -> PreflightResult:
    """Export gate: raise PreflightFailedError when blocking errors exist."""
    if not result.is_valid:
        raise PreflightFailedError(result)
    return result
