"""
Vector PDF export

One PDF page per printed side, sized to the bleed box (or trim box) in
points. Text stays vector; images are embedded via ImageReader. TrimBox and
BleedBox are written on every page with pypdf so print shops can check the
geometry.
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.generic import RectangleObject
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from card_builder.config.sizes import DEFAULT_LABEL_SHAPE, LABEL_SHAPES
from card_builder.design.model import DesignDocument, ImageElement, LabelElement, OrnamentElement, TextElement
from card_builder.errors import AssetFetchError
from card_builder.renderer.assets import AssetFetcher, fetch_asset
from card_builder.spec.print_spec import PrintSide, PrintSpec
from card_builder.units import mm_to_points

logger = logging.getLogger(__name__)

GUIDE_SAFE_COLOR = colors.Color(0.9, 0.1, 0.6)
GUIDE_FOLD_COLOR = colors.Color(0.1, 0.4, 0.9)

ELEMENT_ERRORS = (AssetFetchError, OSError, ValueError, Image.DecompressionBombError)


def pdf_font_name(family: str, weight: int) -> str:
    """Map a design font family/weight onto a standard PDF font."""
    name = (family or "").lower()
    bold = weight >= 600
    if "courier" in name or "mono" in name:
        return "Courier-Bold" if bold else "Courier"
    if "times" in name or ("serif" in name and "sans" not in name) or "georgia" in name:
        return "Times-Bold" if bold else "Times-Roman"
    return "Helvetica-Bold" if bold else "Helvetica"


def page_size_points(side: PrintSide, include_bleed: bool = True) -> Tuple[float, float]:
    size = side.bleed_size() if include_bleed else side.trim_mm
    return mm_to_points(size.w), mm_to_points(size.h)


def _colour(value: Optional[str]):
    if not value or value == "transparent":
        return None
    return colors.toColor(value)


class _PagePainter:
    """Draws elements of one page; y is flipped to PDF's bottom-left origin."""

    def __init__(self, c: canvas.Canvas, page_h: float, offset_mm: float, fetcher):
        self.c = c
        self.page_h = page_h
        self.offset_mm = offset_mm
        self.fetcher = fetcher

    def box(self, element) -> Tuple[float, float, float, float]:
        x = mm_to_points(element.x_mm + self.offset_mm)
        top = mm_to_points(element.y_mm + self.offset_mm)
        w = mm_to_points(element.w_mm * element.scale_x)
        h = mm_to_points(element.h_mm * element.scale_y)
        return x, self.page_h - top - h, w, h

    def paint(self, element):
        x, y, w, h = self.box(element)
        self.c.saveState()
        try:
            if element.rotation_deg:
                cx, cy = x + w / 2, y + h / 2
                self.c.translate(cx, cy)
                self.c.rotate(-element.rotation_deg)
                x, y = -w / 2, -h / 2
            if isinstance(element, ImageElement):
                self._image(element, x, y, w, h)
            elif isinstance(element, TextElement):
                self._text(element, x, y, w, h)
            elif isinstance(element, LabelElement):
                self._label(element, x, y, w, h)
        finally:
            self.c.restoreState()

    def _image(self, element: ImageElement, x, y, w, h):
        if w <= 0 or h <= 0:
            return
        data = fetch_asset(self.fetcher, element.src)
        with Image.open(BytesIO(data)) as src:
            img = src.convert("RGBA")
        if element.crop_rect is not None:
            cr = element.crop_rect
            img = img.crop((
                round(cr.x * img.width),
                round(cr.y * img.height),
                round(min(cr.x + cr.w, 1.0) * img.width),
                round(min(cr.y + cr.h, 1.0) * img.height),
            ))
        iw, ih = img.size
        if iw == 0 or ih == 0:
            raise ValueError(f"Image {element.id} has no pixels after cropping")

        self.c.setFillAlpha(element.opacity)
        reader = ImageReader(img)
        if element.fit_mode == "cover":
            scale = max(w / iw, h / ih)
            dw, dh = iw * scale, ih * scale
            clip = self.c.beginPath()
            clip.rect(x, y, w, h)
            self.c.clipPath(clip, stroke=0, fill=0)
            self.c.drawImage(reader, x + (w - dw) / 2, y + (h - dh) / 2, dw, dh, mask="auto")
        else:
            self.c.drawImage(reader, x, y, w, h, mask="auto", preserveAspectRatio=True, anchor="c")

    def _text(self, element: TextElement, x, y, w, h):
        if not element.text:
            return
        font = pdf_font_name(element.font_family, element.font_weight)
        size = element.font_size_pt * element.scale_y
        lines = element.text.split("\n")
        ascent = pdfmetrics.getAscent(font, size)
        top = y + h if h > 0 else y + size * element.line_height * len(lines)

        self.c.setFillColor(_colour(element.fill) or colors.black)
        for index, line in enumerate(lines):
            line_w = pdfmetrics.stringWidth(line, font, size) + element.tracking * max(len(line) - 1, 0)
            if element.align == "center":
                lx = x + (w - line_w) / 2
            elif element.align == "right":
                lx = x + w - line_w
            else:
                lx = x
            text = self.c.beginText(lx, top - ascent - index * size * element.line_height)
            text.setFont(font, size)
            text.setCharSpace(element.tracking)
            text.textOut(line)
            self.c.drawText(text)

    def _label(self, element: LabelElement, x, y, w, h):
        if w <= 0 or h <= 0:
            return
        shape = LABEL_SHAPES.get(element.shape_preset, LABEL_SHAPES[DEFAULT_LABEL_SHAPE])
        fill = _colour(element.fill)
        stroke = element.stroke is not None and element.stroke.enabled
        if fill is not None:
            self.c.setFillColor(fill)
        if stroke:
            self.c.setStrokeColor(_colour(element.stroke.color) or colors.black)
            self.c.setLineWidth(mm_to_points(element.stroke.width_mm))
        do_fill = 1 if fill is not None else 0
        do_stroke = 1 if stroke else 0

        if shape["kind"] == "ellipse":
            self.c.ellipse(x, y, x + w, y + h, stroke=do_stroke, fill=do_fill)
        else:
            if element.corner_radius_mm is not None:
                radius = mm_to_points(element.corner_radius_mm)
            else:
                radius = shape["corner_ratio"] * min(w, h)
            radius = min(radius, min(w, h) / 2)
            if radius > 0:
                self.c.roundRect(x, y, w, h, radius, stroke=do_stroke, fill=do_fill)
            else:
                self.c.rect(x, y, w, h, stroke=do_stroke, fill=do_fill)

        props = element.text_props
        if props.text:
            font = pdf_font_name(props.font_family, props.font_weight)
            size = props.font_size_pt * element.scale_y
            self.c.setFont(font, size)
            self.c.setFillColor(_colour(props.fill) or colors.black)
            # Descent is negative; centres the ascent-descent band on the box
            baseline = y + h / 2 - (pdfmetrics.getAscent(font, size) + pdfmetrics.getDescent(font, size)) / 2
            self.c.drawCentredString(x + w / 2, baseline, props.text)


def _draw_guides(c: canvas.Canvas, side: PrintSide, page_h: float, offset_mm: float):
    c.saveState()
    c.setDash(3, 3)
    c.setLineWidth(0.5)

    safe = side.safe_box_trim_relative()
    c.setStrokeColor(GUIDE_SAFE_COLOR)
    c.rect(
        mm_to_points(safe.x + offset_mm),
        page_h - mm_to_points(safe.bottom + offset_mm),
        mm_to_points(safe.w),
        mm_to_points(safe.h),
        stroke=1,
        fill=0,
    )

    c.setStrokeColor(GUIDE_FOLD_COLOR)
    for line in side.fold_lines:
        c.line(
            mm_to_points(line.x1 + offset_mm),
            page_h - mm_to_points(line.y1 + offset_mm),
            mm_to_points(line.x2 + offset_mm),
            page_h - mm_to_points(line.y2 + offset_mm),
        )
    c.restoreState()


def _set_boxes(raw: bytes, print_spec: PrintSpec, side_ids, include_bleed: bool) -> bytes:
    reader = PdfReader(BytesIO(raw))
    writer = PdfWriter()
    for page, side_id in zip(reader.pages, side_ids):
        side = print_spec.get_side(side_id)
        media = page.mediabox
        b = mm_to_points(side.bleed_mm) if include_bleed else 0.0
        page.trimbox = RectangleObject([
            float(media.left) + b,
            float(media.bottom) + b,
            float(media.right) - b,
            float(media.top) - b,
        ])
        page.bleedbox = RectangleObject([media.left, media.bottom, media.right, media.top])
        writer.add_page(page)
    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def export_design_to_pdf(
    design: DesignDocument,
    out_path: Optional[Union[str, Path]] = None,
    include_bleed: bool = True,
    draw_guides: bool = False,
    print_spec: Optional[PrintSpec] = None,
    fetcher=None,
) -> bytes:
    """
    Export every printed side of a design to a single PDF.

    Args:
        design: document snapshot
        out_path: optional file to write as well as returning the bytes
        include_bleed: page covers the bleed box (True) or the trim box only
        draw_guides: draw dashed safe-area and fold-line guides (proofs only)
        print_spec: spec to export against; defaults to one rebuilt from the document
        fetcher: asset fetcher for image sources

    Returns:
        PDF bytes
    """
    spec = print_spec or design.to_print_spec()
    fetcher = fetcher or AssetFetcher()
    pages = {page.id: page for page in design.pages}

    for page_id in pages:
        if page_id not in spec.side_ids:
            logger.warning("Page %s has no panel in %s; not exported", page_id, spec.id)

    buf = BytesIO()
    c = canvas.Canvas(buf)
    c.setTitle(spec.name)
    exported = []
    for side in spec.sides:
        page = pages.get(side.id)
        if page is None:
            continue
        page_w, page_h = page_size_points(side, include_bleed)
        c.setPageSize((page_w, page_h))
        offset_mm = side.bleed_mm if include_bleed else 0.0
        painter = _PagePainter(c, page_h, offset_mm, fetcher)

        for element in page.paint_order():
            if isinstance(element, OrnamentElement):
                logger.info("Skipping ornament %s in PDF export", element.id)
                continue
            try:
                painter.paint(element)
            except ELEMENT_ERRORS as exc:
                logger.warning("Failed to export element %s on %s: %s", element.id, side.id, exc)

        if draw_guides:
            _draw_guides(c, side, page_h, offset_mm)
        c.showPage()
        exported.append(side.id)

    if not exported:
        raise ValueError(f"Design has no pages matching the sides of {spec.id}")

    c.save()
    data = _set_boxes(buf.getvalue(), spec, exported, include_bleed)

    if out_path is not None:
        path = Path(out_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Wrote %s (%d page(s))", path, len(exported))
    return data
