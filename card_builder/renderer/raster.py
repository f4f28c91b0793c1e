"""
Raster renderer

Composites one design page into a Pillow image at print DPI. Image bytes are
fetched concurrently up front; painting is then a sequential pass in
ascending zIndex so output never depends on fetch completion order.

Pixel coordinates are rounded exactly once, when an element is placed.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont, ImageOps

from card_builder.config.settings import settings
from card_builder.config.sizes import DEFAULT_LABEL_SHAPE, LABEL_SHAPES
from card_builder.design.model import DesignDocument, ImageElement, LabelElement, OrnamentElement, TextElement
from card_builder.errors import AssetFetchError, RenderCancelledError
from card_builder.renderer.assets import AssetFetcher, fetch_asset
from card_builder.units import mm_to_px, points_to_px

logger = logging.getLogger(__name__)

CANCEL_POLL_S = 0.05
BOLD_WEIGHT = 600
FALLBACK_FONT = "DejaVuSans"

# Errors that mean "this element cannot be drawn"; the page carries on without it
ELEMENT_ERRORS = (AssetFetchError, OSError, ValueError, Image.DecompressionBombError)


@dataclass
class SkippedElement:
    element_id: str
    reason: str


@dataclass
class RenderResult:
    image: Image.Image
    dpi: float
    skipped: List[SkippedElement] = field(default_factory=list)


def _bare_font_name(family: str) -> bool:
    """Font families come from client documents; only plain names are looked up."""
    return bool(family) and not any(sep in family for sep in ("/", "\\", "\x00")) and not family.startswith(".")


def load_font(family: str, weight: int, size_px: int):
    """TrueType font for a family/weight, falling back to DejaVu then Pillow's default."""
    size_px = max(1, size_px)
    bold = weight >= BOLD_WEIGHT
    candidates = []
    if family and not _bare_font_name(family):
        logger.warning("Ignoring font family %r: not a plain font name", family)
    elif family:
        if bold:
            candidates += [f"{family}-Bold.ttf", f"{family}Bold.ttf"]
        candidates += [f"{family}.ttf", family]
    candidates += [f"{FALLBACK_FONT}-Bold.ttf"] if bold else []
    candidates.append(f"{FALLBACK_FONT}.ttf")
    for name in candidates:
        try:
            return ImageFont.truetype(name, size_px)
        except OSError:
            continue
    logger.debug("No TrueType font for %s/%s; using Pillow default", family, weight)
    return ImageFont.load_default(size=size_px)


def _check_cancel(cancel_event: Optional[threading.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelledError("Render cancelled; partial output discarded")


def _fill_colour(value: Optional[str]) -> Optional[str]:
    if not value or value == "transparent":
        return None
    return value


def _place(canvas: Image.Image, tile: Image.Image, x: int, y: int, rotation_deg: float):
    """Paste an RGBA tile at (x, y), rotated clockwise about its centre."""
    if rotation_deg:
        cx = x + tile.width / 2
        cy = y + tile.height / 2
        tile = tile.rotate(-rotation_deg, resample=Image.BICUBIC, expand=True)
        x = round(cx - tile.width / 2)
        y = round(cy - tile.height / 2)
    canvas.paste(tile, (x, y), tile)


class RasterRenderer:
    """
    Renders design pages to Pillow images.

    Args:
        fetcher: object with ``fetch_bytes(ref) -> bytes``; defaults to AssetFetcher()
        max_workers: concurrent image fetches (default from settings)
    """

    def __init__(self, fetcher=None, max_workers: Optional[int] = None):
        self.fetcher = fetcher
        self.max_workers = max_workers or settings.asset_workers

    def render(
        self,
        design: DesignDocument,
        page_id: str,
        dpi: Optional[float] = None,
        include_bleed: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> RenderResult:
        page = design.get_page(page_id)
        spec = design.print_spec
        dpi = spec.dpi if dpi is None else dpi
        bleed_mm = spec.bleed_mm if include_bleed else 0.0

        size = (
            round(mm_to_px(spec.trim_w_mm + 2 * bleed_mm, dpi)),
            round(mm_to_px(spec.trim_h_mm + 2 * bleed_mm, dpi)),
        )
        offset = mm_to_px(bleed_mm, dpi)
        elements = page.paint_order()

        _check_cancel(cancel_event)
        refs = sorted({el.src for el in elements if isinstance(el, ImageElement) and el.src})
        assets = self._fetch_all(refs, cancel_event)

        canvas = Image.new("RGB", size, "white")
        skipped: List[SkippedElement] = []
        for element in elements:
            _check_cancel(cancel_event)
            if isinstance(element, OrnamentElement):
                logger.info("Skipping ornament %s (%s): ornament rendering is not supported", element.id, element.ornament_id)
                skipped.append(SkippedElement(element.id, "ornament rendering not supported"))
                continue
            try:
                self._paint(canvas, element, dpi, offset, assets)
            except ELEMENT_ERRORS as exc:
                logger.warning("Failed to render element %s on page %s: %s", element.id, page_id, exc)
                skipped.append(SkippedElement(element.id, str(exc)))

        _check_cancel(cancel_event)
        return RenderResult(image=canvas, dpi=dpi, skipped=skipped)

    def _fetch_all(
        self, refs: List[str], cancel_event: Optional[threading.Event]
    ) -> Dict[str, Union[bytes, Exception]]:
        results: Dict[str, Union[bytes, Exception]] = {}
        if not refs:
            return results
        fetcher = self.fetcher or AssetFetcher()
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(refs)))
        try:
            futures = {executor.submit(fetch_asset, fetcher, ref): ref for ref in refs}
            pending = set(futures)
            while pending:
                _check_cancel(cancel_event)
                done, pending = wait(pending, timeout=CANCEL_POLL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    ref = futures[future]
                    try:
                        results[ref] = future.result()
                    except AssetFetchError as exc:
                        results[ref] = exc
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def _paint(self, canvas, element, dpi: float, offset: float, assets):
        x = round(mm_to_px(element.x_mm, dpi) + offset)
        y = round(mm_to_px(element.y_mm, dpi) + offset)
        w = round(mm_to_px(element.w_mm * element.scale_x, dpi))
        h = round(mm_to_px(element.h_mm * element.scale_y, dpi))

        if isinstance(element, ImageElement):
            tile = self._image_tile(element, w, h, assets)
        elif isinstance(element, TextElement):
            tile = self._text_tile(element, w, h, dpi)
        elif isinstance(element, LabelElement):
            tile = self._label_tile(element, w, h, dpi)
        else:
            raise ValueError(f"Unsupported element type {element.type}")

        if tile is not None:
            _place(canvas, tile, x, y, element.rotation_deg)

    def _image_tile(self, element: ImageElement, w: int, h: int, assets) -> Optional[Image.Image]:
        if w <= 0 or h <= 0:
            logger.debug("Image %s has an empty box; nothing to draw", element.id)
            return None
        data = assets.get(element.src)
        if data is None:
            raise AssetFetchError(f"No image source for element {element.id}")
        if isinstance(data, Exception):
            raise data

        with Image.open(BytesIO(data)) as src:
            img = src.convert("RGBA")

        if element.crop_rect is not None:
            cr = element.crop_rect
            box = (
                round(cr.x * img.width),
                round(cr.y * img.height),
                round(min(cr.x + cr.w, 1.0) * img.width),
                round(min(cr.y + cr.h, 1.0) * img.height),
            )
            if box[2] <= box[0] or box[3] <= box[1]:
                raise ValueError(f"Crop rectangle of {element.id} selects no pixels")
            img = img.crop(box)

        if element.fit_mode == "cover":
            tile = ImageOps.fit(img, (w, h), method=Image.LANCZOS)
        else:
            fitted = ImageOps.contain(img, (w, h), method=Image.LANCZOS)
            tile = Image.new("RGBA", (w, h), (0, 0, 0, 0))
            tile.paste(fitted, ((w - fitted.width) // 2, (h - fitted.height) // 2))

        if element.opacity < 1.0:
            alpha = tile.getchannel("A").point(lambda a: round(a * element.opacity))
            tile.putalpha(alpha)
        return tile

    def _text_tile(self, element: TextElement, w: int, h: int, dpi: float) -> Optional[Image.Image]:
        if not element.text:
            return None
        font_px = points_to_px(element.font_size_pt * element.scale_y, dpi)
        font = load_font(element.font_family, element.font_weight, round(font_px))
        tracking_px = points_to_px(element.tracking, dpi)
        lines = element.text.split("\n")
        line_px = font_px * element.line_height

        measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        widths = [_line_width(measure, line, font, tracking_px) for line in lines]
        box_w = w if w > 0 else round(max(widths))
        box_h = max(h, round(line_px * (len(lines) - 1) + font_px * 1.25))
        if box_w <= 0 or box_h <= 0:
            return None

        tile = Image.new("RGBA", (box_w, box_h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(tile)
        for index, (line, line_w) in enumerate(zip(lines, widths)):
            if element.align == "center":
                lx = (box_w - line_w) / 2
            elif element.align == "right":
                lx = box_w - line_w
            else:
                lx = 0.0
            _draw_line(draw, (lx, index * line_px), line, font, element.fill, tracking_px)
        return tile

    def _label_tile(self, element: LabelElement, w: int, h: int, dpi: float) -> Optional[Image.Image]:
        if w <= 0 or h <= 0:
            return None
        shape = LABEL_SHAPES.get(element.shape_preset)
        if shape is None:
            logger.debug("Unknown label shape %s; drawing %s", element.shape_preset, DEFAULT_LABEL_SHAPE)
            shape = LABEL_SHAPES[DEFAULT_LABEL_SHAPE]

        tile = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(tile)
        fill = _fill_colour(element.fill)
        outline = None
        stroke_px = 0
        if element.stroke is not None and element.stroke.enabled:
            outline = element.stroke.color
            stroke_px = max(1, round(mm_to_px(element.stroke.width_mm, dpi)))

        bounds = [0, 0, w - 1, h - 1]
        if shape["kind"] == "ellipse":
            draw.ellipse(bounds, fill=fill, outline=outline, width=stroke_px)
        else:
            if element.corner_radius_mm is not None:
                radius = mm_to_px(element.corner_radius_mm, dpi)
            else:
                radius = shape["corner_ratio"] * min(w, h)
            radius = min(radius, min(w, h) / 2)
            if radius > 0:
                draw.rounded_rectangle(bounds, radius=round(radius), fill=fill, outline=outline, width=stroke_px)
            else:
                draw.rectangle(bounds, fill=fill, outline=outline, width=stroke_px)

        props = element.text_props
        if props.text:
            font_px = points_to_px(props.font_size_pt * element.scale_y, dpi)
            font = load_font(props.font_family, props.font_weight, round(font_px))
            left, top, right, bottom = draw.multiline_textbbox((0, 0), props.text, font=font, align="center")
            tx = (w - (right - left)) / 2 - left
            ty = (h - (bottom - top)) / 2 - top
            draw.multiline_text((tx, ty), props.text, font=font, fill=props.fill, align="center")
        return tile


def _line_width(draw: ImageDraw.ImageDraw, line: str, font, tracking_px: float) -> float:
    if not line:
        return 0.0
    return draw.textlength(line, font=font) + tracking_px * (len(line) - 1)


def _draw_line(draw: ImageDraw.ImageDraw, origin: Tuple[float, float], line: str, font, fill: str, tracking_px: float):
    if not tracking_px:
        draw.text(origin, line, font=font, fill=fill)
        return
    x, y = origin
    for char in line:
        draw.text((x, y), char, font=font, fill=fill)
        x += draw.textlength(char, font=font) + tracking_px


def render_page(
    design: DesignDocument,
    page_id: str,
    dpi: Optional[float] = None,
    include_bleed: bool = True,
    fetcher=None,
    cancel_event: Optional[threading.Event] = None,
) -> RenderResult:
    return RasterRenderer(fetcher=fetcher).render(
        design, page_id, dpi=dpi, include_bleed=include_bleed, cancel_event=cancel_event
    )


def render_to_raster(
    design: DesignDocument,
    page_id: str,
    dpi: Optional[float] = None,
    include_bleed: bool = True,
    fetcher=None,
    cancel_event: Optional[threading.Event] = None,
) -> Image.Image:
    """
    Render one page to an RGB image.

    Args:
        design: document snapshot
        page_id: page (side) to render
        dpi: output resolution (default: the document's print DPI)
        include_bleed: canvas covers the bleed box (True) or the trim box only
        fetcher: asset fetcher for image sources
        cancel_event: set it to abort; RenderCancelledError is raised, no image returned

    Returns:
        PIL.Image.Image in RGB mode
    """
    return render_page(design, page_id, dpi, include_bleed, fetcher, cancel_event).image


def render_to_png(
    design: DesignDocument,
    page_id: str,
    dpi: Optional[float] = None,
    include_bleed: bool = True,
    fetcher=None,
    cancel_event: Optional[threading.Event] = None,
) -> bytes:
    result = render_page(design, page_id, dpi, include_bleed, fetcher, cancel_event)
    buf = BytesIO()
    result.image.save(buf, format="PNG", dpi=(result.dpi, result.dpi))
    return buf.getvalue()
