"""
Editor object projection

The interactive editor works in screen pixels at whatever DPI the surface was
drawn at. These helpers move objects between that space and the persisted mm
model using the *screen* DPI, never the print DPI. Editor coordinates are
trim-relative, like design elements; the projection layer places that content
layer on the bleed-origin surface.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from card_builder.design.model import (
    CropRect,
    ImageElement,
    LabelElement,
    OrnamentElement,
    Page,
    Stroke,
    TextElement,
    TextProps,
)
from card_builder.spec.print_spec import Box, PrintSide
from card_builder.units import mm_to_px, px_to_mm

logger = logging.getLogger(__name__)

# Editor font sizes are px, stored sizes are pt
PX_TO_PT = 0.75

EDITOR_TYPES = ("image", "text", "label-shape", "ornament")


def px_font_to_pt(px: float) -> float:
    return px * PX_TO_PT


def pt_font_to_px(pt: float) -> float:
    return pt / PX_TO_PT


@dataclass
class EditorObject:
    """Live editor object, screen pixels"""
    id: str
    type: str
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    z_index: int = 0
    locked: bool = False

    # image
    src: Optional[str] = None
    crop_mode: Optional[str] = None
    crop_rect: Optional[Dict[str, float]] = None
    opacity: Optional[float] = None

    # text and label text run
    text: Optional[str] = None
    font_family: Optional[str] = None
    font_weight: Optional[int] = None
    font_size: Optional[float] = None
    line_height: Optional[float] = None
    letter_spacing: Optional[float] = None
    text_align: Optional[str] = None
    fill: Optional[str] = None

    # label
    label_shape_type: Optional[str] = None
    corner_radius: Optional[float] = None
    border_enabled: bool = False
    border_width: Optional[float] = None
    border_color: Optional[str] = None
    border_padding: Optional[float] = None
    background_color: Optional[str] = None

    # ornament
    ornament_id: Optional[str] = None
    stroke: Optional[str] = None

    # UI state, never persisted
    selected: bool = field(default=False, compare=False)
    drag_dx: float = field(default=0.0, compare=False)
    drag_dy: float = field(default=0.0, compare=False)


def _common(obj: EditorObject, screen_dpi: float) -> Dict[str, Any]:
    return dict(
        id=obj.id,
        x_mm=px_to_mm(obj.x, screen_dpi),
        y_mm=px_to_mm(obj.y, screen_dpi),
        w_mm=px_to_mm(obj.width or 0.0, screen_dpi),
        h_mm=px_to_mm(obj.height or 0.0, screen_dpi),
        rotation_deg=obj.rotation or 0.0,
        z_index=obj.z_index,
        locked=obj.locked,
        scale_x=obj.scale_x,
        scale_y=obj.scale_y,
    )


def to_design_element(obj: EditorObject, side: PrintSide, screen_dpi: float):
    """
    Project one editor object into the mm model.

    Args:
        obj: live editor object in screen pixels
        side: panel the object sits on
        screen_dpi: DPI the editing surface was drawn at

    Returns:
        DesignElement, or None for editor-only object types
    """
    if obj.type not in EDITOR_TYPES:
        return None

    common = _common(obj, screen_dpi)

    if obj.type == "image":
        element = ImageElement(
            src=obj.src or "",
            fit_mode=obj.crop_mode or "contain",
            crop_rect=CropRect(**obj.crop_rect) if obj.crop_rect else None,
            opacity=1.0 if obj.opacity is None else obj.opacity,
            **common,
        )
    elif obj.type == "text":
        element = TextElement(
            text=obj.text or "",
            font_family=obj.font_family or "Helvetica",
            font_weight=obj.font_weight or 400,
            font_size_pt=px_font_to_pt(obj.font_size or 16),
            line_height=obj.line_height or 1.2,
            tracking=px_font_to_pt(obj.letter_spacing or 0.0),
            align=obj.text_align or "left",
            fill=obj.fill or "#000000",
            **common,
        )
    elif obj.type == "label-shape":
        stroke = None
        if obj.border_enabled or obj.border_width is not None:
            stroke = Stroke(
                enabled=obj.border_enabled,
                width_mm=px_to_mm(2.0 if obj.border_width is None else obj.border_width, screen_dpi),
                color=obj.border_color or "#000000",
            )
        element = LabelElement(
            shape_preset=obj.label_shape_type or "rounded-rect",
            padding_mm=px_to_mm(12.0 if obj.border_padding is None else obj.border_padding, screen_dpi),
            corner_radius_mm=None if obj.corner_radius is None else px_to_mm(obj.corner_radius, screen_dpi),
            stroke=stroke,
            fill=obj.background_color or "#ffffff",
            text_props=TextProps(
                text=obj.text or "",
                font_family=obj.font_family or "Helvetica",
                font_weight=obj.font_weight or 400,
                font_size_pt=px_font_to_pt(obj.font_size or 16),
                fill=obj.fill or "#000000",
            ),
            **common,
        )
    else:
        element = OrnamentElement(
            ornament_id=obj.ornament_id or "",
            fill=obj.fill,
            stroke=obj.stroke,
            **common,
        )

    bleed = side.bleed_box().translated(-side.bleed_mm, -side.bleed_mm)
    footprint = Box(element.x_mm, element.y_mm, element.w_mm, element.h_mm)
    if not bleed.intersects(footprint):
        logger.debug("Object %s lies entirely outside the %s bleed area", obj.id, side.id)

    return element


def to_editor_object(element, screen_dpi: float) -> EditorObject:
    """Inverse of to_design_element, mm to screen pixels."""
    obj = EditorObject(
        id=element.id,
        type="label-shape" if element.type == "label" else element.type,
        x=mm_to_px(element.x_mm, screen_dpi),
        y=mm_to_px(element.y_mm, screen_dpi),
        width=mm_to_px(element.w_mm, screen_dpi),
        height=mm_to_px(element.h_mm, screen_dpi),
        rotation=element.rotation_deg,
        scale_x=element.scale_x,
        scale_y=element.scale_y,
        z_index=element.z_index,
        locked=element.locked,
    )

    if isinstance(element, ImageElement):
        obj.src = element.src
        obj.crop_mode = element.fit_mode
        obj.crop_rect = element.crop_rect.model_dump() if element.crop_rect else None
        obj.opacity = element.opacity
    elif isinstance(element, TextElement):
        obj.text = element.text
        obj.font_family = element.font_family
        obj.font_weight = element.font_weight
        obj.font_size = pt_font_to_px(element.font_size_pt)
        obj.line_height = element.line_height
        obj.letter_spacing = pt_font_to_px(element.tracking)
        obj.text_align = element.align
        obj.fill = element.fill
    elif isinstance(element, LabelElement):
        props = element.text_props
        obj.text = props.text
        obj.font_family = props.font_family
        obj.font_weight = props.font_weight
        obj.font_size = pt_font_to_px(props.font_size_pt)
        obj.fill = props.fill
        obj.label_shape_type = element.shape_preset
        obj.corner_radius = None if element.corner_radius_mm is None else mm_to_px(element.corner_radius_mm, screen_dpi)
        obj.border_padding = mm_to_px(element.padding_mm, screen_dpi)
        obj.background_color = element.fill
        if element.stroke is not None:
            obj.border_enabled = element.stroke.enabled
            obj.border_width = mm_to_px(element.stroke.width_mm, screen_dpi)
            obj.border_color = element.stroke.color
    elif isinstance(element, OrnamentElement):
        obj.ornament_id = element.ornament_id
        obj.fill = element.fill
        obj.stroke = element.stroke

    return obj


def to_design_elements(objects: Iterable[EditorObject], side: PrintSide, screen_dpi: float) -> List[Any]:
    """Project a whole editor layer; zIndex comes from list position."""
    elements = []
    for obj in objects:
        element = to_design_element(obj, side, screen_dpi)
        if element is None:
            continue
        element.z_index = len(elements)
        elements.append(element)
    return elements


def to_editor_objects(page: Page, screen_dpi: float) -> List[EditorObject]:
    """Editor objects for a page, bottom-most first."""
    return [to_editor_object(element, screen_dpi) for element in page.paint_order()]
