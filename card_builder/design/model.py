"""
Design document models

The persisted, print-accurate scene graph. Every position and size is in
millimetres relative to the panel's trim box (x_mm = 0 is the trim edge);
pixel values never appear here. Field aliases keep the JSON wire names
(zIndex, fontSize_pt, trimW_mm, ...) while Python code uses snake_case.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from card_builder.config.sizes import SIDE_IDS, SIDE_NAMES
from card_builder.errors import PageNotFoundError
from card_builder.spec.print_spec import PrintSide, PrintSpec, Size

DESIGN_FORMAT_VERSION = "1.0"

# Older documents stored the editor's crop mode names
LEGACY_FIT_MODES = {"fit": "contain", "fill": "cover"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Base for models that read and write the camelCase/_mm JSON contract"""
    model_config = ConfigDict(populate_by_name=True)


class DesignPrintSpec(WireModel):
    """Compact print spec stored with a design"""
    trim_w_mm: float = Field(..., alias="trimW_mm", gt=0, description="Trim width in mm")
    trim_h_mm: float = Field(..., alias="trimH_mm", gt=0, description="Trim height in mm")
    bleed_mm: float = Field(default=4.0, ge=0)
    safe_mm: float = Field(default=4.0, ge=0)
    orientation: Literal["portrait", "landscape"] = "portrait"
    dpi: float = Field(default=300.0, gt=0)
    product_uid: Optional[str] = Field(None, alias="productUid", description="Catalog product the print spec is locked to")
    variant_uid: Optional[str] = Field(None, alias="variantUid", description="Catalog variant the print spec is locked to")


class CropRect(BaseModel):
    """Normalised (0-1) source crop"""
    x: float = Field(default=0.0, ge=0, le=1)
    y: float = Field(default=0.0, ge=0, le=1)
    w: float = Field(default=1.0, gt=0, le=1)
    h: float = Field(default=1.0, gt=0, le=1)


class Stroke(BaseModel):
    enabled: bool = True
    width_mm: float = Field(default=0.5, ge=0)
    color: str = "#000000"


class TextProps(WireModel):
    """Text run embedded in a label"""
    text: str = ""
    font_family: str = Field(default="Helvetica", alias="fontFamily")
    font_weight: int = Field(default=400, alias="fontWeight")
    font_size_pt: float = Field(default=12.0, alias="fontSize_pt", gt=0)
    fill: str = "#000000"


class BaseElement(WireModel):
    id: str = Field(..., description="Unique element ID")
    x_mm: float = Field(..., description="X position in mm from the trim edge")
    y_mm: float = Field(..., description="Y position in mm from the trim edge")
    w_mm: float = Field(default=0.0, ge=0, description="Width in mm")
    h_mm: float = Field(default=0.0, ge=0, description="Height in mm")
    rotation_deg: float = 0.0
    z_index: int = Field(default=0, alias="zIndex", description="Paint order, ascending")
    locked: bool = False
    scale_x: float = Field(default=1.0, alias="scaleX")
    scale_y: float = Field(default=1.0, alias="scaleY")


class ImageElement(BaseElement):
    type: Literal["image"] = "image"
    src: str = Field(..., description="Opaque asset reference (URL, data URL or path)")
    fit_mode: Literal["contain", "cover"] = Field(default="contain", alias="fitMode")
    crop_rect: Optional[CropRect] = Field(None, alias="cropRect")
    opacity: float = Field(default=1.0, ge=0, le=1)

    @field_validator("fit_mode", mode="before")
    @classmethod
    def _legacy_fit_mode(cls, value):
        if isinstance(value, str):
            return LEGACY_FIT_MODES.get(value, value)
        return value


class TextElement(BaseElement):
    type: Literal["text"] = "text"
    text: str = ""
    font_family: str = Field(default="Helvetica", alias="fontFamily")
    font_weight: int = Field(default=400, alias="fontWeight")
    font_size_pt: float = Field(default=12.0, alias="fontSize_pt", gt=0)
    line_height: float = Field(default=1.2, alias="lineHeight", gt=0)
    tracking: float = Field(default=0.0, description="Letter spacing in points")
    align: Literal["left", "center", "right"] = "left"
    fill: str = "#000000"


class LabelElement(BaseElement):
    type: Literal["label"] = "label"
    shape_preset: str = Field(default="rounded-rect", alias="shapePreset")
    padding_mm: float = Field(default=0.0, ge=0)
    corner_radius_mm: Optional[float] = Field(None, alias="cornerRadius_mm", ge=0)
    stroke: Optional[Stroke] = None
    fill: str = Field(default="#ffffff", description="Background colour (hex) or 'transparent'")
    text_props: TextProps = Field(default_factory=TextProps, alias="textProps")


class OrnamentElement(BaseElement):
    type: Literal["ornament"] = "ornament"
    ornament_id: str = Field(..., alias="ornamentId")
    fill: Optional[str] = None
    stroke: Optional[str] = None


DesignElement = Annotated[
    Union[ImageElement, TextElement, LabelElement, OrnamentElement],
    Field(discriminator="type"),
]

# Elements that carry a text run checked by preflight and drawn by renderers
TEXT_BEARING = (TextElement, LabelElement)


class Page(WireModel):
    """One design page; its id matches a PrintSide id"""
    id: str
    name: Optional[str] = None
    elements: List[DesignElement] = Field(default_factory=list)

    def paint_order(self) -> List[Any]:
        """Elements by ascending zIndex, ties kept in list order (sorted is stable)."""
        return sorted(self.elements, key=lambda element: element.z_index)


class DesignDocument(WireModel):
    """Complete design: compact print spec plus one page per panel"""
    print_spec: DesignPrintSpec = Field(..., alias="printSpec")
    pages: List[Page] = Field(default_factory=list)
    version: str = DESIGN_FORMAT_VERSION
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def for_print_spec(
        cls,
        spec: PrintSpec,
        product_uid: Optional[str] = None,
        variant_uid: Optional[str] = None,
    ) -> "DesignDocument":
        """Empty document with one page per side of ``spec``."""
        first = spec.sides[0]
        now = _utcnow()
        return cls(
            print_spec=DesignPrintSpec(
                trim_w_mm=first.trim_mm.w,
                trim_h_mm=first.trim_mm.h,
                bleed_mm=first.bleed_mm,
                safe_mm=first.safe_mm,
                orientation=spec.orientation or ("landscape" if first.trim_mm.w > first.trim_mm.h else "portrait"),
                dpi=spec.dpi,
                product_uid=product_uid,
                variant_uid=variant_uid,
            ),
            pages=[Page(id=side.id, name=side.name) for side in spec.sides],
            created_at=now,
            updated_at=now,
        )

    @property
    def page_ids(self) -> List[str]:
        return [page.id for page in self.pages]

    def get_page(self, page_id: str) -> Page:
        for page in self.pages:
            if page.id == page_id:
                return page
        raise PageNotFoundError(page_id, self.page_ids)

    def to_print_spec(self) -> PrintSpec:
        """
        Rebuild a PrintSpec from the compact descriptor.

        Only trim/bleed/safe survive in a document, so the result carries no
        fold lines. Pages whose id is not a known side id are left out.
        """
        ps = self.print_spec
        trim = Size(ps.trim_w_mm, ps.trim_h_mm)
        sides = [
            PrintSide(
                id=page.id,
                name=page.name or SIDE_NAMES[page.id],
                trim_mm=trim,
                bleed_mm=ps.bleed_mm,
                safe_mm=ps.safe_mm,
            )
            for page in self.pages
            if page.id in SIDE_IDS
        ]
        if not sides:
            sides = [PrintSide(id="front", name=SIDE_NAMES["front"], trim_mm=trim, bleed_mm=ps.bleed_mm, safe_mm=ps.safe_mm)]
        return PrintSpec(
            id=f"design_{round(ps.trim_w_mm, 2)}x{round(ps.trim_h_mm, 2)}mm",
            name=f"Design {round(ps.trim_w_mm, 2)} x {round(ps.trim_h_mm, 2)} mm",
            sides=tuple(sides),
            dpi=ps.dpi,
            orientation=ps.orientation,
        )

    def touch(self):
        self.updated_at = _utcnow()
        if self.created_at is None:
            self.created_at = self.updated_at

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "DesignDocument":
        return cls.model_validate_json(data)
