"""
Request/response models for the export API

Designs travel in their wire form (printSpec, zIndex, fontSize_pt, ...).
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from card_builder.design.model import DesignDocument
from card_builder.spec.print_spec import PrintSpec, generate_print_spec
from web.backend.config import PROFILES


class SpecSelection(BaseModel):
    """Optional explicit product configuration; omitted means 'use the document's spec'"""
    model_config = ConfigDict(populate_by_name=True)

    product_type: Optional[str] = Field(None, alias="productType")
    size_id: Optional[str] = Field(None, alias="sizeId")
    orientation: Optional[Literal["portrait", "landscape"]] = None
    fold_option: Optional[Literal["bifold", "flat"]] = Field(None, alias="foldOption")

    def build(self, design: DesignDocument) -> PrintSpec:
        if self.product_type and self.size_id:
            return generate_print_spec(
                self.product_type,
                self.size_id,
                orientation=self.orientation or design.print_spec.orientation,
                fold_option=self.fold_option,
                bleed_mm=design.print_spec.bleed_mm,
                safe_mm=design.print_spec.safe_mm,
                dpi=design.print_spec.dpi,
            )
        if self.product_type or self.size_id:
            raise ValueError("productType and sizeId must be given together")
        return design.to_print_spec()


class PreflightRequest(SpecSelection):
    design: DesignDocument


class PreflightResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ExportOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile: Optional[str] = Field(None, description=f"One of {list(PROFILES)}; explicit fields override it")
    dpi: Optional[float] = Field(None, gt=0)
    include_bleed: Optional[bool] = Field(None, alias="includeBleed")
    draw_guides: Optional[bool] = Field(None, alias="drawGuides")

    def resolved(self, default_dpi: float):
        """(dpi, include_bleed, draw_guides) after applying the profile."""
        if self.profile is not None and self.profile not in PROFILES:
            raise ValueError(f"Unknown export profile '{self.profile}'. Use one of {list(PROFILES)}")
        profile = PROFILES.get(self.profile) if self.profile else None
        dpi = self.dpi or (profile.dpi if profile else default_dpi)
        include_bleed = self.include_bleed if self.include_bleed is not None else (profile.include_bleed if profile else True)
        draw_guides = self.draw_guides if self.draw_guides is not None else (profile.draw_guides if profile else False)
        return dpi, include_bleed, draw_guides


class ExportRequest(SpecSelection):
    """Render one page to PNG"""
    design: DesignDocument
    page_id: str = Field(..., alias="pageId")
    options: ExportOptions = Field(default_factory=ExportOptions)


class PdfExportRequest(SpecSelection):
    """Export all pages to PDF"""
    design: DesignDocument
    options: ExportOptions = Field(default_factory=ExportOptions)
