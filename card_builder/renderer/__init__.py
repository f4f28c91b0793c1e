from card_builder.renderer.assets import AssetFetcher, MappingAssetFetcher
from card_builder.renderer.raster import (
    RasterRenderer,
    RenderResult,
    SkippedElement,
    render_page,
    render_to_png,
    render_to_raster,
)
from card_builder.renderer.pdf_export import export_design_to_pdf

__all__ = [
    "AssetFetcher",
    "MappingAssetFetcher",
    "RasterRenderer",
    "RenderResult",
    "SkippedElement",
    "export_design_to_pdf",
    "render_page",
    "render_to_png",
    "render_to_raster",
]
