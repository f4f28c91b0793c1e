"""
Export API endpoints

Render design pages to PNG and whole designs to print-ready PDFs. Both
routes run preflight first and refuse to export when it reports errors.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from card_builder.errors import PageNotFoundError, PreflightFailedError
from card_builder.renderer.pdf_export import export_design_to_pdf
from card_builder.renderer.raster import render_to_png
from card_builder.validator.preflight import ensure_exportable, run_preflight
from web.backend.config import api_asset_fetcher
from web.backend.models.requests import ExportRequest, PdfExportRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _preflight_gate(spec, design):
    try:
        ensure_exportable(run_preflight(spec, design))
    except PreflightFailedError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Preflight check failed", **e.result.to_dict()},
        )


@router.post("")
def export_png(request: ExportRequest):
    """Render one page (``pageId``) to PNG at print DPI."""
    design = request.design
    try:
        spec = request.build(design)
        dpi, include_bleed, _ = request.options.resolved(design.print_spec.dpi)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _preflight_gate(spec, design)

    try:
        png = render_to_png(design, request.page_id, dpi=dpi, include_bleed=include_bleed, fetcher=api_asset_fetcher())
    except PageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info("Exported page %s at %g DPI (%d bytes)", request.page_id, dpi, len(png))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{request.page_id}.png"'},
    )


@router.post("/pdf")
def export_pdf(request: PdfExportRequest):
    """Export every printed page to a single PDF with TrimBox/BleedBox set."""
    design = request.design
    try:
        spec = request.build(design)
        _, include_bleed, draw_guides = request.options.resolved(design.print_spec.dpi)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _preflight_gate(spec, design)

    try:
        data = export_design_to_pdf(
            design,
            include_bleed=include_bleed,
            draw_guides=draw_guides,
            print_spec=spec,
            fetcher=api_asset_fetcher(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="design.pdf"'},
    )
