"""Request/response models for the card_builder API"""

from web.backend.models.requests import (
    ExportOptions,
    ExportRequest,
    PdfExportRequest,
    PreflightRequest,
    PreflightResponse,
    SpecSelection,
)

__all__ = [
    "ExportOptions",
    "ExportRequest",
    "PdfExportRequest",
    "PreflightRequest",
    "PreflightResponse",
    "SpecSelection",
]
