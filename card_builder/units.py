"""
Unit conversion primitives.

Millimetres are the stored truth everywhere in card_builder. These helpers
convert to and from inches, PostScript points and pixels at a caller-supplied
DPI. Nothing here rounds: rounding belongs to the rasterization boundary only.
"""

from card_builder.errors import GeometryError

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0


def _check_dpi(dpi: float) -> float:
    if dpi is None or dpi <= 0:
        raise GeometryError(f"DPI must be positive, got {dpi!r}")
    return dpi


def mm_to_px(mm: float, dpi: float) -> float:
    """Millimetres to pixels at ``dpi``."""
    return (mm / MM_PER_INCH) * _check_dpi(dpi)


def px_to_mm(px: float, dpi: float) -> float:
    """Pixels at ``dpi`` to millimetres."""
    return (px / _check_dpi(dpi)) * MM_PER_INCH


def mm_to_points(mm: float) -> float:
    """Millimetres to points (vector/PDF output only)."""
    return (mm / MM_PER_INCH) * POINTS_PER_INCH


def points_to_mm(pt: float) -> float:
    return (pt / POINTS_PER_INCH) * MM_PER_INCH


def inches_to_mm(inches: float) -> float:
    return inches * MM_PER_INCH


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH


def points_to_px(pt: float, dpi: float) -> float:
    """Points to pixels at ``dpi`` (font sizes at raster time)."""
    return (pt / POINTS_PER_INCH) * _check_dpi(dpi)


def px_to_points(px: float, dpi: float) -> float:
    return (px / _check_dpi(dpi)) * POINTS_PER_INCH
