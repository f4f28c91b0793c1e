from card_builder.spec.print_spec import (
    Box,
    ExportDimensions,
    FoldLine,
    PrintSide,
    PrintSpec,
    Size,
    generate_print_spec,
    side_export_dimensions,
)
from card_builder.spec.catalog import (
    PrintSpecResult,
    get_print_spec,
    resolve_print_spec_for_product,
)

__all__ = [
    "Box",
    "ExportDimensions",
    "FoldLine",
    "PrintSide",
    "PrintSpec",
    "PrintSpecResult",
    "Size",
    "generate_print_spec",
    "get_print_spec",
    "resolve_print_spec_for_product",
    "side_export_dimensions",
]
