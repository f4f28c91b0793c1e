"""Design document model and editor projection"""

from card_builder.design.model import (
    CropRect,
    DesignDocument,
    DesignElement,
    DesignPrintSpec,
    ImageElement,
    LabelElement,
    OrnamentElement,
    Page,
    Stroke,
    TextElement,
    TextProps,
)
from card_builder.design.editor import (
    EditorObject,
    to_design_element,
    to_design_elements,
    to_editor_object,
    to_editor_objects,
)

__all__ = [
    "CropRect",
    "DesignDocument",
    "DesignElement",
    "DesignPrintSpec",
    "EditorObject",
    "ImageElement",
    "LabelElement",
    "OrnamentElement",
    "Page",
    "Stroke",
    "TextElement",
    "TextProps",
    "to_design_element",
    "to_design_elements",
    "to_editor_object",
    "to_editor_objects",
]
