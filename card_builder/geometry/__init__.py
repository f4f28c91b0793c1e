from card_builder.geometry.projection import (
    PanelProjection,
    ViewportFit,
    content_point_to_surface,
    fit_to_viewport,
    project_panel,
    project_panel_to_print,
    project_panel_to_screen,
    reproject_px,
)

__all__ = [
    "PanelProjection",
    "ViewportFit",
    "content_point_to_surface",
    "fit_to_viewport",
    "project_panel",
    "project_panel_to_print",
    "project_panel_to_screen",
    "reproject_px",
]
