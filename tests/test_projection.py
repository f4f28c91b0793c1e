"""Coordinate projection layer."""
import pytest

from card_builder.geometry.projection import (
    content_point_to_surface,
    fit_to_viewport,
    project_panel,
    project_panel_to_print,
    project_panel_to_screen,
    reproject_px,
)
from card_builder.units import mm_to_px


@pytest.mark.parametrize('dpi', [96, 300])
def test_box_offsets(postcard_spec, dpi):
    side = postcard_spec.get_side('front')
    proj = project_panel(side, dpi)
    bleed_px = mm_to_px(side.bleed_mm, dpi)
    safe_px = mm_to_px(side.safe_mm, dpi)

    assert (proj.bleed_box.x, proj.bleed_box.y) == (0, 0)
    assert proj.trim_box.x == pytest.approx(bleed_px)
    assert proj.trim_box.y == pytest.approx(bleed_px)
    assert proj.safe_box.x == pytest.approx(bleed_px + safe_px)
    assert proj.trim_box.w == pytest.approx(mm_to_px(side.trim_mm.w, dpi))
    assert proj.bleed_box.w == pytest.approx(mm_to_px(side.trim_mm.w + 2 * side.bleed_mm, dpi))


def test_fold_lines_shifted_by_trim_offset(bifold_spec):
    side = bifold_spec.get_side('inside-left')
    proj = project_panel_to_screen(side, 96)
    line = proj.fold_lines[0]
    expected_x = mm_to_px(side.trim_mm.w, 96) + mm_to_px(side.bleed_mm, 96)

    assert line.x1 == pytest.approx(expected_x)
    assert line.x2 == pytest.approx(expected_x)
    assert line.y1 == pytest.approx(mm_to_px(side.bleed_mm, 96))
    assert line.y2 == pytest.approx(mm_to_px(side.trim_mm.h + side.bleed_mm, 96))


def test_screen_and_print_share_one_code_path(bifold_spec):
    side = bifold_spec.get_side('front')
    assert project_panel_to_screen(side, 300) == project_panel_to_print(side, 300)

    screen = project_panel_to_screen(side, 96)
    printed = project_panel_to_print(side, 300)
    ratio = 300 / 96
    assert printed.trim_box.x == pytest.approx(screen.trim_box.x * ratio)
    assert printed.safe_box.w == pytest.approx(screen.safe_box.w * ratio)
    assert printed.fold_lines[0].x1 == pytest.approx(screen.fold_lines[0].x1 * ratio)


def test_no_rounding(postcard_spec):
    proj = project_panel(postcard_spec.get_side('front'), 300)
    assert proj.trim_box.x != round(proj.trim_box.x)


def test_content_and_surface_frames(postcard_spec):
    side = postcard_spec.get_side('front')
    proj = project_panel(side, 96)
    x, y = proj.content_to_surface(10, 20)
    assert (x, y) == (pytest.approx(10 + proj.trim_offset), pytest.approx(20 + proj.trim_offset))
    assert proj.surface_to_content(x, y) == (pytest.approx(10), pytest.approx(20))

    sx, sy = content_point_to_surface(side, 0, 0, 300)
    assert sx == pytest.approx(mm_to_px(4, 300))
    assert sy == pytest.approx(mm_to_px(4, 300))


def test_reproject_px():
    assert reproject_px(96, 96, 300) == pytest.approx(300)
    assert reproject_px(300, 300, 96) == pytest.approx(96)


def test_fit_to_viewport_only_shrinks(postcard_spec):
    side = postcard_spec.get_side('front')
    full = project_panel(side, 96).bleed_box

    roomy = fit_to_viewport(side, 5000, 5000, 96)
    assert roomy.scale == 1.0
    assert roomy.width == pytest.approx(full.w)

    tight = fit_to_viewport(side, full.w / 2, 5000, 96)
    assert tight.scale == pytest.approx(0.5)
    assert tight.height == pytest.approx(full.h / 2)


def test_to_dict_keys(postcard_spec):
    data = project_panel(postcard_spec.get_side('back'), 96).to_dict()
    assert set(data) == {'dpi', 'bleedBoxPx', 'trimBoxPx', 'safeBoxPx', 'foldLinesPx'}
