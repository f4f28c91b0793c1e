"""Raster renderer."""
import io
import logging
import threading
import time

import pytest
from PIL import Image

from card_builder.design.model import LabelElement, OrnamentElement, TextElement
from card_builder.errors import PageNotFoundError, RenderCancelledError
from card_builder.renderer.assets import AssetFetcher, MappingAssetFetcher
from card_builder.renderer.raster import RasterRenderer, load_font, render_to_png, render_to_raster
from card_builder.units import mm_to_px

WHITE = (255, 255, 255)
RED = (255, 0, 0)
BLUE = (0, 0, 255)


def _centre(element, dpi, bleed_mm=4.0):
    """Canvas pixel at the centre of an element's box."""
    x = mm_to_px(element.x_mm + element.w_mm / 2 + bleed_mm, dpi)
    y = mm_to_px(element.y_mm + element.h_mm / 2 + bleed_mm, dpi)
    return round(x), round(y)


class TestGoldenMaster:
    """4x6in postcard front, 4mm bleed/safe, 300 DPI: trim border plus one text element."""

    @pytest.fixture
    def design(self, postcard_design):
        front = postcard_design.get_page('front')
        front.elements.append(LabelElement(
            id='border', x_mm=0, y_mm=0, w_mm=101.6, h_mm=152.4, shape_preset='rectangle',
            fill='transparent', stroke={'enabled': True, 'width_mm': 0.5, 'color': '#000000'}, z_index=0))
        front.elements.append(TextElement(
            id='greeting', x_mm=24, y_mm=24, w_mm=60, h_mm=12, text='Greetings from the Coast!',
            font_size_pt=24, fill='#000000', z_index=1))
        return postcard_design

    def test_dimensions(self, design):
        image = render_to_raster(design, 'front', dpi=300)
        expected = (
            round(((101.6 + 8) / 25.4) * 300),
            round(((152.4 + 8) / 25.4) * 300),
        )
        assert image.size == expected == (1294, 1894)
        assert image.mode == 'RGB'

    def test_pixels(self, design):
        image = render_to_raster(design, 'front', dpi=300)
        trim = round(mm_to_px(4, 300))

        assert image.getpixel((2, 2)) == WHITE  # bleed stays white
        assert image.getpixel((trim + 1, 600)) == (0, 0, 0)  # left border stroke
        assert image.getpixel((image.width // 2, image.height - 10)) == WHITE

        # text lands inside its box and is dark
        x0 = round(mm_to_px(24 + 4, 300))
        y0 = round(mm_to_px(24 + 4, 300))
        region = image.crop((x0, y0, x0 + 600, y0 + 140)).convert('L')
        assert region.getextrema()[0] < 100

    def test_trim_only(self, design):
        image = render_to_raster(design, 'front', dpi=300, include_bleed=False)
        assert image.size == (1200, 1800)
        assert image.getpixel((1, 600)) == (0, 0, 0)


def test_z_order_and_stable_ties(postcard_design, image_element, make_png):
    fetcher = MappingAssetFetcher({'red': make_png(50, 50, 'red'), 'blue': make_png(50, 50, 'blue')})
    front = postcard_design.get_page('front')
    top = image_element('red', 'top', z_index=1)
    bottom = image_element('blue', 'bottom', z_index=0)
    front.elements.extend([top, bottom])

    image = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert image.getpixel(_centre(top, 100)) == RED

    # equal zIndex: later in the list paints last
    bottom.z_index = 1
    image = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert image.getpixel(_centre(top, 100)) == BLUE


def test_failed_element_is_skipped(postcard_design, image_element, make_png, caplog):
    fetcher = MappingAssetFetcher({'ok': make_png(40, 40, 'red')})
    good = image_element('ok', 'good', x_mm=10, y_mm=10, w_mm=20, h_mm=20)
    broken = image_element('missing', 'broken', x_mm=50, y_mm=50, w_mm=20, h_mm=20)
    postcard_design.get_page('front').elements.extend([broken, good])

    with caplog.at_level(logging.WARNING, logger='card_builder.renderer.raster'):
        result = RasterRenderer(fetcher=fetcher).render(postcard_design, 'front', dpi=100)

    assert [s.element_id for s in result.skipped] == ['broken']
    assert 'broken' in caplog.text
    assert result.image.getpixel(_centre(good, 100)) == RED
    assert result.image.getpixel(_centre(broken, 100)) == WHITE


def test_undecodable_image_is_skipped(postcard_design, image_element):
    fetcher = MappingAssetFetcher({'junk': b'not an image'})
    postcard_design.get_page('front').elements.append(image_element('junk', 'junk'))
    result = RasterRenderer(fetcher=fetcher).render(postcard_design, 'front', dpi=72)
    assert [s.element_id for s in result.skipped] == ['junk']


def test_contain_letterboxes_and_cover_fills(postcard_design, image_element, make_png):
    fetcher = MappingAssetFetcher({'wide': make_png(200, 100, 'red')})
    element = image_element('wide', 'wide', x_mm=10, y_mm=10, w_mm=40, h_mm=40, fit_mode='contain')
    postcard_design.get_page('front').elements.append(element)
    near_top = (_centre(element, 100)[0], round(mm_to_px(10 + 4 + 2, 100)))

    contained = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert contained.getpixel(_centre(element, 100)) == RED
    assert contained.getpixel(near_top) == WHITE

    element.fit_mode = 'cover'
    covered = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert covered.getpixel(near_top) == RED


def test_crop_rect_selects_region(postcard_design, image_element):
    src = Image.new('RGB', (100, 100), 'blue')
    src.paste((255, 0, 0), (50, 0, 100, 100))
    buf = io.BytesIO()
    src.save(buf, format='PNG')
    fetcher = MappingAssetFetcher({'halves': buf.getvalue()})
    element = image_element('halves', 'crop', fit_mode='cover', crop_rect={'x': 0.5, 'y': 0, 'w': 0.5, 'h': 1})
    postcard_design.get_page('front').elements.append(element)

    image = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert image.getpixel(_centre(element, 100)) == RED


def test_opacity_zero_is_invisible(postcard_design, image_element, make_png):
    fetcher = MappingAssetFetcher({'red': make_png(50, 50, 'red')})
    element = image_element('red', opacity=0.0)
    postcard_design.get_page('front').elements.append(element)
    image = render_to_raster(postcard_design, 'front', dpi=100, fetcher=fetcher)
    assert image.getpixel(_centre(element, 100)) == WHITE


def test_rotation_about_centre(postcard_design, image_element, make_png):
    fetcher = MappingAssetFetcher({'red': make_png(50, 50, 'red')})
    element = image_element('red', rotation_deg=45, x_mm=30, y_mm=30, w_mm=30, h_mm=30)
    postcard_design.get_page('front').elements.append(element)
    result = RasterRenderer(fetcher=fetcher).render(postcard_design, 'front', dpi=100)
    assert result.skipped == []
    assert result.image.getpixel(_centre(element, 100)) == RED


def test_label_background_and_text(postcard_design, label_element):
    element = label_element(fill='#0000ff', shape_preset='rectangle', text='')
    postcard_design.get_page('front').elements.append(element)
    image = render_to_raster(postcard_design, 'front', dpi=100)
    assert image.getpixel(_centre(element, 100)) == BLUE


def test_ornaments_are_skipped(postcard_design, caplog):
    postcard_design.get_page('front').elements.append(
        OrnamentElement(id='orn', x_mm=10, y_mm=10, w_mm=10, h_mm=10, ornament_id='heart'))
    with caplog.at_level(logging.INFO, logger='card_builder.renderer.raster'):
        result = RasterRenderer().render(postcard_design, 'front', dpi=72)
    assert [s.element_id for s in result.skipped] == ['orn']
    assert 'orn' in caplog.text


def test_data_url_with_default_fetcher(postcard_design, image_element, make_png, data_url):
    element = image_element(data_url(make_png(30, 30, 'red')))
    postcard_design.get_page('front').elements.append(element)
    image = render_to_raster(postcard_design, 'front', dpi=100, fetcher=AssetFetcher(allow_remote=False))
    assert image.getpixel(_centre(element, 100)) == RED


def test_unknown_page(postcard_design):
    with pytest.raises(PageNotFoundError):
        render_to_raster(postcard_design, 'inside-left')


def test_cancel_before_start(postcard_design):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(RenderCancelledError):
        render_to_raster(postcard_design, 'front', dpi=72, cancel_event=cancel)


def test_cancel_during_fetch_discards_output(postcard_design, image_element, make_png):
    cancel = threading.Event()
    png = make_png(20, 20)

    class CancellingFetcher:
        def fetch_bytes(self, ref):
            cancel.set()
            return png

    postcard_design.get_page('front').elements.append(image_element('a'))
    with pytest.raises(RenderCancelledError):
        RasterRenderer(fetcher=CancellingFetcher()).render(postcard_design, 'front', dpi=72, cancel_event=cancel)


def test_png_bytes(postcard_design):
    data = render_to_png(postcard_design, 'back', dpi=72)
    assert data.startswith(b'\x89PNG')
    with Image.open(io.BytesIO(data)) as img:
        assert img.size == (round(mm_to_px(109.6, 72)), round(mm_to_px(160.4, 72)))


def test_default_dpi_comes_from_document(postcard_design):
    postcard_design.print_spec.dpi = 50
    image = render_to_raster(postcard_design, 'front')
    assert image.width == round(mm_to_px(109.6, 50))


class DictFetcher:
    """Bare dict lookup: a missing ref raises KeyError, not AssetFetchError."""

    def __init__(self, assets):
        self.assets = assets

    def fetch_bytes(self, ref):
        return self.assets[ref]


def test_any_fetcher_failure_only_skips_that_element(postcard_design, image_element, make_png):
    good = image_element('ok', 'good', x_mm=10, y_mm=10, w_mm=20, h_mm=20)
    broken = image_element('missing', 'broken', x_mm=50, y_mm=50, w_mm=20, h_mm=20)
    postcard_design.get_page('front').elements.extend([good, broken])

    result = RasterRenderer(fetcher=DictFetcher({'ok': make_png(40, 40, 'red')})).render(postcard_design, 'front', dpi=100)

    assert [s.element_id for s in result.skipped] == ['broken']
    assert result.image.getpixel(_centre(good, 100)) == RED


def test_unusable_local_path_is_skipped(postcard_design, image_element, make_png, data_url):
    good = image_element(data_url(make_png(40, 40, 'red')), 'good', x_mm=10, y_mm=10, w_mm=20, h_mm=20)
    broken = image_element('bad\x00.png', 'bad', x_mm=50, y_mm=50, w_mm=20, h_mm=20)
    postcard_design.get_page('front').elements.extend([good, broken])

    result = RasterRenderer(fetcher=AssetFetcher(allow_remote=False)).render(postcard_design, 'front', dpi=100)

    assert [s.element_id for s in result.skipped] == ['bad']
    assert result.image.getpixel(_centre(good, 100)) == RED


@pytest.mark.parametrize('slow_ref', ['red', 'blue'])
def test_paint_order_ignores_fetch_completion_order(postcard_design, image_element, make_png, slow_ref):
    assets = {'red': make_png(50, 50, 'red'), 'blue': make_png(50, 50, 'blue')}
    fast_done = threading.Event()

    class SlowFetcher:
        def fetch_bytes(self, ref):
            if ref == slow_ref:
                # finish only after the other image has been fetched
                fast_done.wait(timeout=2)
                time.sleep(0.05)
            else:
                fast_done.set()
            return assets[ref]

    top = image_element('red', 'top', z_index=1)
    bottom = image_element('blue', 'bottom', z_index=0)
    postcard_design.get_page('front').elements.extend([bottom, top])

    result = RasterRenderer(fetcher=SlowFetcher(), max_workers=2).render(postcard_design, 'front', dpi=100)
    assert result.skipped == []
    assert result.image.getpixel(_centre(top, 100)) == RED


@pytest.mark.parametrize('family', ['/etc/fonts/evil.ttf', '../fonts/Arial', 'C:\\Windows\\Fonts\\arial'])
def test_font_paths_are_not_loaded(family, caplog):
    with caplog.at_level(logging.WARNING, logger='card_builder.renderer.raster'):
        font = load_font(family, 400, 20)
    assert font is not None
    assert 'not a plain font name' in caplog.text
