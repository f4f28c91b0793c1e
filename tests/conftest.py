"""Shared pytest fixtures for card_builder tests."""
import base64
import io

import pytest
from PIL import Image

from card_builder.design.model import DesignDocument, ImageElement, LabelElement, TextElement
from card_builder.spec.print_spec import generate_print_spec


@pytest.fixture
def make_png():
    """Factory fixture: make_png(width, height, color) -> PNG bytes."""
    def _make(width, height, color='red'):
        img = Image.new('RGB', (width, height), color)
        buf = io.BytesIO()
        img.save(buf, format='PNG')
        return buf.getvalue()
    return _make


@pytest.fixture
def data_url():
    """Factory fixture: data_url(png_bytes) -> base64 data URL."""
    def _make(data, mime='image/png'):
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
    return _make


@pytest.fixture
def postcard_spec():
    """4x6in postcard, 4mm bleed / 4mm safe, front and back."""
    return generate_print_spec('postcard', '4x6')


@pytest.fixture
def bifold_spec():
    return generate_print_spec('card', '5x7', 'portrait', 'bifold')


@pytest.fixture
def postcard_design(postcard_spec):
    return DesignDocument.for_print_spec(postcard_spec)


@pytest.fixture
def safe_text():
    """Short text well inside the safe area."""
    def _make(element_id='t1', x_mm=10.0, y_mm=10.0, text='Hello', size_pt=12.0, **kwargs):
        return TextElement(id=element_id, x_mm=x_mm, y_mm=y_mm, w_mm=40.0, h_mm=10.0,
                           text=text, font_size_pt=size_pt, **kwargs)
    return _make


@pytest.fixture
def image_element():
    def _make(src, element_id='img1', x_mm=10.0, y_mm=10.0, w_mm=60.0, h_mm=60.0, **kwargs):
        return ImageElement(id=element_id, src=src, x_mm=x_mm, y_mm=y_mm, w_mm=w_mm, h_mm=h_mm, **kwargs)
    return _make


@pytest.fixture
def label_element():
    def _make(element_id='lbl1', text='SALE', **kwargs):
        fields = dict(id=element_id, x_mm=20.0, y_mm=20.0, w_mm=40.0, h_mm=15.0,
                      shape_preset='pill', fill='#ffcc00',
                      text_props={'text': text, 'fontSize_pt': 14})
        fields.update(kwargs)
        return LabelElement(**fields)
    return _make
