# tests/unit/test_renderer.py
# PNG rendering, logo compositing geometry and data URL handling

import base64
from io import BytesIO

import pytest
from PIL import Image

from qrgate.middleware.error_handler import ValidationFailedError
from qrgate.schemas.qr import StyleParams
from qrgate.services.renderer import build_resolve_url, decode_logo, logo_geometry, render_png


def _logo_data_url(color=(255, 0, 0, 255), edge=40) -> str:
    buf = BytesIO()
    Image.new("RGBA", (edge, edge), color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _open(png: bytes) -> Image.Image:
    return Image.open(BytesIO(png)).convert("RGB")


class TestGeometry:

    def test_percent_of_size(self):
        assert logo_geometry(320, 20, 12) == (64, 128, 12)

    def test_minimum_edge(self):
        edge, offset, _ = logo_geometry(240, 5, 0)
        assert edge == 24
        assert offset == 108

    def test_radius_clamped_to_half_edge(self):
        edge, _, corner = logo_geometry(240, 10, 50)
        assert edge == 24
        assert corner == 12


class TestRenderPng:

    def test_png_of_requested_size(self):
        png = render_png("hello", StyleParams(size=240))

        img = Image.open(BytesIO(png))
        assert img.format == "PNG"
        assert img.size == (240, 240)

    def test_colors_are_applied(self):
        img = _open(render_png("hello", StyleParams(color_dark="#ff0000", color_light="#00ff00")))

        # corner pixel sits in the quiet zone
        assert img.getpixel((0, 0)) == (0, 255, 0)
        assert (255, 0, 0) in {c for _, c in img.getcolors(maxcolors=1 << 16)}

    def test_logo_is_composited_in_center(self):
        style = StyleParams(size=320, logo_data_url=_logo_data_url(), logo_size_percent=20, logo_radius=0)

        img = _open(render_png("hello", style))

        assert img.getpixel((160, 160)) == (255, 0, 0)

    def test_rounded_corners_leave_symbol_visible(self):
        style = StyleParams(size=320, logo_data_url=_logo_data_url(), logo_size_percent=20, logo_radius=32)
        edge, offset, _ = logo_geometry(320, 20, 32)

        img = _open(render_png("hello", style))

        assert img.getpixel((offset, offset)) != (255, 0, 0)
        assert img.getpixel((offset + edge // 2, offset + edge // 2)) == (255, 0, 0)

    def test_empty_payload_rejected(self):
        with pytest.raises(ValidationFailedError):
            render_png("", StyleParams())

    def test_oversized_payload_rejected(self):
        with pytest.raises(ValidationFailedError):
            render_png("x" * 5000, StyleParams())


class TestDecodeLogo:

    def test_valid_data_url(self):
        logo = decode_logo(_logo_data_url(edge=10))
        assert logo.mode == "RGBA"
        assert logo.size == (10, 10)

    @pytest.mark.parametrize("value", [
        "https://example.com/logo.png",
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png;base64,bm90IGFuIGltYWdl",
        "data:image/png;base64,%%%",
    ])
    def test_invalid_logo_rejected(self, value):
        with pytest.raises(ValidationFailedError):
            decode_logo(value)


def test_build_resolve_url_strips_trailing_slash():
    assert build_resolve_url("https://qr.example.test/", "abc") == "https://qr.example.test/api/qrs/abc/resolve"
