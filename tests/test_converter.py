"""Tests for the Pillow image → PDF converter.

WHY: The page layout (A4, full width, proportional height, white
background) is what users see. The failure mapping decides whether a
bad image becomes a clean ConversionError or an unhandled crash.

HOW: render_page() is tested on in-memory images by sampling pixels.
PdfConverter.convert() runs against a fake fetch callable and writes
into pytest's tmp_path.
"""

from __future__ import annotations

import httpx
import pytest
from PIL import Image

from image_pdf_bot.adapters.converter import PdfConverter, page_size_px, render_page
from image_pdf_bot.core.pipeline import ConversionError
from image_pdf_bot.line.client import LineAPIError

WHITE = (255, 255, 255)
RED = (255, 0, 0)


class TestPageSize:
    """page_size_px() converts A4 millimetres to pixels."""

    def test_150_dpi(self):
        assert page_size_px(150) == (1240, 1754)

    def test_72_dpi(self):
        assert page_size_px(72) == (595, 842)

    def test_portrait(self):
        width, height = page_size_px(100)
        assert height > width


class TestRenderPage:
    """render_page() lays the image out on a white A4 page."""

    def test_page_is_a4_rgb(self):
        page = render_page(Image.new("RGB", (400, 200), "red"), 72)
        assert page.size == page_size_px(72)
        assert page.mode == "RGB"

    def test_image_spans_full_width(self):
        page = render_page(Image.new("RGB", (400, 200), "red"), 72)
        page_w, _ = page.size
        assert page.getpixel((0, 0)) == RED
        assert page.getpixel((page_w - 1, 0)) == RED

    def test_height_is_proportional(self):
        page = render_page(Image.new("RGB", (400, 100), "red"), 72)
        page_w, page_h = page.size
        scaled_h = page_w // 4
        assert page.getpixel((page_w // 2, scaled_h - 5)) == RED
        assert page.getpixel((page_w // 2, scaled_h + 5)) == WHITE
        assert page.getpixel((page_w // 2, page_h - 1)) == WHITE

    def test_small_image_is_upscaled(self):
        page = render_page(Image.new("RGB", (10, 10), "red"), 72)
        page_w, _ = page.size
        assert page.getpixel((page_w - 1, page_w - 5)) == RED

    def test_tall_image_is_clipped(self):
        page = render_page(Image.new("RGB", (100, 1000), "red"), 72)
        assert page.size == page_size_px(72)
        _, page_h = page.size
        assert page.getpixel((0, page_h - 1)) == RED

    def test_transparency_renders_white(self):
        page = render_page(Image.new("RGBA", (400, 200), (255, 0, 0, 0)), 72)
        assert page.getpixel((10, 10)) == WHITE

    def test_opaque_alpha_keeps_colour(self):
        page = render_page(Image.new("RGBA", (400, 200), (255, 0, 0, 255)), 72)
        assert page.getpixel((10, 10)) == RED

    def test_greyscale_input(self):
        page = render_page(Image.new("L", (400, 200), 0), 72)
        assert page.mode == "RGB"
        assert page.getpixel((10, 10)) == (0, 0, 0)


class TestPdfConverter:
    """PdfConverter.convert() fetches, renders, and writes a PDF."""

    def test_writes_pdf(self, tmp_path, png_bytes):
        fetched = []

        def fetch(url):
            fetched.append(url)
            return png_bytes

        dest = tmp_path / "U1.pdf"
        result = PdfConverter(fetch=fetch, dpi=72).convert("https://img/1", dest)

        assert result == dest
        assert fetched == ["https://img/1"]
        assert dest.read_bytes().startswith(b"%PDF")

    @pytest.mark.parametrize("fmt", ["JPEG", "GIF", "BMP"])
    def test_other_formats(self, tmp_path, image_bytes, fmt):
        data = image_bytes(fmt=fmt)
        dest = tmp_path / "out.pdf"
        PdfConverter(fetch=lambda url: data, dpi=72).convert("u", dest)
        assert dest.read_bytes().startswith(b"%PDF")

    def test_transparent_png(self, tmp_path, image_bytes):
        data = image_bytes(mode="RGBA", color=(0, 0, 255, 0), fmt="PNG")
        dest = tmp_path / "out.pdf"
        PdfConverter(fetch=lambda url: data, dpi=72).convert("u", dest)
        assert dest.exists()

    def test_unreadable_bytes(self, tmp_path):
        converter = PdfConverter(fetch=lambda url: b"definitely not an image", dpi=72)
        with pytest.raises(ConversionError, match="not a readable image"):
            converter.convert("u", tmp_path / "out.pdf")

    def test_line_api_error_on_fetch(self, tmp_path):
        def fetch(url):
            raise LineAPIError(404, "Not found")

        with pytest.raises(ConversionError) as exc_info:
            PdfConverter(fetch=fetch).convert("u", tmp_path / "out.pdf")
        assert exc_info.value.step == "convert"
        assert "404" in exc_info.value.message

    def test_network_error_on_fetch(self, tmp_path):
        def fetch(url):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(ConversionError, match="could not fetch image"):
            PdfConverter(fetch=fetch).convert("u", tmp_path / "out.pdf")

    def test_missing_destination_directory(self, tmp_path, png_bytes):
        converter = PdfConverter(fetch=lambda url: png_bytes, dpi=72)
        with pytest.raises(ConversionError, match="could not render PDF"):
            converter.convert("u", tmp_path / "missing" / "out.pdf")

    def test_oversized_image(self, tmp_path, monkeypatch, png_bytes):
        # 400 x 200 is more than twice this limit, so Pillow refuses to decode it
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        converter = PdfConverter(fetch=lambda url: png_bytes, dpi=72)
        with pytest.raises(ConversionError, match="too large"):
            converter.convert("u", tmp_path / "out.pdf")
