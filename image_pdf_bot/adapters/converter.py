"""Image → single-page PDF conversion with Pillow.

WHY: Users send photos; they want a PDF. A one-page A4 document with the
photo spanning the full page width is what a printer or a document
viewer expects.

HOW: The image bytes are fetched through an injected callable (normally
LineClient.fetch_content), decoded with Pillow, rotated according to its
EXIF orientation, scaled to the A4 page width at the configured DPI
with proportional height, pasted top-left onto a white A4 page, and
saved as PDF.

RULES:
- Page is A4 portrait (210 × 297 mm)
- Image width always equals the page width; height keeps the aspect ratio
- Content taller than the page is clipped at the bottom edge
- Transparent areas render as white
- Every fetch or decode failure is raised as ConversionError, including
  Pillow's decompression-bomb guard on oversized images
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Tuple

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from image_pdf_bot.config import PDF_DPI
from image_pdf_bot.core.pipeline import ConversionError
from image_pdf_bot.line.client import LineAPIError

logger = logging.getLogger(__name__)

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0
MM_PER_INCH = 25.4


def page_size_px(dpi: int) -> Tuple[int, int]:
    """Return the A4 page size in pixels at ``dpi``."""
    return (
        round(A4_WIDTH_MM / MM_PER_INCH * dpi),
        round(A4_HEIGHT_MM / MM_PER_INCH * dpi),
    )


def render_page(image: Image.Image, dpi: int) -> Image.Image:
    """Lay ``image`` out on a white A4 page at full page width."""
    page_w, page_h = page_size_px(dpi)
    scaled_h = max(1, round(image.height * page_w / image.width))

    has_alpha = image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    )
    source = image.convert("RGBA" if has_alpha else "RGB")
    scaled = source.resize((page_w, scaled_h), Image.Resampling.LANCZOS)

    page = Image.new("RGB", (page_w, page_h), "white")
    page.paste(scaled, (0, 0), scaled if has_alpha else None)
    return page


class PdfConverter:
    """Renders a remote image into a one-page PDF file."""

    def __init__(self, fetch: Callable[[str], bytes], dpi: int = PDF_DPI) -> None:
        self._fetch = fetch
        self.dpi = dpi

    def convert(self, image_url: str, dest_path: Path) -> Path:
        """Fetch ``image_url`` and write the PDF to ``dest_path``."""
        try:
            data = self._fetch(image_url)
        except (LineAPIError, httpx.HTTPError) as exc:
            raise ConversionError("could not fetch image: {}".format(exc))

        try:
            with Image.open(io.BytesIO(data)) as image:
                upright = ImageOps.exif_transpose(image)
                page = render_page(upright, self.dpi)
            page.save(dest_path, "PDF", resolution=float(self.dpi))
        except UnidentifiedImageError:
            raise ConversionError("content is not a readable image")
        except Image.DecompressionBombError as exc:
            raise ConversionError("image is too large: {}".format(exc))
        except (OSError, ValueError) as exc:
            raise ConversionError("could not render PDF: {}".format(exc))

        logger.debug("Rendered %d bytes of image data to %s", len(data), dest_path)
        return Path(dest_path)
