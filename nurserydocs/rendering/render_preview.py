from __future__ import annotations

from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from .. import config


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # scale so the short side of the image is at least min_px
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(1.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(pdf_path: Path, out_dir: Path, max_pages: int = config.PREVIEW_PAGE_LIMIT) -> List[Path]:
    """Rasterise the first pages of a rendered document to preview_N.png files."""
    previews: List[Path] = []
    with fitz.open(pdf_path) as doc:
        for index in range(min(doc.page_count, max_pages)):
            out_path = out_dir / f"preview_{index + 1}.png"
            _render_page_to_png(doc, index, out_path)
            previews.append(out_path)
    return previews
