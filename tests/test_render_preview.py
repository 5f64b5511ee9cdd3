from __future__ import annotations

import tempfile
from pathlib import Path

from nurserydocs.rendering.render_pdf import render_document_pdf
from nurserydocs.rendering.render_preview import render_previews
from nurserydocs.rendering.schema import load_layout


class DummyRect:
    width = 595.28
    height = 841.89


class DummyPixmap:
    def save(self, path: str) -> None:
        Path(path).write_text("preview", encoding="utf-8")


class DummyPage:
    rect = DummyRect()

    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        return DummyPixmap()


class DummyDoc:
    def __init__(self, page_count: int) -> None:
        self.page_count = page_count
        self.closed = False

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:  # noqa: ARG002 - test helper
        return DummyPage()


def test_render_previews_closes_document(monkeypatch) -> None:
    doc = DummyDoc(page_count=5)

    def fake_open(path: str) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    with tempfile.TemporaryDirectory() as temp_dir:
        monkeypatch.setattr("nurserydocs.rendering.render_preview.fitz.open", fake_open)
        previews = render_previews(Path("document.pdf"), Path(temp_dir))
        assert doc.closed is True
        assert [path.name for path in previews] == ["preview_1.png", "preview_2.png", "preview_3.png"]
        assert all(path.exists() for path in previews)


def test_render_previews_of_a_real_document() -> None:
    layout = load_layout([
        {"id": "h", "type": "heading", "text": "Availability List"},
        {"id": "t", "type": "table", "rowsBinding": "items", "columns": [{"key": "name", "label": "Variety"}]},
    ])
    content = render_document_pdf(layout, {"items": [{"name": "Lavender 'Hidcote'"}]})
    with tempfile.TemporaryDirectory() as temp_dir:
        pdf_path = Path(temp_dir) / "document.pdf"
        pdf_path.write_bytes(content)
        previews = render_previews(pdf_path, Path(temp_dir) / "previews")
        assert len(previews) == 1
        assert previews[0].read_bytes().startswith(b"\x89PNG")
