from __future__ import annotations

import html as html_lib
import re

import fitz  # PyMuPDF
import pytest

from nurserydocs.rendering.render_html import render_document_html
from nurserydocs.rendering.render_pdf import PageGeometry, draw_document, render_document_pdf
from nurserydocs.rendering.schema import load_layout


LINE_HEIGHT = 12 + 6  # body size + line gap

COLUMNS = [
    {"key": "sku", "label": "SKU"},
    {"key": "qty", "label": "Qty", "align": "right"},
    {"key": "price", "label": "Price", "format": "currency", "align": "right"},
]

PNG_PIXEL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _table_layout(show_header: bool = True):
    return load_layout([
        {"id": "h", "type": "heading", "text": "Invoice {{order.number}}"},
        {"id": "t", "type": "table", "rowsBinding": "order.lines", "showHeader": show_header, "columns": COLUMNS},
    ])


def _context(rows: int) -> dict:
    lines = [{"sku": f"SKU-{index}", "qty": index + 1, "price": 9.5} for index in range(rows)]
    return {"order": {"number": "INV-1", "lines": lines}}


def test_renders_a_pdf_document() -> None:
    content = render_document_pdf(_table_layout(), _context(2), title="Invoice")
    assert content.startswith(b"%PDF")
    with fitz.open(stream=content, filetype="pdf") as doc:
        assert doc.page_count == 1
        text = doc.load_page(0).get_text()
    assert "Invoice INV-1" in text
    assert "SKU-1" in text
    assert "9.50" in text


def test_empty_layout_still_has_one_page() -> None:
    result = draw_document((), {})
    assert result.page_count == 1
    with fitz.open(stream=result.content, filetype="pdf") as doc:
        assert doc.page_count == 1


def test_long_table_breaks_across_pages() -> None:
    result = draw_document(_table_layout(), _context(200), title="Invoice")
    assert result.page_count > 1
    with fitz.open(stream=result.content, filetype="pdf") as doc:
        assert doc.page_count == result.page_count

    header = result.ops_with_role("table-header")
    assert [op.text for op in header] == ["SKU", "Qty", "Price"]
    assert {op.page for op in header} == {1}

    rows = result.ops_with_role("table-row")
    assert len(rows) == 200
    assert rows[-1].page == result.page_count
    assert [op.page for op in rows] == sorted(op.page for op in rows)


def test_rows_stay_inside_the_margins() -> None:
    geometry = PageGeometry()
    result = draw_document(_table_layout(), _context(120))
    for op in result.ops_with_role("table-row"):
        assert op.y >= geometry.margin
        assert op.y + op.height <= geometry.top + 0.01


def test_row_count_follows_the_bound_array() -> None:
    result = draw_document(_table_layout(), _context(7))
    assert len(result.ops_with_role("table-row")) == 7
    assert len(result.ops_with_role("table-cell")) == 7 * len(COLUMNS)

    not_a_list = {"order": {"number": "INV-1", "lines": {"sku": "A1"}}}
    result = draw_document(_table_layout(), not_a_list)
    assert result.ops_with_role("table-row") == []
    assert len(result.ops_with_role("table-header")) == len(COLUMNS)


def test_hidden_header_draws_no_header_row() -> None:
    result = draw_document(_table_layout(show_header=False), _context(3))
    assert result.ops_with_role("table-header") == []
    assert result.ops_with_role("table-rule") == []
    assert len(result.ops_with_role("table-row")) == 3


def test_page_count_grows_with_rows() -> None:
    counts = [draw_document(_table_layout(), _context(rows)).page_count for rows in (0, 10, 40, 80, 160, 320)]
    assert counts == sorted(counts)
    assert counts[0] == 1
    assert counts[-1] > counts[2]


def test_box_border_wraps_its_children() -> None:
    geometry = PageGeometry()
    children = [
        {"id": "a", "type": "text", "text": "First line"},
        {"id": "b", "type": "text", "text": "Second line"},
    ]
    tight = draw_document(load_layout([{"id": "box", "type": "box", "style": {"padding": 0}, "children": children}]), {})
    (border,) = tight.ops_with_role("box-border")
    assert border.height == pytest.approx(2 * LINE_HEIGHT)
    assert border.y + border.height == pytest.approx(geometry.top)

    padded = draw_document(load_layout([{"id": "box", "type": "box", "children": children}]), {})
    (border,) = padded.ops_with_role("box-border")
    assert border.height == pytest.approx(2 * LINE_HEIGHT + 2 * 6)


def test_box_border_follows_wrapped_text() -> None:
    long_text = " ".join(["Lavender Hidcote nine centimetre pots"] * 12)
    layout = load_layout([{"id": "box", "type": "box", "style": {"padding": 0}, "children": [
        {"id": "a", "type": "text", "text": long_text},
    ]}])
    result = draw_document(layout, {})
    lines = [op for op in result.ops if op.role == "text"]
    assert len(lines) > 1
    (border,) = result.ops_with_role("box-border")
    assert border.height == pytest.approx(len(lines) * LINE_HEIGHT)


def test_box_skips_hidden_children() -> None:
    layout = load_layout([{"id": "box", "type": "box", "style": {"padding": 0}, "children": [
        {"id": "a", "type": "text", "text": "Always"},
        {"id": "b", "type": "text", "text": "{{customer.email}}", "visibleWhen": {"field": "customer.email"}},
    ]}])
    result = draw_document(layout, {})
    (border,) = result.ops_with_role("box-border")
    assert border.height == pytest.approx(LINE_HEIGHT)
    assert [op.text for op in result.ops if op.role == "text"] == ["Always"]


def test_visibility_matches_html() -> None:
    layout = load_layout([
        {"id": "shown", "type": "text", "text": "Visible {{status}}"},
        {"id": "hidden", "type": "text", "text": "Overdue notice", "visibleWhen": [
            {"field": "status", "operator": "equals", "value": "overdue"},
        ]},
    ])
    context = {"status": "paid"}
    html = render_document_html(layout, context)
    texts = [op.text for op in draw_document(layout, context).ops if op.role == "text"]
    assert "Overdue notice" not in html
    assert "Overdue notice" not in texts
    assert "Visible paid" in html
    assert "Visible paid" in texts


def test_table_cells_match_html() -> None:
    layout = _table_layout()
    context = _context(5)
    html = render_document_html(layout, context)
    html_cells = [html_lib.unescape(cell) for cell in re.findall(r"<td[^>]*>(.*?)</td>", html)]
    pdf_cells = [op.text for op in draw_document(layout, context).ops_with_role("table-cell")]
    assert pdf_cells == html_cells


def test_missing_binding_renders_blank() -> None:
    result = draw_document(_table_layout(), {})
    (heading,) = result.ops_with_role("heading")
    assert heading.text == "Invoice"


def test_rendering_is_deterministic() -> None:
    first = draw_document(_table_layout(), _context(60), title="Invoice")
    second = draw_document(_table_layout(), _context(60), title="Invoice")
    assert first.ops == second.ops
    assert first.page_count == second.page_count
    assert first.content == second.content


def test_chips_divider_and_list() -> None:
    layout = load_layout([
        {"id": "c", "type": "chips", "items": [{"label": "Organic"}, {"label": "{{missing}}"}, {"label": "Peat free"}]},
        {"id": "d", "type": "divider"},
        {"id": "l", "type": "list", "items": [{"label": "Bay {{bay}}"}, {"binding": "missing"}]},
    ])
    result = draw_document(layout, {"bay": "A3"})
    assert [op.text for op in result.ops_with_role("chip-label")] == ["Organic", "Peat free"]
    assert len(result.ops_with_role("chip")) == 2
    assert len(result.ops_with_role("divider")) == 1
    assert [op.text for op in result.ops_with_role("list-item")] == ["• Bay A3"]


def test_images_draw_or_fall_back_to_placeholder() -> None:
    layout = load_layout([
        {"id": "logo", "type": "image", "binding": "company.logo", "width": 48, "height": 48},
        {"id": "remote", "type": "image", "url": "https://example.com/logo.png"},
        {"id": "absent", "type": "image", "binding": "company.banner"},
    ])
    result = draw_document(layout, {"company": {"logo": PNG_PIXEL}})
    (image,) = result.ops_with_role("image")
    assert (image.width, image.height) == (48, 48)
    assert len(result.ops_with_role("image-placeholder")) == 1


def test_oversize_spacer_does_not_loop() -> None:
    layout = load_layout([
        {"id": "s", "type": "spacer", "size": 5000},
        {"id": "t", "type": "text", "text": "After"},
    ])
    result = draw_document(layout, {})
    assert result.page_count == 2
    (after,) = [op for op in result.ops if op.text == "After"]
    assert after.page == 2


def test_margin_bottom_moves_the_cursor() -> None:
    plain = load_layout([
        {"id": "a", "type": "text", "text": "One"},
        {"id": "b", "type": "text", "text": "Two"},
    ])
    spaced = load_layout([
        {"id": "a", "type": "text", "text": "One", "style": {"marginBottom": 20}},
        {"id": "b", "type": "text", "text": "Two"},
    ])
    y_plain = [op.y for op in draw_document(plain, {}).ops if op.text == "Two"][0]
    y_spaced = [op.y for op in draw_document(spaced, {}).ops if op.text == "Two"][0]
    assert y_plain - y_spaced == pytest.approx(20)


def test_unknown_component_draws_nothing() -> None:
    layout = load_layout([{"id": "sig", "type": "signature", "text": "Sign here"}])
    result = draw_document(layout, {})
    assert result.ops == []
    assert result.page_count == 1


def test_page_hook_runs_for_every_page() -> None:
    seen = []

    def hook(canv, page_number, geometry, title) -> None:  # noqa: ANN001 - test helper
        seen.append((page_number, title))

    result = draw_document(_table_layout(), _context(150), title="Docket", on_page=hook)
    assert seen == [(number, "Docket") for number in range(1, result.page_count + 1)]


def test_odd_condition_path_does_not_break_the_document(monkeypatch) -> None:
    layout = load_layout([
        {"id": "odd", "type": "text", "text": "Odd", "visibleWhen": {"field": "lines.²"}},
        {"id": "after", "type": "text", "text": "After"},
    ])
    texts = [op.text for op in draw_document(layout, {"lines": [1, 2]}).ops if op.role == "text"]
    assert texts == ["After"]

    def broken(component, context):  # noqa: ANN001 - test helper
        raise RuntimeError("boom")

    monkeypatch.setattr("nurserydocs.rendering.render_pdf.is_visible", broken)
    result = draw_document(layout, {})
    assert result.ops == []
    assert result.page_count == 1


def test_box_spanning_a_page_break_borders_the_last_page() -> None:
    geometry = PageGeometry()
    children = [{"id": f"line-{index}", "type": "text", "text": f"Line {index}"} for index in range(60)]
    result = draw_document(load_layout([{"id": "box", "type": "box", "children": children}]), {})
    assert result.page_count == 2
    (border,) = result.ops_with_role("box-border")
    assert border.page == result.page_count
    assert border.y + border.height == pytest.approx(geometry.top)
    last_line = [op for op in result.ops if op.text == "Line 59"][0]
    assert border.y <= last_line.y


def test_long_word_is_broken_inside_the_margins() -> None:
    geometry = PageGeometry()
    layout = load_layout([{"id": "sku", "type": "text", "text": "Ref " + "X" * 200 + " end"}])
    lines = [op for op in draw_document(layout, {}).ops if op.role == "text"]
    assert len(lines) > 2
    assert "".join(op.text for op in lines).replace(" ", "") == "Ref" + "X" * 200 + "end"
    for op in lines:
        assert op.x + op.width <= geometry.right + 0.01
