from __future__ import annotations

import json
import tempfile
from pathlib import Path

from typer.testing import CliRunner

from nurserydocs.main import app


runner = CliRunner()

LAYOUT = [
    {"id": "h", "type": "heading", "text": "Invoice {{order.number}}"},
    {"id": "t", "type": "table", "rowsBinding": "order.lines", "columns": [
        {"key": "sku", "label": "SKU"},
        {"key": "price", "label": "Price", "format": "currency"},
    ]},
]
DATA = {"order": {"number": "INV-1", "lines": [{"sku": "A1", "price": 9.5}]}}


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_validate_reports_component_count() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        layout = _write(Path(temp_dir) / "layout.json", LAYOUT)
        result = runner.invoke(app, ["validate", str(layout)])
        assert result.exit_code == 0
        assert "OK: 2 components" in result.output


def test_validate_rejects_bad_layout() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        layout = _write(Path(temp_dir) / "layout.json", [{"type": "table", "columns": [{"key": "sku"}]}])
        result = runner.invoke(app, ["validate", str(layout)])
        assert result.exit_code == 1


def test_render_writes_html_and_pdf() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        root = Path(temp_dir)
        layout = _write(root / "layout.json", LAYOUT)
        data = _write(root / "data.json", DATA)
        out_dir = root / "out"
        result = runner.invoke(
            app, ["render", str(layout), "--data", str(data), "--out", str(out_dir), "--title", "Invoice INV-1"]
        )
        assert result.exit_code == 0, result.output
        html_path = out_dir / "invoice-inv-1" / "document.html"
        pdf_path = out_dir / "invoice-inv-1" / "document.pdf"
        assert "€9.50" in html_path.read_text(encoding="utf-8")
        assert pdf_path.read_bytes().startswith(b"%PDF")
        assert "(1 pages)" in result.output


def test_template_commands() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        root = Path(temp_dir)
        out_dir = root / "out"
        layout = _write(root / "layout.json", LAYOUT)

        result = runner.invoke(app, ["list-templates", "--out", str(out_dir)])
        assert result.exit_code == 0
        assert "No templates" in result.output

        result = runner.invoke(
            app, ["save-template", "--name", "Invoice", "--type", "invoice", "--layout", str(layout), "--out", str(out_dir)]
        )
        assert result.exit_code == 0, result.output
        assert "SAVED: 1" in result.output

        result = runner.invoke(app, ["publish", "1", "--out", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert "PUBLISHED: 1" in result.output

        result = runner.invoke(app, ["list-templates", "--out", str(out_dir)])
        assert "1\tinvoice\tpublished\tInvoice" in result.output

        data = _write(root / "data.json", DATA)
        result = runner.invoke(app, ["generate", "1", "--data", str(data), "--out", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert (out_dir / "template-1" / "document.pdf").exists()

        result = runner.invoke(app, ["publish", "7", "--out", str(out_dir)])
        assert result.exit_code == 1
