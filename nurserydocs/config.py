from __future__ import annotations

from pathlib import Path
import json


BASE_DIR = Path(__file__).resolve().parents[1]
PACKAGE_DIR = Path(__file__).resolve().parent
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "documents.db"
STYLE_PRESET_PATH = PACKAGE_DIR / "assets" / "pdf_style.json"

# A4 portrait in PDF user-space units
PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
PAGE_MARGIN = 40.0

CURRENCY_SYMBOL = "€"
NUMBER_MAX_FRACTION_DIGITS = 2

DEFAULT_DOCUMENT_TITLE = "Document"
PREVIEW_PAGE_LIMIT = 3


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "documents.db"
