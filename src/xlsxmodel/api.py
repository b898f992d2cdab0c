from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO

from .model import ReaderOptions
from .parser.ooxml import OOXMLWorkbookReader


def open_xlsx(source: str | Path | BinaryIO, *, options: ReaderOptions | None = None) -> OOXMLWorkbookReader:
    return OOXMLWorkbookReader(source, options or ReaderOptions())


def load_workbook_summary(
    source: str | Path | BinaryIO,
    *,
    options: ReaderOptions | None = None,
    sheet: str | None = None,
    cells: bool = False,
    tables: bool = False,
    drawings: bool = False,
) -> dict[str, Any]:
    """Collect sheets, defined names and optionally per-sheet content as plain data."""
    with open_xlsx(source, options=options) as reader:
        workbook = reader.raw_workbook()
        selected = [reader.sheet(sheet)] if sheet is not None else reader.sheets()
        summary: dict[str, Any] = {
            "date1904": workbook.is_1904,
            "sheets": reader.export(reader.sheets()),
            "defined_names": reader.export(reader.defined_names()),
            "worksheets": [],
        }
        for info in selected:
            if info.type != "worksheet":
                continue
            entry = reader.export(reader.worksheet(info))
            if tables:
                entry["tables"] = reader.export(reader.tables(info))
            if cells:
                entry["cells"] = reader.export(reader.cells(info))
            if drawings:
                entry["drawings"] = reader.export(reader.drawings(info))
            summary["worksheets"].append(entry)
        return summary
