from __future__ import annotations

import logging
from typing import Iterator

from ..errors import DecodeError, ErrorCode, OverlappingMergeError
from ..model import (
    BlankValue,
    BooleanValue,
    Cell,
    CellValue,
    DateValue,
    ErrorValue,
    Hyperlink,
    NumberFormat,
    NumberValue,
    RangeRef,
    TextValue,
)
from ..parser.raw import RawCell, RawColumn, RawRow, RawWorksheet
from ..parser.utils import coord_to_rowcol, parse_range_ref, rowcol_to_coord
from .numfmt import parse_iso_datetime, serial_to_datetime
from .strings import FontBuilder, SharedStringTable, resolve_string_item
from .styles import StyleEngine

logger = logging.getLogger(__name__)

DEFAULT_COL_WIDTH = 8.43
DEFAULT_ROW_HEIGHT = 15.0
DEFAULT_DY_DESCENT = 0.2
# defaultColWidth = baseColWidth + 4 px margin padding + 1 px gridline
BASE_COL_WIDTH_PADDING = 5

ERROR_CODES = frozenset({"#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A", "#GETTING_DATA"})


def parse_dimension(raw: RawWorksheet) -> RangeRef | None:
    if not raw.dimension:
        return None
    try:
        return parse_range_ref(raw.dimension)
    except ValueError as exc:
        raise DecodeError(str(exc), part=raw.path, code=ErrorCode.MALFORMED_VALUE) from exc


def parse_merged_regions(refs: list[str], dimension: RangeRef | None = None, part: str | None = None) -> list[RangeRef]:
    regions: list[RangeRef] = []
    for ref in refs:
        try:
            regions.append(parse_range_ref(ref))
        except ValueError as exc:
            raise DecodeError(str(exc), part=part, code=ErrorCode.MALFORMED_VALUE) from exc

    active: list[RangeRef] = []
    for rng in sorted(regions, key=lambda r: (r.start_row, r.start_col)):
        active = [other for other in active if other.end_row >= rng.start_row]
        for other in active:
            if other.overlaps(rng):
                raise OverlappingMergeError(other.ref, rng.ref, part=part)
        active.append(rng)

    if dimension is not None:
        for rng in regions:
            if not dimension.covers(rng):
                logger.warning("Merged region %s lies outside dimension %s", rng.ref, dimension.ref)
    return regions


def decode_value(
    cell: RawCell,
    shared_strings: SharedStringTable,
    number_format: NumberFormat,
    *,
    is_1904: bool = False,
    font_builder: FontBuilder | None = None,
) -> CellValue:
    cell_type = cell.type or "n"
    raw = cell.value

    if cell_type == "inlineStr":
        if cell.inline is not None:
            resolved = resolve_string_item(cell.inline, font_builder)
            return TextValue(text=resolved.text, runs=resolved.runs)
        return TextValue(text=raw) if raw else BlankValue()

    if raw is None or raw == "":
        return BlankValue()

    if cell_type == "s":
        try:
            index = int(raw)
        except ValueError as exc:
            raise DecodeError(f"Shared string index {raw!r} is not an integer", code=ErrorCode.MALFORMED_VALUE) from exc
        resolved = shared_strings.get(index)
        return TextValue(text=resolved.text, runs=resolved.runs)

    if cell_type == "str":
        return TextValue(text=raw)

    if cell_type == "b":
        return BooleanValue(value=raw.strip() in {"1", "true", "TRUE"})

    if cell_type == "e":
        if raw not in ERROR_CODES:
            logger.debug("Unrecognised error code %r", raw)
        return ErrorValue(code=raw)

    if cell_type == "d":
        return DateValue(value=parse_iso_datetime(raw))

    try:
        number = float(raw)
    except ValueError:
        return TextValue(text=raw)

    if number_format.is_date:
        moment = serial_to_datetime(number, is_1904)
        if moment is not None:
            return DateValue(value=moment, serial=number)
    return NumberValue(value=number)


class WorksheetMaterializer:
    """Turns raw row/cell records into typed, styled cells in document order."""

    def __init__(
        self,
        raw: RawWorksheet,
        shared_strings: SharedStringTable,
        style_engine: StyleEngine,
        *,
        is_1904: bool = False,
        hyperlinks: dict[str, Hyperlink] | None = None,
    ) -> None:
        self.raw = raw
        self.shared_strings = shared_strings
        self.style_engine = style_engine
        self.is_1904 = is_1904
        self.hyperlinks: dict[str, Hyperlink] = dict(hyperlinks or {})
        self.dimension = parse_dimension(raw)
        self.merged_regions = parse_merged_regions(raw.merge_refs, self.dimension, raw.path)

        self._columns: dict[int, RawColumn] = {}
        for column in raw.columns:
            for idx in range(max(1, column.min), column.max + 1):
                self._columns.setdefault(idx, column)

        self._merge_rows: dict[int, list[RangeRef]] = {}
        for rng in self.merged_regions:
            for row in range(rng.start_row, rng.end_row + 1):
                self._merge_rows.setdefault(row, []).append(rng)

        self._single_links: dict[tuple[int, int], Hyperlink] = {}
        self._range_links: list[tuple[RangeRef, Hyperlink]] = []
        for ref, link in self.hyperlinks.items():
            try:
                rng = parse_range_ref(ref)
            except ValueError:
                logger.warning("Ignoring hyperlink with invalid ref %r", ref)
                continue
            if rng.start_row == rng.end_row and rng.start_col == rng.end_col:
                self._single_links.setdefault((rng.start_row, rng.start_col), link)
            else:
                self._range_links.append((rng, link))

    # Sheet metrics

    @property
    def default_col_width(self) -> float:
        fmt = self.raw.sheet_format
        if fmt.default_col_width is not None:
            return fmt.default_col_width
        if fmt.base_col_width is not None:
            return float(fmt.base_col_width + BASE_COL_WIDTH_PADDING)
        return DEFAULT_COL_WIDTH

    @property
    def default_row_height(self) -> float:
        fmt = self.raw.sheet_format
        if fmt.default_row_height is not None:
            return fmt.default_row_height
        return DEFAULT_ROW_HEIGHT

    def column_width(self, col: int) -> float:
        column = self._columns.get(col)
        if column is not None and column.width is not None:
            return column.width
        return self.default_col_width

    def row_height(self, row: RawRow) -> float:
        if row.height is not None:
            return row.height
        return self.default_row_height

    def dy_descent(self, row: RawRow) -> float:
        if row.dy_descent is not None:
            return row.dy_descent
        if self.raw.sheet_format.dy_descent is not None:
            return self.raw.sheet_format.dy_descent
        return DEFAULT_DY_DESCENT

    def column_widths(self) -> dict[int, float]:
        return {idx: col.width for idx, col in sorted(self._columns.items()) if col.width is not None}

    def row_heights(self) -> dict[int, float]:
        heights: dict[int, float] = {}
        for row_idx, row in self._iter_rows():
            if row.height is not None:
                heights[row_idx] = row.height
        return heights

    # Cells

    def materialize(self) -> list[Cell]:
        return list(self)

    def __iter__(self) -> Iterator[Cell]:
        if self.dimension is None:
            return
        for row_idx, row in self._iter_rows():
            col_idx = 0
            for raw_cell in row.cells:
                if raw_cell.ref:
                    try:
                        row_idx, col_idx = coord_to_rowcol(raw_cell.ref)
                    except ValueError as exc:
                        raise DecodeError(str(exc), part=self.raw.path, code=ErrorCode.MALFORMED_VALUE) from exc
                else:
                    col_idx += 1
                yield self._build_cell(raw_cell, row, row_idx, col_idx)

    def _iter_rows(self) -> Iterator[tuple[int, RawRow]]:
        row_idx = 0
        for row in self.raw.rows:
            row_idx = row.index if row.index is not None else row_idx + 1
            yield row_idx, row

    def style_index_for(self, raw_cell: RawCell, row: RawRow, col_idx: int) -> int:
        if raw_cell.style is not None:
            return raw_cell.style
        if row.custom_format and row.style is not None:
            return row.style
        column = self._columns.get(col_idx)
        if column is not None and column.style is not None:
            return column.style
        return 0

    def _build_cell(self, raw_cell: RawCell, row: RawRow, row_idx: int, col_idx: int) -> Cell:
        style_index = self.style_index_for(raw_cell, row, col_idx)
        style = self.style_engine.resolve_format(style_index)
        column = self._columns.get(col_idx)

        value = decode_value(
            raw_cell,
            self.shared_strings,
            style.number_format,
            is_1904=self.is_1904,
            font_builder=self.style_engine.build_font,
        )

        hidden = (
            style.protection.hidden
            or row.hidden
            or self.raw.sheet_format.zero_height
            or (column is not None and column.hidden)
        )

        if raw_cell.show_phonetic is not None:
            show_phonetic = raw_cell.show_phonetic
        elif row.show_phonetic is not None:
            show_phonetic = row.show_phonetic
        else:
            show_phonetic = column.phonetic if column is not None else False

        return Cell(
            row=row_idx,
            col=col_idx,
            coord=rowcol_to_coord(row_idx, col_idx),
            value=value,
            value_type=raw_cell.type or ("n" if raw_cell.value else "blank"),
            raw_value=raw_cell.value,
            formula=raw_cell.formula,
            style_index=style_index,
            style=style,
            width=self.column_width(col_idx),
            width_best_fit=column.best_fit if column is not None else False,
            height=self.row_height(row),
            dy_descent=self.dy_descent(row),
            hidden=bool(hidden),
            show_phonetic=show_phonetic,
            hyperlink=self._hyperlink_at(row_idx, col_idx),
            merged_region=self._merge_at(row_idx, col_idx),
        )

    def _hyperlink_at(self, row: int, col: int) -> Hyperlink | None:
        link = self._single_links.get((row, col))
        if link is not None:
            return link
        for rng, range_link in self._range_links:
            if rng.contains(row, col):
                return range_link
        return None

    def _merge_at(self, row: int, col: int) -> RangeRef | None:
        for rng in self._merge_rows.get(row, ()):
            if rng.start_col <= col <= rng.end_col:
                return rng
        return None


def materialize(
    raw: RawWorksheet,
    shared_strings: SharedStringTable,
    style_engine: StyleEngine,
    *,
    is_1904: bool = False,
    hyperlinks: dict[str, Hyperlink] | None = None,
) -> list[Cell]:
    return WorksheetMaterializer(
        raw,
        shared_strings,
        style_engine,
        is_1904=is_1904,
        hyperlinks=hyperlinks,
    ).materialize()
