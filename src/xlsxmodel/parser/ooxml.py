from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Iterator

from ..errors import CapabilityDisabledError, SheetNotFoundError
from ..model import (
    Cell,
    DefinedName,
    Drawing,
    Hyperlink,
    ReaderOptions,
    Relationship,
    ResolvedStyle,
    SheetInfo,
    Table,
    Worksheet,
)
from ..resolve.cells import WorksheetMaterializer
from ..resolve.colors import ColorResolver
from ..resolve.drawing import DrawingResolver
from ..resolve.hyperlinks import resolve_hyperlink
from ..resolve.strings import SharedStringTable
from ..resolve.styles import StyleEngine
from ..resolve.tables import table_paths_for, tables_for
from ..serialize import to_dict, to_json
from .namespaces import (
    DEFAULT_SHARED_STRINGS_PATH,
    DEFAULT_STYLES_PATH,
    DEFAULT_THEME_PATH,
    WORKBOOK_PATH,
)
from .package import Package
from .raw import (
    RawSharedStrings,
    RawStylesheet,
    RawTable,
    RawTheme,
    RawWorkbook,
    RawWorksheet,
    decode_shared_strings,
    decode_stylesheet,
    decode_table,
    decode_theme,
    decode_workbook,
    decode_worksheet,
)
from .relationships import RelationshipResolver
from .utils import coord_to_rowcol, xml_to_dict

logger = logging.getLogger(__name__)

SheetKey = SheetInfo | str | int

_SHEET_TYPES = {
    "worksheet": "worksheet",
    "chartsheet": "chartsheet",
    "dialogsheet": "dialogsheet",
    "xlMacrosheet": "macrosheet",
    "macrosheet": "macrosheet",
    "xlIntlMacrosheet": "macrosheet",
}

_UNSET: Any = object()


class OOXMLWorkbookReader:
    """Query session over one xlsx package.

    Parts are decoded on first use and cached for the lifetime of the
    reader; two readers never share state.
    """

    def __init__(self, source: str | Path | BinaryIO, options: ReaderOptions | None = None) -> None:
        self.options = options or ReaderOptions()
        self.package = Package(source)
        self.relationships = RelationshipResolver(self.package)

        self._workbook: RawWorkbook | None = None
        self._sheets: list[SheetInfo] | None = None
        self._stylesheet: RawStylesheet | None = _UNSET
        self._theme: RawTheme | None = _UNSET
        self._shared_strings_raw: RawSharedStrings | None = _UNSET
        self._colors: ColorResolver | None = None
        self._style_engine: StyleEngine | None = None
        self._shared_strings: SharedStringTable | None = None
        self._worksheets: dict[str, RawWorksheet] = {}
        self._tables: dict[str, RawTable] = {}
        self._drawing_resolver: DrawingResolver | None = None

    def close(self) -> None:
        self.package.close()

    def __enter__(self) -> OOXMLWorkbookReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Part location

    def _workbook_part(self, type_name: str, default: str) -> str | None:
        found = self.relationships.find_by_type(WORKBOOK_PATH, type_name)
        if found and not found[0].is_external:
            return found[0].target
        if self.package.has_part(default):
            return default
        return None

    # Raw parts

    def raw_workbook(self) -> RawWorkbook:
        if self._workbook is None:
            self._workbook = decode_workbook(self.package.read_xml(WORKBOOK_PATH))
        return self._workbook

    def raw_stylesheet(self) -> RawStylesheet | None:
        if self._stylesheet is _UNSET:
            path = self._workbook_part("styles", DEFAULT_STYLES_PATH)
            self._stylesheet = decode_stylesheet(self.package.read_xml(path)) if path else None
        return self._stylesheet

    def raw_theme(self) -> RawTheme | None:
        if self._theme is _UNSET:
            path = self._workbook_part("theme", DEFAULT_THEME_PATH)
            self._theme = decode_theme(self.package.read_xml(path)) if path else None
        return self._theme

    def raw_shared_strings(self) -> RawSharedStrings | None:
        if self._shared_strings_raw is _UNSET:
            path = self._workbook_part("sharedStrings", DEFAULT_SHARED_STRINGS_PATH)
            self._shared_strings_raw = decode_shared_strings(self.package.read_xml(path)) if path else None
        return self._shared_strings_raw

    def raw_worksheet(self, sheet: SheetKey) -> RawWorksheet:
        info = self.sheet(sheet)
        if info.type != "worksheet" or info.path is None:
            raise SheetNotFoundError(info.name, f"Sheet {info.name!r} is a {info.type}, not a worksheet")
        cached = self._worksheets.get(info.path)
        if cached is None:
            cached = decode_worksheet(self.package.read_xml(info.path), info.path)
            self._worksheets[info.path] = cached
        return cached

    def raw_table(self, path: str) -> RawTable:
        cached = self._tables.get(path)
        if cached is None:
            cached = decode_table(self.package.read_xml(path))
            self._tables[path] = cached
        return cached

    def raw_tables(self, sheet: SheetKey) -> list[RawTable]:
        raw = self.raw_worksheet(sheet)
        return [self.raw_table(path) for path in table_paths_for(raw, self.relationships)]

    def raw_relationships(self, sheet: SheetKey | None = None) -> list[Relationship]:
        if sheet is None:
            return self.relationships.relationships_for(WORKBOOK_PATH)
        info = self.sheet(sheet)
        if info.path is None:
            return []
        return self.relationships.relationships_for(info.path)

    def raw_part(self, path: str) -> dict:
        return xml_to_dict(self.package.read_xml(path))

    # Shared lookup tables

    @property
    def colors(self) -> ColorResolver:
        if self._colors is None:
            theme = self.raw_theme()
            stylesheet = self.raw_stylesheet()
            self._colors = ColorResolver(
                theme.colors if theme is not None else None,
                stylesheet.indexed_colors if stylesheet is not None else None,
            )
        return self._colors

    @property
    def style_engine(self) -> StyleEngine:
        if self._style_engine is None:
            theme = self.raw_theme()
            self._style_engine = StyleEngine(
                self.raw_stylesheet(),
                self.colors,
                default_font_name=theme.minor_font if theme is not None else None,
            )
        return self._style_engine

    @property
    def shared_strings(self) -> SharedStringTable:
        if self._shared_strings is None:
            path = self._workbook_part("sharedStrings", DEFAULT_SHARED_STRINGS_PATH)
            self._shared_strings = SharedStringTable(
                self.raw_shared_strings(),
                self.style_engine.build_font,
                part=path or DEFAULT_SHARED_STRINGS_PATH,
            )
        return self._shared_strings

    def style(self, index: int) -> ResolvedStyle:
        return self.style_engine.resolve_format(index)

    # Sheets

    def _all_sheets(self) -> list[SheetInfo]:
        if self._sheets is None:
            sheets: list[SheetInfo] = []
            for index, raw in enumerate(self.raw_workbook().sheets):
                rel = self.relationships.resolve(WORKBOOK_PATH, raw.rel_id) if raw.rel_id else None
                sheet_type = _SHEET_TYPES.get(rel.type_name, "worksheet") if rel is not None else "worksheet"
                sheets.append(
                    SheetInfo(
                        index=index,
                        sheet_id=raw.sheet_id,
                        name=raw.name,
                        rel_id=raw.rel_id,
                        path=rel.target if rel is not None and not rel.is_external else None,
                        type=sheet_type,
                        state=raw.state if raw.state in {"visible", "hidden", "veryHidden"} else "visible",
                    )
                )
            self._sheets = sheets
        return self._sheets

    def sheets(self) -> list[SheetInfo]:
        sheets = self._all_sheets()
        if self.options.include_hidden_sheets:
            return list(sheets)
        return [info for info in sheets if info.state == "visible"]

    def sheet(self, key: SheetKey) -> SheetInfo:
        if isinstance(key, SheetInfo):
            return key
        sheets = self._all_sheets()
        if isinstance(key, int):
            for info in sheets:
                if info.sheet_id == key:
                    return info
            raise SheetNotFoundError(key)
        wanted = key.lower()
        for info in sheets:
            if info.name.lower() == wanted:
                return info
        raise SheetNotFoundError(key)

    def defined_names(self) -> list[DefinedName]:
        return list(self.raw_workbook().defined_names)

    # Worksheets and cells

    def _hyperlinks(self, info: SheetInfo, raw: RawWorksheet) -> dict[str, Hyperlink]:
        links: dict[str, Hyperlink] = {}
        defined_names = self.raw_workbook().defined_names
        for link in raw.hyperlinks:
            rel = self.relationships.resolve(raw.path, link.rel_id) if link.rel_id else None
            resolved = resolve_hyperlink(
                rel,
                link.location,
                defined_names=defined_names,
                local_sheet_id=info.index,
                display=link.display,
                tooltip=link.tooltip,
            )
            if resolved is not None:
                links[link.ref] = resolved
        return links

    def materializer(self, sheet: SheetKey) -> WorksheetMaterializer:
        info = self.sheet(sheet)
        raw = self.raw_worksheet(info)
        return WorksheetMaterializer(
            raw,
            self.shared_strings,
            self.style_engine,
            is_1904=self.raw_workbook().is_1904,
            hyperlinks=self._hyperlinks(info, raw),
        )

    def worksheet(self, sheet: SheetKey) -> Worksheet:
        info = self.sheet(sheet)
        workbook = self.raw_workbook()
        materializer = self.materializer(info)
        raw = materializer.raw
        return Worksheet(
            name=info.name,
            sheet_id=info.sheet_id,
            path=raw.path,
            dimension=materializer.dimension,
            is_1904=workbook.is_1904,
            ref_mode="R1C1" if workbook.ref_mode == "R1C1" else "A1",
            merged_regions=list(materializer.merged_regions),
            default_col_width=materializer.default_col_width,
            default_row_height=materializer.default_row_height,
            column_widths=materializer.column_widths(),
            row_heights=materializer.row_heights(),
            hyperlinks=dict(materializer.hyperlinks),
            table_rel_ids=list(raw.table_rel_ids),
            drawing_rel_id=raw.drawing_rel_id,
        )

    def iter_cells(self, sheet: SheetKey) -> Iterator[Cell]:
        return iter(self.materializer(sheet))

    def cells(self, sheet: SheetKey) -> list[Cell]:
        return self.materializer(sheet).materialize()

    def cell(self, sheet: SheetKey, coord: str) -> Cell | None:
        row, col = coord_to_rowcol(coord)
        for cell in self.iter_cells(sheet):
            if cell.row == row and cell.col == col:
                return cell
        return None

    def tables(self, sheet: SheetKey) -> list[Table]:
        stylesheet = self.raw_stylesheet()
        return tables_for(
            self.raw_worksheet(sheet),
            self.relationships,
            self.raw_table,
            default_style=stylesheet.default_table_style if stylesheet is not None else None,
        )

    # Drawings

    @property
    def drawing_resolver(self) -> DrawingResolver:
        if not self.options.enable_drawings:
            raise CapabilityDisabledError("drawings")
        if self._drawing_resolver is None:
            self._drawing_resolver = DrawingResolver(self.package, self.relationships, self.colors, self.options)
        return self._drawing_resolver

    def drawings(self, sheet: SheetKey) -> list[Drawing] | None:
        resolver = self.drawing_resolver
        return resolver.drawing_for(self.raw_worksheet(sheet))

    def iter_drawings(self, sheet: SheetKey) -> Iterator[Drawing]:
        return iter(self.drawings(sheet) or [])

    # Structured output

    def export(self, obj: Any) -> Any:
        if not self.options.structured_output:
            raise CapabilityDisabledError("structured_output")
        return to_dict(obj)

    def export_json(self, obj: Any, *, indent: int | None = 2) -> str:
        if not self.options.structured_output:
            raise CapabilityDisabledError("structured_output")
        return to_json(obj, indent=indent)
