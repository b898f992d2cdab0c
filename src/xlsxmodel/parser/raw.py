"""One-to-one decodings of the spreadsheet XML parts.

Nothing here follows an index or a relationship id; resolution happens in
``xlsxmodel.resolve``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

from ..model import DefinedName, Formula, PhoneticProperties, PhoneticRun
from .namespaces import DRAWING_MAIN_NS, NS, R_ID, SPREADSHEET_NS, X14AC_DY_DESCENT
from .utils import local_name, to_bool, to_float, to_int, to_opt_bool

_A = f"{{{SPREADSHEET_NS}}}"


# Styles


@dataclass(slots=True)
class RawColor:
    rgb: str | None = None
    indexed: int | None = None
    theme: int | None = None
    tint: float = 0.0
    auto: bool = False


@dataclass(slots=True)
class RawFont:
    name: str | None = None
    size: float | None = None
    bold: bool | None = None
    italic: bool | None = None
    underline: str | None = None
    strike: bool | None = None
    color: RawColor | None = None
    family: int | None = None
    scheme: str | None = None
    vert_align: str | None = None
    charset: int | None = None
    outline: bool | None = None
    shadow: bool | None = None
    condense: bool | None = None
    extend: bool | None = None


@dataclass(slots=True)
class RawGradient:
    type: str = "linear"
    degree: float = 0.0
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0
    stops: list[tuple[float, RawColor | None]] = field(default_factory=list)


@dataclass(slots=True)
class RawFill:
    pattern_type: str | None = None
    fg_color: RawColor | None = None
    bg_color: RawColor | None = None
    gradient: RawGradient | None = None


@dataclass(slots=True)
class RawBorderSide:
    style: str | None = None
    color: RawColor | None = None


@dataclass(slots=True)
class RawBorder:
    sides: dict[str, RawBorderSide] = field(default_factory=dict)
    diagonal_up: bool = False
    diagonal_down: bool = False
    outline: bool = True


@dataclass(slots=True)
class RawCellFormat:
    num_fmt_id: int | None = None
    font_id: int | None = None
    fill_id: int | None = None
    border_id: int | None = None
    xf_id: int | None = None
    apply_number_format: bool | None = None
    apply_font: bool | None = None
    apply_fill: bool | None = None
    apply_border: bool | None = None
    apply_alignment: bool | None = None
    apply_protection: bool | None = None
    alignment: dict[str, str] | None = None
    protection: dict[str, str] | None = None
    quote_prefix: bool = False


@dataclass(slots=True)
class RawCellStyle:
    name: str
    xf_id: int
    builtin_id: int | None = None


@dataclass(slots=True)
class RawStylesheet:
    num_fmts: dict[int, str] = field(default_factory=dict)
    fonts: list[RawFont] = field(default_factory=list)
    fills: list[RawFill] = field(default_factory=list)
    borders: list[RawBorder] = field(default_factory=list)
    cell_style_xfs: list[RawCellFormat] = field(default_factory=list)
    cell_xfs: list[RawCellFormat] = field(default_factory=list)
    cell_styles: list[RawCellStyle] = field(default_factory=list)
    indexed_colors: list[str] = field(default_factory=list)
    default_table_style: str | None = None
    default_pivot_style: str | None = None


def decode_color(elem: ET.Element | None) -> RawColor | None:
    if elem is None:
        return None
    return RawColor(
        rgb=elem.attrib.get("rgb"),
        indexed=to_int(elem.attrib.get("indexed")),
        theme=to_int(elem.attrib.get("theme")),
        tint=to_float(elem.attrib.get("tint"), 0.0) or 0.0,
        auto=to_bool(elem.attrib.get("auto")),
    )


def decode_font(elem: ET.Element) -> RawFont:
    """Decode a ``font`` (styles) or ``rPr`` (rich text run) element."""
    font = RawFont()
    for child in list(elem):
        tag = local_name(child.tag)
        val = child.attrib.get("val")
        if tag in {"name", "rFont"}:
            font.name = val
        elif tag == "sz":
            font.size = to_float(val)
        elif tag == "b":
            font.bold = to_bool(val, True)
        elif tag == "i":
            font.italic = to_bool(val, True)
        elif tag == "strike":
            font.strike = to_bool(val, True)
        elif tag == "outline":
            font.outline = to_bool(val, True)
        elif tag == "shadow":
            font.shadow = to_bool(val, True)
        elif tag == "condense":
            font.condense = to_bool(val, True)
        elif tag == "extend":
            font.extend = to_bool(val, True)
        elif tag == "u":
            font.underline = val or "single"
        elif tag == "vertAlign":
            font.vert_align = val
        elif tag == "family":
            font.family = to_int(val)
        elif tag == "charset":
            font.charset = to_int(val)
        elif tag == "scheme":
            font.scheme = val
        elif tag == "color":
            font.color = decode_color(child)
    return font


def decode_fill(elem: ET.Element) -> RawFill:
    pattern = elem.find("a:patternFill", NS)
    if pattern is not None:
        return RawFill(
            pattern_type=pattern.attrib.get("patternType"),
            fg_color=decode_color(pattern.find("a:fgColor", NS)),
            bg_color=decode_color(pattern.find("a:bgColor", NS)),
        )
    gradient = elem.find("a:gradientFill", NS)
    if gradient is not None:
        stops = [
            (to_float(stop.attrib.get("position"), 0.0) or 0.0, decode_color(stop.find("a:color", NS)))
            for stop in gradient.findall("a:stop", NS)
        ]
        return RawFill(
            gradient=RawGradient(
                type=gradient.attrib.get("type", "linear"),
                degree=to_float(gradient.attrib.get("degree"), 0.0) or 0.0,
                left=to_float(gradient.attrib.get("left"), 0.0) or 0.0,
                right=to_float(gradient.attrib.get("right"), 0.0) or 0.0,
                top=to_float(gradient.attrib.get("top"), 0.0) or 0.0,
                bottom=to_float(gradient.attrib.get("bottom"), 0.0) or 0.0,
                stops=stops,
            )
        )
    return RawFill()


def decode_border(elem: ET.Element) -> RawBorder:
    border = RawBorder(
        diagonal_up=to_bool(elem.attrib.get("diagonalUp")),
        diagonal_down=to_bool(elem.attrib.get("diagonalDown")),
        outline=to_bool(elem.attrib.get("outline"), True),
    )
    for child in list(elem):
        side = local_name(child.tag)
        if side == "start":
            side = "left"
        elif side == "end":
            side = "right"
        if side not in {"left", "right", "top", "bottom", "diagonal"}:
            continue
        border.sides[side] = RawBorderSide(
            style=child.attrib.get("style"),
            color=decode_color(child.find("a:color", NS)),
        )
    return border


def decode_cell_format(xf: ET.Element) -> RawCellFormat:
    alignment = xf.find("a:alignment", NS)
    protection = xf.find("a:protection", NS)
    return RawCellFormat(
        num_fmt_id=to_int(xf.attrib.get("numFmtId")),
        font_id=to_int(xf.attrib.get("fontId")),
        fill_id=to_int(xf.attrib.get("fillId")),
        border_id=to_int(xf.attrib.get("borderId")),
        xf_id=to_int(xf.attrib.get("xfId")),
        apply_number_format=to_opt_bool(xf.attrib.get("applyNumberFormat")),
        apply_font=to_opt_bool(xf.attrib.get("applyFont")),
        apply_fill=to_opt_bool(xf.attrib.get("applyFill")),
        apply_border=to_opt_bool(xf.attrib.get("applyBorder")),
        apply_alignment=to_opt_bool(xf.attrib.get("applyAlignment")),
        apply_protection=to_opt_bool(xf.attrib.get("applyProtection")),
        alignment=dict(alignment.attrib) if alignment is not None else None,
        protection=dict(protection.attrib) if protection is not None else None,
        quote_prefix=to_bool(xf.attrib.get("quotePrefix")),
    )


def decode_stylesheet(root: ET.Element) -> RawStylesheet:
    sheet = RawStylesheet()
    for num_fmt in root.findall("a:numFmts/a:numFmt", NS):
        fmt_id = to_int(num_fmt.attrib.get("numFmtId"))
        code = num_fmt.attrib.get("formatCode")
        if fmt_id is None or code is None:
            continue
        sheet.num_fmts[fmt_id] = code

    sheet.fonts = [decode_font(font) for font in root.findall("a:fonts/a:font", NS)]
    sheet.fills = [decode_fill(fill) for fill in root.findall("a:fills/a:fill", NS)]
    sheet.borders = [decode_border(border) for border in root.findall("a:borders/a:border", NS)]
    sheet.cell_style_xfs = [decode_cell_format(xf) for xf in root.findall("a:cellStyleXfs/a:xf", NS)]
    sheet.cell_xfs = [decode_cell_format(xf) for xf in root.findall("a:cellXfs/a:xf", NS)]

    for style in root.findall("a:cellStyles/a:cellStyle", NS):
        sheet.cell_styles.append(
            RawCellStyle(
                name=style.attrib.get("name", ""),
                xf_id=to_int(style.attrib.get("xfId"), 0) or 0,
                builtin_id=to_int(style.attrib.get("builtinId")),
            )
        )

    for rgb in root.findall("a:colors/a:indexedColors/a:rgbColor", NS):
        sheet.indexed_colors.append(rgb.attrib.get("rgb", "FF000000"))

    table_styles = root.find("a:tableStyles", NS)
    if table_styles is not None:
        sheet.default_table_style = table_styles.attrib.get("defaultTableStyle")
        sheet.default_pivot_style = table_styles.attrib.get("defaultPivotStyle")
    return sheet


# Shared strings


@dataclass(slots=True)
class RawRun:
    text: str
    font: RawFont | None = None


@dataclass(slots=True)
class RawStringItem:
    text: str | None = None
    runs: list[RawRun] = field(default_factory=list)
    phonetic_runs: list[PhoneticRun] = field(default_factory=list)
    phonetic_properties: PhoneticProperties | None = None


@dataclass(slots=True)
class RawSharedStrings:
    items: list[RawStringItem] = field(default_factory=list)
    count: int | None = None
    unique_count: int | None = None


def decode_string_item(elem: ET.Element) -> RawStringItem:
    """Decode an ``si`` (shared strings) or ``is`` (inline string) element."""
    item = RawStringItem()
    direct = elem.find("a:t", NS)
    if direct is not None:
        item.text = direct.text or ""
    for run in elem.findall("a:r", NS):
        rpr = run.find("a:rPr", NS)
        item.runs.append(
            RawRun(
                text=run.findtext("a:t", default="", namespaces=NS) or "",
                font=decode_font(rpr) if rpr is not None else None,
            )
        )
    for rph in elem.findall("a:rPh", NS):
        item.phonetic_runs.append(
            PhoneticRun(
                text=rph.findtext("a:t", default="", namespaces=NS) or "",
                start=to_int(rph.attrib.get("sb"), 0) or 0,
                end=to_int(rph.attrib.get("eb"), 0) or 0,
            )
        )
    phonetic_pr = elem.find("a:phoneticPr", NS)
    if phonetic_pr is not None:
        item.phonetic_properties = PhoneticProperties(
            font_id=to_int(phonetic_pr.attrib.get("fontId")),
            type=phonetic_pr.attrib.get("type", "fullwidthKatakana"),
            alignment=phonetic_pr.attrib.get("alignment", "left"),
        )
    return item


def decode_shared_strings(root: ET.Element) -> RawSharedStrings:
    return RawSharedStrings(
        items=[decode_string_item(si) for si in root.findall(f"{_A}si")],
        count=to_int(root.attrib.get("count")),
        unique_count=to_int(root.attrib.get("uniqueCount")),
    )


# Theme

THEME_SLOT_NAMES = (
    "dk1",
    "lt1",
    "dk2",
    "lt2",
    "accent1",
    "accent2",
    "accent3",
    "accent4",
    "accent5",
    "accent6",
    "hlink",
    "folHlink",
)


@dataclass(slots=True)
class RawTheme:
    name: str | None = None
    colors: dict[str, str] = field(default_factory=dict)
    major_font: str | None = None
    minor_font: str | None = None


def decode_theme(root: ET.Element) -> RawTheme:
    theme = RawTheme(name=root.attrib.get("name"))
    clr_scheme = root.find(f".//{{{DRAWING_MAIN_NS}}}clrScheme")
    if clr_scheme is not None:
        for child in list(clr_scheme):
            slot = local_name(child.tag)
            if slot not in THEME_SLOT_NAMES:
                continue
            srgb = child.find(f"{{{DRAWING_MAIN_NS}}}srgbClr")
            if srgb is not None and srgb.attrib.get("val"):
                theme.colors[slot] = "#" + srgb.attrib["val"].upper()
                continue
            sys_clr = child.find(f"{{{DRAWING_MAIN_NS}}}sysClr")
            if sys_clr is not None and sys_clr.attrib.get("lastClr"):
                theme.colors[slot] = "#" + sys_clr.attrib["lastClr"].upper()

    font_scheme = root.find(f".//{{{DRAWING_MAIN_NS}}}fontScheme")
    if font_scheme is not None:
        major = font_scheme.find(f"{{{DRAWING_MAIN_NS}}}majorFont/{{{DRAWING_MAIN_NS}}}latin")
        minor = font_scheme.find(f"{{{DRAWING_MAIN_NS}}}minorFont/{{{DRAWING_MAIN_NS}}}latin")
        theme.major_font = major.attrib.get("typeface") if major is not None else None
        theme.minor_font = minor.attrib.get("typeface") if minor is not None else None
    return theme


# Workbook


@dataclass(slots=True)
class RawSheet:
    name: str
    sheet_id: int
    rel_id: str
    state: str = "visible"


@dataclass(slots=True)
class RawWorkbook:
    sheets: list[RawSheet] = field(default_factory=list)
    date1904: bool = False
    date_compatibility: bool = True
    ref_mode: str = "A1"
    defined_names: list[DefinedName] = field(default_factory=list)

    @property
    def is_1904(self) -> bool:
        return self.date1904 and self.date_compatibility


def decode_workbook(root: ET.Element) -> RawWorkbook:
    workbook = RawWorkbook()
    for idx, sheet in enumerate(root.findall("a:sheets/a:sheet", NS)):
        workbook.sheets.append(
            RawSheet(
                name=sheet.attrib.get("name", f"Sheet{idx + 1}"),
                sheet_id=to_int(sheet.attrib.get("sheetId"), idx + 1) or idx + 1,
                rel_id=sheet.attrib.get(R_ID, ""),
                state=sheet.attrib.get("state", "visible"),
            )
        )

    workbook_pr = root.find("a:workbookPr", NS)
    if workbook_pr is not None:
        workbook.date1904 = to_bool(workbook_pr.attrib.get("date1904"))
        workbook.date_compatibility = to_bool(workbook_pr.attrib.get("dateCompatibility"), True)

    calc_pr = root.find("a:calcPr", NS)
    if calc_pr is not None:
        workbook.ref_mode = calc_pr.attrib.get("refMode", "A1")

    for dn in root.findall("a:definedNames/a:definedName", NS):
        workbook.defined_names.append(
            DefinedName(
                name=dn.attrib.get("name", ""),
                value=(dn.text or "").strip(),
                local_sheet_id=to_int(dn.attrib.get("localSheetId")),
                hidden=to_bool(dn.attrib.get("hidden")),
            )
        )
    return workbook


# Worksheet


@dataclass(slots=True)
class RawColumn:
    min: int
    max: int
    width: float | None = None
    style: int | None = None
    hidden: bool = False
    custom_width: bool = False
    best_fit: bool = False
    phonetic: bool = False
    outline_level: int = 0


@dataclass(slots=True)
class RawCell:
    ref: str | None
    type: str | None = None
    style: int | None = None
    value: str | None = None
    formula: Formula | None = None
    inline: RawStringItem | None = None
    show_phonetic: bool | None = None


@dataclass(slots=True)
class RawRow:
    index: int | None
    height: float | None = None
    hidden: bool = False
    custom_height: bool = False
    style: int | None = None
    custom_format: bool = False
    show_phonetic: bool | None = None
    dy_descent: float | None = None
    cells: list[RawCell] = field(default_factory=list)


@dataclass(slots=True)
class RawHyperlink:
    ref: str
    rel_id: str | None = None
    location: str | None = None
    display: str | None = None
    tooltip: str | None = None


@dataclass(slots=True)
class RawSheetFormat:
    base_col_width: int | None = None
    default_col_width: float | None = None
    default_row_height: float | None = None
    zero_height: bool = False
    custom_height: bool = False
    dy_descent: float | None = None


@dataclass(slots=True)
class RawWorksheet:
    path: str
    dimension: str | None = None
    sheet_format: RawSheetFormat = field(default_factory=RawSheetFormat)
    columns: list[RawColumn] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)
    merge_refs: list[str] = field(default_factory=list)
    hyperlinks: list[RawHyperlink] = field(default_factory=list)
    drawing_rel_id: str | None = None
    table_rel_ids: list[str] = field(default_factory=list)


def _decode_formula(elem: ET.Element | None) -> Formula | None:
    if elem is None:
        return None
    return Formula(
        text=elem.text or "",
        type=elem.attrib.get("t", "normal"),
        ref=elem.attrib.get("ref"),
        shared_index=to_int(elem.attrib.get("si")),
    )


def _decode_cell(cell_elem: ET.Element) -> RawCell:
    inline = cell_elem.find("a:is", NS)
    return RawCell(
        ref=cell_elem.attrib.get("r"),
        type=cell_elem.attrib.get("t"),
        style=to_int(cell_elem.attrib.get("s")),
        value=cell_elem.findtext("a:v", default=None, namespaces=NS),
        formula=_decode_formula(cell_elem.find("a:f", NS)),
        inline=decode_string_item(inline) if inline is not None else None,
        show_phonetic=to_opt_bool(cell_elem.attrib.get("ph")),
    )


def decode_worksheet(root: ET.Element, path: str) -> RawWorksheet:
    sheet = RawWorksheet(path=path)

    dim_elem = root.find("a:dimension", NS)
    if dim_elem is not None:
        sheet.dimension = dim_elem.attrib.get("ref")

    fmt = root.find("a:sheetFormatPr", NS)
    if fmt is not None:
        sheet.sheet_format = RawSheetFormat(
            base_col_width=to_int(fmt.attrib.get("baseColWidth")),
            default_col_width=to_float(fmt.attrib.get("defaultColWidth")),
            default_row_height=to_float(fmt.attrib.get("defaultRowHeight")),
            zero_height=to_bool(fmt.attrib.get("zeroHeight")),
            custom_height=to_bool(fmt.attrib.get("customHeight")),
            dy_descent=to_float(fmt.attrib.get(X14AC_DY_DESCENT)),
        )

    for col_elem in root.findall("a:cols/a:col", NS):
        start = to_int(col_elem.attrib.get("min"), 0) or 0
        sheet.columns.append(
            RawColumn(
                min=start,
                max=to_int(col_elem.attrib.get("max"), start) or start,
                width=to_float(col_elem.attrib.get("width")),
                style=to_int(col_elem.attrib.get("style")),
                hidden=to_bool(col_elem.attrib.get("hidden")),
                custom_width=to_bool(col_elem.attrib.get("customWidth")),
                best_fit=to_bool(col_elem.attrib.get("bestFit")),
                phonetic=to_bool(col_elem.attrib.get("phonetic")),
                outline_level=to_int(col_elem.attrib.get("outlineLevel"), 0) or 0,
            )
        )

    for row_elem in root.findall("a:sheetData/a:row", NS):
        sheet.rows.append(
            RawRow(
                index=to_int(row_elem.attrib.get("r")),
                height=to_float(row_elem.attrib.get("ht")),
                hidden=to_bool(row_elem.attrib.get("hidden")),
                custom_height=to_bool(row_elem.attrib.get("customHeight")),
                style=to_int(row_elem.attrib.get("s")),
                custom_format=to_bool(row_elem.attrib.get("customFormat")),
                show_phonetic=to_opt_bool(row_elem.attrib.get("ph")),
                dy_descent=to_float(row_elem.attrib.get(X14AC_DY_DESCENT)),
                cells=[_decode_cell(cell_elem) for cell_elem in row_elem.findall("a:c", NS)],
            )
        )

    for merge in root.findall("a:mergeCells/a:mergeCell", NS):
        ref = merge.attrib.get("ref")
        if ref:
            sheet.merge_refs.append(ref)

    for link in root.findall("a:hyperlinks/a:hyperlink", NS):
        ref = link.attrib.get("ref")
        if not ref:
            continue
        sheet.hyperlinks.append(
            RawHyperlink(
                ref=ref,
                rel_id=link.attrib.get(R_ID),
                location=link.attrib.get("location"),
                display=link.attrib.get("display"),
                tooltip=link.attrib.get("tooltip"),
            )
        )

    drawing = root.find("a:drawing", NS)
    if drawing is not None:
        sheet.drawing_rel_id = drawing.attrib.get(R_ID)

    for part in root.findall("a:tableParts/a:tablePart", NS):
        rel_id = part.attrib.get(R_ID)
        if rel_id:
            sheet.table_rel_ids.append(rel_id)
    return sheet


# Tables


@dataclass(slots=True)
class RawTableColumn:
    id: int
    name: str
    calculated_formula: str | None = None
    totals_row_function: str | None = None
    totals_row_label: str | None = None


@dataclass(slots=True)
class RawTableStyleInfo:
    name: str | None = None
    show_first_column: bool = False
    show_last_column: bool = False
    show_row_stripes: bool = False
    show_column_stripes: bool = False


@dataclass(slots=True)
class RawTable:
    id: int
    name: str
    display_name: str
    ref: str
    header_row_count: int = 1
    totals_row_count: int = 0
    columns: list[RawTableColumn] = field(default_factory=list)
    style_info: RawTableStyleInfo | None = None
    auto_filter_ref: str | None = None


def decode_table(root: ET.Element) -> RawTable:
    name = root.attrib.get("name", "")
    table = RawTable(
        id=to_int(root.attrib.get("id"), 0) or 0,
        name=name,
        display_name=root.attrib.get("displayName", name),
        ref=root.attrib.get("ref", ""),
        header_row_count=to_int(root.attrib.get("headerRowCount"), 1),
        totals_row_count=to_int(root.attrib.get("totalsRowCount"), 0),
    )
    for idx, column in enumerate(root.findall("a:tableColumns/a:tableColumn", NS)):
        table.columns.append(
            RawTableColumn(
                id=to_int(column.attrib.get("id"), idx + 1) or idx + 1,
                name=column.attrib.get("name", ""),
                calculated_formula=column.findtext("a:calculatedColumnFormula", default=None, namespaces=NS),
                totals_row_function=column.attrib.get("totalsRowFunction"),
                totals_row_label=column.attrib.get("totalsRowLabel"),
            )
        )
    style_info = root.find("a:tableStyleInfo", NS)
    if style_info is not None:
        table.style_info = RawTableStyleInfo(
            name=style_info.attrib.get("name"),
            show_first_column=to_bool(style_info.attrib.get("showFirstColumn")),
            show_last_column=to_bool(style_info.attrib.get("showLastColumn")),
            show_row_stripes=to_bool(style_info.attrib.get("showRowStripes")),
            show_column_stripes=to_bool(style_info.attrib.get("showColumnStripes")),
        )
    auto_filter = root.find("a:autoFilter", NS)
    if auto_filter is not None:
        table.auto_filter_ref = auto_filter.attrib.get("ref")
    return table
