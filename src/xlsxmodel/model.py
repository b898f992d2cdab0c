from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field

EMU_PER_UNIT: dict[str, int] = {
    "emu": 1,
    "pt": 12700,
    "px": 9525,
    "in": 914400,
    "cm": 360000,
}


@dataclass(slots=True)
class ReaderOptions:
    enable_drawings: bool = True
    structured_output: bool = True
    drawing_unit: Literal["emu", "pt", "px", "in", "cm"] = "pt"
    embed_images: bool = False
    include_hidden_sheets: bool = True


@dataclass(slots=True)
class RangeRef:
    ref: str
    start_row: int
    start_col: int
    end_row: int
    end_col: int

    def contains(self, row: int, col: int) -> bool:
        return self.start_row <= row <= self.end_row and self.start_col <= col <= self.end_col

    def overlaps(self, other: RangeRef) -> bool:
        return not (
            other.start_row > self.end_row
            or other.end_row < self.start_row
            or other.start_col > self.end_col
            or other.end_col < self.start_col
        )

    def covers(self, other: RangeRef) -> bool:
        return self.contains(other.start_row, other.start_col) and self.contains(other.end_row, other.end_col)


@dataclass(slots=True)
class Relationship:
    id: str
    type: str
    target: str
    mode: Literal["internal", "external"] = "internal"

    @property
    def type_name(self) -> str:
        return self.type.rsplit("/", 1)[-1]

    @property
    def is_external(self) -> bool:
        return self.mode == "external"


@dataclass(slots=True)
class DefinedName:
    name: str
    value: str
    local_sheet_id: int | None = None
    hidden: bool = False


@dataclass(slots=True)
class SheetInfo:
    index: int
    sheet_id: int
    name: str
    rel_id: str
    path: str | None
    type: Literal["worksheet", "chartsheet", "dialogsheet", "macrosheet"] = "worksheet"
    state: Literal["visible", "hidden", "veryHidden"] = "visible"


# Styles


@dataclass(slots=True)
class Font:
    name: str = "Calibri"
    size: float = 11.0
    bold: bool = False
    italic: bool = False
    underline: str = "none"
    strike: bool = False
    color: str | None = "#000000"
    family: int | None = None
    scheme: str | None = None
    vert_align: str = "baseline"
    charset: int | None = None
    outline: bool = False
    shadow: bool = False
    condense: bool = False
    extend: bool = False


@dataclass(slots=True)
class BorderSide:
    style: str | None = None
    color: str | None = None


@dataclass(slots=True)
class Border:
    left: BorderSide = field(default_factory=BorderSide)
    right: BorderSide = field(default_factory=BorderSide)
    top: BorderSide = field(default_factory=BorderSide)
    bottom: BorderSide = field(default_factory=BorderSide)
    diagonal: BorderSide = field(default_factory=BorderSide)
    diagonal_up: bool = False
    diagonal_down: bool = False
    outline: bool = True


@dataclass(slots=True)
class GradientStop:
    position: float
    color: str | None


@dataclass(slots=True)
class Fill:
    kind: Literal["none", "pattern", "gradient"] = "none"
    pattern_type: str | None = None
    fg_color: str | None = None
    bg_color: str | None = None
    gradient_type: str | None = None
    degree: float = 0.0
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0
    stops: list[GradientStop] = field(default_factory=list)


@dataclass(slots=True)
class Alignment:
    horizontal: str = "general"
    vertical: str = "bottom"
    wrap_text: bool = False
    shrink_to_fit: bool = False
    indent: int = 0
    relative_indent: int = 0
    text_rotation: int = 0
    reading_order: int = 0
    justify_last_line: bool = False


@dataclass(slots=True)
class Protection:
    locked: bool = True
    hidden: bool = False


@dataclass(slots=True)
class NumberFormat:
    id: int = 0
    code: str = "General"
    is_date: bool = False


@dataclass(slots=True)
class ResolvedStyle:
    index: int = 0
    font: Font = field(default_factory=Font)
    border: Border = field(default_factory=Border)
    fill: Fill = field(default_factory=Fill)
    alignment: Alignment = field(default_factory=Alignment)
    protection: Protection = field(default_factory=Protection)
    number_format: NumberFormat = field(default_factory=NumberFormat)
    named_style: str | None = None
    quote_prefix: bool = False


# Strings


@dataclass(slots=True)
class TextRun:
    text: str
    font: Font | None = None


@dataclass(slots=True)
class PhoneticRun:
    text: str
    start: int
    end: int


@dataclass(slots=True)
class PhoneticProperties:
    font_id: int | None = None
    type: str = "fullwidthKatakana"
    alignment: str = "left"


@dataclass(slots=True)
class ResolvedString:
    text: str
    runs: list[TextRun] = field(default_factory=list)
    phonetic_runs: list[PhoneticRun] = field(default_factory=list)
    phonetic_properties: PhoneticProperties | None = None

    @property
    def is_rich(self) -> bool:
        return bool(self.runs)


# Cell values


@dataclass(slots=True)
class TextValue:
    kind: Literal["text"] = field(default="text", kw_only=True)
    text: str = ""
    runs: list[TextRun] = field(default_factory=list)


@dataclass(slots=True)
class NumberValue:
    kind: Literal["number"] = field(default="number", kw_only=True)
    value: float = 0.0


@dataclass(slots=True)
class BooleanValue:
    kind: Literal["boolean"] = field(default="boolean", kw_only=True)
    value: bool = False


@dataclass(slots=True)
class ErrorValue:
    kind: Literal["error"] = field(default="error", kw_only=True)
    code: str = "#N/A"


@dataclass(slots=True)
class BlankValue:
    kind: Literal["blank"] = field(default="blank", kw_only=True)


@dataclass(slots=True)
class DateValue:
    kind: Literal["date"] = field(default="date", kw_only=True)
    value: datetime | None = None
    serial: float | None = None


CellValue = Annotated[
    Union[TextValue, NumberValue, BooleanValue, ErrorValue, BlankValue, DateValue],
    Field(discriminator="kind"),
]


@dataclass(slots=True)
class Hyperlink:
    kind: Literal["external", "email", "internal"]
    target: str | None = None
    location: str | None = None
    sheet_name: str | None = None
    range: RangeRef | None = None
    email: str | None = None
    subject: str | None = None
    display: str | None = None
    tooltip: str | None = None


@dataclass(slots=True)
class Formula:
    text: str
    type: str = "normal"
    ref: str | None = None
    shared_index: int | None = None


@dataclass(slots=True)
class Cell:
    row: int
    col: int
    coord: str
    value: CellValue
    value_type: str
    raw_value: str | None = None
    formula: Formula | None = None
    style_index: int = 0
    style: ResolvedStyle = field(default_factory=ResolvedStyle)
    width: float = 8.43
    width_best_fit: bool = False
    height: float = 15.0
    dy_descent: float = 0.2
    hidden: bool = False
    show_phonetic: bool = False
    hyperlink: Hyperlink | None = None
    merged_region: RangeRef | None = None


# Tables


@dataclass(slots=True)
class TableColumn:
    id: int
    name: str
    formula: str | None = None
    totals_row_function: str | None = None
    totals_row_label: str | None = None


@dataclass(slots=True)
class TableStyle:
    name: str | None
    show_first_column: bool = False
    show_last_column: bool = False
    show_row_stripes: bool = False
    show_column_stripes: bool = False
    is_default: bool = False


@dataclass(slots=True)
class Table:
    table_id: int
    name: str
    display_name: str
    dimension: RangeRef
    path: str
    columns: list[TableColumn] = field(default_factory=list)
    header_row_count: int = 1
    totals_row_count: int = 0
    style: TableStyle | None = None
    auto_filter: RangeRef | None = None


@dataclass(slots=True)
class Worksheet:
    name: str
    sheet_id: int
    path: str
    dimension: RangeRef | None
    is_1904: bool = False
    ref_mode: Literal["A1", "R1C1"] = "A1"
    merged_regions: list[RangeRef] = field(default_factory=list)
    default_col_width: float = 8.43
    default_row_height: float = 15.0
    column_widths: dict[int, float] = field(default_factory=dict)
    row_heights: dict[int, float] = field(default_factory=dict)
    hyperlinks: dict[str, Hyperlink] = field(default_factory=dict)
    table_rel_ids: list[str] = field(default_factory=list)
    drawing_rel_id: str | None = None


# Drawings


@dataclass(slots=True)
class AnchorPoint:
    col: int
    row: int
    col_off: int = 0
    row_off: int = 0


@dataclass(slots=True)
class Anchor:
    kind: Literal["absolute", "one_cell", "two_cell"]
    anchor_from: AnchorPoint | None = None
    anchor_to: AnchorPoint | None = None
    position: tuple[float, float] | None = None
    extent: tuple[float, float] | None = None
    edit_as: str | None = None

    @property
    def span(self) -> tuple[int, int, int, int] | None:
        """(start_row, start_col, end_row, end_col), 0-based, for two-cell anchors."""
        if self.anchor_from is None or self.anchor_to is None:
            return None
        return (self.anchor_from.row, self.anchor_from.col, self.anchor_to.row, self.anchor_to.col)


@dataclass(slots=True)
class Transform:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    flip_h: bool = False
    flip_v: bool = False
    child_x: float | None = None
    child_y: float | None = None
    child_width: float | None = None
    child_height: float | None = None


@dataclass(slots=True)
class DrawingFill:
    kind: Literal["none", "solid", "gradient", "pattern", "blip", "group"]
    color: str | None = None
    stops: list[GradientStop] = field(default_factory=list)
    pattern: str | None = None
    fg_color: str | None = None
    bg_color: str | None = None
    blip_rel_id: str | None = None


@dataclass(slots=True)
class LineEnd:
    type: str = "none"
    width: str | None = None
    length: str | None = None


@dataclass(slots=True)
class Outline:
    width: float | None = None
    color: str | None = None
    no_fill: bool = False
    dash: str | None = None
    cap: str | None = None
    compound: str | None = None
    head: LineEnd | None = None
    tail: LineEnd | None = None


@dataclass(slots=True)
class Effect:
    kind: str
    color: str | None = None
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ShapeProperties:
    transform: Transform | None = None
    geometry: str | None = None
    fill: DrawingFill | None = None
    outline: Outline | None = None
    effects: list[Effect] = field(default_factory=list)


@dataclass(slots=True)
class NonVisualProperties:
    id: int | None = None
    name: str = ""
    description: str | None = None
    title: str | None = None
    hidden: bool = False
    hyperlink_click: Hyperlink | None = None
    hyperlink_hover: Hyperlink | None = None
    locks: dict[str, bool] = field(default_factory=dict)
    macro: str | None = None
    text_link: str | None = None
    published: bool = False
    locks_with_sheet: bool = True
    prints_with_sheet: bool = True


@dataclass(slots=True)
class Shape:
    kind: Literal["shape"] = field(default="shape", kw_only=True)
    nv: NonVisualProperties = field(default_factory=NonVisualProperties)
    properties: ShapeProperties = field(default_factory=ShapeProperties)
    text: str = ""
    text_box: bool = False
    connector: bool = False
    start_connection: int | None = None
    end_connection: int | None = None


@dataclass(slots=True)
class Picture:
    kind: Literal["picture"] = field(default="picture", kw_only=True)
    nv: NonVisualProperties = field(default_factory=NonVisualProperties)
    properties: ShapeProperties = field(default_factory=ShapeProperties)
    embed_rel_id: str | None = None
    media_path: str | None = None
    content_type: str | None = None
    data_uri: str | None = None
    link: str | None = None


@dataclass(slots=True)
class GraphicFrame:
    kind: Literal["graphic_frame"] = field(default="graphic_frame", kw_only=True)
    nv: NonVisualProperties = field(default_factory=NonVisualProperties)
    transform: Transform | None = None
    graphic_uri: str | None = None
    chart_rel_id: str | None = None
    chart_path: str | None = None


@dataclass(slots=True)
class GroupShape:
    kind: Literal["group"] = field(default="group", kw_only=True)
    nv: NonVisualProperties = field(default_factory=NonVisualProperties)
    properties: ShapeProperties = field(default_factory=ShapeProperties)
    children: list[DrawingContent] = field(default_factory=list)


DrawingContent = Annotated[Union[Shape, Picture, GraphicFrame, GroupShape], Field(discriminator="kind")]


@dataclass(slots=True)
class Drawing:
    anchor: Anchor
    content: DrawingContent
    path: str
