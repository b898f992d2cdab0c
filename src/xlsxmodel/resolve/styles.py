from __future__ import annotations

import logging

from ..errors import StyleIndexOutOfRangeError
from ..model import (
    Alignment,
    Border,
    BorderSide,
    Fill,
    Font,
    GradientStop,
    NumberFormat,
    Protection,
    ResolvedStyle,
)
from ..parser.raw import RawBorder, RawCellFormat, RawFill, RawFont, RawStylesheet
from ..parser.utils import to_bool, to_int
from .colors import ColorResolver
from .numfmt import resolve_number_format

logger = logging.getLogger(__name__)

DEFAULT_FONT_NAME = "Calibri"
DEFAULT_FONT_SIZE = 11.0
DEFAULT_FONT_COLOR = "#000000"

# (value field on the format record, matching apply flag)
_PROPERTY_FIELDS: dict[str, tuple[str, str]] = {
    "font": ("font_id", "apply_font"),
    "fill": ("fill_id", "apply_fill"),
    "border": ("border_id", "apply_border"),
    "number_format": ("num_fmt_id", "apply_number_format"),
    "alignment": ("alignment", "apply_alignment"),
    "protection": ("protection", "apply_protection"),
}


class StyleEngine:
    """Resolves cellXfs indices through the stylesheet's lookup tables."""

    def __init__(
        self,
        stylesheet: RawStylesheet | None,
        colors: ColorResolver,
        default_font_name: str | None = None,
    ) -> None:
        self.stylesheet = stylesheet or RawStylesheet()
        self.colors = colors
        self.default_font_name = default_font_name or DEFAULT_FONT_NAME
        self._fonts: dict[int, Font] = {}
        self._fills: dict[int, Fill] = {}
        self._borders: dict[int, Border] = {}
        self._resolved: dict[int, ResolvedStyle] = {}
        self._named_styles: dict[int, str] = {}
        for style in self.stylesheet.cell_styles:
            self._named_styles.setdefault(style.xf_id, style.name)

    @property
    def default_table_style(self) -> str | None:
        return self.stylesheet.default_table_style

    def __len__(self) -> int:
        return len(self.stylesheet.cell_xfs)

    # Lookup tables

    def font(self, index: int) -> Font:
        if index not in self._fonts:
            fonts = self.stylesheet.fonts
            if not 0 <= index < len(fonts):
                raise StyleIndexOutOfRangeError("font", index, len(fonts))
            self._fonts[index] = self.build_font(fonts[index])
        return self._fonts[index]

    def fill(self, index: int) -> Fill:
        if index not in self._fills:
            fills = self.stylesheet.fills
            if not 0 <= index < len(fills):
                raise StyleIndexOutOfRangeError("fill", index, len(fills))
            self._fills[index] = self.build_fill(fills[index])
        return self._fills[index]

    def border(self, index: int) -> Border:
        if index not in self._borders:
            borders = self.stylesheet.borders
            if not 0 <= index < len(borders):
                raise StyleIndexOutOfRangeError("border", index, len(borders))
            self._borders[index] = self.build_border(borders[index])
        return self._borders[index]

    def number_format(self, fmt_id: int) -> NumberFormat:
        return resolve_number_format(fmt_id, self.stylesheet.num_fmts)

    # Builders

    def build_font(self, raw: RawFont) -> Font:
        color = self.colors.resolve(raw.color) if raw.color is not None else None
        return Font(
            name=raw.name or self.default_font_name,
            size=raw.size if raw.size is not None else DEFAULT_FONT_SIZE,
            bold=bool(raw.bold),
            italic=bool(raw.italic),
            underline=raw.underline or "none",
            strike=bool(raw.strike),
            color=color or DEFAULT_FONT_COLOR,
            family=raw.family,
            scheme=raw.scheme,
            vert_align=raw.vert_align or "baseline",
            charset=raw.charset,
            outline=bool(raw.outline),
            shadow=bool(raw.shadow),
            condense=bool(raw.condense),
            extend=bool(raw.extend),
        )

    def build_fill(self, raw: RawFill) -> Fill:
        if raw.gradient is not None:
            gradient = raw.gradient
            return Fill(
                kind="gradient",
                gradient_type=gradient.type,
                degree=gradient.degree,
                left=gradient.left,
                right=gradient.right,
                top=gradient.top,
                bottom=gradient.bottom,
                stops=[GradientStop(position=pos, color=self.colors.resolve(color)) for pos, color in gradient.stops],
            )
        if raw.pattern_type in {None, "none"}:
            return Fill()
        return Fill(
            kind="pattern",
            pattern_type=raw.pattern_type,
            fg_color=self.colors.resolve(raw.fg_color),
            bg_color=self.colors.resolve(raw.bg_color),
        )

    def build_border(self, raw: RawBorder) -> Border:
        border = Border(
            diagonal_up=raw.diagonal_up,
            diagonal_down=raw.diagonal_down,
            outline=raw.outline,
        )
        for side_name, side in raw.sides.items():
            if side.style in {None, "none"}:
                continue
            setattr(border, side_name, BorderSide(style=side.style, color=self.colors.resolve(side.color)))
        return border

    # Format resolution

    def format_record(self, index: int) -> RawCellFormat:
        cell_xfs = self.stylesheet.cell_xfs
        if 0 <= index < len(cell_xfs):
            return cell_xfs[index]
        if cell_xfs:
            logger.warning("Cell format %d out of range (%d records), using record 0", index, len(cell_xfs))
            return cell_xfs[0]
        if index != 0:
            logger.warning("Cell format %d requested but the stylesheet has no cellXfs", index)
        return RawCellFormat()

    def _parent_record(self, xf: RawCellFormat) -> RawCellFormat | None:
        if xf.xf_id is None:
            return None
        parents = self.stylesheet.cell_style_xfs
        if 0 <= xf.xf_id < len(parents):
            return parents[xf.xf_id]
        logger.warning("Named style record %d out of range, ignoring", xf.xf_id)
        return None

    def _pick(self, xf: RawCellFormat, parent: RawCellFormat | None, prop: str):
        """Own value when applied, or when unflagged on a record without a named style."""
        value_field, apply_field = _PROPERTY_FIELDS[prop]
        value = getattr(xf, value_field)
        applied = getattr(xf, apply_field)
        if value is not None and (applied is True or (applied is None and xf.xf_id is None)):
            return value
        if parent is not None:
            parent_value = getattr(parent, value_field)
            if parent_value is not None and getattr(parent, apply_field) is not False:
                return parent_value
        return None

    def resolve_format(self, index: int) -> ResolvedStyle:
        cached = self._resolved.get(index)
        if cached is not None:
            return cached

        xf = self.format_record(index)
        parent = self._parent_record(xf)

        font_id = self._pick(xf, parent, "font")
        fill_id = self._pick(xf, parent, "fill")
        border_id = self._pick(xf, parent, "border")
        num_fmt_id = self._pick(xf, parent, "number_format")
        alignment = self._pick(xf, parent, "alignment")
        protection = self._pick(xf, parent, "protection")

        style = ResolvedStyle(
            index=index,
            font=self.font(font_id) if font_id is not None else Font(name=self.default_font_name),
            border=self.border(border_id) if border_id is not None else Border(),
            fill=self.fill(fill_id) if fill_id is not None else Fill(),
            alignment=_build_alignment(alignment),
            protection=_build_protection(protection),
            number_format=self.number_format(num_fmt_id) if num_fmt_id is not None else NumberFormat(),
            named_style=self._named_styles.get(xf.xf_id) if xf.xf_id is not None else None,
            quote_prefix=xf.quote_prefix,
        )
        self._resolved[index] = style
        return style


def _build_alignment(attrs: dict[str, str] | None) -> Alignment:
    if not attrs:
        return Alignment()
    return Alignment(
        horizontal=attrs.get("horizontal", "general"),
        vertical=attrs.get("vertical", "bottom"),
        wrap_text=to_bool(attrs.get("wrapText")),
        shrink_to_fit=to_bool(attrs.get("shrinkToFit")),
        indent=to_int(attrs.get("indent"), 0) or 0,
        relative_indent=to_int(attrs.get("relativeIndent"), 0) or 0,
        text_rotation=to_int(attrs.get("textRotation"), 0) or 0,
        reading_order=to_int(attrs.get("readingOrder"), 0) or 0,
        justify_last_line=to_bool(attrs.get("justifyLastLine")),
    )


def _build_protection(attrs: dict[str, str] | None) -> Protection:
    if not attrs:
        return Protection()
    return Protection(
        locked=to_bool(attrs.get("locked"), True),
        hidden=to_bool(attrs.get("hidden")),
    )
