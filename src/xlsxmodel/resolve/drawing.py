from __future__ import annotations

import base64
import logging
import mimetypes
from xml.etree import ElementTree as ET

from ..errors import MalformedDrawingError
from ..model import (
    EMU_PER_UNIT,
    Anchor,
    AnchorPoint,
    Drawing,
    DrawingContent,
    DrawingFill,
    Effect,
    GradientStop,
    GraphicFrame,
    GroupShape,
    Hyperlink,
    LineEnd,
    NonVisualProperties,
    Outline,
    Picture,
    ReaderOptions,
    Shape,
    ShapeProperties,
    Transform,
)
from ..parser.namespaces import DRAWING_NS, R_EMBED, R_ID, R_LINK
from ..parser.package import Package
from ..parser.raw import RawWorksheet
from ..parser.relationships import RelationshipResolver
from ..parser.utils import local_name, to_bool, to_float, to_int
from .colors import PRESET_COLORS, ColorResolver, apply_drawing_transforms, hsl_to_hex, normalize_rgb, rgb_to_hex
from .hyperlinks import external_hyperlink

logger = logging.getLogger(__name__)

MAX_GROUP_DEPTH = 64
ANCHOR_TAGS = {"twoCellAnchor", "oneCellAnchor", "absoluteAnchor"}
CONTENT_TAGS = {"sp", "cxnSp", "pic", "grpSp", "graphicFrame"}

# nvXxPr container, the cNvXxPr child that holds locks, and its locks element.
_NV_PATHS: dict[str, tuple[str, str, str]] = {
    "sp": ("nvSpPr", "cNvSpPr", "spLocks"),
    "cxnSp": ("nvCxnSpPr", "cNvCxnSpPr", "cxnSpLocks"),
    "pic": ("nvPicPr", "cNvPicPr", "picLocks"),
    "grpSp": ("nvGrpSpPr", "cNvGrpSpPr", "grpSpLocks"),
    "graphicFrame": ("nvGraphicFramePr", "cNvGraphicFramePr", "graphicFrameLocks"),
}

_COLOR_TAGS = ("srgbClr", "sysClr", "schemeClr", "prstClr", "scrgbClr", "hslClr")
_COLOR_TRANSFORMS = {"lumMod", "lumOff", "tint", "shade"}
_FILL_TAGS = ("noFill", "solidFill", "gradFill", "pattFill", "blipFill", "grpFill")


class DrawingResolver:
    def __init__(
        self,
        package: Package,
        resolver: RelationshipResolver,
        colors: ColorResolver,
        options: ReaderOptions,
    ) -> None:
        self.package = package
        self.resolver = resolver
        self.colors = colors
        self.options = options
        self._emu_per_unit = EMU_PER_UNIT[options.drawing_unit]

    def drawing_path_for(self, worksheet: RawWorksheet) -> str | None:
        if worksheet.drawing_rel_id:
            rel = self.resolver.resolve(worksheet.path, worksheet.drawing_rel_id)
        else:
            found = self.resolver.find_by_type(worksheet.path, "drawing")
            rel = found[0] if found else None
        if rel is None or rel.is_external:
            return None
        return rel.target

    def drawing_for(self, worksheet: RawWorksheet) -> list[Drawing] | None:
        path = self.drawing_path_for(worksheet)
        if path is None:
            return None
        return self.parse_drawing(path)

    def parse_drawing(self, drawing_path: str) -> list[Drawing]:
        root = self.package.read_xml(drawing_path)
        drawings: list[Drawing] = []

        for anchor_elem in list(root):
            anchor_tag = local_name(anchor_elem.tag)
            if anchor_tag not in ANCHOR_TAGS:
                logger.debug("Skipping %s in %s", anchor_tag, drawing_path)
                continue

            anchor = self._parse_anchor(anchor_elem, anchor_tag)
            client_data = anchor_elem.find("xdr:clientData", DRAWING_NS)

            for child in list(anchor_elem):
                child_tag = local_name(child.tag)
                if child_tag not in CONTENT_TAGS:
                    continue
                content = self._resolve_content(child, child_tag, drawing_path, depth=0)
                if client_data is not None:
                    content.nv.locks_with_sheet = to_bool(client_data.attrib.get("fLocksWithSheet"), True)
                    content.nv.prints_with_sheet = to_bool(client_data.attrib.get("fPrintsWithSheet"), True)
                drawings.append(Drawing(anchor=anchor, content=content, path=drawing_path))
        return drawings

    # Geometry

    def _convert(self, emu: str | None) -> float:
        return (to_int(emu, 0) or 0) / self._emu_per_unit

    def _parse_anchor(self, anchor: ET.Element, anchor_tag: str) -> Anchor:
        if anchor_tag == "twoCellAnchor":
            return Anchor(
                kind="two_cell",
                anchor_from=_parse_anchor_point(anchor.find("xdr:from", DRAWING_NS)),
                anchor_to=_parse_anchor_point(anchor.find("xdr:to", DRAWING_NS)),
                edit_as=anchor.attrib.get("editAs", "twoCell"),
            )

        ext = anchor.find("xdr:ext", DRAWING_NS)
        extent = None
        if ext is not None:
            extent = (self._convert(ext.attrib.get("cx")), self._convert(ext.attrib.get("cy")))

        if anchor_tag == "oneCellAnchor":
            return Anchor(
                kind="one_cell",
                anchor_from=_parse_anchor_point(anchor.find("xdr:from", DRAWING_NS)),
                extent=extent,
            )

        pos = anchor.find("xdr:pos", DRAWING_NS)
        position = None
        if pos is not None:
            position = (self._convert(pos.attrib.get("x")), self._convert(pos.attrib.get("y")))
        return Anchor(kind="absolute", position=position, extent=extent)

    def _parse_transform(self, xfrm: ET.Element | None) -> Transform | None:
        if xfrm is None:
            return None
        transform = Transform(
            rotation=(to_int(xfrm.attrib.get("rot"), 0) or 0) / 60000.0,
            flip_h=to_bool(xfrm.attrib.get("flipH")),
            flip_v=to_bool(xfrm.attrib.get("flipV")),
        )
        off = xfrm.find("a:off", DRAWING_NS)
        if off is not None:
            transform.x = self._convert(off.attrib.get("x"))
            transform.y = self._convert(off.attrib.get("y"))
        ext = xfrm.find("a:ext", DRAWING_NS)
        if ext is not None:
            transform.width = self._convert(ext.attrib.get("cx"))
            transform.height = self._convert(ext.attrib.get("cy"))
        ch_off = xfrm.find("a:chOff", DRAWING_NS)
        if ch_off is not None:
            transform.child_x = self._convert(ch_off.attrib.get("x"))
            transform.child_y = self._convert(ch_off.attrib.get("y"))
        ch_ext = xfrm.find("a:chExt", DRAWING_NS)
        if ch_ext is not None:
            transform.child_width = self._convert(ch_ext.attrib.get("cx"))
            transform.child_height = self._convert(ch_ext.attrib.get("cy"))
        return transform

    # Content tree

    def _resolve_content(self, element: ET.Element, kind: str, drawing_path: str, depth: int) -> DrawingContent:
        if depth > MAX_GROUP_DEPTH:
            raise MalformedDrawingError(
                f"Group shapes nested deeper than {MAX_GROUP_DEPTH} levels",
                part=drawing_path,
            )

        nv = self._extract_non_visual(element, kind, drawing_path)

        if kind == "grpSp":
            group = GroupShape(
                nv=nv,
                properties=self._extract_shape_properties(element.find("xdr:grpSpPr", DRAWING_NS), None),
            )
            for child in list(element):
                child_tag = local_name(child.tag)
                if child_tag not in CONTENT_TAGS:
                    continue
                group.children.append(self._resolve_content(child, child_tag, drawing_path, depth + 1))
            return group

        if kind == "graphicFrame":
            return self._extract_graphic_frame(element, nv, drawing_path)

        properties = self._extract_shape_properties(
            element.find("xdr:spPr", DRAWING_NS),
            element.find("xdr:style", DRAWING_NS),
        )

        if kind == "pic":
            return self._extract_picture(element, nv, properties, drawing_path)

        shape = Shape(nv=nv, properties=properties, text=_extract_text(element), connector=kind == "cxnSp")
        if kind == "sp":
            c_nv_sp_pr = element.find("xdr:nvSpPr/xdr:cNvSpPr", DRAWING_NS)
            shape.text_box = c_nv_sp_pr is not None and to_bool(c_nv_sp_pr.attrib.get("txBox"))
        else:
            c_nv_cxn = element.find("xdr:nvCxnSpPr/xdr:cNvCxnSpPr", DRAWING_NS)
            if c_nv_cxn is not None:
                st_cxn = c_nv_cxn.find("a:stCxn", DRAWING_NS)
                end_cxn = c_nv_cxn.find("a:endCxn", DRAWING_NS)
                shape.start_connection = to_int(st_cxn.attrib.get("id")) if st_cxn is not None else None
                shape.end_connection = to_int(end_cxn.attrib.get("id")) if end_cxn is not None else None
        return shape

    def _extract_non_visual(self, element: ET.Element, kind: str, drawing_path: str) -> NonVisualProperties:
        container, locks_parent, locks_tag = _NV_PATHS[kind]
        nv = NonVisualProperties(
            macro=element.attrib.get("macro") or None,
            text_link=element.attrib.get("textlink") or None,
            published=to_bool(element.attrib.get("fPublished")),
        )
        c_nv_pr = element.find(f"xdr:{container}/xdr:cNvPr", DRAWING_NS)
        if c_nv_pr is not None:
            nv.id = to_int(c_nv_pr.attrib.get("id"))
            nv.name = c_nv_pr.attrib.get("name", "")
            nv.description = c_nv_pr.attrib.get("descr")
            nv.title = c_nv_pr.attrib.get("title")
            nv.hidden = to_bool(c_nv_pr.attrib.get("hidden"))
            nv.hyperlink_click = self._extract_hyperlink(c_nv_pr.find("a:hlinkClick", DRAWING_NS), drawing_path)
            nv.hyperlink_hover = self._extract_hyperlink(c_nv_pr.find("a:hlinkHover", DRAWING_NS), drawing_path)

        locks = element.find(f"xdr:{container}/xdr:{locks_parent}/a:{locks_tag}", DRAWING_NS)
        if locks is not None:
            nv.locks = {name: to_bool(value) for name, value in sorted(locks.attrib.items())}
        if kind == "sp" and "fLocksText" in element.attrib:
            nv.locks["fLocksText"] = to_bool(element.attrib.get("fLocksText"), True)
        return nv

    def _extract_hyperlink(self, elem: ET.Element | None, drawing_path: str) -> Hyperlink | None:
        if elem is None:
            return None
        rel_id = elem.attrib.get(R_ID)
        tooltip = elem.attrib.get("tooltip")
        if not rel_id:
            return None
        rel = self.resolver.resolve(drawing_path, rel_id)
        if rel is None:
            return None
        if rel.is_external:
            return external_hyperlink(rel.target, tooltip=tooltip)
        return Hyperlink(kind="internal", target=rel.target, tooltip=tooltip)

    def _extract_picture(
        self,
        element: ET.Element,
        nv: NonVisualProperties,
        properties: ShapeProperties,
        drawing_path: str,
    ) -> Picture:
        picture = Picture(nv=nv, properties=properties)
        blip = element.find("xdr:blipFill/a:blip", DRAWING_NS)
        if blip is None:
            return picture

        link_id = blip.attrib.get(R_LINK)
        if link_id:
            rel = self.resolver.resolve(drawing_path, link_id)
            picture.link = rel.target if rel is not None else None

        rel_id = blip.attrib.get(R_EMBED)
        if not rel_id:
            return picture
        picture.embed_rel_id = rel_id
        rel = self.resolver.resolve(drawing_path, rel_id)
        if rel is None:
            return picture
        if rel.is_external:
            picture.link = rel.target
            return picture

        picture.media_path = rel.target
        picture.content_type = self._guess_content_type(rel.target)
        if self.options.embed_images and self.package.has_part(rel.target):
            payload = self.package.read_bytes(rel.target)
            encoded = base64.b64encode(payload).decode("ascii")
            picture.data_uri = f"data:{picture.content_type};base64,{encoded}"
        return picture

    def _guess_content_type(self, path: str) -> str:
        declared = self.package.content_type_for(path)
        if declared:
            return declared
        guessed, _ = mimetypes.guess_type(path)
        return guessed or "application/octet-stream"

    def _extract_graphic_frame(self, element: ET.Element, nv: NonVisualProperties, drawing_path: str) -> GraphicFrame:
        frame = GraphicFrame(nv=nv, transform=self._parse_transform(element.find("xdr:xfrm", DRAWING_NS)))
        graphic_data = element.find("a:graphic/a:graphicData", DRAWING_NS)
        if graphic_data is None:
            return frame
        frame.graphic_uri = graphic_data.attrib.get("uri")
        chart = graphic_data.find("c:chart", DRAWING_NS)
        if chart is not None:
            frame.chart_rel_id = chart.attrib.get(R_ID)
            if frame.chart_rel_id:
                rel = self.resolver.resolve(drawing_path, frame.chart_rel_id)
                frame.chart_path = rel.target if rel is not None else None
        return frame

    # Visual properties

    def _extract_shape_properties(self, sp_pr: ET.Element | None, style: ET.Element | None) -> ShapeProperties:
        properties = ShapeProperties()
        if sp_pr is not None:
            properties.transform = self._parse_transform(sp_pr.find("a:xfrm", DRAWING_NS))
            prst_geom = sp_pr.find("a:prstGeom", DRAWING_NS)
            if prst_geom is not None:
                properties.geometry = prst_geom.attrib.get("prst")
            elif sp_pr.find("a:custGeom", DRAWING_NS) is not None:
                properties.geometry = "custom"
            properties.fill = self._extract_fill(sp_pr)
            properties.outline = self._extract_outline(sp_pr.find("a:ln", DRAWING_NS))
            effect_list = sp_pr.find("a:effectLst", DRAWING_NS)
            if effect_list is not None:
                properties.effects = [
                    Effect(
                        kind=local_name(effect.tag),
                        color=self._drawing_color(effect),
                        attrs=dict(sorted(effect.attrib.items())),
                    )
                    for effect in list(effect_list)
                ]

        if style is not None:
            if properties.fill is None:
                fill_ref = style.find("a:fillRef", DRAWING_NS)
                color = self._drawing_color(fill_ref) if fill_ref is not None else None
                if color is not None and fill_ref.attrib.get("idx") != "0":
                    properties.fill = DrawingFill(kind="solid", color=color)
            ln_ref = style.find("a:lnRef", DRAWING_NS)
            ln_color = self._drawing_color(ln_ref) if ln_ref is not None else None
            if ln_color is not None and ln_ref.attrib.get("idx") != "0":
                if properties.outline is None:
                    properties.outline = Outline(color=ln_color)
                elif properties.outline.color is None and not properties.outline.no_fill:
                    properties.outline.color = ln_color
        return properties

    def _extract_fill(self, parent: ET.Element) -> DrawingFill | None:
        for tag in _FILL_TAGS:
            fill = parent.find(f"a:{tag}", DRAWING_NS)
            if fill is None:
                continue
            if tag == "noFill":
                return DrawingFill(kind="none")
            if tag == "solidFill":
                return DrawingFill(kind="solid", color=self._drawing_color(fill))
            if tag == "gradFill":
                stops = [
                    GradientStop(
                        position=(to_float(stop.attrib.get("pos"), 0.0) or 0.0) / 100000.0,
                        color=self._drawing_color(stop),
                    )
                    for stop in fill.findall("a:gsLst/a:gs", DRAWING_NS)
                ]
                return DrawingFill(kind="gradient", color=stops[0].color if stops else None, stops=stops)
            if tag == "pattFill":
                fg = fill.find("a:fgClr", DRAWING_NS)
                bg = fill.find("a:bgClr", DRAWING_NS)
                return DrawingFill(
                    kind="pattern",
                    pattern=fill.attrib.get("prst"),
                    fg_color=self._drawing_color(fg) if fg is not None else None,
                    bg_color=self._drawing_color(bg) if bg is not None else None,
                )
            if tag == "blipFill":
                blip = fill.find("a:blip", DRAWING_NS)
                return DrawingFill(kind="blip", blip_rel_id=blip.attrib.get(R_EMBED) if blip is not None else None)
            return DrawingFill(kind="group")
        return None

    def _extract_outline(self, line: ET.Element | None) -> Outline | None:
        if line is None:
            return None
        width = line.attrib.get("w")
        outline = Outline(
            width=self._convert(width) if width is not None else None,
            cap=line.attrib.get("cap"),
            compound=line.attrib.get("cmpd"),
        )
        fill = self._extract_fill(line)
        if fill is not None:
            outline.no_fill = fill.kind == "none"
            outline.color = fill.color
        dash = line.find("a:prstDash", DRAWING_NS)
        if dash is not None:
            outline.dash = dash.attrib.get("val")
        outline.head = _parse_line_end(line.find("a:headEnd", DRAWING_NS))
        outline.tail = _parse_line_end(line.find("a:tailEnd", DRAWING_NS))
        return outline

    def _drawing_color(self, node: ET.Element) -> str | None:
        for tag in _COLOR_TAGS:
            color_elem = node.find(f"a:{tag}", DRAWING_NS)
            if color_elem is None:
                continue
            base = self._base_color(tag, color_elem)
            if base is None:
                return None
            transforms = [
                (local_name(child.tag), (to_float(child.attrib.get("val"), 100000.0) or 0.0) / 100000.0)
                for child in list(color_elem)
                if local_name(child.tag) in _COLOR_TRANSFORMS
            ]
            return apply_drawing_transforms(base, transforms) if transforms else base
        return None

    def _base_color(self, tag: str, elem: ET.Element) -> str | None:
        if tag == "srgbClr":
            return normalize_rgb(elem.attrib.get("val"))
        if tag == "sysClr":
            return normalize_rgb(elem.attrib.get("lastClr")) or ("#FFFFFF" if elem.attrib.get("val") == "window" else "#000000")
        if tag == "schemeClr":
            val = elem.attrib.get("val", "")
            if val == "phClr":
                return None
            return self.colors.scheme_color(val)
        if tag == "prstClr":
            return PRESET_COLORS.get(elem.attrib.get("val", ""))
        if tag == "scrgbClr":
            channels = [(to_float(elem.attrib.get(key), 0.0) or 0.0) / 100000.0 * 255 for key in ("r", "g", "b")]
            return rgb_to_hex(*channels)
        hue = (to_float(elem.attrib.get("hue"), 0.0) or 0.0) / 60000.0
        sat = (to_float(elem.attrib.get("sat"), 0.0) or 0.0) / 100000.0
        lum = (to_float(elem.attrib.get("lum"), 0.0) or 0.0) / 100000.0
        return hsl_to_hex(hue, sat, lum)


def _parse_anchor_point(elem: ET.Element | None) -> AnchorPoint | None:
    if elem is None:
        return None
    return AnchorPoint(
        col=to_int(elem.findtext("xdr:col", default="0", namespaces=DRAWING_NS), 0) or 0,
        row=to_int(elem.findtext("xdr:row", default="0", namespaces=DRAWING_NS), 0) or 0,
        col_off=to_int(elem.findtext("xdr:colOff", default="0", namespaces=DRAWING_NS), 0) or 0,
        row_off=to_int(elem.findtext("xdr:rowOff", default="0", namespaces=DRAWING_NS), 0) or 0,
    )


def _parse_line_end(elem: ET.Element | None) -> LineEnd | None:
    if elem is None:
        return None
    return LineEnd(type=elem.attrib.get("type", "none"), width=elem.attrib.get("w"), length=elem.attrib.get("len"))


def _extract_text(element: ET.Element) -> str:
    paragraphs: list[str] = []
    for paragraph in element.findall("xdr:txBody/a:p", DRAWING_NS):
        fragments = [txt.text or "" for txt in paragraph.iter(f"{{{DRAWING_NS['a']}}}t")]
        paragraphs.append("".join(fragments))
    return "\n".join(paragraphs).strip()
