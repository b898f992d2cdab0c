from __future__ import annotations

import base64

import pytest

from tests.helpers import drawing_xml, rels_xml, worksheet_xml
from xlsxmodel.errors import CapabilityDisabledError, MalformedDrawingError
from xlsxmodel.model import Anchor, AnchorPoint, ReaderOptions
from xlsxmodel.parser.ooxml import OOXMLWorkbookReader

PNG = b"\x89PNG\r\n\x1a\nfake"

TEXT_BOX = """<xdr:twoCellAnchor editAs="oneCell">
  <xdr:from><xdr:col>1</xdr:col><xdr:colOff>9525</xdr:colOff><xdr:row>2</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
  <xdr:to><xdr:col>4</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>6</xdr:row><xdr:rowOff>19050</xdr:rowOff></xdr:to>
  <xdr:sp macro="" textlink="">
    <xdr:nvSpPr><xdr:cNvPr id="2" name="TextBox 1" descr="note"/><xdr:cNvSpPr txBox="1"><a:spLocks noGrp="1"/></xdr:cNvSpPr></xdr:nvSpPr>
    <xdr:spPr>
      <a:xfrm rot="5400000"><a:off x="12700" y="25400"/><a:ext cx="127000" cy="63500"/></a:xfrm>
      <a:prstGeom prst="rect"><a:avLst/></a:prstGeom>
      <a:solidFill><a:srgbClr val="FF0000"/></a:solidFill>
      <a:ln w="12700"><a:solidFill><a:srgbClr val="0000FF"/></a:solidFill><a:prstDash val="dash"/><a:tailEnd type="triangle"/></a:ln>
    </xdr:spPr>
    <xdr:txBody><a:bodyPr/><a:p><a:r><a:t>Hello</a:t></a:r></a:p><a:p><a:r><a:t>World</a:t></a:r></a:p></xdr:txBody>
  </xdr:sp>
  <xdr:clientData fLocksWithSheet="0"/>
</xdr:twoCellAnchor>"""

PICTURE = """<xdr:oneCellAnchor>
  <xdr:from><xdr:col>0</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>0</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
  <xdr:ext cx="914400" cy="457200"/>
  <xdr:pic>
    <xdr:nvPicPr><xdr:cNvPr id="3" name="Picture 2"><a:hlinkClick r:id="rId3" tooltip="site"/></xdr:cNvPr><xdr:cNvPicPr/></xdr:nvPicPr>
    <xdr:blipFill><a:blip r:embed="rId2"/><a:stretch/></xdr:blipFill>
    <xdr:spPr><a:prstGeom prst="rect"/></xdr:spPr>
  </xdr:pic>
  <xdr:clientData/>
</xdr:oneCellAnchor>"""

CHART = """<xdr:absoluteAnchor>
  <xdr:pos x="12700" y="25400"/>
  <xdr:ext cx="127000" cy="254000"/>
  <xdr:graphicFrame macro="">
    <xdr:nvGraphicFramePr><xdr:cNvPr id="4" name="Chart 3"/><xdr:cNvGraphicFramePr/></xdr:nvGraphicFramePr>
    <xdr:xfrm><a:off x="0" y="0"/><a:ext cx="0" cy="0"/></xdr:xfrm>
    <a:graphic><a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/chart">
      <c:chart xmlns:c="http://schemas.openxmlformats.org/drawingml/2006/chart" r:id="rId4"/>
    </a:graphicData></a:graphic>
  </xdr:graphicFrame>
  <xdr:clientData/>
</xdr:absoluteAnchor>"""

GROUP = """<xdr:twoCellAnchor>
  <xdr:from><xdr:col>5</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>5</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
  <xdr:to><xdr:col>8</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>9</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:to>
  <xdr:grpSp>
    <xdr:nvGrpSpPr><xdr:cNvPr id="5" name="Group 4"/><xdr:cNvGrpSpPr/></xdr:nvGrpSpPr>
    <xdr:grpSpPr><a:xfrm><a:off x="0" y="0"/><a:ext cx="0" cy="0"/><a:chOff x="0" y="0"/><a:chExt cx="0" cy="0"/></a:xfrm></xdr:grpSpPr>
    <xdr:sp><xdr:nvSpPr><xdr:cNvPr id="6" name="Box"/><xdr:cNvSpPr/></xdr:nvSpPr><xdr:spPr><a:prstGeom prst="ellipse"/><a:noFill/></xdr:spPr></xdr:sp>
    <xdr:cxnSp>
      <xdr:nvCxnSpPr><xdr:cNvPr id="7" name="Arrow"/><xdr:cNvCxnSpPr><a:stCxn id="6" idx="0"/><a:endCxn id="2" idx="2"/></xdr:cNvCxnSpPr></xdr:nvCxnSpPr>
      <xdr:spPr><a:prstGeom prst="straightConnector1"/></xdr:spPr>
      <xdr:style><a:lnRef idx="1"><a:schemeClr val="accent1"/></a:lnRef><a:fillRef idx="0"><a:schemeClr val="accent1"/></a:fillRef></xdr:style>
    </xdr:cxnSp>
  </xdr:grpSp>
  <xdr:clientData/>
</xdr:twoCellAnchor>"""

DRAWING_RELS = [
    ("rId2", "image", "../media/image1.png"),
    ("rId3", "hyperlink", "https://example.com/", "External"),
    ("rId4", "chart", "../charts/chart1.xml"),
]


def _book(make_xlsx, drawing: str, drawing_rels=DRAWING_RELS):
    return make_xlsx(
        sheets=[("Sheet1", worksheet_xml(after='<drawing r:id="rId1"/>')), ("Plain", worksheet_xml())],
        sheet_rels={1: [("rId1", "drawing", "../drawings/drawing1.xml")]},
        extra_parts={
            "xl/drawings/drawing1.xml": drawing,
            "xl/drawings/_rels/drawing1.xml.rels": rels_xml(drawing_rels),
            "xl/media/image1.png": PNG,
        },
    )


def _drawings(path, **options):
    with OOXMLWorkbookReader(path, ReaderOptions(**options)) as reader:
        return reader.drawings("Sheet1")


def test_two_cell_anchor_and_shape(make_xlsx) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(TEXT_BOX)))
    anchor, shape = drawing.anchor, drawing.content

    assert anchor.kind == "two_cell"
    assert anchor.edit_as == "oneCell"
    assert anchor.span == (2, 1, 6, 4)
    assert anchor.anchor_from.col_off == 9525
    assert anchor.anchor_to.row_off == 19050

    assert shape.kind == "shape"
    assert shape.text_box
    assert shape.text == "Hello\nWorld"
    assert shape.nv.id == 2
    assert shape.nv.description == "note"
    assert shape.nv.locks == {"noGrp": True}
    assert not shape.nv.locks_with_sheet
    assert shape.nv.prints_with_sheet

    props = shape.properties
    assert props.geometry == "rect"
    assert props.transform.rotation == 90.0
    assert (props.transform.x, props.transform.y) == (1.0, 2.0)
    assert (props.transform.width, props.transform.height) == (10.0, 5.0)
    assert props.fill.kind == "solid"
    assert props.fill.color == "#FF0000"
    assert props.outline.width == 1.0
    assert props.outline.color == "#0000FF"
    assert props.outline.dash == "dash"
    assert props.outline.tail.type == "triangle"


def test_one_cell_anchor_picture(make_xlsx) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(PICTURE)))
    picture = drawing.content

    assert drawing.anchor.kind == "one_cell"
    assert drawing.anchor.extent == (72.0, 36.0)
    assert drawing.anchor.span is None
    assert picture.kind == "picture"
    assert picture.embed_rel_id == "rId2"
    assert picture.media_path == "xl/media/image1.png"
    assert picture.content_type == "image/png"
    assert picture.data_uri is None
    assert picture.nv.hyperlink_click.target == "https://example.com/"
    assert picture.nv.hyperlink_click.tooltip == "site"


def test_embedded_image_bytes(make_xlsx) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(PICTURE)), embed_images=True)
    expected = base64.b64encode(PNG).decode("ascii")
    assert drawing.content.data_uri == f"data:image/png;base64,{expected}"


def test_absolute_anchor_and_chart_frame(make_xlsx) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(CHART)))
    frame = drawing.content

    assert drawing.anchor.kind == "absolute"
    assert drawing.anchor.position == (1.0, 2.0)
    assert drawing.anchor.extent == (10.0, 20.0)
    assert frame.kind == "graphic_frame"
    assert frame.chart_rel_id == "rId4"
    assert frame.chart_path == "xl/charts/chart1.xml"


@pytest.mark.parametrize(
    ("unit", "expected"),
    [("emu", (12700.0, 25400.0)), ("px", (12700 / 9525, 25400 / 9525)), ("in", (12700 / 914400, 25400 / 914400))],
)
def test_drawing_unit_conversion(make_xlsx, unit: str, expected: tuple[float, float]) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(CHART)), drawing_unit=unit)
    assert drawing.anchor.position == pytest.approx(expected)


def test_group_children_and_connector(make_xlsx) -> None:
    (drawing,) = _drawings(_book(make_xlsx, drawing_xml(GROUP)))
    group = drawing.content

    assert drawing.anchor.edit_as == "twoCell"
    assert group.kind == "group"
    assert group.properties.transform.child_x == 0.0
    box, arrow = group.children
    assert box.properties.geometry == "ellipse"
    assert box.properties.fill.kind == "none"
    assert arrow.connector
    assert (arrow.start_connection, arrow.end_connection) == (6, 2)
    assert arrow.properties.outline.color == "#4F81BD"
    assert arrow.properties.fill is None


def test_anchors_keep_document_order(make_xlsx) -> None:
    drawings = _drawings(_book(make_xlsx, drawing_xml(PICTURE, TEXT_BOX, CHART)))
    assert [d.content.kind for d in drawings] == ["picture", "shape", "graphic_frame"]


def test_nesting_beyond_limit_raises(make_xlsx) -> None:
    inner = '<xdr:sp><xdr:nvSpPr><xdr:cNvPr id="1" name="leaf"/><xdr:cNvSpPr/></xdr:nvSpPr><xdr:spPr/></xdr:sp>'
    for depth in range(66):
        inner = (
            f'<xdr:grpSp><xdr:nvGrpSpPr><xdr:cNvPr id="{depth + 10}" name="g{depth}"/><xdr:cNvGrpSpPr/></xdr:nvGrpSpPr>'
            f"<xdr:grpSpPr/>{inner}</xdr:grpSp>"
        )
    anchor = (
        "<xdr:twoCellAnchor><xdr:from><xdr:col>0</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>0</xdr:row>"
        "<xdr:rowOff>0</xdr:rowOff></xdr:from><xdr:to><xdr:col>1</xdr:col><xdr:colOff>0</xdr:colOff>"
        f"<xdr:row>1</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:to>{inner}<xdr:clientData/></xdr:twoCellAnchor>"
    )
    with pytest.raises(MalformedDrawingError):
        _drawings(_book(make_xlsx, drawing_xml(anchor)))


def test_sheet_without_drawing(make_xlsx) -> None:
    path = _book(make_xlsx, drawing_xml(TEXT_BOX))
    with OOXMLWorkbookReader(path) as reader:
        assert reader.drawings("Plain") is None


def test_drawings_capability_can_be_disabled(make_xlsx) -> None:
    path = _book(make_xlsx, drawing_xml(TEXT_BOX))
    with OOXMLWorkbookReader(path, ReaderOptions(enable_drawings=False)) as reader:
        with pytest.raises(CapabilityDisabledError):
            reader.drawings("Sheet1")
        assert reader.worksheet("Sheet1").drawing_rel_id == "rId1"


def test_two_cell_span_is_raw_anchor_pair() -> None:
    anchor = Anchor(kind="two_cell", anchor_from=AnchorPoint(col=0, row=0), anchor_to=AnchorPoint(col=3, row=5))
    assert anchor.span == (0, 0, 5, 3)


def test_iter_drawings_is_empty_without_drawing_part(make_xlsx) -> None:
    path = _book(make_xlsx, drawing_xml(TEXT_BOX, PICTURE))
    with OOXMLWorkbookReader(path) as reader:
        assert [d.content.kind for d in reader.iter_drawings("Sheet1")] == ["shape", "picture"]
        assert list(reader.iter_drawings("Plain")) == []
