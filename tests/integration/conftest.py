from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import MAIN_NS, build_xlsx, sst_xml, styles_xml, theme_xml, worksheet_xml

DATA_SHEET = worksheet_xml(
    '<row r="1" spans="1:3"><c r="A1" t="s"><v>0</v></c><c r="B1" t="s"><v>1</v></c><c r="C1" t="s"><v>2</v></c></row>'
    '<row r="2" spans="1:3" ht="24" customHeight="1"><c r="A2" t="s"><v>3</v></c><c r="B2" s="1"><v>45000</v></c>'
    '<c r="C2" s="2"><f>B2*2</f><v>90000</v></c></row>'
    '<row r="3" spans="1:3"><c r="A3" t="inlineStr"><is><t>inline</t></is></c><c r="B3"/><c r="C3" t="b"><v>0</v></c></row>',
    dimension="A1:C3",
    before='<cols><col min="1" max="1" width="18" customWidth="1"/></cols>',
    after=(
        '<mergeCells count="1"><mergeCell ref="B3:C3"/></mergeCells>'
        '<hyperlinks><hyperlink ref="A1" r:id="rId2" tooltip="Docs"/>'
        '<hyperlink ref="A2" location="Report" display="Jump"/></hyperlinks>'
        '<tableParts count="1"><tablePart r:id="rId1"/></tableParts>'
    ),
)

TABLE = (
    f'<table xmlns="{MAIN_NS}" id="1" name="Table1" displayName="Table1" ref="A1:C2">'
    '<autoFilter ref="A1:C2"/><tableColumns count="3"><tableColumn id="1" name="Name"/>'
    '<tableColumn id="2" name="When"/><tableColumn id="3" name="Twice"/></tableColumns></table>'
)

STYLES = styles_xml(
    fonts='<font><sz val="11"/><color theme="1"/><scheme val="minor"/></font><font><b/><sz val="12"/><color theme="4"/></font>',
    num_fmts='<numFmt numFmtId="164" formatCode="#,##0.0"/>',
    cell_xfs=(
        '<xf numFmtId="0" fontId="0" fillId="0" borderId="0" xfId="0"/>'
        '<xf numFmtId="14" fontId="1" fillId="0" borderId="0" xfId="0" applyNumberFormat="1" applyFont="1"/>'
        '<xf numFmtId="164" fontId="0" fillId="0" borderId="0" xfId="0" applyNumberFormat="1"/>'
    ),
    extra='<tableStyles count="0" defaultTableStyle="TableStyleMedium2"/>',
)


@pytest.fixture()
def workbook_path(tmp_path: Path) -> Path:
    return build_xlsx(
        tmp_path / "report.xlsx",
        sheets=[
            ("Data", DATA_SHEET),
            ("Report", worksheet_xml('<row r="1"><c r="A1"><v>1</v></c></row>')),
            ("Secret", worksheet_xml(dimension=None)),
        ],
        sheet_states={"Secret": "hidden"},
        extra_sheets=[("Chart1", "chartsheet", "chartsheets/sheet1.xml")],
        styles=STYLES,
        shared_strings=sst_xml("<t>Name</t>", "<t>When</t>", "<t>Twice</t>", "<r><rPr><i/></rPr><t>rich</t></r><r><t>!</t></r>"),
        theme=theme_xml(),
        workbook_extra=(
            '<workbookPr defaultThemeVersion="164011"/>'
            '<definedNames><definedName name="Report">Report!$A$1</definedName>'
            '<definedName name="_xlnm.Print_Area" localSheetId="0" hidden="1">Data!$A$1:$C$3</definedName></definedNames>'
        ),
        sheet_rels={
            1: [
                ("rId1", "table", "../tables/table1.xml"),
                ("rId2", "hyperlink", "https://example.com/docs", "External"),
            ]
        },
        extra_parts={"xl/tables/table1.xml": TABLE, "xl/chartsheets/sheet1.xml": "<chartsheet/>"},
    )
