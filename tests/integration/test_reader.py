from __future__ import annotations

from datetime import datetime

import pytest

from tests.helpers import build_xlsx, worksheet_xml
from xlsxmodel import OOXMLWorkbookReader, ReaderOptions, open_xlsx
from xlsxmodel.api import load_workbook_summary
from xlsxmodel.errors import (
    CapabilityDisabledError,
    ContainerError,
    IndexOutOfRangeError,
    PartNotFoundError,
    SheetNotFoundError,
)


def test_sheets_listing(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        sheets = reader.sheets()

    assert [(s.index, s.sheet_id, s.name, s.type, s.state) for s in sheets] == [
        (0, 1, "Data", "worksheet", "visible"),
        (1, 2, "Report", "worksheet", "visible"),
        (2, 3, "Secret", "worksheet", "hidden"),
        (3, 4, "Chart1", "chartsheet", "visible"),
    ]
    assert sheets[0].path == "xl/worksheets/sheet1.xml"
    assert sheets[3].path == "xl/chartsheets/sheet1.xml"


def test_hidden_sheets_can_be_excluded(workbook_path) -> None:
    with open_xlsx(workbook_path, options=ReaderOptions(include_hidden_sheets=False)) as reader:
        assert [s.name for s in reader.sheets()] == ["Data", "Report", "Chart1"]
        assert reader.sheet("secret").state == "hidden"


def test_sheet_lookup(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        assert reader.sheet("DATA").sheet_id == 1
        assert reader.sheet(2).name == "Report"
        with pytest.raises(SheetNotFoundError):
            reader.sheet("Missing")
        with pytest.raises(SheetNotFoundError):
            reader.sheet(99)
        with pytest.raises(SheetNotFoundError):
            reader.raw_worksheet("Chart1")


def test_cells_end_to_end(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        cells = {cell.coord: cell for cell in reader.iter_cells("Data")}

    assert list(cells) == ["A1", "B1", "C1", "A2", "B2", "C2", "A3", "B3", "C3"]
    assert cells["A1"].value.text == "Name"
    assert cells["A2"].value.text == "rich!"
    assert cells["A2"].value.runs[0].font.italic
    assert cells["B2"].value.value == datetime(2023, 3, 15)
    assert cells["B2"].style.font.bold
    assert cells["B2"].style.font.color == "#4472C4"
    assert cells["C2"].value.value == 90000.0
    assert cells["C2"].formula.text == "B2*2"
    assert cells["C2"].style.number_format.code == "#,##0.0"
    assert cells["A3"].value.text == "inline"
    assert cells["B3"].value.kind == "blank"
    assert cells["C3"].value.value is False
    assert cells["B3"].merged_region.ref == "B3:C3"
    assert cells["A1"].width == 18.0
    assert cells["A2"].height == 24.0
    assert cells["A1"].style.font.name == "Aptos"


def test_cell_lookup_by_coordinate(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        assert reader.cell("Data", "c2").value.value == 90000.0
        assert reader.cell("Data", "Z99") is None


def test_hyperlinks(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        a1 = reader.cell("Data", "A1").hyperlink
        a2 = reader.cell("Data", "A2").hyperlink

    assert (a1.kind, a1.target, a1.tooltip) == ("external", "https://example.com/docs", "Docs")
    assert a2.kind == "internal"
    assert a2.sheet_name == "Report"
    assert a2.range.ref == "A1"
    assert a2.display == "Jump"


def test_worksheet_summary(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        ws = reader.worksheet("Data")
        tables = reader.tables("Data")

    assert ws.dimension.ref == "A1:C3"
    assert [rng.ref for rng in ws.merged_regions] == ["B3:C3"]
    assert ws.column_widths == {1: 18.0}
    assert ws.row_heights == {2: 24.0}
    assert set(ws.hyperlinks) == {"A1", "A2"}
    assert not ws.is_1904
    assert ws.table_rel_ids == ["rId1"]
    (table,) = tables
    assert table.name == "Table1"
    assert table.path == "xl/tables/table1.xml"
    assert [c.name for c in table.columns] == ["Name", "When", "Twice"]
    assert table.style.name == "TableStyleMedium2"
    assert table.style.is_default


def test_sheet_without_dimension_has_no_cells(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        assert reader.cells("Secret") == []
        assert reader.worksheet("Secret").dimension is None


def test_defined_names_and_styles(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        names = {dn.name: dn for dn in reader.defined_names()}
        style = reader.style(1)

    assert names["Report"].value == "Report!$A$1"
    assert names["_xlnm.Print_Area"].local_sheet_id == 0
    assert names["_xlnm.Print_Area"].hidden
    assert style.number_format.is_date
    assert style.named_style == "Normal"


def test_raw_accessors(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        assert reader.raw_workbook().sheets[0].rel_id == "rId1"
        assert len(reader.raw_stylesheet().cell_xfs) == 3
        assert reader.raw_theme().minor_font == "Aptos"
        assert len(reader.raw_shared_strings().items) == 4
        assert reader.raw_worksheet("Data").merge_refs == ["B3:C3"]
        assert reader.raw_tables("Data")[0].ref == "A1:C2"
        assert {rel.type_name for rel in reader.raw_relationships()} >= {"worksheet", "styles", "theme"}
        assert {rel.id for rel in reader.raw_relationships("Data")} == {"rId1", "rId2"}
        part = reader.raw_part("xl/tables/table1.xml")

    assert part["tag"] == "table"
    assert part["attrs"]["displayName"] == "Table1"


def test_export_json(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        data = reader.export(reader.cell("Data", "B2"))
        text = reader.export_json(reader.sheets())

    assert data["value"]["kind"] == "date"
    assert data["value"]["serial"] == 45000.0
    assert '"Chart1"' in text


def test_structured_output_can_be_disabled(workbook_path) -> None:
    with open_xlsx(workbook_path, options=ReaderOptions(structured_output=False)) as reader:
        with pytest.raises(CapabilityDisabledError):
            reader.export(reader.sheets())
        with pytest.raises(CapabilityDisabledError):
            reader.export_json(reader.sheets())


def test_date1904_workbook(tmp_path) -> None:
    path = build_xlsx(
        tmp_path / "mac.xlsx",
        sheets=[("Sheet1", worksheet_xml('<row r="1"><c r="A1" s="1"><v>1</v></c></row>'))],
        styles=(
            '<styleSheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
            '<fonts><font/></fonts><fills><fill/></fills><borders><border/></borders>'
            '<cellXfs><xf/><xf numFmtId="15"/></cellXfs></styleSheet>'
        ),
        workbook_extra='<workbookPr date1904="1"/>',
    )
    with OOXMLWorkbookReader(path) as reader:
        assert reader.worksheet("Sheet1").is_1904
        assert reader.cell("Sheet1", "A1").value.value == datetime(1904, 1, 2)


def test_missing_shared_strings_part_and_session_recovery(tmp_path) -> None:
    path = build_xlsx(
        tmp_path / "nosst.xlsx",
        sheets=[
            ("Bad", worksheet_xml('<row r="1"><c r="A1" t="s"><v>0</v></c></row>')),
            ("Good", worksheet_xml('<row r="1"><c r="A1"><v>5</v></c></row>')),
        ],
    )
    with OOXMLWorkbookReader(path) as reader:
        with pytest.raises(IndexOutOfRangeError):
            reader.cells("Bad")
        assert reader.cell("Good", "A1").value.value == 5.0
        assert reader.style(0).font.name == "Calibri"


def test_unreadable_container(tmp_path) -> None:
    with pytest.raises(ContainerError):
        OOXMLWorkbookReader(tmp_path / "missing.xlsx")


def test_sheet_without_manifest_has_no_tables_or_drawing(workbook_path) -> None:
    with open_xlsx(workbook_path) as reader:
        assert reader.raw_relationships("Report") == []
        assert reader.tables("Report") == []
        assert reader.drawings("Report") is None
        assert reader.worksheet("Report").drawing_rel_id is None


def test_broken_table_part_only_fails_table_queries(tmp_path) -> None:
    sheet = worksheet_xml(
        '<row r="1"><c r="A1"><v>1</v></c></row>',
        after='<tableParts count="1"><tablePart r:id="rId1"/></tableParts>',
    )
    path = build_xlsx(
        tmp_path / "broken-table.xlsx",
        sheets=[("Data", sheet)],
        sheet_rels={1: [("rId1", "table", "../tables/table1.xml")]},
    )
    summary = load_workbook_summary(path, cells=True)
    (entry,) = summary["worksheets"]
    assert entry["table_rel_ids"] == ["rId1"]
    assert entry["cells"][0]["coord"] == "A1"

    with open_xlsx(path) as reader:
        assert reader.worksheet("Data").dimension.ref == "A1"
        with pytest.raises(PartNotFoundError):
            reader.tables("Data")
    with pytest.raises(PartNotFoundError):
        load_workbook_summary(path, tables=True)
