from __future__ import annotations

from pathlib import Path
from zipfile import ZipFile

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
DOC_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
DRAWING_MAIN_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
SHEET_DRAWING_NS = "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"
REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/"

XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


def rels_xml(rels: list[tuple]) -> str:
    """Build a relationship manifest from (id, type name, target[, mode]) tuples."""
    items = []
    for rel in rels:
        rel_id, type_name, target = rel[:3]
        mode = f' TargetMode="{rel[3]}"' if len(rel) > 3 else ""
        items.append(f'<Relationship Id="{rel_id}" Type="{REL_TYPE}{type_name}" Target="{target}"{mode}/>')
    return f'{XML_HEADER}<Relationships xmlns="{PACKAGE_REL_NS}">{"".join(items)}</Relationships>'


def worksheet_xml(sheet_data: str = "", *, dimension: str | None = "A1", before: str = "", after: str = "") -> str:
    dim = f'<dimension ref="{dimension}"/>' if dimension else ""
    return (
        f'{XML_HEADER}<worksheet xmlns="{MAIN_NS}" xmlns:r="{DOC_REL_NS}">'
        f"{dim}{before}<sheetData>{sheet_data}</sheetData>{after}</worksheet>"
    )


def sst_xml(*items: str) -> str:
    """Each item is the inner XML of one ``si`` element."""
    body = "".join(f"<si>{item}</si>" for item in items)
    return f'{XML_HEADER}<sst xmlns="{MAIN_NS}" count="{len(items)}" uniqueCount="{len(items)}">{body}</sst>'


def styles_xml(
    *,
    num_fmts: str = "",
    fonts: str = '<font><sz val="11"/><name val="Calibri"/></font>',
    fills: str = '<fill><patternFill patternType="none"/></fill><fill><patternFill patternType="gray125"/></fill>',
    borders: str = "<border><left/><right/><top/><bottom/><diagonal/></border>",
    cell_style_xfs: str = '<xf numFmtId="0" fontId="0" fillId="0" borderId="0"/>',
    cell_xfs: str = '<xf numFmtId="0" fontId="0" fillId="0" borderId="0" xfId="0"/>',
    cell_styles: str = '<cellStyle name="Normal" xfId="0" builtinId="0"/>',
    extra: str = "",
) -> str:
    num_fmts_block = f"<numFmts>{num_fmts}</numFmts>" if num_fmts else ""
    return (
        f'{XML_HEADER}<styleSheet xmlns="{MAIN_NS}">{num_fmts_block}'
        f"<fonts>{fonts}</fonts><fills>{fills}</fills><borders>{borders}</borders>"
        f"<cellStyleXfs>{cell_style_xfs}</cellStyleXfs><cellXfs>{cell_xfs}</cellXfs>"
        f"<cellStyles>{cell_styles}</cellStyles>{extra}</styleSheet>"
    )


def theme_xml(colors: dict[str, str] | None = None, minor_font: str = "Aptos") -> str:
    palette = {
        "dk1": "000000",
        "lt1": "FFFFFF",
        "dk2": "44546A",
        "lt2": "E7E6E6",
        "accent1": "4472C4",
        "accent2": "ED7D31",
        "accent3": "A5A5A5",
        "accent4": "FFC000",
        "accent5": "5B9BD5",
        "accent6": "70AD47",
        "hlink": "0563C1",
        "folHlink": "954F72",
    }
    palette.update(colors or {})
    slots = "".join(f'<a:{slot}><a:srgbClr val="{value}"/></a:{slot}>' for slot, value in palette.items())
    return (
        f'{XML_HEADER}<a:theme xmlns:a="{DRAWING_MAIN_NS}" name="Test Theme"><a:themeElements>'
        f'<a:clrScheme name="Test">{slots}</a:clrScheme>'
        f'<a:fontScheme name="Test"><a:majorFont><a:latin typeface="Aptos Display"/></a:majorFont>'
        f'<a:minorFont><a:latin typeface="{minor_font}"/></a:minorFont></a:fontScheme>'
        f"</a:themeElements></a:theme>"
    )


def drawing_xml(*anchors: str) -> str:
    return (
        f'{XML_HEADER}<xdr:wsDr xmlns:xdr="{SHEET_DRAWING_NS}" xmlns:a="{DRAWING_MAIN_NS}" '
        f'xmlns:r="{DOC_REL_NS}">{"".join(anchors)}</xdr:wsDr>'
    )


def build_xlsx(
    path: Path,
    *,
    sheets: list[tuple[str, str]] | None = None,
    styles: str | None = None,
    shared_strings: str | None = None,
    theme: str | None = None,
    workbook_extra: str = "",
    sheet_states: dict[str, str] | None = None,
    sheet_rels: dict[int, list[tuple]] | None = None,
    extra_parts: dict[str, str | bytes] | None = None,
    extra_sheets: list[tuple[str, str, str]] | None = None,
) -> Path:
    """Write a minimal package to ``path``.

    ``sheets`` holds (name, worksheet xml); sheet N is stored as
    ``xl/worksheets/sheetN.xml`` with relationship id ``rIdN``.
    ``extra_sheets`` holds (name, relationship type, target) for
    non-worksheet sheets.
    """
    sheets = sheets if sheets is not None else [("Sheet1", worksheet_xml())]
    sheet_states = sheet_states or {}
    sheet_entries: list[str] = []
    workbook_rels: list[tuple] = []
    parts: dict[str, str | bytes] = {}

    for idx, (name, xml) in enumerate(sheets, start=1):
        state = f' state="{sheet_states[name]}"' if name in sheet_states else ""
        sheet_entries.append(f'<sheet name="{name}" sheetId="{idx}" r:id="rId{idx}"{state}/>')
        workbook_rels.append((f"rId{idx}", "worksheet", f"worksheets/sheet{idx}.xml"))
        parts[f"xl/worksheets/sheet{idx}.xml"] = xml

    for offset, (name, type_name, target) in enumerate(extra_sheets or [], start=len(sheets) + 1):
        sheet_entries.append(f'<sheet name="{name}" sheetId="{offset}" r:id="rId{offset}"/>')
        workbook_rels.append((f"rId{offset}", type_name, target))

    if styles is not None:
        workbook_rels.append(("rIdStyles", "styles", "styles.xml"))
        parts["xl/styles.xml"] = styles
    if shared_strings is not None:
        workbook_rels.append(("rIdStrings", "sharedStrings", "sharedStrings.xml"))
        parts["xl/sharedStrings.xml"] = shared_strings
    if theme is not None:
        workbook_rels.append(("rIdTheme", "theme", "theme/theme1.xml"))
        parts["xl/theme/theme1.xml"] = theme

    parts["xl/workbook.xml"] = (
        f'{XML_HEADER}<workbook xmlns="{MAIN_NS}" xmlns:r="{DOC_REL_NS}">'
        f'{workbook_extra}<sheets>{"".join(sheet_entries)}</sheets></workbook>'
    )
    parts["xl/_rels/workbook.xml.rels"] = rels_xml(workbook_rels)
    parts["_rels/.rels"] = rels_xml([("rId1", "officeDocument", "xl/workbook.xml")])

    for idx, rels in (sheet_rels or {}).items():
        parts[f"xl/worksheets/_rels/sheet{idx}.xml.rels"] = rels_xml(rels)
    parts.update(extra_parts or {})

    with ZipFile(path, "w") as zf:
        for name, payload in parts.items():
            zf.writestr(name, payload)
    return path
