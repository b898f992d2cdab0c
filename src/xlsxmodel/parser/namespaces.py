SPREADSHEET_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
DOCUMENT_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
DRAWING_MAIN_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
SHEET_DRAWING_NS = "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"
CHART_NS = "http://schemas.openxmlformats.org/drawingml/2006/chart"
X14AC_NS = "http://schemas.microsoft.com/office/spreadsheetml/2009/9/ac"

NS = {
    "a": SPREADSHEET_NS,
    "r": DOCUMENT_REL_NS,
}

DRAWING_NS = {
    "xdr": SHEET_DRAWING_NS,
    "a": DRAWING_MAIN_NS,
    "r": DOCUMENT_REL_NS,
    "c": CHART_NS,
}

R_ID = f"{{{DOCUMENT_REL_NS}}}id"
R_EMBED = f"{{{DOCUMENT_REL_NS}}}embed"
R_LINK = f"{{{DOCUMENT_REL_NS}}}link"
X14AC_DY_DESCENT = f"{{{X14AC_NS}}}dyDescent"

WORKBOOK_PATH = "xl/workbook.xml"
CONTENT_TYPES_PATH = "[Content_Types].xml"
DEFAULT_STYLES_PATH = "xl/styles.xml"
DEFAULT_SHARED_STRINGS_PATH = "xl/sharedStrings.xml"
DEFAULT_THEME_PATH = "xl/theme/theme1.xml"
