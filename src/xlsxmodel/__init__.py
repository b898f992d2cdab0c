from .api import load_workbook_summary, open_xlsx
from .errors import ErrorCode, XlsxError
from .model import ReaderOptions
from .parser.ooxml import OOXMLWorkbookReader

__all__ = [
    "ErrorCode",
    "OOXMLWorkbookReader",
    "ReaderOptions",
    "XlsxError",
    "load_workbook_summary",
    "open_xlsx",
]
