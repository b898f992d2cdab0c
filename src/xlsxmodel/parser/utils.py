from __future__ import annotations

import posixpath
import re
from xml.etree import ElementTree as ET

from ..model import RangeRef

CELL_RE = re.compile(r"^\$?([A-Z]+)\$?(\d+)$")
R1C1_RE = re.compile(r"^R(\d+)C(\d+)(?::R(\d+)C(\d+))?$", re.IGNORECASE)
SHEET_RANGE_RE = re.compile(r"^(?:'((?:[^']|'')+)'|([^!]+))!(.+)$")


def local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag


def col_to_index(col: str) -> int:
    letters = col.upper()
    if not letters.isalpha():
        raise ValueError(f"Invalid column: {col}")
    index = 0
    for char in letters:
        index = index * 26 + ord(char) - ord("A") + 1
    return index


def index_to_col(index: int) -> str:
    if index < 1:
        raise ValueError("Column index must be >= 1")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def coord_to_rowcol(coord: str) -> tuple[int, int]:
    match = CELL_RE.match(coord.strip().upper())
    if match is None:
        raise ValueError(f"Invalid coordinate: {coord}")
    return int(match.group(2)), col_to_index(match.group(1))


def rowcol_to_coord(row: int, col: int) -> str:
    if min(row, col) < 1:
        raise ValueError("row/col must be >= 1")
    return index_to_col(col) + str(row)


def format_range(start_row: int, start_col: int, end_row: int, end_col: int) -> str:
    start = rowcol_to_coord(start_row, start_col)
    if (start_row, start_col) == (end_row, end_col):
        return start
    return f"{start}:{rowcol_to_coord(end_row, end_col)}"


def make_range(start_row: int, start_col: int, end_row: int, end_col: int) -> RangeRef:
    sr, er = min(start_row, end_row), max(start_row, end_row)
    sc, ec = min(start_col, end_col), max(start_col, end_col)
    return RangeRef(ref=format_range(sr, sc, er, ec), start_row=sr, start_col=sc, end_row=er, end_col=ec)


def parse_range_ref(ref: str) -> RangeRef:
    """Parse ``A1`` or ``A1:B2`` (``$`` anchors ignored) into a normalized range."""
    first, sep, second = ref.strip().upper().partition(":")
    try:
        start = coord_to_rowcol(first)
        end = coord_to_rowcol(second) if sep else start
    except ValueError:
        raise ValueError(f"Invalid range reference: {ref}") from None
    return make_range(*start, *end)


def parse_r1c1_ref(ref: str) -> RangeRef:
    match = R1C1_RE.match(ref.strip())
    if not match:
        raise ValueError(f"Invalid R1C1 reference: {ref}")
    sr, sc = int(match.group(1)), int(match.group(2))
    if match.group(3) is None:
        er, ec = sr, sc
    else:
        er, ec = int(match.group(3)), int(match.group(4))
    return make_range(sr, sc, er, ec)


def parse_any_ref(ref: str) -> RangeRef:
    """Parse an A1 or R1C1 cell/range reference."""
    try:
        return parse_range_ref(ref)
    except ValueError:
        return parse_r1c1_ref(ref)


def split_sheet_ref(value: str) -> tuple[str | None, str]:
    raw = value.strip()
    match = SHEET_RANGE_RE.match(raw)
    if not match:
        return None, raw
    if match.group(1) is not None:
        return match.group(1).replace("''", "'"), match.group(3)
    return match.group(2), match.group(3)


def parse_sheet_scoped_range(value: str) -> list[RangeRef]:
    raw = value.strip()
    if not raw:
        return []

    _, payload = split_sheet_ref(raw)

    refs: list[RangeRef] = []
    for part in payload.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            refs.append(parse_any_ref(part))
        except ValueError:
            continue
    return refs


def resolve_target(base_path: str, target: str) -> str:
    """Resolve a relationship target against the part that owns it."""
    if target.startswith("/"):
        return posixpath.normpath(target).lstrip("/")
    return posixpath.normpath(posixpath.join(posixpath.dirname(base_path), target)).lstrip("/")


def rels_path_for(part_path: str) -> str:
    if "/" not in part_path:
        return f"_rels/{part_path}.rels"
    parent, file_name = part_path.rsplit("/", 1)
    return f"{parent}/_rels/{file_name}.rels"


def to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value in {"1", "true", "TRUE", "True", "on"}


def to_opt_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    return to_bool(value)


def to_int(value: str | None, default: int | None = None) -> int | None:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except ValueError:
            return default


def to_float(value: str | None, default: float | None = None) -> float | None:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def xml_to_dict(element: ET.Element) -> dict:
    """Generic dump of an element tree with namespaces stripped."""
    node: dict[str, object] = {
        "tag": local_name(element.tag),
        "attrs": {local_name(key): element.attrib[key] for key in sorted(element.attrib)},
    }
    if element.text and element.text.strip():
        node["text"] = element.text.strip()
    if len(element):
        node["children"] = [xml_to_dict(child) for child in element]
    return node
