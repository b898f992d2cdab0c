from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from ..errors import DecodeError, ErrorCode
from ..model import NumberFormat

logger = logging.getLogger(__name__)

BUILTIN_NUMFMTS: dict[int, str] = {
    0: "General",
    1: "0",
    2: "0.00",
    3: "#,##0",
    4: "#,##0.00",
    5: '"$"#,##0_);("$"#,##0)',
    6: '"$"#,##0_);[Red]("$"#,##0)',
    7: '"$"#,##0.00_);("$"#,##0.00)',
    8: '"$"#,##0.00_);[Red]("$"#,##0.00)',
    9: "0%",
    10: "0.00%",
    11: "0.00E+00",
    12: "# ?/?",
    13: "# ??/??",
    14: "m/d/yyyy",
    15: "d-mmm-yy",
    16: "d-mmm",
    17: "mmm-yy",
    18: "h:mm AM/PM",
    19: "h:mm:ss AM/PM",
    20: "h:mm",
    21: "h:mm:ss",
    22: "m/d/yyyy h:mm",
    37: "#,##0 ;(#,##0)",
    38: "#,##0 ;[Red](#,##0)",
    39: "#,##0.00;(#,##0.00)",
    40: "#,##0.00;[Red](#,##0.00)",
    41: '_(* #,##0_);_(* \\(#,##0\\);_(* "-"_);_(@_)',
    42: '_("$"* #,##0_);_("$"* \\(#,##0\\);_("$"* "-"_);_(@_)',
    43: '_(* #,##0.00_);_(* \\(#,##0.00\\);_(* "-"??_);_(@_)',
    44: '_("$"* #,##0.00_);_("$"* \\(#,##0.00\\);_("$"* "-"??_);_(@_)',
    45: "mm:ss",
    46: "[h]:mm:ss",
    47: "mmss.0",
    48: "##0.0E+0",
    49: "@",
}

MAX_BUILTIN_NUMFMT_ID = 163

_date_token_re = re.compile(r"[ymdhs]|AM/PM|A/P", re.IGNORECASE)
_bracket_re = re.compile(r"\[([^\]]*)\]")
_escape_re = re.compile(r"\\.|_.|\*.")
_elapsed_re = re.compile(r"^(h+|m+|s+)$", re.IGNORECASE)

EPOCH_1900 = datetime(1899, 12, 31)
EPOCH_1900_AFTER_LEAP_DAY = datetime(1899, 12, 30)
EPOCH_1904 = datetime(1904, 1, 1)


def resolve_number_format(fmt_id: int, explicit: dict[int, str]) -> NumberFormat:
    if 0 <= fmt_id <= MAX_BUILTIN_NUMFMT_ID and fmt_id in BUILTIN_NUMFMTS:
        code = BUILTIN_NUMFMTS[fmt_id]
    elif fmt_id in explicit:
        code = explicit[fmt_id]
    else:
        logger.warning("Number format %d is not defined, using General", fmt_id)
        return NumberFormat(id=fmt_id, code="General", is_date=False)
    return NumberFormat(id=fmt_id, code=code, is_date=is_date_format(code))


def _strip_quoted(fmt: str) -> str:
    out: list[str] = []
    in_quote = False
    for ch in fmt:
        if ch == '"':
            in_quote = not in_quote
            continue
        if not in_quote:
            out.append(ch)
    return "".join(out)


def _replace_bracket(match: re.Match[str]) -> str:
    content = match.group(1)
    if _elapsed_re.match(content):
        return content
    return ""


def is_date_format(fmt: str | None) -> bool:
    if not fmt or fmt.strip().lower() == "general":
        return False
    cleaned = _escape_re.sub("", _strip_quoted(fmt))
    primary = cleaned.split(";")[0]
    primary = _bracket_re.sub(_replace_bracket, primary)
    return bool(_date_token_re.search(primary))


def serial_to_datetime(serial: float, is_1904: bool = False) -> datetime | None:
    """Convert a serial day count to a datetime.

    In the 1900 system serial 60 is the non-existent 1900-02-29; it maps to
    1900-02-28 so that every later serial lands on its real calendar day.
    """
    if serial < 0:
        return None
    if is_1904:
        base = EPOCH_1904
    elif serial < 60:
        base = EPOCH_1900
    else:
        base = EPOCH_1900_AFTER_LEAP_DAY
    millis = round(serial * 86400 * 1000)
    try:
        return base + timedelta(milliseconds=millis)
    except OverflowError:
        logger.warning("Serial %s is outside the supported date range", serial)
        return None


def parse_iso_datetime(text: str) -> datetime:
    value = text.strip()
    if value.endswith("Z"):
        value = value[:-1]
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.combine(EPOCH_1900.date(), datetime.strptime(value, "%H:%M:%S").time())
    except ValueError as exc:
        raise DecodeError(f"Invalid ISO 8601 date value {text!r}", code=ErrorCode.MALFORMED_VALUE) from exc
