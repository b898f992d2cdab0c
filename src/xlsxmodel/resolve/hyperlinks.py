from __future__ import annotations

from urllib.parse import parse_qs, unquote, urlsplit

from ..model import DefinedName, Hyperlink, RangeRef, Relationship
from ..parser.utils import parse_any_ref, parse_sheet_scoped_range, split_sheet_ref


def parse_mailto(url: str) -> tuple[str, str | None]:
    parts = urlsplit(url)
    address = unquote(parts.path)
    subjects = parse_qs(parts.query).get("subject")
    return address, (subjects[0] if subjects else None)


def find_defined_name(
    name: str,
    defined_names: list[DefinedName],
    local_sheet_id: int | None = None,
) -> DefinedName | None:
    wanted = name.lower()
    global_match: DefinedName | None = None
    for dn in defined_names:
        if dn.name.lower() != wanted:
            continue
        if dn.local_sheet_id is None:
            global_match = global_match or dn
        elif dn.local_sheet_id == local_sheet_id:
            return dn
    return global_match


def resolve_location(
    location: str,
    defined_names: list[DefinedName],
    local_sheet_id: int | None = None,
) -> tuple[str | None, RangeRef | None]:
    """Split an in-workbook location into (sheet name, range)."""
    value = location.strip().lstrip("#")
    if "!" not in value:
        dn = find_defined_name(value, defined_names, local_sheet_id)
        if dn is not None:
            value = dn.value.lstrip("=")
    sheet_name, payload = split_sheet_ref(value)
    try:
        return sheet_name, parse_any_ref(payload)
    except ValueError:
        refs = parse_sheet_scoped_range(value)
        return sheet_name, (refs[0] if refs else None)


def external_hyperlink(
    target: str,
    *,
    display: str | None = None,
    tooltip: str | None = None,
    location: str | None = None,
) -> Hyperlink:
    if target.lower().startswith("mailto:"):
        email, subject = parse_mailto(target)
        return Hyperlink(
            kind="email",
            target=target,
            email=email,
            subject=subject,
            display=display,
            tooltip=tooltip,
            location=location,
        )
    return Hyperlink(kind="external", target=target, display=display, tooltip=tooltip, location=location)


def resolve_hyperlink(
    rel: Relationship | None,
    location: str | None,
    *,
    defined_names: list[DefinedName],
    local_sheet_id: int | None = None,
    display: str | None = None,
    tooltip: str | None = None,
) -> Hyperlink | None:
    if rel is not None:
        if rel.is_external:
            return external_hyperlink(rel.target, display=display, tooltip=tooltip, location=location)
        return Hyperlink(kind="internal", target=rel.target, location=location, display=display, tooltip=tooltip)
    if location:
        sheet_name, rng = resolve_location(location, defined_names, local_sheet_id)
        return Hyperlink(
            kind="internal",
            location=location,
            sheet_name=sheet_name,
            range=rng,
            display=display,
            tooltip=tooltip,
        )
    return None
