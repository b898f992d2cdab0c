from __future__ import annotations

import logging
from typing import Callable

from ..errors import DecodeError, ErrorCode
from ..model import Table, TableColumn, TableStyle
from ..parser.raw import RawTable, RawWorksheet
from ..parser.relationships import RelationshipResolver
from ..parser.utils import parse_range_ref

logger = logging.getLogger(__name__)

TableLoader = Callable[[str], RawTable]


def build_table(raw: RawTable, path: str, default_style: str | None = None) -> Table:
    try:
        dimension = parse_range_ref(raw.ref)
    except ValueError as exc:
        raise DecodeError(f"Table {raw.display_name!r} has invalid ref", part=path, code=ErrorCode.MALFORMED_VALUE) from exc

    auto_filter = None
    if raw.auto_filter_ref:
        try:
            auto_filter = parse_range_ref(raw.auto_filter_ref)
        except ValueError:
            logger.warning("Ignoring invalid autoFilter ref %r in %s", raw.auto_filter_ref, path)

    style: TableStyle | None = None
    info = raw.style_info
    if info is not None and info.name:
        style = TableStyle(
            name=info.name,
            show_first_column=info.show_first_column,
            show_last_column=info.show_last_column,
            show_row_stripes=info.show_row_stripes,
            show_column_stripes=info.show_column_stripes,
        )
    elif default_style:
        style = TableStyle(
            name=default_style,
            show_first_column=info.show_first_column if info else False,
            show_last_column=info.show_last_column if info else False,
            show_row_stripes=info.show_row_stripes if info else False,
            show_column_stripes=info.show_column_stripes if info else False,
            is_default=True,
        )

    return Table(
        table_id=raw.id,
        name=raw.name,
        display_name=raw.display_name,
        dimension=dimension,
        path=path,
        columns=[
            TableColumn(
                id=column.id,
                name=column.name,
                formula=column.calculated_formula,
                totals_row_function=column.totals_row_function,
                totals_row_label=column.totals_row_label,
            )
            for column in raw.columns
        ],
        header_row_count=raw.header_row_count,
        totals_row_count=raw.totals_row_count,
        style=style,
        auto_filter=auto_filter,
    )


def table_paths_for(worksheet: RawWorksheet, resolver: RelationshipResolver) -> list[str]:
    paths: list[str] = []
    for rel_id in worksheet.table_rel_ids:
        rel = resolver.resolve(worksheet.path, rel_id)
        if rel is None:
            continue
        if rel.type_name != "table" or rel.is_external:
            logger.warning("Relationship %s of %s is not a table part", rel_id, worksheet.path)
            continue
        paths.append(rel.target)
    return paths


def tables_for(
    worksheet: RawWorksheet,
    resolver: RelationshipResolver,
    load_table: TableLoader,
    default_style: str | None = None,
) -> list[Table]:
    return [build_table(load_table(path), path, default_style) for path in table_paths_for(worksheet, resolver)]
