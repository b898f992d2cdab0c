from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .api import load_workbook_summary, open_xlsx
from .errors import XlsxError
from .model import ReaderOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dump the resolved model of an .xlsx package as JSON")
    parser.add_argument("input", type=Path, help="Input .xlsx file")
    parser.add_argument("-o", "--output", type=Path, help="Output path (default: stdout)")
    parser.add_argument("--sheet", help="Only dump the named sheet")
    parser.add_argument("--cells", action="store_true", help="Include materialized cells")
    parser.add_argument("--tables", action="store_true", help="Include table definitions")
    parser.add_argument("--drawings", action="store_true", help="Include resolved drawings")
    parser.add_argument("--raw", metavar="PART", help="Dump one package part as a generic element tree")
    parser.add_argument(
        "--unit",
        choices=["emu", "pt", "px", "in", "cm"],
        default="pt",
        help="Unit for absolute drawing positions",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    options = ReaderOptions(enable_drawings=args.drawings, drawing_unit=args.unit)
    try:
        if args.raw:
            with open_xlsx(args.input, options=options) as reader:
                payload = reader.raw_part(args.raw)
        else:
            payload = load_workbook_summary(
                args.input,
                options=options,
                sheet=args.sheet,
                cells=args.cells,
                tables=args.tables,
                drawings=args.drawings,
            )
    except XlsxError as exc:
        print(json.dumps(exc.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1

    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output is None:
        print(text)
    else:
        args.output.write_text(text + "\n", encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
