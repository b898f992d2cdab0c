from __future__ import annotations

from typing import Callable

from ..errors import IndexOutOfRangeError
from ..model import Font, ResolvedString, TextRun
from ..parser.namespaces import DEFAULT_SHARED_STRINGS_PATH
from ..parser.raw import RawFont, RawSharedStrings, RawStringItem

FontBuilder = Callable[[RawFont], Font]


def resolve_string_item(item: RawStringItem, font_builder: FontBuilder | None = None) -> ResolvedString:
    runs = [
        TextRun(
            text=run.text,
            font=font_builder(run.font) if font_builder is not None and run.font is not None else None,
        )
        for run in item.runs
    ]
    if item.text is not None and not runs:
        text = item.text
    else:
        text = (item.text or "") + "".join(run.text for run in runs)
    return ResolvedString(
        text=text,
        runs=runs,
        phonetic_runs=list(item.phonetic_runs),
        phonetic_properties=item.phonetic_properties,
    )


class SharedStringTable:
    """0-based, append-only view over the package's shared-strings part."""

    def __init__(
        self,
        raw: RawSharedStrings | None,
        font_builder: FontBuilder | None = None,
        part: str = DEFAULT_SHARED_STRINGS_PATH,
    ) -> None:
        self.present = raw is not None
        self.part = part
        self._items: list[RawStringItem] = list(raw.items) if raw is not None else []
        self._font_builder = font_builder
        self._resolved: dict[int, ResolvedString] = {}

    def __len__(self) -> int:
        return len(self._items)

    def get(self, index: int) -> ResolvedString:
        cached = self._resolved.get(index)
        if cached is not None:
            return cached
        if not 0 <= index < len(self._items):
            what = "shared string" if self.present else "shared string (package has no shared string table)"
            raise IndexOutOfRangeError(what, index, len(self._items), part=self.part)
        resolved = resolve_string_item(self._items[index], self._font_builder)
        self._resolved[index] = resolved
        return resolved

    def text(self, index: int) -> str:
        return self.get(index).text
