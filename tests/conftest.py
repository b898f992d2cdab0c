from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from tests.helpers import build_xlsx


@pytest.fixture()
def make_xlsx(tmp_path: Path) -> Callable[..., Path]:
    counter = iter(range(1, 1000))

    def _make(**kwargs) -> Path:
        return build_xlsx(tmp_path / f"book{next(counter)}.xlsx", **kwargs)

    return _make
