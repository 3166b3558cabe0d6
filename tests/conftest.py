from __future__ import annotations

from pathlib import Path

import pytest

AND_ROWS = [
    ("a", 0, 0, 0),
    ("b", 0, 1, 0),
    ("c", 1, 0, 0),
    ("d", 1, 1, 1),
]


def _write_rows(path: Path, rows, header: str = "# id,inputs...,outputs...") -> Path:
    lines = [header, ""]
    lines.extend(",".join(str(v) for v in row) for row in rows)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def write_rows(tmp_path):
    def _factory(name: str, rows) -> Path:
        return _write_rows(tmp_path / name, rows)

    return _factory


@pytest.fixture
def and_file(tmp_path):
    """AND truth table, every row repeated twice."""

    rows = [(f"{row[0]}{i}", *row[1:]) for i in range(2) for row in AND_ROWS]
    return _write_rows(tmp_path / "and.csv", rows)
