from __future__ import annotations

import io
from pathlib import Path

import pytest

from stackfold.aggregate import aggregate
from stackfold.emit_folded import emit_folded, folded_lines, write_folded
from stackfold.errors import ProfileIOError
from stackfold.parse_folded import parse_folded


def test_folded_lines_root_to_leaf() -> None:
    profile = {("a", "b", "c"): 5, ("a", "b", "d"): 3}
    assert "".join(folded_lines(profile)) == "a;b;c 5\na;b;d 3\n"


def test_emit_folded_to_stream() -> None:
    out = io.StringIO()
    emit_folded({("main", "call with space"): 1}, out)
    assert out.getvalue() == "main;call with space 1\n"


def test_write_folded_round_trip(tmp_path: Path) -> None:
    profile = {("main", "do work", "leaf"): 7, ("main",): 0, ("other",): 42}
    p = tmp_path / "out.folded"
    write_folded(profile, str(p))
    assert aggregate(parse_folded(str(p))) == profile
    assert list(aggregate(parse_folded(str(p)))) == list(profile)


def test_write_folded_to_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ProfileIOError, match="failed to write folded stacks"):
        write_folded({("a",): 1}, str(tmp_path / "missing" / "out.folded"))
