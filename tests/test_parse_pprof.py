from __future__ import annotations

import gzip
from pathlib import Path

import pytest

import stackfold.profile_proto as pb
from stackfold.errors import EncodingError, ProfileIOError
from stackfold.parse_pprof import parse_pprof, parse_pprof_bytes


def _profile_with_inlined_frames():
    profile = pb.Profile(string_table=["", "main", "inlined", "callee"])
    profile.function.add(id=1, name=1)
    profile.function.add(id=2, name=2)
    profile.function.add(id=3, name=3)
    # Location 1 holds `inlined` folded into `main`; innermost line first.
    location = profile.location.add(id=1)
    location.line.add(function_id=2)
    location.line.add(function_id=1)
    location = profile.location.add(id=2)
    location.line.add(function_id=3)
    profile.sample.add(location_id=[2, 1], value=[9, 900])
    return profile


def test_parse_uncompressed_message_with_inlined_frames() -> None:
    data = _profile_with_inlined_frames().SerializeToString()
    assert list(parse_pprof_bytes(data)) == [(("main", "inlined", "callee"), 9)]


def test_parse_gzipped_file(tmp_path: Path) -> None:
    p = tmp_path / "in.pb.gz"
    p.write_bytes(gzip.compress(_profile_with_inlined_frames().SerializeToString()))
    assert list(parse_pprof(str(p))) == [(("main", "inlined", "callee"), 9)]


def test_location_without_lines_uses_address() -> None:
    profile = pb.Profile(string_table=[""])
    profile.location.add(id=1, address=0x1000)
    profile.sample.add(location_id=[1], value=[1])
    assert list(parse_pprof_bytes(profile.SerializeToString())) == [(("0x1000",), 1)]


def test_unknown_location_fails() -> None:
    profile = pb.Profile(string_table=[""])
    profile.sample.add(location_id=[5], value=[1])
    with pytest.raises(EncodingError, match="unknown location id 5"):
        list(parse_pprof_bytes(profile.SerializeToString()))


def test_string_index_out_of_range_fails() -> None:
    profile = pb.Profile(string_table=[""])
    profile.function.add(id=1, name=4)
    with pytest.raises(EncodingError, match="string index out of range"):
        list(parse_pprof_bytes(profile.SerializeToString()))


def test_garbage_fails_to_decode() -> None:
    with pytest.raises(EncodingError):
        list(parse_pprof_bytes(b"\x1f\x8bnot really gzip"))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProfileIOError):
        parse_pprof(str(tmp_path / "missing.pb.gz"))
