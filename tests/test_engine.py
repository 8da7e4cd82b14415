from __future__ import annotations

import sys
from pathlib import Path

import pytest

from stackfold import engine
from stackfold.dto import RunResult
from stackfold.errors import MissingArtifact, ProgramPanicked, UpstreamBuildFailure


class FakeEngine:
    def __init__(self, result: RunResult) -> None:
        self.result = result
        self.calls: list[tuple[str, list[int]]] = []

    def run(self, program_path: str, program_args: list[int]) -> RunResult:
        self.calls.append((program_path, program_args))
        return self.result


def test_decode_short_string() -> None:
    assert engine.decode_short_string(int.from_bytes(b"Out of gas", "big")) == "Out of gas"
    assert engine.decode_short_string(0) == ""
    assert engine.decode_short_string(1) is None
    assert engine.decode_short_string(int.from_bytes(b"ab\x00c", "big")) is None
    assert engine.decode_short_string(-5) is None


def test_decode_panic_values_falls_back_to_numbers() -> None:
    values = [int.from_bytes(b"assert", "big"), 2]
    assert engine.decode_panic_values(values) == ["assert", "2"]


def test_check_run_result_panics() -> None:
    with pytest.raises(ProgramPanicked) as exc:
        engine.check_run_result(RunResult(panic_values=[1, 2]))
    assert "1, 2" in str(exc.value)
    assert exc.value.values == [1, 2]


def test_check_run_result_passes_normal_runs() -> None:
    engine.check_run_result(RunResult(samples=[(("a",), 1)]))


def test_locate_artifact(tmp_path: Path) -> None:
    artifact = tmp_path / "dev" / "pkg.sierra.json"
    artifact.parent.mkdir()
    artifact.write_text("{}")
    assert engine.locate_artifact(str(tmp_path), "dev", "pkg") == str(artifact)


def test_locate_artifact_missing(tmp_path: Path) -> None:
    with pytest.raises(MissingArtifact, match=r"pkg\.sierra\.json.*\[lib\]"):
        engine.locate_artifact(str(tmp_path), "dev", "pkg")


def test_run_build_failure() -> None:
    with pytest.raises(UpstreamBuildFailure, match="exit status 3"):
        engine.run_build([sys.executable, "-c", "raise SystemExit(3)"])


def test_run_build_missing_command(tmp_path: Path) -> None:
    with pytest.raises(UpstreamBuildFailure, match="not found"):
        engine.run_build([str(tmp_path / "no-such-build-tool")])


def test_profile_program_returns_samples(tmp_path: Path) -> None:
    program = tmp_path / "pkg.sierra.json"
    program.write_text("{}")
    fake = FakeEngine(RunResult(samples=[(("main", "f"), 3)]))
    assert engine.profile_program(fake, str(program), [7, 8]) == [(("main", "f"), 3)]
    assert fake.calls == [(str(program), [7, 8])]


def test_profile_program_panics(tmp_path: Path) -> None:
    program = tmp_path / "pkg.sierra.json"
    program.write_text("{}")
    fake = FakeEngine(RunResult(panic_values=[1, 2]))
    with pytest.raises(ProgramPanicked, match=r"panicked with \[1, 2\]"):
        engine.profile_program(fake, str(program))


def test_profile_program_missing_artifact_skips_run(tmp_path: Path) -> None:
    fake = FakeEngine(RunResult())
    with pytest.raises(MissingArtifact):
        engine.profile_program(fake, str(tmp_path / "pkg.sierra.json"))
    assert fake.calls == []
