"""Boundary with the program that produces the weighted samples.

Building the program and running it under instrumentation happen outside
this package. They are reached through an `ExecutionEngine`, which only has
to turn a compiled program and its arguments into a `RunResult`.
"""

import logging
import os
import subprocess
from typing import Protocol
from stackfold.dto import RunResult
from stackfold.errors import MissingArtifact, ProgramPanicked, UpstreamBuildFailure

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".sierra.json"


class ExecutionEngine(Protocol):
    def run(self, program_path: str, program_args: list[int]) -> RunResult:
        """Runs the program's entry point and collects weighted stacks."""
        ...


def decode_short_string(value):
    """Decodes a value packing ASCII characters, most significant byte first.

    Returns None when the bytes are not printable text.
    """
    if value < 0:
        return None
    data = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
    chars = []
    is_end = False
    for byte in data:
        if byte == 0:
            is_end = True
        elif is_end:
            return None
        elif 0x20 <= byte <= 0x7E or byte in b"\t\n\x0c\r":
            chars.append(chr(byte))
        else:
            return None
    return "".join(chars)


def decode_panic_values(values):
    """Renders panic payload values as short strings, or numbers when not text."""
    r = []
    for v in values:
        s = decode_short_string(v)
        r.append(s if s is not None else str(v))
    return r


def check_run_result(result: RunResult):
    """Raises ProgramPanicked if the run did not complete normally."""
    if result.panicked:
        values = result.panic_values
        raise ProgramPanicked(values, decode_panic_values(values))


def run_build(command):
    """Runs the host build command, failing on a non-zero exit status."""
    logger.info("building: %s", " ".join(command))
    try:
        subprocess.run(command, check=True)
    except FileNotFoundError as e:
        raise UpstreamBuildFailure(f"build command not found: {command[0]}") from e
    except subprocess.CalledProcessError as e:
        raise UpstreamBuildFailure(
            f"build command failed with exit status {e.returncode}"
        ) from e


def locate_artifact(target_dir, profile, package):
    """Returns the path of a package's compiled program."""
    path = os.path.join(target_dir, profile, f"{package}{ARTIFACT_SUFFIX}")
    if not os.path.exists(path):
        raise MissingArtifact(
            path, hint="make sure you have a `[lib]` target in Scarb.toml"
        )
    return path


def profile_program(engine, program_path, program_args=(), build_command=None):
    """Builds (optionally) and runs a program, returning its weighted stacks."""
    if build_command:
        run_build(build_command)
    if not os.path.exists(program_path):
        raise MissingArtifact(program_path)

    result = engine.run(program_path, list(program_args))
    check_run_result(result)
    logger.debug("run produced %d samples", len(result.samples))
    return result.samples
