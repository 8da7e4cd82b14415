import re
import sys
from stackfold.errors import InvalidSampleFormat, ProfileIOError

# ASCII digits only, with an optional sign.
_COUNT = re.compile(r"[+-]?[0-9]+")


def _lines_in_file(filename):
    try:
        if filename == "-":
            yield from sys.stdin
            return
        with open(filename, "r", encoding="utf-8") as file:
            yield from file
    except (OSError, UnicodeDecodeError) as e:
        raise ProfileIOError(f"failed to read profile file at {filename}") from e


def _content_lines(lines):
    for line in lines:
        line = line.rstrip("\r\n")
        if line.strip() == "":
            continue
        yield line


def split_line(line, error=InvalidSampleFormat):
    """Splits a folded line at its last space into (stack, weight)."""
    stack, sep, count = line.rpartition(" ")
    if not sep:
        raise error("invalid line format", line)
    if not _COUNT.fullmatch(count):
        raise error("failed to parse sample count", line)
    weight = int(count)
    if weight < 0:
        raise error("negative sample count", line)
    return tuple(stack.split(";")), weight


def _lines_to_samples(lines, error):
    for line in lines:
        yield split_line(line, error)


def parse_folded_lines(lines, error=InvalidSampleFormat):
    """Yields (stack, weight) pairs for an iterable of folded-stack lines."""
    r = _content_lines(lines)
    r = _lines_to_samples(r, error)
    return r


def parse_folded(filename, error=InvalidSampleFormat):
    """Yields (stack, weight) pairs for a folded-stack file; '-' is stdin."""
    r = _lines_in_file(filename)
    return parse_folded_lines(r, error)
