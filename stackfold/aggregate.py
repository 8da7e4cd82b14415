import csv
import logging
from stackfold.errors import InvalidSampleFormat, ProfileIOError

logger = logging.getLogger(__name__)

# Characters that would make the folded encoding ambiguous.
_RESERVED = (";", "\n", "\r")


def _check_sample(stack, weight):
    line = f"{';'.join(stack)} {weight}"
    if not stack:
        raise InvalidSampleFormat("empty call stack", line)
    for frame in stack:
        if not isinstance(frame, str):
            raise InvalidSampleFormat(f"frame name is not a string: {frame!r}", line)
        if any(c in frame for c in _RESERVED):
            raise InvalidSampleFormat(f"frame name contains a delimiter: {frame!r}", line)
    if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
        raise InvalidSampleFormat(f"weight must be a non-negative integer: {weight!r}", line)


def aggregate(samples):
    """Sums the weights of identical call stacks.

    The result maps each distinct stack (a tuple of frames, root first) to
    its total weight. Iteration order is the order in which each stack was
    first seen.
    """
    profile = {}
    count = 0
    for stack, weight in samples:
        stack = tuple(stack)
        _check_sample(stack, weight)
        profile[stack] = profile.get(stack, 0) + weight
        count += 1
    logger.debug("aggregated %d samples into %d stacks", count, len(profile))
    return profile


def adjust_weights(profile, cost_table=None):
    """Returns a copy of `profile` with fixed per-frame costs removed.

    `cost_table` maps a frame name to a cost that is subtracted once from
    every stack whose leaf is that frame; weights never go below zero.
    The set of stacks is never changed.
    """
    if not cost_table:
        return dict(profile)

    adjusted = {}
    for stack, weight in profile.items():
        cost = cost_table.get(stack[-1], 0)
        adjusted[stack] = max(weight - cost, 0)

    assert adjusted.keys() == profile.keys()
    return adjusted


def _content_lines(lines):
    for line in lines:
        line = line.strip()
        if line == "":
            continue
        if line.startswith("#"):
            continue
        yield line


def _csv_rows(lines):
    return csv.reader(
        lines, delimiter=",", quotechar='"', skipinitialspace=True, strict=True
    )


def _rows_to_costs(rows):
    table = {}
    for row in rows:
        if len(row) != 2:
            raise InvalidSampleFormat("cost table rows expect 2 fields", ",".join(row))
        try:
            cost = int(row[1])
        except ValueError as e:
            raise InvalidSampleFormat("failed to parse cost", ",".join(row)) from e
        table[row[0]] = cost
    return table


def load_cost_table(filename):
    """Reads a `frame,cost` CSV file into a dictionary."""
    try:
        with open(filename, "r", encoding="utf-8") as file:
            r = _content_lines(file)
            r = _csv_rows(r)
            return _rows_to_costs(r)
    except csv.Error as e:
        raise InvalidSampleFormat("malformed cost table", filename) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ProfileIOError(f"failed to read cost table at {filename}") from e
