#!/usr/bin/env python3

import argparse
import logging
import sys
from stackfold.aggregate import load_cost_table
from stackfold.errors import (
    InvalidSampleFormat,
    MalformedStack,
    ProfilingError,
    format_error_chain,
)
from stackfold.parse_folded import parse_folded
from stackfold.pipeline import DEFAULT_OUTPUT, OutputType, convert, open_output


def run(filename, out, output_type, cost_table_file=None, open_viewer=False):
    # The binary encoder reports unsplittable lines as malformed stacks.
    error = MalformedStack if output_type == OutputType.pprof else InvalidSampleFormat
    samples = parse_folded(filename, error)
    cost_table = load_cost_table(cost_table_file) if cost_table_file else None

    convert(samples, output_type, out, cost_table)
    print(f"Profile written to {out}")

    if open_viewer:
        open_output(output_type, out)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Transform folded weighted stacks to a flamegraph or pprof profile."
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        default="-",
        help="The filename of the folded stacks ('-' reads stdin)",
    )
    parser.add_argument(
        "-o",
        "--out",
        type=str,
        help="The output filename (default depends on the output type)",
    )
    parser.add_argument(
        "-t",
        "--output-type",
        type=str,
        choices=[t.value for t in OutputType],
        default=OutputType.folded.value,
        help="The output format: folded stacks, flamegraph SVG or pprof",
    )
    parser.add_argument(
        "--cost-table",
        type=str,
        help="CSV file of `frame,cost` rows subtracted from leaf frames",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the result: flamegraph in a browser, pprof with `go tool pprof -http`",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output_type = OutputType(args.output_type)
    out = args.out or DEFAULT_OUTPUT[output_type]

    try:
        run(args.filename, out, output_type, args.cost_table, args.open)
    except ProfilingError as e:
        print(f"\x1b[1;31merror:\x1b[0m {format_error_chain(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
