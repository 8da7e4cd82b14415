#!/usr/bin/env python3

import argparse
import logging
import sys
from stackfold.errors import ProfilingError, format_error_chain
from stackfold.parse_pprof import parse_pprof
from stackfold.pipeline import OutputType, convert


def run(filename, out):
    samples = parse_pprof(filename)
    convert(samples, OutputType.folded, out)
    print(f"Folded stacks written to {out}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Transform a pprof profile back to folded weighted stacks."
    )
    parser.add_argument("filename", type=str, help="The filename of the pprof profile")
    parser.add_argument(
        "-o",
        "--out",
        type=str,
        help="The output filename (folded stacks)",
        default="out.folded",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args.filename, args.out)
    except ProfilingError as e:
        print(f"\x1b[1;31merror:\x1b[0m {format_error_chain(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
