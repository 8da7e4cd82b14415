import logging
import os
import pathlib
import subprocess
import webbrowser
from enum import Enum
from stackfold.aggregate import adjust_weights, aggregate
from stackfold.emit_folded import write_folded
from stackfold.emit_pprof import write_pprof
from stackfold.emit_svg import write_svg
from stackfold.engine import profile_program
from stackfold.errors import ViewerError

logger = logging.getLogger(__name__)


class OutputType(Enum):
    folded = "folded"
    flamegraph = "flamegraph"
    pprof = "pprof"


DEFAULT_OUTPUT = {
    OutputType.folded: "out.folded",
    OutputType.flamegraph: "out.svg",
    OutputType.pprof: "out.pb.gz",
}

PPROF_HTTP_ADDRESS = ":8000"


def convert(samples, output_type, filename, cost_table=None, timestamp=None):
    """Aggregates the samples and writes them in the requested format.

    The samples are fully consumed before the output file is opened, so an
    invalid sample never leaves a partial output behind.
    """
    profile = aggregate(samples)
    profile = adjust_weights(profile, cost_table)
    logger.info("writing %d stacks as %s to %s", len(profile), output_type.value, filename)

    if output_type == OutputType.folded:
        write_folded(profile, filename)
    elif output_type == OutputType.flamegraph:
        write_svg(profile, filename)
    elif output_type == OutputType.pprof:
        write_pprof(profile, filename, timestamp)
    else:
        raise ValueError(f"Unknown output type {output_type}")
    return profile


def profile_to_file(
    engine,
    program_path,
    program_args,
    output_type,
    filename,
    cost_table=None,
    build_command=None,
    timestamp=None,
):
    """Runs a program through `engine` and writes its profile.

    A panicking run raises ProgramPanicked before anything is written.
    """
    samples = profile_program(engine, program_path, program_args, build_command)
    return convert(samples, output_type, filename, cost_table, timestamp)


def open_output(output_type, filename):
    """Shows the written file: in a browser, or through a pprof web server."""
    if output_type == OutputType.flamegraph:
        url = pathlib.Path(os.path.abspath(filename)).as_uri()
        if not webbrowser.open(url):
            raise ViewerError(f"failed to open {url} in a browser")
    elif output_type == OutputType.pprof:
        command = ["go", "tool", "pprof", f"-http={PPROF_HTTP_ADDRESS}", filename]
        try:
            subprocess.run(command, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise ViewerError("failed to start pprof server") from e
    elif output_type == OutputType.folded:
        raise ViewerError("folded stacks have no viewer; use the flamegraph output type")
    else:
        raise ValueError(f"Unknown output type {output_type}")
