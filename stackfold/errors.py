class ProfilingError(Exception):
    """Base class for all the failures of a profiling run."""


class UpstreamBuildFailure(ProfilingError):
    """The program to profile could not be built."""


class MissingArtifact(ProfilingError):
    """The compiled program is not where we expect it to be."""

    def __init__(self, path, hint=""):
        self.path = path
        self.hint = hint
        msg = f"package has not been compiled, file does not exist: {path}"
        if hint:
            msg += f"; {hint}"
        super().__init__(msg)


class ProgramPanicked(ProfilingError):
    """The instrumented run terminated with a panic instead of returning."""

    def __init__(self, values, decoded):
        self.values = list(values)
        self.decoded = list(decoded)
        super().__init__(f"panicked with [{', '.join(self.decoded)}]")


class InvalidSampleFormat(ProfilingError):
    """A sample line does not have the `<stack> <weight>` shape."""

    def __init__(self, msg, line):
        self.msg = msg
        self.line = line
        super().__init__(f"{msg}: `{line}`")


class MalformedStack(InvalidSampleFormat):
    """A sample line fed to the binary encoder cannot be split."""


class EncodingError(ProfilingError):
    """The profile serialization library rejected the data."""


class ProfileIOError(ProfilingError):
    """Reading the input or writing the output failed."""


class ViewerError(ProfilingError):
    """The external viewer could not be launched."""


def format_error_chain(err):
    """Renders `err` and its causes, outermost first, joined by ': '."""
    parts = []
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        text = str(err) or type(err).__name__
        if not parts or parts[-1] != text:
            parts.append(text)
        err = err.__cause__
    return ": ".join(parts)
