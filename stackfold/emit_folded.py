import logging
from stackfold.errors import ProfileIOError

logger = logging.getLogger(__name__)


def folded_lines(profile):
    """Yields one `f0;f1;...;fn weight` line per stack, in profile order."""
    for stack, weight in profile.items():
        yield f"{';'.join(stack)} {weight}\n"


def emit_folded(profile, stream):
    """Writes the folded lines of `profile` to a text stream."""
    for line in folded_lines(profile):
        stream.write(line)


def write_folded(profile, filename):
    """Writes `profile` as a UTF-8 folded-stack file."""
    try:
        with open(filename, "w", encoding="utf-8", newline="\n") as f:
            emit_folded(profile, f)
    except OSError as e:
        raise ProfileIOError(f"failed to write folded stacks to {filename}") from e
    logger.debug("wrote %d folded stacks to %s", len(profile), filename)
