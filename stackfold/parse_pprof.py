import gzip
from google.protobuf.message import DecodeError
import stackfold.profile_proto as pb
from stackfold.errors import EncodingError, ProfileIOError

_GZIP_MAGIC = b"\x1f\x8b"


def _read_file(filename):
    try:
        with open(filename, "rb") as f:
            return f.read()
    except OSError as e:
        raise ProfileIOError(f"failed to read pprof file at {filename}") from e


def _decompress(data):
    if not data.startswith(_GZIP_MAGIC):
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError) as e:
        raise EncodingError("failed to decompress pprof data") from e


def _decode(data):
    profile = pb.Profile()
    try:
        profile.ParseFromString(data)
    except DecodeError as e:
        raise EncodingError("failed to decode pprof data") from e
    return profile


def _frame_names(profile):
    """Maps every location id to its function names, innermost first."""
    strings = profile.string_table

    def _get_string(index):
        if index < 0 or index >= len(strings):
            raise EncodingError(f"string index out of range: {index}")
        return strings[index]

    functions = {f.id: _get_string(f.name) for f in profile.function}
    names = {}
    for location in profile.location:
        if not location.line:
            names[location.id] = [f"0x{location.address:x}"]
            continue
        names[location.id] = []
        for line in location.line:
            if line.function_id not in functions:
                raise EncodingError(f"unknown function id {line.function_id}")
            names[location.id].append(functions[line.function_id])
    return names


def _profile_to_samples(profile):
    names = _frame_names(profile)
    for sample in profile.sample:
        frames = []
        for location_id in sample.location_id:
            if location_id not in names:
                raise EncodingError(f"unknown location id {location_id}")
            frames.extend(names[location_id])
        frames.reverse()
        weight = sample.value[0] if sample.value else 0
        yield tuple(frames), weight


def parse_pprof_bytes(data):
    """Yields root-first (stack, weight) pairs for a pprof message."""
    r = _decompress(data)
    r = _decode(r)
    return _profile_to_samples(r)


def parse_pprof(filename):
    """Yields root-first (stack, weight) pairs for a pprof file."""
    return parse_pprof_bytes(_read_file(filename))
