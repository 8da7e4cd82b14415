import gzip
import logging
import time
from google.protobuf.message import EncodeError
import stackfold.profile_proto as pb
from stackfold.dto import SampleRecord
from stackfold.errors import EncodingError, ProfileIOError

logger = logging.getLogger(__name__)

MAIN_THREAD_NAME = "main"
MAIN_THREAD_ID = 0


def sample_records(profile, timestamp=None, thread_name=MAIN_THREAD_NAME):
    """Yields one sample record per stack, frames reversed to leaf first."""
    if timestamp is None:
        timestamp = time.time_ns()
    for stack, weight in profile.items():
        yield SampleRecord(
            frames=list(reversed(stack)),
            weight=weight,
            thread_name=thread_name,
            thread_id=MAIN_THREAD_ID,
            timestamp=timestamp,
        )


class PprofWriter:
    """Knows how to write a gzipped pprof profile file."""

    def __init__(self, time_nanos=None):
        self._profile = pb.Profile()
        self._strings = {}
        self._locations = {}  # frame name -> location id
        self._string("")

        self._samples_type = self._value_type("samples", "count")
        self._profile.sample_type.append(self._samples_type)
        self._profile.period_type.CopyFrom(self._samples_type)
        self._profile.period = 1
        self._profile.time_nanos = time.time_ns() if time_nanos is None else time_nanos

    def add_sample(self, r: SampleRecord):
        """Adds a sample, interning its frame names."""
        sample = self._profile.sample.add()
        for name in r.frames:
            sample.location_id.append(self._location_id(name))
        try:
            sample.value.append(r.weight)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"sample weight out of range: {r.weight}") from e

        label = sample.label.add()
        label.key = self._string("thread")
        label.str = self._string(r.thread_name)
        label = sample.label.add()
        label.key = self._string("thread_id")
        label.num = r.thread_id
        label = sample.label.add()
        label.key = self._string("timestamp")
        label.num = r.timestamp
        label.num_unit = self._string("nanoseconds")

    def serialize(self):
        """Returns the uncompressed profile message."""
        try:
            return self._profile.SerializeToString()
        except (EncodeError, ValueError) as e:
            raise EncodingError("failed to serialize pprof data") from e

    def write(self, filename):
        """Writes the gzip-compressed profile to a file."""
        data = self.serialize()
        try:
            with open(filename, "wb") as f:
                with gzip.GzipFile(fileobj=f, mode="wb") as gz:
                    gz.write(data)
        except OSError as e:
            raise ProfileIOError(f"failed to write pprof data to {filename}") from e
        logger.debug(
            "wrote %d samples (%d bytes uncompressed) to %s",
            len(self._profile.sample),
            len(data),
            filename,
        )

    def _string(self, s):
        if s not in self._strings:
            self._strings[s] = len(self._profile.string_table)
            self._profile.string_table.append(s)
        return self._strings[s]

    def _value_type(self, type, unit):
        return pb.ValueType(type=self._string(type), unit=self._string(unit))

    def _location_id(self, name):
        """Returns the location of a frame, adding its function on first use."""
        if name in self._locations:
            return self._locations[name]

        id = len(self._locations) + 1
        function = self._profile.function.add()
        function.id = id
        function.name = self._string(name)
        function.system_name = function.name
        location = self._profile.location.add()
        location.id = id
        location.line.add().function_id = id
        self._locations[name] = id
        return id


def write_pprof(profile, filename, timestamp=None):
    """Encodes an aggregated profile as a gzipped pprof file."""
    if timestamp is None:
        timestamp = time.time_ns()
    writer = PprofWriter(time_nanos=timestamp)
    for record in sample_records(profile, timestamp):
        writer.add_sample(record)
    writer.write(filename)
