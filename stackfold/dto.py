from dataclasses import dataclass, field

# A call stack is a tuple of frame names, root first.
CallStack = tuple[str, ...]


@dataclass
class SampleRecord:
    """Describes one sample of the binary profile; frames are leaf first."""

    frames: list[str]
    weight: int
    thread_name: str
    thread_id: int
    timestamp: int


@dataclass
class RunResult:
    """Describes the outcome of running the instrumented program."""

    samples: list[tuple[CallStack, int]] = field(default_factory=list)
    panic_values: list[int] | None = None

    @property
    def panicked(self):
        return self.panic_values is not None
