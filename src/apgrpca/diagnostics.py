from __future__ import annotations
import os
from dataclasses import dataclass
from typing import TextIO, Union


@dataclass(frozen=True)
class IterationRecord:
    iteration: int
    rank: int
    cardinality: int
    stopping_criterion: float
    mu: float
    tau: float

    def format_line(self) -> str:
        return (
            f"Iteration {self.iteration}  rank(A)  {self.rank}  ||E||_0  {self.cardinality}"
            f"  Stopping Criterion   {self.stopping_criterion:.6g}"
        )


class DiagnosticSink:
    """Receives one record per iteration and a trailer when the solver stops."""

    def append(self, record: IterationRecord) -> None:
        raise NotImplementedError

    def finalize(self, line_search: bool, continuation: bool) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> DiagnosticSink:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class NullSink(DiagnosticSink):
    def append(self, record: IterationRecord) -> None:
        pass

    def finalize(self, line_search: bool, continuation: bool) -> None:
        pass


class StreamSink(DiagnosticSink):
    """Line-oriented text output. Closes the stream only if it owns it."""

    def __init__(self, stream: TextIO, owns_stream: bool = False):
        self.stream = stream
        self.owns_stream = owns_stream
        self.closed = False

    def append(self, record: IterationRecord) -> None:
        self.stream.write(record.format_line() + "\n")

    def finalize(self, line_search: bool, continuation: bool) -> None:
        self.stream.write("\n\n")
        self.stream.write(f"Line search {'ON' if line_search else 'OFF'}\n")
        self.stream.write(f"Continuation {'ON' if continuation else 'OFF'}\n")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.owns_stream:
            self.stream.close()
        else:
            self.stream.flush()


class TextFileSink(StreamSink):
    def __init__(self, path: str | os.PathLike):
        self.path = os.fspath(path)
        super().__init__(open(self.path, "w", encoding="utf-8"), owns_stream=True)


SinkTarget = Union[DiagnosticSink, TextIO, str, os.PathLike, None]


def open_sink(target: SinkTarget) -> DiagnosticSink:
    if target is None:
        return NullSink()
    if isinstance(target, DiagnosticSink):
        return target
    if isinstance(target, (str, os.PathLike)):
        return TextFileSink(target)
    if hasattr(target, "write"):
        return StreamSink(target)
    raise TypeError(f"Unsupported diagnostics target: {type(target).__name__}")
