import io

from apgrpca.diagnostics import (
    IterationRecord,
    NullSink,
    StreamSink,
    TextFileSink,
    open_sink,
)


def _record(k=1):
    return IterationRecord(iteration=k, rank=2, cardinality=7, stopping_criterion=0.125, mu=1.0, tau=2.0)


def test_stream_sink_writes_records_and_trailer():
    buf = io.StringIO()
    sink = StreamSink(buf)
    sink.append(_record(1))
    sink.append(_record(2))
    sink.finalize(line_search=True, continuation=False)
    sink.close()

    lines = buf.getvalue().splitlines()
    assert lines[0] == "Iteration 1  rank(A)  2  ||E||_0  7  Stopping Criterion   0.125"
    assert lines[1].startswith("Iteration 2")
    assert lines[-2] == "Line search ON"
    assert lines[-1] == "Continuation OFF"
    # borrowed stream stays open
    assert not buf.closed


def test_text_file_sink_owns_file(tmp_path):
    path = tmp_path / "iters.txt"
    with TextFileSink(path) as sink:
        sink.append(_record())
        sink.finalize(line_search=False, continuation=True)
    assert sink.stream.closed
    text = path.read_text()
    assert "Line search OFF" in text
    assert "Continuation ON" in text


def test_open_sink_dispatch(tmp_path):
    assert isinstance(open_sink(None), NullSink)
    buf = io.StringIO()
    assert isinstance(open_sink(buf), StreamSink)
    existing = StreamSink(buf)
    assert open_sink(existing) is existing
    file_sink = open_sink(str(tmp_path / "out.txt"))
    assert isinstance(file_sink, TextFileSink)
    file_sink.close()


def test_close_is_idempotent(tmp_path):
    sink = TextFileSink(tmp_path / "x.txt")
    sink.close()
    sink.close()
