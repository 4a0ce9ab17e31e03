import io
import threading

import pytest

from hltools.threads import (
    WorkDispatcher,
    default_thread_count,
    run_threads_on,
    run_threads_on_individual,
)


class _ThreadRecorder:
    """Worker that records its thread number and drains the dispatcher."""

    def __init__(self):
        self.threadnums = []
        self._lock = threading.Lock()

    def __call__(self, threadnum, dispatcher):
        with self._lock:
            self.threadnums.append(threadnum)
        while dispatcher.get_work() is not None:
            pass


def test_dispatcher_hands_out_each_item_once():
    dispatcher = WorkDispatcher(3)
    assert [dispatcher.get_work() for _ in range(4)] == [0, 1, 2, None]


def test_dispatcher_empty():
    assert WorkDispatcher(0).get_work() is None


def test_default_thread_count_range():
    count = default_thread_count()
    assert 1 <= count <= 32


@pytest.mark.parametrize("numthreads", [1, 4])
def test_individual_covers_all_work(numthreads):
    seen = []
    run_threads_on_individual(100, seen.append, numthreads=numthreads)
    assert sorted(seen) == list(range(100))


def test_run_threads_on_passes_thread_numbers():
    recorder = _ThreadRecorder()
    run_threads_on(10, recorder, numthreads=3)
    assert sorted(recorder.threadnums) == [0, 1, 2]


def test_pacifier_output():
    out = io.StringIO()
    run_threads_on_individual(10, lambda work: None, numthreads=1, pacifier=True, out=out)
    text = out.getvalue()
    progress, separator, elapsed = text.partition(" (")
    assert progress == "0...1...2...3...4...5...6...7...8...9..."
    assert separator == " ("
    assert elapsed[-2:] == ")\n"
    assert elapsed[:-2].isdigit() is True


def test_no_pacifier_output_when_disabled():
    out = io.StringIO()
    run_threads_on_individual(5, lambda work: None, numthreads=2, out=out)
    assert out.getvalue() == ""


def test_worker_exception_propagates():
    def fail(work):
        if work == 3:
            raise ValueError("bad item")

    with pytest.raises(ValueError, match="bad item"):
        run_threads_on_individual(5, fail, numthreads=2)