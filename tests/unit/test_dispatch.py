"""
Unit tests for the callback dispatchers.
"""

import threading

from firebaserest.Dispatch import InlineDispatcher
from firebaserest.Dispatch import QueuedDispatcher
from firebaserest.utils import FirebaseApiException


def test_queued_runs_on_pump_only():
    dispatcher = QueuedDispatcher()
    calls = []
    dispatcher.post(calls.append, 1)
    dispatcher.post(calls.append, 2)

    assert calls == []
    assert dispatcher.pending() == 2
    assert dispatcher.pump() == 2
    assert calls == [1, 2]
    assert dispatcher.pump() == 0


def test_queued_runs_on_owner_thread():
    dispatcher = QueuedDispatcher()
    threadIds = []

    worker = threading.Thread(target=dispatcher.post, args=(lambda: threadIds.append(threading.get_ident()),))
    worker.start()
    worker.join()

    dispatcher.pump()
    assert threadIds == [threading.get_ident()]


def test_queued_pump_waits_for_completion():
    dispatcher = QueuedDispatcher()
    calls = []
    timer = threading.Timer(0.05, dispatcher.post, args=(calls.append, "late"))
    timer.start()
    try:
        assert dispatcher.pump(timeout=5) == 1
    finally:
        timer.cancel()
    assert calls == ["late"]


def test_queued_pump_timeout():
    dispatcher = QueuedDispatcher()
    assert dispatcher.pump(timeout=0.01) == 0


def test_queued_pump_from_foreign_thread():
    dispatcher = QueuedDispatcher()
    errors = []

    def _pump():
        try:
            dispatcher.pump()
        except FirebaseApiException as e:
            errors.append(e)

    t = threading.Thread(target=_pump)
    t.start()
    t.join()
    assert len(errors) == 1


def test_failing_callback_does_not_stop_others(debug_messages):
    dispatcher = QueuedDispatcher(printDebug=debug_messages.append)
    calls = []

    def _boom():
        raise RuntimeError("boom")

    dispatcher.post(_boom)
    dispatcher.post(calls.append, "after")
    assert dispatcher.pump() == 2
    assert calls == ["after"]
    assert any("boom" in m for m in debug_messages)


def test_inline_runs_immediately_and_serialized():
    dispatcher = InlineDispatcher()
    active = []
    overlaps = []
    lock = threading.Lock()

    def _callback(n):
        with lock:
            active.append(n)
            if len(active) > 1:
                overlaps.append(n)
        threading.Event().wait(0.001)
        with lock:
            active.remove(n)

    threads = [threading.Thread(target=dispatcher.post, args=(_callback, n)) for n in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []
    assert dispatcher.pump() == 0


def test_inline_swallows_callback_errors(debug_messages):
    dispatcher = InlineDispatcher(printDebug=debug_messages.append)
    dispatcher.post(lambda: 1 / 0)
    assert any("ZeroDivisionError" in m for m in debug_messages)
