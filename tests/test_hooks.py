"""Tests for uncaught exception forwarding."""

import sys
import threading
from contextlib import contextmanager
from types import SimpleNamespace

import pytest

from faro_lite.hooks import capture_exceptions, install_excepthook


@contextmanager
def fake_previous_hooks():
    """Replace both global hooks with recorders for the duration of a test."""
    calls = []
    saved = sys.excepthook, threading.excepthook
    sys.excepthook = lambda *args: calls.append(("sys", args[0]))
    threading.excepthook = lambda args: calls.append(("thread", args.exc_type))
    try:
        yield calls
    finally:
        sys.excepthook, threading.excepthook = saved


class TestCaptureExceptions:
    def test_forwards_and_reraises(self, client, recording_transport):
        with pytest.raises(ZeroDivisionError):
            with capture_exceptions(client, handler="checkout"):
                1 / 0

        client.flush(5.0)
        (d,) = recording_transport.dicts
        assert d["type"] == "error"
        assert d["error_type"] == "ZeroDivisionError"
        assert d["attributes"]["handled"] is False
        assert d["attributes"]["handler"] == "checkout"

    def test_no_exception_sends_nothing(self, client, recording_transport):
        with capture_exceptions(client):
            pass
        client.flush(5.0)
        assert recording_transport.envelopes == []


class TestInstallExcepthook:
    def test_sys_hook_forwards_and_chains(self, client, recording_transport):
        with fake_previous_hooks() as calls:
            uninstall = install_excepthook(client)
            sys.excepthook(RuntimeError, RuntimeError("crash"), None)
            uninstall()

        assert calls == [("sys", RuntimeError)]
        (d,) = recording_transport.dicts
        assert d["message"] == "crash"
        assert d["attributes"]["source"] == "sys.excepthook"

    def test_keyboard_interrupt_not_forwarded(self, client, recording_transport):
        with fake_previous_hooks() as calls:
            uninstall = install_excepthook(client)
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
            uninstall()

        client.flush(5.0)
        assert calls == [("sys", KeyboardInterrupt)]
        assert recording_transport.envelopes == []

    def test_thread_hook(self, client, recording_transport):
        args = SimpleNamespace(
            exc_type=ValueError,
            exc_value=ValueError("in thread"),
            exc_traceback=None,
            thread=threading.Thread(name="worker-1"),
        )
        with fake_previous_hooks() as calls:
            uninstall = install_excepthook(client)
            threading.excepthook(args)
            uninstall()

        assert calls == [("thread", ValueError)]
        (d,) = recording_transport.dicts
        assert d["error_type"] == "ValueError"
        assert d["attributes"]["thread"] == "worker-1"

    def test_thread_system_exit_not_forwarded(self, client, recording_transport):
        args = SimpleNamespace(
            exc_type=SystemExit,
            exc_value=SystemExit(0),
            exc_traceback=None,
            thread=None,
        )
        with fake_previous_hooks() as calls:
            uninstall = install_excepthook(client)
            threading.excepthook(args)
            uninstall()

        client.flush(5.0)
        assert calls == [("thread", SystemExit)]
        assert recording_transport.envelopes == []

    def test_uninstall_restores(self, client):
        with fake_previous_hooks():
            before_sys, before_thread = sys.excepthook, threading.excepthook
            uninstall = install_excepthook(client)
            assert sys.excepthook is not before_sys
            assert threading.excepthook is not before_thread
            uninstall()
            assert sys.excepthook is before_sys
            assert threading.excepthook is before_thread
