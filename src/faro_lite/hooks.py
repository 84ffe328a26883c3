"""Forward uncaught host-application exceptions as error envelopes."""

from __future__ import annotations

import logging
import sys
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from .client import FaroClient


logger = logging.getLogger(__name__)


def install_excepthook(client: FaroClient, *, flush: bool = True) -> Callable[[], None]:
    """
    Chain sys.excepthook and threading.excepthook to forward uncaught errors.

    The previous hooks still run afterwards, so default reporting is kept.
    Returns a callable that restores the previous hooks.
    """
    previous_sys_hook = sys.excepthook
    previous_thread_hook = threading.excepthook

    def sys_hook(exc_type, exc, tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            _forward(client, exc, {"source": "sys.excepthook"}, flush)
        previous_sys_hook(exc_type, exc, tb)

    def thread_hook(args):
        if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
            thread_name = args.thread.name if args.thread is not None else "unknown"
            _forward(
                client,
                args.exc_value,
                {"source": "threading.excepthook", "thread": thread_name},
                flush,
            )
        previous_thread_hook(args)

    sys.excepthook = sys_hook
    threading.excepthook = thread_hook

    def uninstall() -> None:
        if sys.excepthook is sys_hook:
            sys.excepthook = previous_sys_hook
        if threading.excepthook is thread_hook:
            threading.excepthook = previous_thread_hook

    return uninstall


@contextmanager
def capture_exceptions(client: FaroClient, **context: Any) -> Iterator[None]:
    """
    Forward an exception raised inside the block, then re-raise it.

    Usage:
        with capture_exceptions(client, handler="checkout"):
            process_order()
    """
    try:
        yield
    except Exception as e:
        _forward(client, e, context, flush=False)
        raise


def _forward(client: FaroClient, exc: BaseException, context: dict, flush: bool) -> None:
    if exc is None:
        return
    try:
        client.push_error(exc, {"handled": False, **context})
        if flush:
            client.flush()
    except Exception as e:
        logger.warning(f"Failed to forward uncaught exception: {e!r}")
