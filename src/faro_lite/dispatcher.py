"""Non-blocking envelope dispatcher."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .envelope import Envelope
from .transport.base import Transport


logger = logging.getLogger(__name__)


@dataclass
class Dispatcher:
    """
    Hands envelopes to a transport in the background.

    The dispatcher owns a daemon thread running its own asyncio loop, so
    callers on any thread (sync or async) can submit without waiting on
    the network. A fixed pool of worker tasks pulls envelopes from the
    queue and awaits the transport, so sends overlap and may complete out
    of submission order.

    Features:
    - Non-blocking submit (fire and forget)
    - Bounded pending count with drop-on-overflow
    - flush() / shutdown() for a graceful drain
    - Counters for submitted, sent, failed, dropped and errors
    """
    transport: Transport

    # Maximum envelopes submitted but not yet attempted
    max_queue_size: int = 10000

    # Concurrent sends
    workers: int = 4

    # Default wait for flush/shutdown (seconds)
    flush_timeout_seconds: float = 5.0

    # Internal state
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)
    _thread: threading.Thread | None = field(default=None, init=False, repr=False)
    _queue: asyncio.Queue | None = field(default=None, init=False, repr=False)
    _tasks: list[asyncio.Task] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _ready: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _running: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)
    _pending: int = field(default=0, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "submitted": 0,
            "sent": 0,
            "failed": 0,
            "dropped": 0,
            "errors": 0,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Start the background loop. No-op if already started or closed.

        Every caller blocks until startup has finished, so a submit right
        after start() never races the loop coming up.
        """
        with self._lock:
            if self._thread is None and self._closed:
                return
            if self._thread is None:
                loop = asyncio.new_event_loop()
                self._loop = loop
                self._thread = threading.Thread(
                    target=self._run,
                    args=(loop,),
                    name="faro-dispatcher",
                    daemon=True,
                )
                self._thread.start()
        self._ready.wait()

    def _run(self, loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            try:
                loop.run_until_complete(self._startup())
            except Exception as e:
                logger.error(f"Dispatcher failed to start transport {self.transport.name}: {e}")
                return
            finally:
                self._ready.set()
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
            loop.close()

    async def _startup(self) -> None:
        # Built up front so exit-time sends never create a pool once
        # interpreter shutdown has begun
        asyncio.get_running_loop().set_default_executor(
            ThreadPoolExecutor(thread_name_prefix="faro-resolver")
        )
        self._queue = asyncio.Queue()
        await self.transport.start()
        self._tasks = [
            asyncio.create_task(self._process_loop(), name=f"faro-worker-{i}")
            for i in range(self.workers)
        ]
        with self._lock:
            self._running = True
        logger.info(
            f"Dispatcher started (transport={self.transport.name}, "
            f"workers={self.workers}, max_queue={self.max_queue_size})"
        )

    def flush(self, timeout: float | None = None) -> bool:
        """
        Block until every envelope submitted so far has been attempted.

        Returns True when drained, False on timeout or when called from the
        dispatcher's own thread.
        """
        loop = self._loop
        if not self._running or loop is None or self._queue is None:
            return self._pending == 0
        if threading.current_thread() is self._thread:
            return False

        wait = self.flush_timeout_seconds if timeout is None else timeout
        future = asyncio.run_coroutine_threadsafe(self._queue.join(), loop)
        try:
            future.result(wait)
            return True
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning(f"Dispatcher flush timed out after {wait}s ({self._pending} pending)")
            return False

    def shutdown(self, timeout: float | None = None) -> None:
        """Drain, stop the transport and the background loop. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread, loop = self._thread, self._loop

        if thread is None or loop is None:
            return

        wait = self.flush_timeout_seconds if timeout is None else timeout
        if self._running:
            self.flush(wait)
            with self._lock:
                self._running = False
            future = asyncio.run_coroutine_threadsafe(self._teardown(), loop)
            try:
                future.result(wait)
            except Exception as e:
                logger.warning(f"Dispatcher teardown failed: {e!r}")

        if not loop.is_closed():
            loop.call_soon_threadsafe(loop.stop)
        thread.join(wait)
        logger.info(f"Dispatcher stopped. Stats: {self.stats}")

    async def _teardown(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        # Anything still queued after the flush window is lost
        remaining = self._queue.qsize() if self._queue else 0
        if remaining:
            logger.warning(f"Dropping {remaining} envelopes on shutdown")
            with self._lock:
                self._stats["dropped"] += remaining
                self._pending = max(0, self._pending - remaining)

        await self.transport.stop()

    # ------------------------------------------------------------------
    # Submission and delivery
    # ------------------------------------------------------------------

    def submit(self, envelope: Envelope) -> bool:
        """
        Submit an envelope (non-blocking).

        Returns True if queued, False if dropped.
        """
        with self._lock:
            if not self._running:
                self._stats["dropped"] += 1
                running = False
            elif self._pending >= self.max_queue_size:
                self._stats["dropped"] += 1
                return False
            else:
                running = True
                self._pending += 1
                self._stats["submitted"] += 1
            loop, queue = self._loop, self._queue

        if not running:
            logger.warning("Dispatcher not running, dropping envelope")
            return False

        try:
            loop.call_soon_threadsafe(queue.put_nowait, envelope)
        except RuntimeError:
            # Loop closed between the check and the call
            with self._lock:
                self._pending -= 1
                self._stats["submitted"] -= 1
                self._stats["dropped"] += 1
            return False
        return True

    async def _process_loop(self) -> None:
        """Worker: pull envelopes and deliver them until cancelled."""
        while True:
            try:
                envelope = await self._queue.get()
            except asyncio.CancelledError:
                break
            try:
                await self._deliver(envelope)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Error dispatching envelope: {e!r}")
                self._count("errors")
            finally:
                self._queue.task_done()
                with self._lock:
                    self._pending -= 1

    async def _deliver(self, envelope: Envelope) -> None:
        outcome = await self.transport.send(envelope)
        self._count("sent" if outcome.ok else "failed")

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Envelopes submitted but not yet attempted."""
        return self._pending

    @property
    def stats(self) -> dict:
        """Get dispatcher statistics."""
        with self._lock:
            return {
                **self._stats,
                "pending": self._pending,
                "running": self._running,
                "transport": self.transport.name,
            }
