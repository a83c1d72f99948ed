"""Run coroutines from synchronous code on one long-lived event loop.

Async SDK clients (``openai.AsyncOpenAI``, ``httpx.AsyncClient``) pool
connections bound to the loop that opened them. Streamlit reruns a page
script for every interaction, so the cached clients must always be awaited
on the same loop. That loop runs in a daemon thread and is shared by every
session.

Usage::

    from keyword_journey.utils.async_runner import run_sync

    analysis = run_sync(journey_app.journey_service.analyze(keywords, model))
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """An asyncio event loop running forever in a daemon thread."""

    def __init__(self, name: str = "keyword-journey-loop"):
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def _serve(self, loop: asyncio.AbstractEventLoop, started: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(started.set)
        loop.run_forever()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or self._loop.is_closed():
                loop = asyncio.new_event_loop()
                started = threading.Event()
                thread = threading.Thread(
                    target=self._serve, args=(loop, started), name=self._name, daemon=True
                )
                thread.start()
                started.wait()
                self._loop = loop
                self._thread = thread
                logger.debug("Started background event loop %s", self._name)
            return self._loop

    def run(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        """Run ``coro`` on the background loop and block until it finishes.

        Exceptions raised by the coroutine propagate to the caller.
        """
        loop = self._ensure_started()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        return future.result(timeout)

    def stop(self) -> None:
        """Stop the loop and join its thread; a later ``run`` starts a fresh one."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join()
        loop.close()
        logger.debug("Stopped background event loop %s", self._name)


_default_loop = BackgroundLoop()


def run_sync(coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
    """Run ``coro`` on the shared background loop."""
    return _default_loop.run(coro, timeout)
