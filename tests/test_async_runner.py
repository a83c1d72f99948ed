"""Tests for the shared background event loop used by the dashboard."""

import asyncio
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import openai
import pytest

from keyword_journey.modules.buyer_journey.backend import OpenAIJourneyBackend
from keyword_journey.modules.buyer_journey.classifier import BatchClassifier, RetryPolicy
from keyword_journey.modules.buyer_journey.stages import JourneyStage
from keyword_journey.utils.async_runner import BackgroundLoop, run_sync

COMPLETION_TEXT = "카페 가격|구매 결정\n카페 후기|구매 후 행동"


class _ChatCompletionHandler(BaseHTTPRequestHandler):
    """Answers every POST with one fixed chat completion over a kept-alive connection."""

    protocol_version = "HTTP/1.1"

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        self.rfile.read(length)
        self.server.request_count += 1
        body = json.dumps({
            "id": "chatcmpl-local",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4.1",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": COMPLETION_TEXT},
                "finish_reason": "stop",
            }],
        }).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture()
def chat_server(monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ChatCompletionHandler)
    server.request_count = 0
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture()
def background_loop():
    loop = BackgroundLoop(name="test-loop")
    yield loop
    loop.stop()


# ===========================================================================
# BackgroundLoop
# ===========================================================================
class TestBackgroundLoop:

    def test_reuses_one_loop(self, background_loop):
        async def _current_loop():
            return asyncio.get_running_loop()

        first = background_loop.run(_current_loop())
        second = background_loop.run(_current_loop())

        assert first is second
        assert not first.is_closed()
        assert background_loop.is_running

    def test_returns_result(self, background_loop):
        async def _add(a, b):
            await asyncio.sleep(0)
            return a + b

        assert background_loop.run(_add(2, 3)) == 5

    def test_exceptions_propagate(self, background_loop):
        async def _boom():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            background_loop.run(_boom())

    def test_restarts_after_stop(self, background_loop):
        async def _current_loop():
            return asyncio.get_running_loop()

        first = background_loop.run(_current_loop())
        background_loop.stop()
        second = background_loop.run(_current_loop())

        assert first.is_closed()
        assert second is not first
        assert background_loop.is_running

    def test_run_sync_shares_default_loop(self):
        async def _current_loop():
            return asyncio.get_running_loop()

        assert run_sync(_current_loop()) is run_sync(_current_loop())


# ===========================================================================
# Pooled OpenAI client across repeated runs
# ===========================================================================
class TestPooledClientAcrossRuns:

    def test_every_run_succeeds_on_first_attempt(self, chat_server, background_loop):
        delays = []

        async def _sleep(seconds):
            delays.append(seconds)

        client = openai.AsyncOpenAI(
            api_key="sk-test",
            base_url="http://127.0.0.1:" + str(chat_server.server_address[1]) + "/v1",
            max_retries=0,
        )
        classifier = BatchClassifier(
            OpenAIJourneyBackend(client=client), retry_policy=RetryPolicy(sleep=_sleep)
        )

        runs = [
            background_loop.run(classifier.classify_batches(["카페 가격", "카페 후기"], "gpt-4.1"))
            for _ in range(3)
        ]
        background_loop.run(client.close())

        assert [outcome.attempts for outcomes in runs for outcome in outcomes] == [1, 1, 1]
        assert not any(outcome.fell_back for outcomes in runs for outcome in outcomes)
        assert delays == []
        assert chat_server.request_count == 3
        assert [r.stage for r in runs[-1][0].results] == [
            JourneyStage.PURCHASE_DECISION, JourneyStage.POST_PURCHASE,
        ]
