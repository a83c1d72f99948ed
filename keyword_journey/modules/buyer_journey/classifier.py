"""Batched, retrying buyer-journey classifier.

Splits a keyword list into fixed-size batches, classifies every batch
concurrently, retries failed batches with exponential backoff, and falls back
to the default stage for any batch that keeps failing. The merged result
always has exactly one entry per input keyword, in input order.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from keyword_journey.modules.buyer_journey.backend import ClassificationBackend
from keyword_journey.modules.buyer_journey.models import BatchOutcome, ClassificationResult
from keyword_journey.modules.buyer_journey.parser import parse_batch_response

logger = logging.getLogger(__name__)

T = TypeVar("T")

BATCH_SIZE = 50
MAX_RETRIES = 2


def chunk_keywords(items: Sequence[T], size: int = BATCH_SIZE) -> list[list[T]]:
    """Partition ``items`` into contiguous chunks of at most ``size`` elements.

    Examples:
        >>> chunk_keywords(["a", "b", "c"], 2)
        [['a', 'b'], ['c']]
    """
    if size < 1:
        raise ValueError("Batch size must be at least 1, got " + str(size))
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def expected_batch_count(total: int, size: int = BATCH_SIZE) -> int:
    return math.ceil(total / size) if total else 0


@dataclass
class RetryPolicy:
    """How many times to retry a batch and how long to wait between attempts.

    The delay before attempt ``n + 1`` is ``base_delay * 2 ** n`` seconds.
    ``sleep`` is injectable so tests can record delays instead of waiting.
    """
    max_retries: int = MAX_RETRIES
    base_delay: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class BatchClassifier:
    """Classify keywords into buyer-journey stages in concurrent batches.

    The classifier keeps no state between calls; ``classify`` is a function of
    its arguments and the backend's answers.

    Usage::

        backend = OpenAIJourneyBackend(api_key="sk-...")
        classifier = BatchClassifier(backend)
        results = await classifier.classify(["카페", "카페 추천"], model="gpt-5-nano")
    """

    def __init__(
        self,
        backend: ClassificationBackend,
        batch_size: int = BATCH_SIZE,
        retry_policy: Optional[RetryPolicy] = None,
        max_concurrency: Optional[int] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1 or None")
        self._backend = backend
        self._batch_size = batch_size
        self._policy = retry_policy or RetryPolicy()
        self._max_concurrency = max_concurrency

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # classify
    # ------------------------------------------------------------------

    async def classify(
        self, keywords: Sequence[str], model: str
    ) -> list[ClassificationResult]:
        """Classify ``keywords`` with ``model``; same length and order as the input."""
        outcomes = await self.classify_batches(keywords, model)
        merged: list[ClassificationResult] = []
        for outcome in outcomes:
            merged.extend(outcome.results)
        logger.info(
            "Merged %d batches into %d results (%d batches fell back)",
            len(outcomes), len(merged), sum(1 for o in outcomes if o.fell_back),
        )
        return merged

    async def classify_batches(
        self, keywords: Sequence[str], model: str
    ) -> list[BatchOutcome]:
        """Run every batch concurrently and return their outcomes in batch order."""
        batches = chunk_keywords(list(keywords), self._batch_size)
        logger.info(
            "Split %d keywords into %d batches of up to %d",
            len(keywords), len(batches), self._batch_size,
        )
        semaphore = (
            asyncio.Semaphore(self._max_concurrency)
            if self._max_concurrency else None
        )
        outcomes: list[Optional[BatchOutcome]] = [None] * len(batches)

        async def _run(index: int, batch: list[str]) -> None:
            if semaphore is None:
                outcomes[index] = await self.process_batch(batch, model, index)
                return
            async with semaphore:
                outcomes[index] = await self.process_batch(batch, model, index)

        await asyncio.gather(*(_run(i, batch) for i, batch in enumerate(batches)))
        return [o for o in outcomes if o is not None]

    # ------------------------------------------------------------------
    # Per-batch retry procedure
    # ------------------------------------------------------------------

    async def process_batch(
        self, batch: list[str], model: str, batch_index: int
    ) -> BatchOutcome:
        """Classify one batch, retrying with exponential backoff.

        Never raises for backend failures: after the final attempt fails, every
        keyword in the batch gets the default stage.
        """
        last_error: Optional[str] = None
        for attempt in range(self._policy.max_attempts):
            try:
                content = await self._backend(batch, model, batch_index, attempt)
                parsed = parse_batch_response(content, batch, batch_index)
                logger.info(
                    "Batch %d classified on attempt %d (%d lines parsed)",
                    batch_index + 1, attempt + 1, parsed.parsed_lines,
                )
                return BatchOutcome(
                    batch_index=batch_index,
                    results=parsed.results,
                    attempts=attempt + 1,
                )
            except Exception as exc:
                last_error = str(exc)
                logger.error(
                    "Batch %d attempt %d failed: %s",
                    batch_index + 1, attempt + 1, exc,
                )
                if attempt == self._policy.max_retries:
                    break
                delay = self._policy.delay_for(attempt)
                logger.info(
                    "Retrying batch %d in %.0fms...", batch_index + 1, delay * 1000,
                )
                await self._policy.sleep(delay)

        logger.warning(
            "Batch %d failed after %d attempts. Using fallback stage.",
            batch_index + 1, self._policy.max_attempts,
        )
        return BatchOutcome(
            batch_index=batch_index,
            results=[ClassificationResult.fallback(kw) for kw in batch],
            attempts=self._policy.max_attempts,
            fell_back=True,
            last_error=last_error,
        )
