"""Parse ``keyword|stage`` completion text back onto the keywords of a batch."""

import logging
import unicodedata

from keyword_journey.modules.buyer_journey.models import ClassificationResult, ParseOutcome
from keyword_journey.modules.buyer_journey.stages import JourneyStage

logger = logging.getLogger(__name__)

DELIMITER = "|"


def normalize_keyword(text: str) -> str:
    """Trim whitespace and apply NFC so composed/decomposed Hangul compare equal.

    Case is left alone: folding is not safe for every script the dashboard sees.
    """
    return unicodedata.normalize("NFC", (text or "").strip())


def parse_lines(content: str) -> list[tuple[str, str]]:
    """Return ``(keyword, stage)`` pairs from every line that contains the delimiter.

    Each line is split on the first ``|`` only; lines without one are ignored.
    """
    pairs: list[tuple[str, str]] = []
    for line in (content or "").splitlines():
        if DELIMITER not in line:
            continue
        keyword, _, stage = line.partition(DELIMITER)
        pairs.append((keyword.strip(), stage.strip()))
    return pairs


def parse_batch_response(
    content: str, keywords: list[str], batch_index: int = 0
) -> ParseOutcome:
    """Map a raw completion onto ``keywords``.

    The output always has one result per input keyword, in input order. When
    the backend answers the same keyword twice, the first line wins. Keywords
    the backend skipped, and stages outside the taxonomy, get the default stage.
    """
    pairs = parse_lines(content)
    lookup: dict[str, str] = {}
    for keyword, stage in pairs:
        key = normalize_keyword(keyword)
        if key and key not in lookup:
            lookup[key] = stage

    outcome = ParseOutcome(results=[], parsed_lines=len(pairs))
    for keyword in keywords:
        label = lookup.get(normalize_keyword(keyword))
        if label is None:
            outcome.unmatched.append(keyword)
            outcome.results.append(ClassificationResult.fallback(keyword))
            continue
        stage = JourneyStage.from_label(label)
        if stage is None:
            outcome.invalid_stages.append(label)
            outcome.results.append(ClassificationResult.fallback(keyword))
            continue
        outcome.results.append(ClassificationResult(keyword=keyword, stage=stage))

    if outcome.unmatched:
        logger.warning(
            "Batch %d: %d/%d keywords missing from response, using default stage",
            batch_index + 1, len(outcome.unmatched), len(keywords),
        )
    if outcome.invalid_stages:
        logger.warning(
            "Batch %d: %d unknown stage labels replaced with default: %s",
            batch_index + 1, len(outcome.invalid_stages),
            ", ".join(sorted(set(outcome.invalid_stages)))[:200],
        )
    return outcome
