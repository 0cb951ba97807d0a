"""
Relevance scoring for keyword search results.

Scores each memory against the lower-cased keyword phrase and its terms:

    phrase (multi-term only)   +10 in content, +15 in title
    each term                  +3 in content,  +5 in title
    term at a word start       +1 in content,  +2 in title
    term coverage              matched/total * 5 (content), * 7 (title)
    recency                    max(0, 2 - age_days / 30)

Title matches outweigh content matches. The recency bonus is added to
every record, whether or not it matched, and reaches zero at 60 days.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models.memory import MemoryRecord, now_ms

DEFAULT_TOP_RESULTS = 10

PHRASE_CONTENT_WEIGHT = 10.0
PHRASE_TITLE_WEIGHT = 15.0
TERM_CONTENT_WEIGHT = 3.0
TERM_TITLE_WEIGHT = 5.0
WORD_START_CONTENT_BONUS = 1.0
WORD_START_TITLE_BONUS = 2.0
COVERAGE_CONTENT_WEIGHT = 5.0
COVERAGE_TITLE_WEIGHT = 7.0
RECENCY_MAX_BONUS = 2.0
RECENCY_DECAY_DAYS = 30.0

_MS_PER_DAY = 1000 * 60 * 60 * 24


def _at_word_start(text: str, term: str) -> bool:
    return text.startswith(term) or f" {term}" in text


def recency_bonus(created_ms: int, now: int | None = None) -> float:
    """Bonus of up to 2 points for new records, decaying linearly to 0 at 60 days."""
    now = now_ms() if now is None else now
    age_days = (now - created_ms) / _MS_PER_DAY
    return max(0.0, RECENCY_MAX_BONUS - age_days / RECENCY_DECAY_DAYS)


def score_memory(memory: MemoryRecord, keyword: str, now: int | None = None) -> float:
    """Compute the relevance score of one memory for a keyword phrase."""
    score = 0.0
    phrase = keyword.strip().lower()
    terms = phrase.split()
    content = (memory.content or "").lower()
    title = "" if memory.title is None else str(memory.title).lower()

    if terms:
        if len(terms) > 1:
            if phrase in content:
                score += PHRASE_CONTENT_WEIGHT
            if phrase in title:
                score += PHRASE_TITLE_WEIGHT

        content_matches = 0
        title_matches = 0
        for term in terms:
            if term in content:
                score += TERM_CONTENT_WEIGHT
                content_matches += 1
            if term in title:
                score += TERM_TITLE_WEIGHT
                title_matches += 1
            if _at_word_start(content, term):
                score += WORD_START_CONTENT_BONUS
            if _at_word_start(title, term):
                score += WORD_START_TITLE_BONUS

        score += content_matches / len(terms) * COVERAGE_CONTENT_WEIGHT
        score += title_matches / len(terms) * COVERAGE_TITLE_WEIGHT

    return score + recency_bonus(memory.created, now)


def rank_memories(
    memories: Sequence[MemoryRecord],
    keyword: str,
    top_n: int | None = DEFAULT_TOP_RESULTS,
    now: int | None = None,
) -> list[MemoryRecord]:
    """
    Sort memories by descending relevance and keep the best ``top_n``.

    The sort is stable, so equal scores keep the engine's order. ``top_n``
    of ``None`` or <= 0 disables truncation.
    """
    now = now_ms() if now is None else now
    scored = [(score_memory(memory, keyword, now), memory) for memory in memories]
    scored.sort(key=lambda item: item[0], reverse=True)
    ranked = [memory for _, memory in scored]
    return truncate(ranked, top_n)


def truncate(memories: Sequence[MemoryRecord], top_n: int | None) -> list[MemoryRecord]:
    """Keep the first ``top_n`` memories; ``None`` or <= 0 keeps all."""
    if top_n is None or top_n <= 0:
        return list(memories)
    return list(memories[:top_n])
