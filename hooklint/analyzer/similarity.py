"""Tiered "did you mean" ranking of hook names.

Three strategies run in strict priority order. A lower tier only fills the
slots the higher tiers left empty, so a weak edit-distance match can never
outrank a token match, whatever its numeric score.

    WORD_MATCH     token equality / prefix / containment
    PARTIAL_MATCH  shared prefixes and suffixes of tokens
    LEVENSHTEIN    edit distance within a third of the longer string
"""
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple


SEPARATORS = re.compile(r"[._ ]+")


class MatchTier(IntEnum):
    LEVENSHTEIN = 1
    PARTIAL_MATCH = 2
    WORD_MATCH = 3


@dataclass(frozen=True)
class SimilarityMatch:
    """One ranked suggestion."""
    text: str
    payload: Any
    tier: MatchTier
    score: float
    rendered: str

    @property
    def candidate(self) -> Any:
        return self.payload


def split_words(text: str) -> List[str]:
    return [w for w in SEPARATORS.split(text.lower()) if w]


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def _common_prefix(a: str, b: str) -> int:
    n = 0
    for ca, cb in zip(a, b):
        if ca != cb:
            break
        n += 1
    return n


def _common_suffix(a: str, b: str) -> int:
    return _common_prefix(a[::-1], b[::-1])


def word_match_score(query: str, text: str) -> Optional[float]:
    """Token score, or None when nothing matched."""
    q = query.lower()
    t = text.lower()
    score = 0
    if t.startswith(q):
        score += 50
    if q in t:
        score += 30

    for qw in split_words(q):
        for tw in split_words(t):
            if qw == tw:
                score += len(qw) * 15
            elif tw.startswith(qw):
                score += len(qw) * 10
            elif qw in tw:
                score += len(qw) * 5
    return float(score) if score > 0 else None


def partial_match_score(query: str, text: str) -> Optional[float]:
    score = 0
    for qw in split_words(query):
        for tw in split_words(text):
            prefix = _common_prefix(qw, tw)
            if prefix >= 2:
                score += 4 * prefix
            suffix = _common_suffix(qw, tw)
            if suffix >= 2:
                score += 3 * suffix
    return float(score) if score > 0 else None


def levenshtein_score(query: str, text: str) -> Optional[float]:
    q = query.lower()
    t = text.lower()
    longest = max(len(q), len(t))
    if longest == 0:
        return None
    distance = levenshtein(q, t)
    if distance > longest // 3:
        return None
    return 100 - distance * 100 / longest


TIERS: Tuple[Tuple[MatchTier, Callable[[str, str], Optional[float]]], ...] = (
    (MatchTier.WORD_MATCH, word_match_score),
    (MatchTier.PARTIAL_MATCH, partial_match_score),
    (MatchTier.LEVENSHTEIN, levenshtein_score),
)


class SimilarityRanker:
    """Ranks candidate strings against a query with the tiered strategies."""

    def __init__(self, tiers: Sequence = TIERS):
        self.tiers = tuple(tiers)

    def rank(self, query: str, candidates: Iterable[Tuple[str, Any]], max_results: int,
             render: Optional[Callable[[Any], str]] = None) -> List[SimilarityMatch]:
        """Return up to ``max_results`` suggestions.

        Args:
            query: Name being looked up, e.g. a misspelled hook name
            candidates: (text, payload) pairs; text is what gets scored
            max_results: Cap on the number of suggestions
            render: Display text for a payload, used for de-duplication.
                Defaults to the candidate text.

        Returns:
            Matches ordered by tier, then score (descending), then text
        """
        if not query or max_results <= 0:
            return []

        entries = [(text, payload) for text, payload in candidates if text]
        results: List[SimilarityMatch] = []
        seen_rendered = set()
        consumed = set()

        for tier, scorer in self.tiers:
            if len(results) >= max_results:
                break

            scored = []
            for index, (text, payload) in enumerate(entries):
                if index in consumed:
                    continue
                score = scorer(query, text)
                if score is not None:
                    scored.append((score, text, index, payload))
            scored.sort(key=lambda item: (-item[0], item[1]))

            for score, text, index, payload in scored:
                consumed.add(index)
                if len(results) >= max_results:
                    continue
                rendered = render(payload) if render else text
                if rendered in seen_rendered:
                    continue
                seen_rendered.add(rendered)
                results.append(SimilarityMatch(text, payload, tier, score, rendered))

        return results
