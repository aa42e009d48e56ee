"""
Current Visit API: Fuzzy Place-Name Matcher
===========================================

What:  Picks which of a user's recently visited place names a free-text search
       string refers to.
How:   Both sides are normalized to lowercase ASCII letters and digits, scored
       with a Levenshtein edit distance divided by the longer length, and the
       lowest score under MATCH_THRESHOLD wins.
Who:   Called by VisitService.search() with the names from
       VisitStore.recent_names().

Everything here is pure and synchronous: no I/O, no shared state, safe to call
from any number of concurrent requests.

Scoring examples (normalized inputs):
    edit_ratio("close", "closer")       == 1/6    → accepted
    edit_ratio("abcdef", "def")         == 0.5    → rejected (not < 0.5)
    edit_ratio("carnival", "cavernous") == 6/9    → rejected
"""

import logging
import re
import string
from typing import Dict, Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)

# A candidate is rejected once half or more of the longer string must change.
MATCH_THRESHOLD = 0.5

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_NOT_ALNUM = re.compile(r"[^a-z0-9]")


class MatchKey(NamedTuple):
    """Prefix lengths (ai, bj) of the two operands of one distance call."""

    ai: int
    bj: int


class NameCandidate(NamedTuple):
    """A place name as stored, paired with its normalized form."""

    original: str
    normalized: str


def normalize(name: str) -> str:
    """
    Fold ASCII uppercase to lowercase and drop everything outside [a-z0-9].

    Folding is ASCII-only, so non-ASCII characters disappear even when their
    Unicode lowercase form would be an ASCII letter (e.g. the Kelvin sign).
    """
    return _NOT_ALNUM.sub("", name.translate(_ASCII_LOWER))


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between `a` and `b` with unit costs.

    D(ai, bj) is the cost of turning the first ai characters of `a` into the
    first bj characters of `b`:

        D(0, bj) = bj
        D(ai, 0) = ai
        D(ai, bj) = min(D(ai-1, bj) + 1,
                        D(ai, bj-1) + 1,
                        D(ai-1, bj-1) + (a[ai-1] != b[bj-1]))

    Results are memoized by MatchKey in a dict that lives for this call only;
    keys are positions, so a cache shared between calls would mix up unrelated
    strings. The dict is filled row by row so every lookup hits, which keeps
    long names clear of the recursion limit.
    """
    cache: Dict[MatchKey, int] = {}
    for ai in range(len(a) + 1):
        for bj in range(len(b) + 1):
            if ai == 0:
                cache[MatchKey(ai, bj)] = bj
            elif bj == 0:
                cache[MatchKey(ai, bj)] = ai
            else:
                cache[MatchKey(ai, bj)] = min(
                    cache[MatchKey(ai - 1, bj)] + 1,
                    cache[MatchKey(ai, bj - 1)] + 1,
                    cache[MatchKey(ai - 1, bj - 1)] + (a[ai - 1] != b[bj - 1]),
                )
    return cache[MatchKey(len(a), len(b))]


def edit_ratio(a: str, b: str) -> float:
    """
    Edit distance over the length of the longer string, in [0, 1].

    0 means identical; two empty strings score 0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return edit_distance(a, b) / longest


def best_match(candidates: Iterable[str], query: str) -> Optional[str]:
    """
    Return the candidate name most similar to `query`, or None.

    Candidates scoring MATCH_THRESHOLD or more are rejected. On equal scores
    the later candidate replaces the earlier one; callers must not depend on
    which of two equally scored names is returned.
    """
    normalized_query = normalize(query)
    best: Optional[NameCandidate] = None
    best_ratio = MATCH_THRESHOLD

    for name in candidates:
        candidate = NameCandidate(name, normalize(name))
        ratio = edit_ratio(normalized_query, candidate.normalized)
        if ratio >= MATCH_THRESHOLD:
            continue
        if best is None or ratio <= best_ratio:
            best = candidate
            best_ratio = ratio

    if best is None:
        logger.debug("No name matched query %r", query)
        return None

    logger.debug("Query %r matched %r (ratio=%.3f)", query, best.original, best_ratio)
    return best.original
