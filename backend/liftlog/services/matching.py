"""Exercise-name canonicalization.

Free-text exercise names ("bench press!!", "MTS Incline", "squats") are mapped
onto the catalog with a normalized Levenshtein similarity. Matches below the
token-guard ceiling must share at least one whole word with the candidate, so
short unrelated names ("squats" vs "curls") never merge on edit distance alone.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from liftlog.models import Exercise
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.settings import get_settings

log = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[\W_]+")


def normalize(text: str) -> str:
    """Comparison form: lowercase, punctuation to single spaces, trimmed."""
    return " ".join(_NON_ALNUM.sub(" ", text.lower()).split())


def normalize_for_storage(text: str) -> str:
    """Display form for new catalog entries: each alphanumeric token title-cased."""
    words = _NON_ALNUM.sub(" ", text).split()
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def levenshtein(a: str, b: str) -> int:
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost))
        prev = cur
    return prev[-1]


def similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


@dataclass(frozen=True)
class MatchResult:
    exercise: Exercise | None
    confidence: float
    is_exact: bool
    normalized_input: str


class ExerciseMatcher:
    def __init__(
        self,
        db: Session,
        *,
        threshold: float | None = None,
        search_floor: float | None = None,
        token_guard_ceiling: float | None = None,
    ):
        s = get_settings()
        self.db = db
        self.repo = ExerciseRepository(db)
        self.threshold = s.FUZZY_MATCH_THRESHOLD if threshold is None else threshold
        self.search_floor = s.SEARCH_MIN_CONFIDENCE if search_floor is None else search_floor
        self.token_guard_ceiling = s.TOKEN_GUARD_CEILING if token_guard_ceiling is None else token_guard_ceiling

    def find_best_match(self, text: str, *, include_hidden: bool = True) -> MatchResult:
        query = normalize(text)
        query_words = set(query.split())
        best: Exercise | None = None
        best_score = 0.0

        for ex in self.repo.list_all(include_hidden=include_hidden):
            candidate = normalize(ex.name)
            if candidate == query:
                return MatchResult(exercise=ex, confidence=1.0, is_exact=True, normalized_input=query)

            score = similarity(query, candidate)
            if score < self.token_guard_ceiling and not (query_words & set(candidate.split())):
                continue
            if score > best_score:
                best, best_score = ex, score

        return MatchResult(exercise=best, confidence=best_score, is_exact=False, normalized_input=query)

    def resolve(self, text: str, *, include_hidden: bool = True) -> Exercise | None:
        """The matched exercise if it clears the acceptance threshold, else None."""
        result = self.find_best_match(text, include_hidden=include_hidden)
        if result.exercise is not None and (result.is_exact or result.confidence >= self.threshold):
            return result.exercise
        return None

    def find_or_create(self, text: str, muscle_group: str = "Other") -> Exercise:
        result = self.find_best_match(text, include_hidden=True)
        ex = result.exercise
        if ex is not None and (result.is_exact or result.confidence >= self.threshold):
            if ex.hidden:
                ex.hidden = False
                self.db.flush()
                log.info("un-hid exercise %r on reuse (input=%r)", ex.name, text)
            elif not result.is_exact:
                log.debug("fuzzy matched %r -> %r (%.2f)", text, ex.name, result.confidence)
            return ex

        name = normalize_for_storage(text)
        if not name:
            raise ValueError("exercise name cannot be blank")
        ex = self.repo.create(name=name, muscle_group=muscle_group)
        log.info("created exercise %r (%s)", ex.name, ex.muscle_group)
        return ex

    def search(self, query: str) -> list[tuple[Exercise, float]]:
        q = normalize(query)
        if not q:
            return []
        results = []
        for ex in self.repo.list_all(include_hidden=False):
            score = similarity(q, normalize(ex.name))
            if score >= self.search_floor:
                results.append((ex, score))
        results.sort(key=lambda pair: pair[1], reverse=True)
        return results
