"""Score math and homework statistics.

Pure functions over plain values so the same rules back the submission row
recomputation, the cached homework stats and the analytics endpoint.
"""

import math
from typing import Dict, Iterable, Optional, Sequence

LETTER_THRESHOLDS = (("A", 90), ("B", 80), ("C", 70), ("D", 60))
LETTERS = ("A", "B", "C", "D", "F")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def compute_percentage(score: Optional[float], max_score: Optional[float]) -> Optional[int]:
    if score is None or not max_score or max_score <= 0:
        return None
    return round_half_up(score / max_score * 100)


def compute_final_score(score: Optional[float], is_late: bool, late_penalty: Optional[float]) -> Optional[float]:
    if score is None:
        return None
    if is_late and late_penalty:
        return max(0.0, score - score * late_penalty / 100)
    return score


def letter_grade(percentage: Optional[float]) -> Optional[str]:
    if percentage is None:
        return None
    for letter, threshold in LETTER_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return "F"


def average_score(scores: Iterable[Optional[float]]) -> Optional[int]:
    graded = [s for s in scores if s is not None]
    if not graded:
        return None
    return round_half_up(sum(graded) / len(graded))


def score_distribution(percentages: Iterable[Optional[float]]) -> Dict[str, int]:
    buckets = {letter: 0 for letter in LETTERS}
    for pct in percentages:
        letter = letter_grade(pct)
        if letter is not None:
            buckets[letter] += 1
    return buckets


def submission_rate(total_submissions: int, enrolled_students: int) -> int:
    if enrolled_students <= 0:
        return 0
    return round_half_up(total_submissions / enrolled_students * 100)


def summarize_submissions(rows: Sequence) -> Dict[str, Optional[int]]:
    """Cached-stat view: count of submissions and mean score over graded rows that carry a score."""
    graded_scores = [r.score for r in rows if r.status == "graded" and r.score is not None]
    return {
        "total_submissions": len(rows),
        "average_score": average_score(graded_scores),
    }


def can_withdraw(deadline_passed: bool, graded: bool) -> bool:
    """A submission is locked only when it is overdue and still ungraded."""
    return not deadline_passed or graded
