"""Grade aggregation and ranking engine.

Pure functions shared by every grade surface (class report, subject report,
student report and the calculator endpoints):

- calculate_subject_score: category-weighted percentage for one student in
  one subject.
- letter_grade: percentage -> letter using a configurable scale.
- calculate_overall_score: unweighted mean of a student's subject scores.
- rank_cohort: rank graded students and compute percentiles.

Data-quality problems (empty inputs, zero max_score, unknown categories)
never raise.  They degrade to ``None``, ``"N/A"`` or an empty list.
"""

import math
from collections.abc import Iterable, Mapping, Sequence

from app.schemas.grades import GradeCategory, GradeScale, Identifier, RankedStudent, ScoreEntry

NOT_AVAILABLE = "N/A"

DEFAULT_SCALE: dict[str, float] = {"A": 90, "B": 80, "C": 70, "D": 60, "F": 0}


# ---------------------------------------------------------------------------
# Subject score
# ---------------------------------------------------------------------------

def _entry_ratio(entry: ScoreEntry) -> float | None:
    """Return score / max_score, or None for an entry that cannot be averaged."""
    try:
        score = float(entry.score)
        max_score = float(entry.max_score)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(score) or not math.isfinite(max_score) or max_score <= 0:
        return None
    return score / max_score


def id_key(value: Identifier) -> str:
    """Comparison key for an opaque id: ``1`` and ``"1"`` name the same row."""
    return str(value)


def calculate_category_average(
    entries: Iterable[ScoreEntry],
    category: GradeCategory,
) -> float | None:
    """Mean percentage of the usable entries filed under ``category``.

    None when the category has no usable entry (it then does not contribute).
    """
    key = id_key(category.id)
    ratios = [
        ratio
        for ratio in (_entry_ratio(e) for e in entries if id_key(e.category_id) == key)
        if ratio is not None
    ]
    if not ratios:
        return None
    return sum(ratios) / len(ratios) * 100


def calculate_subject_score(
    entries: Sequence[ScoreEntry],
    categories: Sequence[GradeCategory],
) -> float | None:
    """Weighted percentage for one student's entries in one subject.

    Only categories that have at least one usable entry contribute, and the
    weights are normalized over those categories.  The result is not clamped:
    bonus points can push it above 100.

    Returns None when there are no entries, or when the subject has no
    categories (or only zero-weight ones).  Returns 0.0 when entries exist
    but none of them belongs to a known category.
    """
    if not entries:
        return None
    if not categories or sum(c.weight for c in categories) <= 0:
        return None

    weighted_sum = 0.0
    total_weight = 0.0

    for category in categories:
        category_avg = calculate_category_average(entries, category)
        if category_avg is None:
            continue
        weighted_sum += category_avg * category.weight
        total_weight += category.weight

    if total_weight == 0:
        return 0.0
    return weighted_sum / total_weight


# ---------------------------------------------------------------------------
# Letter grades
# ---------------------------------------------------------------------------

def _thresholds(scale: GradeScale | Mapping[str, float] | None) -> list[tuple[str, float]]:
    """Scale letters ordered from highest to lowest threshold."""
    mapping = scale.scale if isinstance(scale, GradeScale) else scale
    if not mapping:
        mapping = DEFAULT_SCALE
    # sorted() is stable, so equal thresholds keep their declared order
    return sorted(mapping.items(), key=lambda item: item[1], reverse=True)


def scale_letters(scale: GradeScale | Mapping[str, float] | None) -> list[str]:
    return [letter for letter, _ in _thresholds(scale)]


def letter_grade(score: float | None, scale: GradeScale | Mapping[str, float] | None) -> str:
    """Map a percentage to the highest letter whose threshold it meets.

    Scores below every threshold get the lowest-tier letter.
    """
    if score is None or (isinstance(score, float) and math.isnan(score)):
        return NOT_AVAILABLE

    thresholds = _thresholds(scale)
    for letter, minimum in thresholds:
        if score >= minimum:
            return letter
    return thresholds[-1][0]


def performance_label(score: float | None) -> str:
    if score is None:
        return NOT_AVAILABLE
    if score >= 90:
        return "Excellent"
    if score >= 80:
        return "Good"
    if score >= 70:
        return "Satisfactory"
    if score >= 60:
        return "Needs Improvement"
    return "Concerning"


# ---------------------------------------------------------------------------
# Overall score
# ---------------------------------------------------------------------------

def calculate_overall_score(subject_scores: Iterable[float | None]) -> float | None:
    """Unweighted mean of the non-null subject scores; None if there are none."""
    graded = [s for s in subject_scores if s is not None]
    if not graded:
        return None
    return sum(graded) / len(graded)


def calculate_class_average(overall_scores: Iterable[float | None]) -> float | None:
    """Mean overall score of the graded students in a class."""
    return calculate_overall_score(overall_scores)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def percentile_for_rank(rank: int, graded_count: int) -> float:
    return (graded_count - rank + 1) / graded_count * 100


def rank_cohort(students: Sequence) -> list[RankedStudent]:
    """Rank students by overall score, highest first.

    ``students`` are objects with ``id`` and ``overall_score`` attributes.
    Ties keep their input order and still get distinct consecutive ranks.
    Percentiles are computed against the graded students only.  Ungraded
    students follow the ranked ones, in input order, with rank and
    percentile set to None.
    """
    graded = [s for s in students if s.overall_score is not None]
    ungraded = [s for s in students if s.overall_score is None]

    # sorted() is stable: equal scores stay in input order
    ordered = sorted(graded, key=lambda s: s.overall_score, reverse=True)
    n = len(ordered)

    ranked = [
        RankedStudent(
            id=s.id,
            overall_score=s.overall_score,
            rank=index + 1,
            percentile=percentile_for_rank(index + 1, n),
        )
        for index, s in enumerate(ordered)
    ]
    ranked.extend(
        RankedStudent(id=s.id, overall_score=None, rank=None, percentile=None)
        for s in ungraded
    )
    return ranked


def grade_distribution(
    letters: Iterable[str],
    scale: GradeScale | Mapping[str, float] | None,
) -> dict[str, int]:
    """Count letters per scale tier (highest first) plus N/A for ungraded."""
    distribution = {letter: 0 for letter in scale_letters(scale)}
    distribution[NOT_AVAILABLE] = 0
    for letter in letters:
        if letter in distribution:
            distribution[letter] += 1
        else:
            distribution[NOT_AVAILABLE] += 1
    return distribution
