"""Unit tests for the grade aggregation engine."""

import pytest

from app.schemas.grades import CohortMember, GradeCategory, GradeScale, ScoreEntry
from app.services.grade_engine import (
    calculate_category_average,
    calculate_class_average,
    calculate_overall_score,
    calculate_subject_score,
    grade_distribution,
    letter_grade,
    performance_label,
    rank_cohort,
    scale_letters,
)

SCALE = {"A": 90, "B": 80, "C": 70, "D": 60, "F": 0}


def _entry(category_id, score, max_score=100, student_id="s1", subject_id="math"):
    return ScoreEntry(
        student_id=student_id, subject_id=subject_id, category_id=category_id,
        score=score, max_score=max_score,
    )


@pytest.fixture()
def categories():
    return [
        GradeCategory(id="exam", subject_id="math", weight=70),
        GradeCategory(id="quiz", subject_id="math", weight=30),
    ]


# ── calculate_subject_score ─────────────────────────────────────

def test_no_entries_is_null(categories):
    assert calculate_subject_score([], categories) is None


def test_entries_matching_no_category_score_zero(categories):
    entries = [_entry("homework", 95), _entry("project", 80)]
    score = calculate_subject_score(entries, categories)
    assert score == 0
    assert score is not None


def test_weighted_average(categories):
    entries = [_entry("exam", 80), _entry("quiz", 50)]
    assert calculate_subject_score(entries, categories) == pytest.approx(71)


def test_non_contributing_category_does_not_dilute(categories):
    entries = [_entry("exam", 80)]
    assert calculate_subject_score(entries, categories) == pytest.approx(80)


def test_category_average_is_mean_of_ratios(categories):
    # exam: (40/50 + 90/100) / 2 = 0.85 ; quiz: 1.0
    entries = [_entry("exam", 40, 50), _entry("exam", 90, 100), _entry("quiz", 10, 10)]
    expected = (0.85 * 70 + 1.0 * 30) / 100 * 100
    assert calculate_subject_score(entries, categories) == pytest.approx(expected)


def test_weights_need_not_sum_to_100():
    cats = [
        GradeCategory(id="exam", subject_id="math", weight=2),
        GradeCategory(id="quiz", subject_id="math", weight=1),
    ]
    entries = [_entry("exam", 90), _entry("quiz", 60)]
    assert calculate_subject_score(entries, cats) == pytest.approx(80)


def test_bonus_points_not_clamped(categories):
    entries = [_entry("exam", 110), _entry("quiz", 100)]
    assert calculate_subject_score(entries, categories) == pytest.approx(107)


def test_zero_max_score_entry_is_skipped(categories):
    bad = ScoreEntry.model_construct(
        student_id="s1", subject_id="math", category_id="exam", score=5, max_score=0,
    )
    entries = [bad, _entry("exam", 80), _entry("quiz", 50)]
    assert calculate_subject_score(entries, categories) == pytest.approx(71)


def test_category_with_only_invalid_entries_does_not_contribute(categories):
    bad = ScoreEntry.model_construct(
        student_id="s1", subject_id="math", category_id="quiz", score=5, max_score=0,
    )
    assert calculate_subject_score([bad, _entry("exam", 80)], categories) == pytest.approx(80)


def test_subject_without_categories_is_null():
    assert calculate_subject_score([_entry("exam", 80)], []) is None


def test_subject_with_only_zero_weight_categories_is_null():
    cats = [GradeCategory(id="exam", subject_id="math", weight=0)]
    assert calculate_subject_score([_entry("exam", 80)], cats) is None


def test_only_zero_weight_category_graded_scores_zero():
    cats = [
        GradeCategory(id="exam", subject_id="math", weight=70),
        GradeCategory(id="extra", subject_id="math", weight=0),
    ]
    score = calculate_subject_score([_entry("extra", 95)], cats)
    assert score == 0.0
    assert score is not None


def test_numeric_and_string_category_ids_match():
    cats = [GradeCategory(id=5, subject_id=10, weight=100)]
    entries = [_entry("5", 80, subject_id="10")]
    assert calculate_subject_score(entries, cats) == pytest.approx(80)


# ── calculate_category_average ──────────────────────────────────

def test_category_average(categories):
    entries = [_entry("exam", 40, 50), _entry("exam", 90, 100), _entry("quiz", 10, 10)]
    assert calculate_category_average(entries, categories[0]) == pytest.approx(85)
    assert calculate_category_average(entries, categories[1]) == pytest.approx(100)


def test_category_average_without_entries_is_null(categories):
    assert calculate_category_average([_entry("exam", 80)], categories[1]) is None
    assert calculate_category_average([], categories[0]) is None


# ── letter_grade ────────────────────────────────────────────────

def test_letter_boundaries_inclusive():
    assert letter_grade(80, SCALE) == "B"
    assert letter_grade(79.999, SCALE) == "C"
    assert letter_grade(90, SCALE) == "A"
    assert letter_grade(100.5, SCALE) == "A"
    assert letter_grade(0, SCALE) == "F"


def test_letter_null_is_na():
    assert letter_grade(None, SCALE) == "N/A"


def test_letter_zero_is_not_na():
    assert letter_grade(0.0, SCALE) == "F"


def test_custom_letter_set_evaluated_by_threshold():
    # Declared out of order on purpose
    scale = {"A-": 90, "A+": 97, "B": 80, "A": 93, "Fail": 0}
    assert letter_grade(98, scale) == "A+"
    assert letter_grade(95, scale) == "A"
    assert letter_grade(91, scale) == "A-"
    assert letter_grade(85, scale) == "B"
    assert letter_grade(12, scale) == "Fail"


def test_below_every_threshold_gets_lowest_letter():
    scale = {"A": 90, "B": 80, "C": 70, "D": 60, "E": 50}
    assert letter_grade(10, scale) == "E"


def test_accepts_grade_scale_model():
    scale = GradeScale(name="Strict", scale={"A": 95, "B": 85, "F": 0})
    assert letter_grade(90, scale) == "B"


def test_empty_scale_uses_default():
    assert letter_grade(85, {}) == "B"
    assert letter_grade(85, None) == "B"


def test_scale_letters_ordered_high_to_low():
    assert scale_letters({"F": 0, "A": 90, "C": 70}) == ["A", "C", "F"]


# ── performance_label ───────────────────────────────────────────

@pytest.mark.parametrize("score,label", [
    (95, "Excellent"),
    (85, "Good"),
    (70, "Satisfactory"),
    (60, "Needs Improvement"),
    (10, "Concerning"),
    (None, "N/A"),
])
def test_performance_label(score, label):
    assert performance_label(score) == label


# ── calculate_overall_score ─────────────────────────────────────

def test_overall_excludes_nulls():
    assert calculate_overall_score([85, None, 70]) == pytest.approx(77.5)


def test_overall_all_null():
    assert calculate_overall_score([None, None]) is None
    assert calculate_overall_score([]) is None


def test_overall_keeps_zero_scores():
    assert calculate_overall_score([0, 100]) == pytest.approx(50)


def test_class_average():
    assert calculate_class_average([80, None, 60]) == pytest.approx(70)
    assert calculate_class_average([None]) is None


# ── rank_cohort ─────────────────────────────────────────────────

def test_rank_cohort_ties_and_nulls():
    cohort = [
        CohortMember(id=1, overall_score=90),
        CohortMember(id=2, overall_score=80),
        CohortMember(id=3, overall_score=None),
        CohortMember(id=4, overall_score=90),
    ]
    ranked = rank_cohort(cohort)

    assert [r.id for r in ranked] == [1, 4, 2, 3]
    assert [r.rank for r in ranked] == [1, 2, 3, None]
    assert ranked[0].percentile == pytest.approx(100)
    assert ranked[1].percentile == pytest.approx(200 / 3)
    assert ranked[2].percentile == pytest.approx(100 / 3)
    assert ranked[3].percentile is None


def test_percentile_uses_graded_count_only():
    cohort = [CohortMember(id=i, overall_score=None) for i in range(10)]
    cohort += [CohortMember(id="a", overall_score=50), CohortMember(id="b", overall_score=40)]
    ranked = rank_cohort(cohort)
    graded = [r for r in ranked if r.rank is not None]
    assert [r.percentile for r in graded] == [pytest.approx(100), pytest.approx(50)]


def test_rank_empty_cohort():
    assert rank_cohort([]) == []
    only_ungraded = rank_cohort([CohortMember(id="x")])
    assert len(only_ungraded) == 1
    assert only_ungraded[0].rank is None


# ── grade_distribution ──────────────────────────────────────────

def test_grade_distribution_counts_na():
    dist = grade_distribution(["A", "B", "B", "N/A"], SCALE)
    assert dist == {"A": 1, "B": 2, "C": 0, "D": 0, "F": 0, "N/A": 1}
    assert list(dist) == ["A", "B", "C", "D", "F", "N/A"]


# ── idempotence ─────────────────────────────────────────────────

def test_functions_are_idempotent(categories):
    entries = [_entry("exam", 83), _entry("quiz", 47), _entry("quiz", 9, 10)]
    assert calculate_subject_score(entries, categories) == calculate_subject_score(entries, categories)

    cohort = [CohortMember(id=i, overall_score=s) for i, s in enumerate([70.1, None, 88.8, 70.1])]
    assert rank_cohort(cohort) == rank_cohort(cohort)
    assert letter_grade(79.999, SCALE) == letter_grade(79.999, SCALE)
