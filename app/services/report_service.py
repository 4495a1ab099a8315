"""Report assembly for the grade dashboards.

Turns a ClassGradebook (rows a dashboard has already fetched for one class
and semester) into the class, subject and individual student reports.
All numbers come from app.services.grade_engine; this module only groups
rows and shapes the output for renderers.
"""

import logging
from collections import defaultdict

from app.core.errors import STUDENT_NOT_FOUND, SUBJECT_NOT_FOUND, raise_with_error_code
from app.schemas.grades import (
    CategoryBreakdown,
    ClassGradebook,
    ClassReport,
    CohortMember,
    GradeCategory,
    GradeScale,
    Identifier,
    ScoreEntry,
    StudentGradeRow,
    StudentOverallScore,
    StudentReport,
    StudentSubjectScore,
    SubjectInfo,
    SubjectReport,
    SubjectStudentRow,
    SubjectTopPerformer,
    TopStudent,
)
from app.services.grade_engine import (
    calculate_category_average,
    calculate_class_average,
    calculate_overall_score,
    calculate_subject_score,
    grade_distribution,
    id_key,
    letter_grade,
    performance_label,
    rank_cohort,
)
from app.services.grade_ingest import parse_categories, parse_grade_scales, parse_score_entries
from app.services.grade_scale_service import resolve_grade_scale

logger = logging.getLogger(__name__)

NO_SUBJECT_DATA = "No subject data available for analysis"
STRENGTH_THRESHOLD = 80
FOCUS_THRESHOLD = 70
MAX_RECOMMENDATIONS = 5


# ---------------------------------------------------------------------------
# Gradebook preparation
# ---------------------------------------------------------------------------

class _PreparedGradebook:
    """Validated rows of a gradebook, grouped for per-student scoring.

    Rows are grouped on ``id_key`` so a roster id ``1`` and an entry id ``"1"``
    refer to the same student (or subject, or category).
    """

    def __init__(self, gradebook: ClassGradebook):
        self.gradebook = gradebook
        self.entries = parse_score_entries(gradebook.entries)
        self.categories = parse_categories(gradebook.categories)
        self.scale: GradeScale = resolve_grade_scale(
            parse_grade_scales(gradebook.scales), gradebook.school_id,
        )

        self.subjects: list[SubjectInfo] = list(gradebook.subjects)
        known = {id_key(s.id) for s in self.subjects}
        for entry in self.entries:
            if id_key(entry.subject_id) not in known:
                # Graded in a subject the caller did not list: still count it
                self.subjects.append(SubjectInfo(id=entry.subject_id))
                known.add(id_key(entry.subject_id))

        self.categories_by_subject: dict[str, list[GradeCategory]] = defaultdict(list)
        for category in self.categories:
            self.categories_by_subject[id_key(category.subject_id)].append(category)

        self.entries_by_key: dict[tuple[str, str], list[ScoreEntry]] = defaultdict(list)
        for entry in self.entries:
            self.entries_by_key[(id_key(entry.student_id), id_key(entry.subject_id))].append(entry)

    def subject_categories(self, subject_id: Identifier) -> list[GradeCategory]:
        return self.categories_by_subject.get(id_key(subject_id), [])

    def subject_entries(self, student_id: Identifier, subject_id: Identifier) -> list[ScoreEntry]:
        return self.entries_by_key.get((id_key(student_id), id_key(subject_id)), [])

    def subject_score(self, student_id: Identifier, subject_id: Identifier) -> float | None:
        return calculate_subject_score(
            self.subject_entries(student_id, subject_id),
            self.subject_categories(subject_id),
        )

    def category_breakdown(self, student_id: Identifier, subject_id: Identifier) -> list[CategoryBreakdown]:
        entries = self.subject_entries(student_id, subject_id)
        return [
            CategoryBreakdown(
                category_id=c.id,
                name=c.name,
                weight=c.weight,
                average=calculate_category_average(entries, c),
            )
            for c in self.subject_categories(subject_id)
        ]

    def subject_scores(self, student_id: Identifier) -> list[StudentSubjectScore]:
        results = []
        for subject in self.subjects:
            score = self.subject_score(student_id, subject.id)
            results.append(StudentSubjectScore(
                student_id=student_id,
                subject_id=subject.id,
                subject_name=subject.display_name,
                subject_code=subject.code,
                score=score,
                letter_grade=letter_grade(score, self.scale),
                categories=self.category_breakdown(student_id, subject.id),
            ))
        return results

    def overall_scores(self) -> dict[str, StudentOverallScore]:
        """Overall score, letter and rank for every student, keyed on ``id_key``."""
        overall: dict[str, StudentOverallScore] = {}
        for student in self.gradebook.students:
            scores = [
                self.subject_score(student.id, subject.id) for subject in self.subjects
            ]
            overall_score = calculate_overall_score(scores)
            overall[id_key(student.id)] = StudentOverallScore(
                student_id=student.id,
                overall_score=overall_score,
                overall_letter_grade=letter_grade(overall_score, self.scale),
                subject_count=sum(1 for s in scores if s is not None),
            )

        ranked = rank_cohort([
            CohortMember(id=o.student_id, overall_score=o.overall_score)
            for o in overall.values()
        ])
        for r in ranked:
            overall[id_key(r.id)].rank = r.rank
            overall[id_key(r.id)].percentile = r.percentile
        return overall


def _find_student(gradebook: ClassGradebook, student_id: Identifier):
    for student in gradebook.students:
        if id_key(student.id) == id_key(student_id):
            return student
    raise_with_error_code(
        status_code=404,
        detail=f"Student {student_id} is not part of this gradebook",
        error_code=STUDENT_NOT_FOUND,
    )


# ---------------------------------------------------------------------------
# Class report
# ---------------------------------------------------------------------------

def build_class_report(gradebook: ClassGradebook) -> ClassReport:
    """Comprehensive report: every student, every subject, rankings and stats."""
    prepared = _PreparedGradebook(gradebook)
    overall = prepared.overall_scores()

    rows = []
    for student in gradebook.students:
        o = overall[id_key(student.id)]
        rows.append(StudentGradeRow(
            student_id=student.id,
            student_name=student.full_name,
            roll_no=student.roll_no,
            subjects=prepared.subject_scores(student.id),
            overall_score=o.overall_score,
            overall_letter_grade=o.overall_letter_grade,
            subject_count=o.subject_count,
            rank=o.rank,
            percentile=o.percentile,
        ))

    rankings = sorted(
        (o for o in overall.values() if o.rank is not None),
        key=lambda o: o.rank,
    )

    top_student = None
    if rankings:
        leader = _find_student(gradebook, rankings[0].student_id)
        top_student = TopStudent(
            student_id=leader.id,
            student_name=leader.full_name,
            overall_score=rankings[0].overall_score,
        )

    logger.info(
        f"Class report for {gradebook.class_name or 'class'} ({gradebook.semester or 'all terms'}): "
        f"{len(rankings)}/{len(rows)} students graded across {len(prepared.subjects)} subject(s)"
    )

    return ClassReport(
        school_id=gradebook.school_id,
        class_name=gradebook.class_name,
        semester=gradebook.semester,
        grade_scale=prepared.scale,
        students=rows,
        rankings=rankings,
        class_average=calculate_class_average(o.overall_score for o in overall.values()),
        top_student=top_student,
        grade_distribution=grade_distribution(
            (o.overall_letter_grade for o in overall.values()), prepared.scale,
        ),
        subject_count=len(prepared.subjects),
        student_count=len(rows),
        graded_student_count=len(rankings),
    )


# ---------------------------------------------------------------------------
# Subject report
# ---------------------------------------------------------------------------

def build_subject_report(gradebook: ClassGradebook, subject_id: Identifier) -> SubjectReport:
    """Scores of every student in one subject, with subject-level stats."""
    prepared = _PreparedGradebook(gradebook)

    subject = next(
        (s for s in prepared.subjects if id_key(s.id) == id_key(subject_id)),
        None,
    )
    if subject is None:
        raise_with_error_code(
            status_code=404,
            detail=f"Subject {subject_id} is not part of this gradebook",
            error_code=SUBJECT_NOT_FOUND,
        )

    rows = []
    for student in gradebook.students:
        score = prepared.subject_score(student.id, subject.id)
        rows.append(SubjectStudentRow(
            student_id=student.id,
            student_name=student.full_name,
            roll_no=student.roll_no,
            score=score,
            letter_grade=letter_grade(score, prepared.scale),
        ))

    graded = [r.score for r in rows if r.score is not None]
    average = calculate_overall_score(graded)

    categories = []
    for category in prepared.subject_categories(subject.id):
        averages = [
            calculate_category_average(prepared.subject_entries(student.id, subject.id), category)
            for student in gradebook.students
        ]
        categories.append(CategoryBreakdown(
            category_id=category.id,
            name=category.name,
            weight=category.weight,
            average=calculate_overall_score(averages),
        ))

    top_performer = None
    ranked_rows = [r for r in rows if r.score is not None]
    if ranked_rows:
        # max() keeps the first of equal scores, i.e. roster order
        best = max(ranked_rows, key=lambda r: r.score)
        top_performer = SubjectTopPerformer(
            student_id=best.student_id,
            student_name=best.student_name,
            score=best.score,
        )

    return SubjectReport(
        subject_id=subject.id,
        subject_name=subject.display_name,
        subject_code=subject.code,
        grade_scale=prepared.scale,
        students=rows,
        subject_average=average,
        subject_letter_grade=letter_grade(average, prepared.scale),
        highest_score=max(graded) if graded else None,
        lowest_score=min(graded) if graded else None,
        graded_count=len(graded),
        categories=categories,
        top_performer=top_performer,
    )


# ---------------------------------------------------------------------------
# Individual student report
# ---------------------------------------------------------------------------

def _format_subject(s: StudentSubjectScore) -> str:
    return f"{s.subject_name}: {s.score:.1f}% ({s.letter_grade})"


def calculate_strengths(subjects: list[StudentSubjectScore]) -> list[str]:
    """Up to three subjects at or above 80, or else the single best one."""
    graded = sorted((s for s in subjects if s.score is not None), key=lambda s: s.score, reverse=True)
    high = [s for s in graded if s.score >= STRENGTH_THRESHOLD]
    top = high[:3] if high else graded[:1]

    strengths = [_format_subject(s) for s in top]
    return strengths or [NO_SUBJECT_DATA]


def calculate_improvements(subjects: list[StudentSubjectScore]) -> list[str]:
    """Up to three subjects below 80, or else the single weakest one if below 90."""
    graded = sorted((s for s in subjects if s.score is not None), key=lambda s: s.score)
    low = [s for s in graded if s.score < STRENGTH_THRESHOLD]
    bottom = low[:3] if low else graded[:1]

    improvements = [_format_subject(s) for s in bottom if s.score < 90]
    if improvements:
        return improvements
    if graded:
        return ["All subjects show strong performance. Consider pursuing advanced coursework."]
    return [NO_SUBJECT_DATA]


def generate_recommendations(
    overall_score: float | None,
    subjects: list[StudentSubjectScore],
) -> list[str]:
    recommendations = []

    if overall_score is not None:
        if overall_score >= 90:
            recommendations.append(
                "Continue excellent academic performance. Consider pursuing advanced coursework, "
                "academic competitions, or mentoring peers."
            )
        elif overall_score >= 80:
            recommendations.append(
                "Strong overall performance. Focus on bringing A-level excellence to all subjects "
                "through consistent study habits."
            )
        elif overall_score >= 70:
            recommendations.append(
                "Satisfactory performance. Consider additional study time and seeking help for "
                "subjects with lower grades."
            )
        else:
            recommendations.append(
                "Academic performance needs improvement. Recommend regular tutoring sessions, "
                "structured study plan, and frequent check-ins with teachers."
            )

    graded = [s for s in subjects if s.score is not None]

    below_average = [s.subject_name for s in graded if s.score < FOCUS_THRESHOLD]
    if below_average:
        recommendations.append(f"Focus additional attention on: {', '.join(below_average)}")

    strongest = max(graded, key=lambda s: s.score, default=None)
    if strongest is not None and strongest.score >= 85:
        recommendations.append(
            f"Consider exploring advanced opportunities in {strongest.subject_name} "
            "such as competitions, projects, or clubs."
        )

    scores = [s.score for s in graded]
    if len(scores) >= 2 and max(scores) - min(scores) > 15:
        recommendations.append(
            "Work on balancing performance across all subjects. Consider adjusting study time "
            "to give more attention to weaker subjects."
        )

    recommendations.append("Maintain regular attendance and active participation in all classes.")
    recommendations.append(
        "Establish a balanced study schedule that allocates time proportionally to subject difficulty."
    )

    if overall_score is not None and overall_score < 85:
        recommendations.append(
            "Develop effective time management skills by creating a weekly study plan "
            "and setting specific academic goals."
        )

    recommendations.append(
        "Practice regular self-assessment by reviewing past assignments and tests "
        "to identify patterns in mistakes."
    )

    return recommendations[:MAX_RECOMMENDATIONS]


def build_student_report(gradebook: ClassGradebook, student_id: Identifier) -> StudentReport:
    """Individual report card: subject grades, standing and advice."""
    student = _find_student(gradebook, student_id)
    prepared = _PreparedGradebook(gradebook)
    overall = prepared.overall_scores()
    standing = overall[id_key(student.id)]
    subjects = prepared.subject_scores(student.id)

    return StudentReport(
        student_id=student.id,
        student_name=student.full_name,
        roll_no=student.roll_no,
        class_name=gradebook.class_name,
        semester=gradebook.semester,
        subjects=subjects,
        overall_score=standing.overall_score,
        overall_letter_grade=standing.overall_letter_grade,
        performance=performance_label(standing.overall_score),
        rank=standing.rank,
        percentile=standing.percentile,
        graded_student_count=sum(1 for o in overall.values() if o.rank is not None),
        strengths=calculate_strengths(subjects),
        improvements=calculate_improvements(subjects),
        recommendations=generate_recommendations(standing.overall_score, subjects),
    )
