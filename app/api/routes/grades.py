from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.grades import (
    ClassGradebook,
    ClassReport,
    GradeScale,
    LetterGradeRequest,
    LetterGradeResponse,
    OverallScoreRequest,
    OverallScoreResponse,
    RankingRequest,
    RankingResponse,
    ScaleResolveRequest,
    StudentReport,
    SubjectReport,
    SubjectScoreRequest,
    SubjectScoreResponse,
)
from app.services.grade_engine import (
    calculate_overall_score,
    calculate_subject_score,
    letter_grade,
    performance_label,
    rank_cohort,
)
from app.services.grade_ingest import parse_categories, parse_grade_scales, parse_score_entries
from app.services.grade_scale_service import fallback_scale, resolve_grade_scale

router = APIRouter(prefix="/grades", tags=["Grades"])


# ---------------------------------------------------------------------------
# Calculator endpoints
# ---------------------------------------------------------------------------

@router.post("/subject-score", response_model=SubjectScoreResponse)
def subject_score(body: SubjectScoreRequest):
    """Weighted score for one student's entries in one subject."""
    score = calculate_subject_score(
        parse_score_entries(body.entries),
        parse_categories(body.categories),
    )
    scale = body.scale or fallback_scale()
    return {"score": score, "letter_grade": letter_grade(score, scale)}


@router.post("/letter-grade", response_model=LetterGradeResponse)
def get_letter_grade(body: LetterGradeRequest):
    scale = body.scale or fallback_scale()
    return {
        "score": body.score,
        "letter_grade": letter_grade(body.score, scale),
        "performance": performance_label(body.score),
    }


@router.post("/overall-score", response_model=OverallScoreResponse)
def overall_score(body: OverallScoreRequest):
    """Unweighted mean of subject scores; ungraded (null) subjects are ignored."""
    scale = body.scale or fallback_scale()
    overall = calculate_overall_score(body.subject_scores)
    return {
        "overall_score": overall,
        "overall_letter_grade": letter_grade(overall, scale),
        "subject_count": sum(1 for s in body.subject_scores if s is not None),
    }


@router.post("/rankings", response_model=RankingResponse)
def rankings(body: RankingRequest):
    """Rank a cohort by overall score.  Ungraded students come last, unranked."""
    ranked = rank_cohort(body.students)
    return {
        "rankings": ranked,
        "graded_count": sum(1 for r in ranked if r.rank is not None),
    }


@router.post("/scales/resolve", response_model=GradeScale)
def resolve_scale(body: ScaleResolveRequest):
    """Return the grade scale a school should use right now."""
    return resolve_grade_scale(parse_grade_scales(body.scales), body.school_id)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@router.post("/reports/class", response_model=ClassReport)
@limiter.limit(settings.rate_limit)
def class_report(request: Request, gradebook: ClassGradebook):
    """Comprehensive class report: per-subject grades, rankings, distribution."""
    from app.services.report_service import build_class_report

    return build_class_report(gradebook)


@router.post("/reports/subject/{subject_id}", response_model=SubjectReport)
@limiter.limit(settings.rate_limit)
def subject_report(request: Request, subject_id: str, gradebook: ClassGradebook):
    """Report for one subject across the class."""
    from app.services.report_service import build_subject_report

    return build_subject_report(gradebook, subject_id)


@router.post("/reports/student/{student_id}", response_model=StudentReport)
@limiter.limit(settings.rate_limit)
def student_report(request: Request, student_id: str, gradebook: ClassGradebook):
    """Individual report card for one student of the class."""
    from app.services.report_service import build_student_report

    return build_student_report(gradebook, student_id)
