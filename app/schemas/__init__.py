from app.schemas.grades import (
    ScoreEntry, GradeCategory, GradeScale, CohortMember,
    StudentSubjectScore, StudentOverallScore, RankedStudent,
    ClassGradebook, ClassReport, SubjectReport, StudentReport,
)

__all__ = [
    "ScoreEntry", "GradeCategory", "GradeScale", "CohortMember",
    "StudentSubjectScore", "StudentOverallScore", "RankedStudent",
    "ClassGradebook", "ClassReport", "SubjectReport", "StudentReport",
]
