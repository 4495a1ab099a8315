from typing import Any

from pydantic import BaseModel, Field, field_validator

# Row identifiers come from an external store and are opaque: uuids, ints, codes.
Identifier = int | str


# --- Engine inputs ---

class ScoreEntry(BaseModel):
    """One recorded assessment result (quiz, assignment, exam...)."""
    student_id: Identifier
    subject_id: Identifier
    category_id: Identifier
    score: float = Field(ge=0)
    max_score: float = Field(gt=0)


class GradeCategory(BaseModel):
    """Weighted bucket of assessments within a subject."""
    id: Identifier
    subject_id: Identifier
    weight: float = Field(ge=0)
    name: str | None = None


class GradeScale(BaseModel):
    """Letter -> minimum percentage, e.g. {"A": 90, "B": 80, ..., "F": 0}."""
    id: Identifier | None = None
    school_id: Identifier | None = None
    name: str = "Default Scale"
    scale: dict[str, float]
    is_default: bool = False

    @field_validator("scale")
    @classmethod
    def validate_scale(cls, v: dict[str, float]) -> dict[str, float]:
        if not v:
            raise ValueError("Grade scale must define at least one letter")
        return v


class CohortMember(BaseModel):
    id: Identifier
    overall_score: float | None = None


# --- Engine outputs ---

class CategoryBreakdown(BaseModel):
    category_id: Identifier
    name: str | None = None
    weight: float
    average: float | None  # mean percentage; None when nothing was graded in it


class StudentSubjectScore(BaseModel):
    student_id: Identifier
    subject_id: Identifier
    subject_name: str | None = None
    subject_code: str | None = None
    score: float | None  # None = no graded entries, distinct from 0
    letter_grade: str
    categories: list[CategoryBreakdown] = []


class StudentOverallScore(BaseModel):
    student_id: Identifier
    overall_score: float | None
    overall_letter_grade: str
    subject_count: int
    rank: int | None = None
    percentile: float | None = None


class RankedStudent(BaseModel):
    id: Identifier
    overall_score: float | None
    rank: int | None
    percentile: float | None


# --- Gradebook (what a dashboard has already fetched) ---

class StudentInfo(BaseModel):
    id: Identifier
    first_name: str = ""
    last_name: str = ""
    roll_no: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or str(self.id)


class SubjectInfo(BaseModel):
    id: Identifier
    name: str | None = None
    code: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or str(self.id)


class ClassGradebook(BaseModel):
    """Everything needed to grade one class for one semester.

    ``entries``, ``categories`` and ``scales`` are raw rows as returned by the
    data store; they are validated row by row and malformed rows are dropped.
    """
    school_id: Identifier | None = None
    class_name: str | None = None
    semester: str | None = None
    students: list[StudentInfo] = []
    subjects: list[SubjectInfo] = []
    categories: list[dict[str, Any]] = []
    entries: list[dict[str, Any]] = []
    scales: list[dict[str, Any]] = []


# --- Reports ---

class StudentGradeRow(BaseModel):
    student_id: Identifier
    student_name: str
    roll_no: str | None = None
    subjects: list[StudentSubjectScore]
    overall_score: float | None
    overall_letter_grade: str
    subject_count: int
    rank: int | None = None
    percentile: float | None = None


class TopStudent(BaseModel):
    student_id: Identifier
    student_name: str
    overall_score: float


class ClassReport(BaseModel):
    school_id: Identifier | None = None
    class_name: str | None = None
    semester: str | None = None
    grade_scale: GradeScale
    students: list[StudentGradeRow]
    rankings: list[StudentOverallScore]
    class_average: float | None
    top_student: TopStudent | None
    grade_distribution: dict[str, int]
    subject_count: int
    student_count: int
    graded_student_count: int


class SubjectStudentRow(BaseModel):
    student_id: Identifier
    student_name: str
    roll_no: str | None = None
    score: float | None
    letter_grade: str


class SubjectTopPerformer(BaseModel):
    student_id: Identifier
    student_name: str
    score: float


class SubjectReport(BaseModel):
    subject_id: Identifier
    subject_name: str | None
    subject_code: str | None = None
    grade_scale: GradeScale
    students: list[SubjectStudentRow]
    subject_average: float | None
    subject_letter_grade: str
    highest_score: float | None
    lowest_score: float | None
    graded_count: int
    categories: list[CategoryBreakdown] = []
    top_performer: SubjectTopPerformer | None = None


class StudentReport(BaseModel):
    student_id: Identifier
    student_name: str
    roll_no: str | None = None
    class_name: str | None = None
    semester: str | None = None
    subjects: list[StudentSubjectScore]
    overall_score: float | None
    overall_letter_grade: str
    performance: str
    rank: int | None
    percentile: float | None
    graded_student_count: int
    strengths: list[str]
    improvements: list[str]
    recommendations: list[str]


# --- Request / response bodies for the calculator endpoints ---

class SubjectScoreRequest(BaseModel):
    entries: list[dict[str, Any]]
    categories: list[dict[str, Any]]
    scale: GradeScale | None = None


class SubjectScoreResponse(BaseModel):
    score: float | None
    letter_grade: str


class LetterGradeRequest(BaseModel):
    score: float | None
    scale: GradeScale | None = None


class LetterGradeResponse(BaseModel):
    score: float | None
    letter_grade: str
    performance: str


class OverallScoreRequest(BaseModel):
    subject_scores: list[float | None]
    scale: GradeScale | None = None


class OverallScoreResponse(BaseModel):
    overall_score: float | None
    overall_letter_grade: str
    subject_count: int


class RankingRequest(BaseModel):
    students: list[CohortMember]


class RankingResponse(BaseModel):
    rankings: list[RankedStudent]
    graded_count: int


class ScaleResolveRequest(BaseModel):
    school_id: Identifier | None = None
    scales: list[dict[str, Any]] = []
