import os

# Must be set before app.core.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session")
def app():
    from app.main import app as fastapi_app
    return fastapi_app


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def gradebook_payload():
    """One class, three subjects, four students.

    - Math: exam 70 / quiz 30
    - Science: lab 100
    - Art: no categories at all (nobody can be graded in it)

    s1: Math 71, Science 90  -> overall 80.5
    s2: Math 80 (exam only), Science 62 -> overall 71
    s3: no entries -> ungraded
    s4: same ratios as s1 -> overall 80.5 (ties s1, listed after it)
    """
    return {
        "school_id": "sch-1",
        "class_name": "Grade 7 Blue",
        "semester": "Fall 2026",
        "students": [
            {"id": "s1", "first_name": "Ada", "last_name": "Lovelace", "roll_no": "01"},
            {"id": "s2", "first_name": "Alan", "last_name": "Turing", "roll_no": "02"},
            {"id": "s3", "first_name": "Grace", "last_name": "Hopper", "roll_no": "03"},
            {"id": "s4", "first_name": "Edsger", "last_name": "Dijkstra", "roll_no": "04"},
        ],
        "subjects": [
            {"id": "math", "name": "Mathematics", "code": "MTH"},
            {"id": "sci", "name": "Science", "code": "SCI"},
            {"id": "art", "name": "Art", "code": "ART"},
        ],
        "categories": [
            {"id": "exam", "subject_id": "math", "weight": 70, "name": "Exams"},
            {"id": "quiz", "subject_id": "math", "weight": 30, "name": "Quizzes"},
            {"id": "lab", "subject_id": "sci", "weight": 100, "name": "Labs"},
        ],
        "entries": [
            {"student_id": "s1", "subject_id": "math", "category_id": "exam", "score": 80, "max_score": 100},
            {"student_id": "s1", "subject_id": "math", "category_id": "quiz", "score": 5, "max_score": 10},
            {"student_id": "s1", "subject_id": "sci", "category_id": "lab", "score": 45, "max_score": 50},
            {"student_id": "s2", "subject_id": "math", "category_id": "exam", "score": 40, "max_score": 50},
            {"student_id": "s2", "subject_id": "sci", "category_id": "lab", "score": 31, "max_score": 50},
            {"student_id": "s4", "subject_id": "math", "category_id": "exam", "score": 8, "max_score": 10},
            {"student_id": "s4", "subject_id": "math", "category_id": "quiz", "score": 15, "max_score": 30},
            {"student_id": "s4", "subject_id": "sci", "category_id": "lab", "score": 9, "max_score": 10},
            # malformed rows: dropped at the boundary
            {"student_id": "s4", "subject_id": "sci", "category_id": "lab", "score": 10, "max_score": 0},
            {"student_id": "s2", "subject_id": "sci", "score": "abc", "max_score": 10},
        ],
        "scales": [],
    }
