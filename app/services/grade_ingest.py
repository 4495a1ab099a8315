"""Validate raw grade rows before they reach the engine.

Rows arrive as loosely typed dicts from the data store.  Each row is
validated on its own; a malformed row (missing ids, non-numeric score,
max_score <= 0, negative weight...) is dropped with a warning instead of
failing the whole batch.

Both snake_case and the store's camelCase column names are accepted
(``max_score`` / ``maxScore``).
"""

import logging
import re
from collections.abc import Iterable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.schemas.grades import GradeCategory, GradeScale, ScoreEntry

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(row: dict[str, Any]) -> dict[str, Any]:
    return {_CAMEL_RE.sub("_", key).lower(): value for key, value in row.items()}


def _parse_rows(rows: Iterable[Any], model: type[ModelT], kind: str) -> list[ModelT]:
    parsed: list[ModelT] = []
    dropped = 0
    for index, row in enumerate(rows):
        if isinstance(row, model):
            parsed.append(row)
            continue
        if not isinstance(row, dict):
            logger.warning(f"Dropping {kind} row {index}: expected an object, got {type(row).__name__}")
            dropped += 1
            continue
        try:
            parsed.append(model.model_validate(_snake_keys(row)))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            logger.warning(f"Dropping {kind} row {index}: invalid {fields}")
            dropped += 1

    if dropped:
        logger.info(f"Kept {len(parsed)} {kind} row(s), dropped {dropped}")
    return parsed


def parse_score_entries(rows: Iterable[Any]) -> list[ScoreEntry]:
    return _parse_rows(rows, ScoreEntry, "score entry")


def parse_categories(rows: Iterable[Any]) -> list[GradeCategory]:
    return _parse_rows(rows, GradeCategory, "grade category")


def parse_grade_scales(rows: Iterable[Any]) -> list[GradeScale]:
    return _parse_rows(rows, GradeScale, "grade scale")
