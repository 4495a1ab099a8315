"""Pick the grade scale a school is currently using.

Resolution order:
1. the school's scale flagged ``is_default``
2. any other scale belonging to the school
3. the configured fallback scale (``settings.default_grade_scale``)
"""

import logging
from collections.abc import Sequence

from app.core.config import settings
from app.schemas.grades import GradeScale, Identifier
from app.services.grade_engine import id_key

logger = logging.getLogger(__name__)


def fallback_scale(school_id: Identifier | None = None) -> GradeScale:
    return GradeScale(
        id=None,
        school_id=school_id,
        name="Default Scale",
        scale=dict(settings.default_grade_scale),
        is_default=True,
    )


def resolve_grade_scale(
    scales: Sequence[GradeScale],
    school_id: Identifier | None = None,
) -> GradeScale:
    """Return the current scale for ``school_id``.

    Scales with no ``school_id`` are treated as belonging to every school.
    When ``school_id`` is None every scale is a candidate.
    """
    candidates = [
        s for s in scales
        if school_id is None or s.school_id is None or id_key(s.school_id) == id_key(school_id)
    ]

    for scale in candidates:
        if scale.is_default:
            return scale

    if candidates:
        return candidates[0]

    logger.info(f"No grade scale configured for school {school_id} — using fallback")
    return fallback_scale(school_id)
