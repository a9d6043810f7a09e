"""Feedback snapshot record consumed by the aggregation engine."""

import re
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, Optional

from ..utils import coerce_rating, normalize_id, normalize_semester, normalize_text


class LectureType(Enum):
    """Session type a response refers to."""
    LECTURE = "LECTURE"
    LAB = "LAB"

    @classmethod
    def parse(cls, value) -> Optional["LectureType"]:
        """Map a raw value to a lecture type, or None when unrecognised."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().upper()
        if text in ("LECTURE", "THEORY"):
            return cls.LECTURE
        if text in ("LAB", "PRACTICAL"):
            return cls.LAB
        return None


_ID_FIELDS = (
    'student_id', 'subject_id', 'faculty_id', 'division_id', 'department_id',
    'academic_year_id', 'semester_id', 'question_category_id',
)

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def _snake_case(key: str) -> str:
    key = key.strip()
    if ' ' in key or key.isupper():
        return '_'.join(key.lower().split())
    return _CAMEL_RE.sub('_', key).lower()


@dataclass(frozen=True)
class FeedbackSnapshot:
    """One student response for a subject/faculty/lecture-type combination."""
    student_id: Optional[str] = None
    subject_id: Optional[str] = None
    subject_name: Optional[str] = None
    faculty_id: Optional[str] = None
    faculty_name: Optional[str] = None
    division_id: Optional[str] = None
    division_name: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    academic_year_id: Optional[str] = None
    academic_year_string: Optional[str] = None
    semester_id: Optional[str] = None
    semester_number: Optional[int] = None
    lecture_type: Optional[LectureType] = None
    rating: Optional[float] = None
    question_category_id: Optional[str] = None
    question_category_name: Optional[str] = None
    subject_code: Optional[str] = None
    subject_abbreviation: Optional[str] = None
    faculty_abbreviation: Optional[str] = None
    faculty_designation: Optional[str] = None
    department_abbreviation: Optional[str] = None

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "FeedbackSnapshot":
        """
        Build a snapshot from a raw mapping.

        Accepts camelCase keys (API payloads) as well as snake_case keys
        (database rows, spreadsheet columns). Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in row.items():
            name = _snake_case(str(key))
            if name in known:
                values[name] = value

        for name in list(values):
            if name in _ID_FIELDS:
                values[name] = normalize_id(values[name])
            elif name == 'semester_number':
                values[name] = normalize_semester(values[name])
            elif name == 'lecture_type':
                values[name] = LectureType.parse(values[name])
            elif name == 'rating':
                values[name] = coerce_rating(values[name])
            else:
                values[name] = normalize_text(values[name])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['lecture_type'] = self.lecture_type.value if self.lecture_type else None
        return data
