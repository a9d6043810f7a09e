"""
Scope filters and the hierarchical filter dictionary.
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Iterable, List, Optional

from ..models.snapshot import FeedbackSnapshot, LectureType
from ..models.views import (
    AcademicYearNode,
    DepartmentNode,
    DivisionNode,
    FilterDictionary,
    SemesterNode,
)
from ..utils import normalize_id

# Changing a filter clears the filters nested below it
DEPENDENT_FILTERS = {
    'academic_year_id': ('department_id', 'semester_id'),
    'department_id': ('semester_id',),
}


def _parse_lecture_type(value):
    """Parse a lecture type filter; blank means unset, anything unrecognised is an error."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    lecture_type = LectureType.parse(value)
    if lecture_type is None:
        raise ValueError(f"Unknown lecture type: {value}")
    return lecture_type


@dataclass(frozen=True)
class AnalyticsFilters:
    academic_year_id: Optional[str] = None
    department_id: Optional[str] = None
    semester_id: Optional[str] = None
    division_id: Optional[str] = None
    subject_id: Optional[str] = None
    faculty_id: Optional[str] = None
    lecture_type: Optional[LectureType] = None

    @classmethod
    def from_dict(cls, params: Optional[Dict]) -> "AnalyticsFilters":
        params = params or {}
        unknown = set(params) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown filter(s): {', '.join(sorted(unknown))}")
        values = {k: normalize_id(v) for k, v in params.items() if k != 'lecture_type'}
        if 'lecture_type' in params:
            values['lecture_type'] = _parse_lecture_type(params['lecture_type'])
        return cls(**values)

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, str]:
        """Set filters only, with the lecture type as its string value."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if self.lecture_type is not None:
            data['lecture_type'] = self.lecture_type.value
        return data

    def with_filter(self, key: str, value) -> "AnalyticsFilters":
        """Return a copy with one filter changed and its dependents cleared."""
        if key not in self.__dataclass_fields__:
            raise ValueError(f"Unknown filter: {key}")
        if key == 'lecture_type':
            value = _parse_lecture_type(value)
        else:
            value = normalize_id(value)
        changes = {key: value}
        for dependent in DEPENDENT_FILTERS.get(key, ()):
            changes[dependent] = None
        return replace(self, **changes)

    def matches(self, snapshot: FeedbackSnapshot) -> bool:
        for key, value in asdict(self).items():
            if value is not None and getattr(snapshot, key) != value:
                return False
        return True


def apply_filters(snapshots: Iterable[FeedbackSnapshot],
                  filters: Optional[AnalyticsFilters]) -> List[FeedbackSnapshot]:
    """Keep the snapshots matching every set filter."""
    if filters is None or filters.is_empty():
        return list(snapshots)
    return [s for s in snapshots if filters.matches(s)]


def build_filter_dictionary(snapshots: Iterable[FeedbackSnapshot]) -> FilterDictionary:
    """
    Academic year -> department -> semester -> division hierarchy.

    Snapshots missing any level's id are skipped from the levels below it.
    Years are ordered by their year string, semesters by number, departments
    and divisions by first appearance.
    """
    years: Dict[str, AcademicYearNode] = {}
    departments: Dict[tuple, DepartmentNode] = {}
    semesters: Dict[tuple, SemesterNode] = {}
    divisions = set()

    for s in snapshots:
        if s.academic_year_id is None:
            continue
        year = years.get(s.academic_year_id)
        if year is None:
            year = years[s.academic_year_id] = AcademicYearNode(id=s.academic_year_id,
                                                                year_string=s.academic_year_string)
        elif year.year_string is None:
            year.year_string = s.academic_year_string

        if s.department_id is None:
            continue
        dept_key = (s.academic_year_id, s.department_id)
        department = departments.get(dept_key)
        if department is None:
            department = departments[dept_key] = DepartmentNode(id=s.department_id,
                                                                name=s.department_name,
                                                                abbreviation=s.department_abbreviation)
            year.departments.append(department)

        if s.semester_id is None:
            continue
        sem_key = dept_key + (s.semester_id,)
        semester = semesters.get(sem_key)
        if semester is None:
            semester = semesters[sem_key] = SemesterNode(id=s.semester_id, semester_number=s.semester_number)
            department.semesters.append(semester)

        if s.division_id is None:
            continue
        div_key = sem_key + (s.division_id,)
        if div_key not in divisions:
            divisions.add(div_key)
            semester.divisions.append(DivisionNode(id=s.division_id, name=s.division_name))

    for department in departments.values():
        department.semesters.sort(key=lambda sem: (sem.semester_number is None, sem.semester_number or 0))

    ordered = sorted(years.values(), key=lambda y: (y.year_string or '', y.id))
    return FilterDictionary(academic_years=ordered)
