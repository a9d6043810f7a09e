"""Derived analytics views produced by the aggregation services."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class View:
    """Mixin giving every view a JSON-compatible dict form."""

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class OverallStats(View):
    total_responses: int
    average_rating: Optional[float]
    unique_subjects: int
    unique_faculties: int
    unique_students: int
    unique_divisions: int
    unique_departments: int


@dataclass
class SubjectRating(View):
    subject_id: str
    subject_name: Optional[str]
    subject_code: Optional[str]
    subject_abbreviation: Optional[str]
    lecture_rating: Optional[float]
    lab_rating: Optional[float]
    overall_average_rating: Optional[float]
    lecture_responses: int
    lab_responses: int
    total_overall_responses: int
    faculty_count: int
    division_count: int


@dataclass
class FacultyPerformance(View):
    faculty_id: str
    faculty_name: Optional[str]
    faculty_abbreviation: Optional[str]
    designation: Optional[str]
    average_rating: Optional[float]
    total_responses: int
    rank: int
    subject_count: int
    division_count: int


@dataclass
class DivisionComparison(View):
    division_id: str
    division_name: Optional[str]
    department_name: Optional[str]
    semester_number: Optional[int]
    average_rating: Optional[float]
    response_count: int
    faculty_count: int
    subject_count: int


@dataclass
class LectureLabComparison(View):
    lecture_average_rating: Optional[float]
    lecture_responses: int
    lab_average_rating: Optional[float]
    lab_responses: int
    difference: Optional[float]


@dataclass
class DepartmentTrendPoint(View):
    department_id: str
    department_name: Optional[str]
    average_rating: Optional[float]
    response_count: int


@dataclass
class AcademicYearDepartmentTrend(View):
    academic_year_id: str
    academic_year_string: Optional[str]
    average_rating: Optional[float]
    total_responses: int
    department_data: List[DepartmentTrendPoint] = field(default_factory=list)


@dataclass
class AcademicYearPoint(View):
    academic_year_id: str
    academic_year_string: Optional[str]
    average_rating: Optional[float]
    response_count: int


@dataclass
class AcademicYearSemesterTrend(View):
    semester_number: int
    academic_year_data: List[AcademicYearPoint] = field(default_factory=list)


@dataclass
class DivisionTrendPoint(View):
    division_id: str
    division_name: Optional[str]
    department_name: Optional[str]
    average_rating: Optional[float]
    response_count: int


@dataclass
class AcademicYearDivisionTrend(View):
    academic_year_id: str
    academic_year_string: Optional[str]
    division_data: List[DivisionTrendPoint] = field(default_factory=list)


@dataclass
class SubjectFacultyPerformance(View):
    subject_id: str
    subject_name: Optional[str]
    faculty_id: str
    faculty_name: Optional[str]
    average_rating: Optional[float]
    response_count: int
    lecture_responses: int
    lab_responses: int


@dataclass
class SubjectFacultyBreakdown(View):
    faculty_id: str
    faculty_name: Optional[str]
    faculty_abbreviation: Optional[str]
    lecture_type: Any
    average_rating: Optional[float]
    response_count: int
    divisions: List[str] = field(default_factory=list)


@dataclass
class SubjectDivisionBreakdown(View):
    division_id: str
    division_name: Optional[str]
    lecture_rating: Optional[float]
    lab_rating: Optional[float]
    overall_rating: Optional[float]
    response_count: int


@dataclass
class QuestionCategoryBreakdown(View):
    category_id: str
    category_name: Optional[str]
    average_rating: Optional[float]
    response_count: int


@dataclass
class SubjectFacultyDetailPerformance(View):
    subject_id: str
    subject_name: Optional[str]
    subject_code: Optional[str]
    overall_rating: Optional[float]
    lecture_rating: Optional[float]
    lab_rating: Optional[float]
    total_responses: int
    lecture_responses: int
    lab_responses: int
    faculty_breakdown: List[SubjectFacultyBreakdown] = field(default_factory=list)
    division_breakdown: List[SubjectDivisionBreakdown] = field(default_factory=list)
    question_breakdown: List[QuestionCategoryBreakdown] = field(default_factory=list)


@dataclass
class FilterOption(View):
    id: str
    name: Optional[str]


@dataclass
class FilteringOptions(View):
    academic_years: List[FilterOption] = field(default_factory=list)
    departments: List[FilterOption] = field(default_factory=list)
    semesters: List[FilterOption] = field(default_factory=list)
    divisions: List[FilterOption] = field(default_factory=list)
    subjects: List[FilterOption] = field(default_factory=list)
    faculties: List[FilterOption] = field(default_factory=list)
    lecture_types: List[str] = field(default_factory=list)
    question_categories: List[FilterOption] = field(default_factory=list)


@dataclass
class DivisionNode(View):
    id: str
    name: Optional[str]


@dataclass
class SemesterNode(View):
    id: str
    semester_number: Optional[int]
    divisions: List[DivisionNode] = field(default_factory=list)


@dataclass
class DepartmentNode(View):
    id: str
    name: Optional[str]
    abbreviation: Optional[str]
    semesters: List[SemesterNode] = field(default_factory=list)


@dataclass
class AcademicYearNode(View):
    id: str
    year_string: Optional[str]
    departments: List[DepartmentNode] = field(default_factory=list)


@dataclass
class FilterDictionary(View):
    academic_years: List[AcademicYearNode] = field(default_factory=list)


@dataclass
class ProcessedAnalytics(View):
    """Every view computed from one snapshot collection."""
    overall_stats: Optional[OverallStats]
    subject_ratings: List[SubjectRating]
    division_comparisons: List[DivisionComparison]
    faculty_performance: List[FacultyPerformance]
    lecture_lab_comparison: Optional[LectureLabComparison]
    filtering_options: Optional[FilteringOptions]
    academic_year_department_trends: List[AcademicYearDepartmentTrend]
    academic_year_semester_trends: List[AcademicYearSemesterTrend]
    academic_year_division_trends: List[AcademicYearDivisionTrend]
    batch_comparisons: List[DivisionComparison]
    subject_faculty_performance: List[SubjectFacultyPerformance]
    subject_faculty_detail: Optional[SubjectFacultyDetailPerformance]


@dataclass
class FacultySubjectBreakdown(View):
    subject_id: str
    subject_name: Optional[str]
    subject_abbreviation: Optional[str]
    lecture_type: Any
    semester_number: Optional[int]
    academic_year_string: Optional[str]
    average_rating: Optional[float]
    response_count: int


@dataclass
class FacultyDivisionBreakdown(View):
    division_id: str
    division_name: Optional[str]
    subject_name: Optional[str]
    lecture_type: Any
    average_rating: Optional[float]
    response_count: int


@dataclass
class FacultyTrendPoint(View):
    academic_year_id: str
    academic_year_string: Optional[str]
    semester_number: Optional[int]
    average_rating: Optional[float]
    response_count: int


@dataclass
class FacultyDetail(View):
    faculty_id: str
    faculty_name: Optional[str]
    faculty_abbreviation: Optional[str]
    designation: Optional[str]
    overall_rating: Optional[float]
    total_responses: int
    rank: int
    total_faculty: int
    percentile: float
    subject_breakdown: List[FacultySubjectBreakdown] = field(default_factory=list)
    division_breakdown: List[FacultyDivisionBreakdown] = field(default_factory=list)
    question_category_breakdown: List[QuestionCategoryBreakdown] = field(default_factory=list)
    trend_data: List[FacultyTrendPoint] = field(default_factory=list)


@dataclass
class DivisionFacultyBreakdown(View):
    faculty_id: str
    faculty_name: Optional[str]
    faculty_abbreviation: Optional[str]
    subject_name: Optional[str]
    lecture_type: Any
    average_rating: Optional[float]
    response_count: int


@dataclass
class DivisionSubjectBreakdown(View):
    subject_id: str
    subject_name: Optional[str]
    subject_abbreviation: Optional[str]
    lecture_rating: Optional[float]
    lab_rating: Optional[float]
    overall_rating: Optional[float]
    response_count: int


@dataclass
class DivisionDetail(View):
    division_id: str
    division_name: Optional[str]
    department_name: Optional[str]
    semester_number: Optional[int]
    overall_rating: Optional[float]
    total_responses: int
    faculty_breakdown: List[DivisionFacultyBreakdown] = field(default_factory=list)
    subject_breakdown: List[DivisionSubjectBreakdown] = field(default_factory=list)
    academic_year_comparison: List[AcademicYearPoint] = field(default_factory=list)
