"""
Aggregation engine: derives analytics views from feedback snapshots.

Every function here is pure. Input collections are only iterated, never
mutated, and each call builds fresh output objects. Snapshots whose rating
is None take part in distinct counts but never in a mean or a response
count, and a snapshot missing the id a view groups on is left out of that
view only.
"""

import logging
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from ..models.snapshot import FeedbackSnapshot, LectureType
from ..models.views import (
    AcademicYearDepartmentTrend,
    AcademicYearDivisionTrend,
    AcademicYearPoint,
    AcademicYearSemesterTrend,
    DepartmentTrendPoint,
    DivisionComparison,
    DivisionTrendPoint,
    FacultyPerformance,
    FilterOption,
    FilteringOptions,
    LectureLabComparison,
    OverallStats,
    ProcessedAnalytics,
    QuestionCategoryBreakdown,
    SubjectDivisionBreakdown,
    SubjectFacultyBreakdown,
    SubjectFacultyDetailPerformance,
    SubjectFacultyPerformance,
    SubjectRating,
)
from ..utils import mean, weighted_mean
from .filters import AnalyticsFilters

logger = logging.getLogger(__name__)

Snapshots = Sequence[FeedbackSnapshot]


# ── Helpers ─────────────────────────────────────────────────────────

def group_by(snapshots: Iterable[FeedbackSnapshot],
             key: Callable[[FeedbackSnapshot], Hashable]) -> Dict[Hashable, List[FeedbackSnapshot]]:
    """Group snapshots in first-seen order, dropping those whose key is None."""
    groups: Dict[Hashable, List[FeedbackSnapshot]] = {}
    for snapshot in snapshots:
        value = key(snapshot)
        if value is None:
            continue
        groups.setdefault(value, []).append(snapshot)
    return groups


def _attr_key(name):
    return lambda s: getattr(s, name)


def _pair_key(first, second):
    def key(snapshot):
        a, b = getattr(snapshot, first), getattr(snapshot, second)
        if a is None or b is None:
            return None
        return a, b
    return key


def ratings_of(snapshots: Iterable[FeedbackSnapshot]) -> List[float]:
    return [s.rating for s in snapshots if s.is_rated]


def rating_summary(snapshots: Iterable[FeedbackSnapshot]):
    """(mean, rated count) over the snapshots."""
    ratings = ratings_of(snapshots)
    return mean(ratings), len(ratings)


def segment_summary(snapshots: Iterable[FeedbackSnapshot], lecture_type: LectureType):
    """(mean, rated count) for one lecture type."""
    return rating_summary(s for s in snapshots if s.lecture_type is lecture_type)


def lecture_lab_summary(snapshots: Snapshots):
    """Lecture and lab segment summaries plus their response-weighted combination."""
    lecture_mean, lecture_count = segment_summary(snapshots, LectureType.LECTURE)
    lab_mean, lab_count = segment_summary(snapshots, LectureType.LAB)
    overall = weighted_mean([(lecture_mean, lecture_count), (lab_mean, lab_count)])
    return {
        'lecture_rating': lecture_mean,
        'lecture_responses': lecture_count,
        'lab_rating': lab_mean,
        'lab_responses': lab_count,
        'overall_rating': overall,
        'total_responses': lecture_count + lab_count,
    }


def display_value(snapshots: Iterable[FeedbackSnapshot], name: str):
    """
    Descriptive value of an attribute for a group, independent of input order.

    Taken from the latest academic year the attribute is set in; within that
    year the greatest value wins.
    """
    best = None
    for snapshot in snapshots:
        value = getattr(snapshot, name)
        if value is None:
            continue
        candidate = (snapshot.academic_year_string or '', value)
        if best is None or candidate > best:
            best = candidate
    return best[1] if best else None


def distinct_count(snapshots: Iterable[FeedbackSnapshot], name: str) -> int:
    return len({getattr(s, name) for s in snapshots} - {None})


def _year_sort_key(item):
    (year_id, year_string) = item
    return (year_string or '', year_id)


# ── Engine ──────────────────────────────────────────────────────────

def compute_overall_stats(snapshots: Snapshots) -> Optional[OverallStats]:
    if not snapshots:
        return None
    return OverallStats(
        total_responses=len(snapshots),
        average_rating=mean(ratings_of(snapshots)),
        unique_subjects=distinct_count(snapshots, 'subject_id'),
        unique_faculties=distinct_count(snapshots, 'faculty_id'),
        unique_students=distinct_count(snapshots, 'student_id'),
        unique_divisions=distinct_count(snapshots, 'division_id'),
        unique_departments=distinct_count(snapshots, 'department_id'),
    )


def compute_subject_ratings(snapshots: Snapshots) -> List[SubjectRating]:
    """
    Lecture, lab and overall ratings per subject.

    The overall rating weighs each segment mean by its response count, so a
    subject with 30 lecture and 10 lab responses leans towards its lecture
    mean. A segment without ratings reports None with a count of 0.
    """
    results = []
    for subject_id, rows in group_by(snapshots, _attr_key('subject_id')).items():
        summary = lecture_lab_summary(rows)
        results.append(SubjectRating(
            subject_id=subject_id,
            subject_name=display_value(rows, 'subject_name'),
            subject_code=display_value(rows, 'subject_code'),
            subject_abbreviation=display_value(rows, 'subject_abbreviation'),
            lecture_rating=summary['lecture_rating'],
            lab_rating=summary['lab_rating'],
            overall_average_rating=summary['overall_rating'],
            lecture_responses=summary['lecture_responses'],
            lab_responses=summary['lab_responses'],
            total_overall_responses=summary['total_responses'],
            faculty_count=distinct_count(rows, 'faculty_id'),
            division_count=distinct_count(rows, 'division_id'),
        ))
    return results


def compute_faculty_performance(snapshots: Snapshots) -> List[FacultyPerformance]:
    """
    Faculty ranked by mean rating, highest first.

    Ties keep the order in which the faculty first appear in the input.
    Faculty without any rated response rank after everyone else.
    """
    entries = []
    for faculty_id, rows in group_by(snapshots, _attr_key('faculty_id')).items():
        average, count = rating_summary(rows)
        entries.append(FacultyPerformance(
            faculty_id=faculty_id,
            faculty_name=display_value(rows, 'faculty_name'),
            faculty_abbreviation=display_value(rows, 'faculty_abbreviation'),
            designation=display_value(rows, 'faculty_designation'),
            average_rating=average,
            total_responses=count,
            rank=0,
            subject_count=distinct_count(rows, 'subject_id'),
            division_count=distinct_count(rows, 'division_id'),
        ))

    # sorted() is stable
    ranked = sorted(entries, key=lambda f: (f.average_rating is None, -(f.average_rating or 0.0)))
    for position, entry in enumerate(ranked, start=1):
        entry.rank = position
    return ranked


def compute_division_comparisons(snapshots: Snapshots) -> List[DivisionComparison]:
    results = []
    for division_id, rows in group_by(snapshots, _attr_key('division_id')).items():
        average, count = rating_summary(rows)
        results.append(DivisionComparison(
            division_id=division_id,
            division_name=display_value(rows, 'division_name'),
            department_name=display_value(rows, 'department_name'),
            semester_number=display_value(rows, 'semester_number'),
            average_rating=average,
            response_count=count,
            faculty_count=distinct_count(rows, 'faculty_id'),
            subject_count=distinct_count(rows, 'subject_id'),
        ))
    return results


def compute_batch_comparisons(snapshots: Snapshots, division_id: Optional[str]) -> List[DivisionComparison]:
    """Division comparison restricted to one division's snapshots."""
    if not division_id:
        return []
    return compute_division_comparisons([s for s in snapshots if s.division_id == division_id])


def compute_lecture_lab_comparison(snapshots: Snapshots) -> Optional[LectureLabComparison]:
    if not snapshots:
        return None
    lecture_mean, lecture_count = segment_summary(snapshots, LectureType.LECTURE)
    lab_mean, lab_count = segment_summary(snapshots, LectureType.LAB)
    difference = None
    if lecture_mean is not None and lab_mean is not None:
        difference = lecture_mean - lab_mean
    return LectureLabComparison(
        lecture_average_rating=lecture_mean,
        lecture_responses=lecture_count,
        lab_average_rating=lab_mean,
        lab_responses=lab_count,
        difference=difference,
    )


def _group_by_year(snapshots: Snapshots):
    """Academic year groups keyed by (id, year string), sorted by year string."""
    years = group_by(snapshots, _attr_key('academic_year_id'))
    keyed = {(year_id, display_value(rows, 'academic_year_string')): rows
             for year_id, rows in years.items()}
    return sorted(keyed.items(), key=lambda item: _year_sort_key(item[0]))


def compute_academic_year_department_trends(snapshots: Snapshots) -> List[AcademicYearDepartmentTrend]:
    results = []
    for (year_id, year_string), rows in _group_by_year(snapshots):
        cells = []
        for department_id, dept_rows in group_by(rows, _attr_key('department_id')).items():
            average, count = rating_summary(dept_rows)
            cells.append(DepartmentTrendPoint(
                department_id=department_id,
                department_name=display_value(dept_rows, 'department_name'),
                average_rating=average,
                response_count=count,
            ))
        results.append(AcademicYearDepartmentTrend(
            academic_year_id=year_id,
            academic_year_string=year_string,
            average_rating=weighted_mean([(c.average_rating, c.response_count) for c in cells]),
            total_responses=sum(c.response_count for c in cells),
            department_data=cells,
        ))
    return results


def compute_academic_year_semester_trends(snapshots: Snapshots) -> List[AcademicYearSemesterTrend]:
    """Per semester number, the rating of that semester in each academic year."""
    results = []
    semesters = group_by(snapshots, _attr_key('semester_number'))
    for semester_number in sorted(semesters):
        series = []
        for (year_id, year_string), rows in _group_by_year(semesters[semester_number]):
            average, count = rating_summary(rows)
            series.append(AcademicYearPoint(
                academic_year_id=year_id,
                academic_year_string=year_string,
                average_rating=average,
                response_count=count,
            ))
        results.append(AcademicYearSemesterTrend(
            semester_number=semester_number,
            academic_year_data=series,
        ))
    return results


def compute_academic_year_division_trends(snapshots: Snapshots) -> List[AcademicYearDivisionTrend]:
    results = []
    for (year_id, year_string), rows in _group_by_year(snapshots):
        cells = []
        for division_id, div_rows in group_by(rows, _attr_key('division_id')).items():
            average, count = rating_summary(div_rows)
            cells.append(DivisionTrendPoint(
                division_id=division_id,
                division_name=display_value(div_rows, 'division_name'),
                department_name=display_value(div_rows, 'department_name'),
                average_rating=average,
                response_count=count,
            ))
        results.append(AcademicYearDivisionTrend(
            academic_year_id=year_id,
            academic_year_string=year_string,
            division_data=cells,
        ))
    return results


def compute_subject_faculty_performance(snapshots: Snapshots) -> List[SubjectFacultyPerformance]:
    results = []
    for (subject_id, faculty_id), rows in group_by(snapshots, _pair_key('subject_id', 'faculty_id')).items():
        average, count = rating_summary(rows)
        results.append(SubjectFacultyPerformance(
            subject_id=subject_id,
            subject_name=display_value(rows, 'subject_name'),
            faculty_id=faculty_id,
            faculty_name=display_value(rows, 'faculty_name'),
            average_rating=average,
            response_count=count,
            lecture_responses=segment_summary(rows, LectureType.LECTURE)[1],
            lab_responses=segment_summary(rows, LectureType.LAB)[1],
        ))
    return results


def compute_subject_faculty_detail_performance(snapshots: Snapshots,
                                               subject_id: str) -> Optional[SubjectFacultyDetailPerformance]:
    """
    Drill-down for a single subject.

    Returns None when no snapshot refers to the subject. The faculty
    breakdown has one row per (faculty, lecture type) with the names of the
    divisions taught; division rows combine lecture and lab by response
    weight; question categories report their own mean.
    """
    if subject_id is None:
        return None
    rows = [s for s in snapshots if s.subject_id == subject_id]
    if not rows:
        return None

    faculty_breakdown = []
    for (faculty_id, lecture_type), fac_rows in group_by(rows, _pair_key('faculty_id', 'lecture_type')).items():
        average, count = rating_summary(fac_rows)
        divisions = {s.division_name or s.division_id for s in fac_rows} - {None}
        faculty_breakdown.append(SubjectFacultyBreakdown(
            faculty_id=faculty_id,
            faculty_name=display_value(fac_rows, 'faculty_name'),
            faculty_abbreviation=display_value(fac_rows, 'faculty_abbreviation'),
            lecture_type=lecture_type,
            average_rating=average,
            response_count=count,
            divisions=sorted(divisions),
        ))

    division_breakdown = []
    for division_id, div_rows in group_by(rows, _attr_key('division_id')).items():
        summary = lecture_lab_summary(div_rows)
        division_breakdown.append(SubjectDivisionBreakdown(
            division_id=division_id,
            division_name=display_value(div_rows, 'division_name'),
            lecture_rating=summary['lecture_rating'],
            lab_rating=summary['lab_rating'],
            overall_rating=summary['overall_rating'],
            response_count=summary['total_responses'],
        ))

    question_breakdown = []
    for category_id, cat_rows in group_by(rows, _attr_key('question_category_id')).items():
        average, count = rating_summary(cat_rows)
        question_breakdown.append(QuestionCategoryBreakdown(
            category_id=category_id,
            category_name=display_value(cat_rows, 'question_category_name'),
            average_rating=average,
            response_count=count,
        ))

    summary = lecture_lab_summary(rows)
    return SubjectFacultyDetailPerformance(
        subject_id=subject_id,
        subject_name=display_value(rows, 'subject_name'),
        subject_code=display_value(rows, 'subject_code'),
        overall_rating=summary['overall_rating'],
        lecture_rating=summary['lecture_rating'],
        lab_rating=summary['lab_rating'],
        total_responses=summary['total_responses'],
        lecture_responses=summary['lecture_responses'],
        lab_responses=summary['lab_responses'],
        faculty_breakdown=faculty_breakdown,
        division_breakdown=division_breakdown,
        question_breakdown=question_breakdown,
    )


def _options(snapshots: Snapshots, id_name: str, label_name: str) -> List[FilterOption]:
    return [FilterOption(id=value, name=display_value(rows, label_name))
            for value, rows in group_by(snapshots, _attr_key(id_name)).items()]


def get_filtering_options(snapshots: Snapshots) -> Optional[FilteringOptions]:
    """Distinct values present in the snapshots, for populating filter controls."""
    if not snapshots:
        return None

    semesters = []
    for semester_id, rows in group_by(snapshots, _attr_key('semester_id')).items():
        number = display_value(rows, 'semester_number')
        semesters.append(FilterOption(id=semester_id, name=f"Semester {number}" if number is not None else None))

    lecture_types = list(group_by(snapshots, _attr_key('lecture_type')))
    return FilteringOptions(
        academic_years=sorted(_options(snapshots, 'academic_year_id', 'academic_year_string'),
                              key=lambda o: (o.name or '', o.id)),
        departments=_options(snapshots, 'department_id', 'department_name'),
        semesters=semesters,
        divisions=_options(snapshots, 'division_id', 'division_name'),
        subjects=_options(snapshots, 'subject_id', 'subject_name'),
        faculties=_options(snapshots, 'faculty_id', 'faculty_name'),
        lecture_types=[lt.value for lt in lecture_types],
        question_categories=_options(snapshots, 'question_category_id', 'question_category_name'),
    )


def process_analytics(snapshots: Iterable[FeedbackSnapshot],
                      filters: Optional[AnalyticsFilters] = None) -> ProcessedAnalytics:
    """
    Compute every view for one snapshot collection.

    The snapshots are expected to be scoped already by the data source.
    Only ``division_id`` (batch comparison) and ``subject_id`` (subject
    drill-down) of the filters are used here.
    """
    frozen = tuple(snapshots)
    filters = filters or AnalyticsFilters()
    logger.debug("Processing analytics for %d snapshots (filters=%s)", len(frozen), filters.to_dict())

    subject_detail = None
    if filters.subject_id:
        subject_detail = compute_subject_faculty_detail_performance(frozen, filters.subject_id)

    return ProcessedAnalytics(
        overall_stats=compute_overall_stats(frozen),
        subject_ratings=compute_subject_ratings(frozen),
        division_comparisons=compute_division_comparisons(frozen),
        faculty_performance=compute_faculty_performance(frozen),
        lecture_lab_comparison=compute_lecture_lab_comparison(frozen),
        filtering_options=get_filtering_options(frozen),
        academic_year_department_trends=compute_academic_year_department_trends(frozen),
        academic_year_semester_trends=compute_academic_year_semester_trends(frozen),
        academic_year_division_trends=compute_academic_year_division_trends(frozen),
        batch_comparisons=compute_batch_comparisons(frozen, filters.division_id),
        subject_faculty_performance=compute_subject_faculty_performance(frozen),
        subject_faculty_detail=subject_detail,
    )
