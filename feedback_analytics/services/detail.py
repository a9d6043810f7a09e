"""
Drill-down analytics for a single faculty member or division.
"""

from typing import Optional

from ..models.views import (
    AcademicYearPoint,
    DivisionDetail,
    DivisionFacultyBreakdown,
    DivisionSubjectBreakdown,
    FacultyDetail,
    FacultyDivisionBreakdown,
    FacultySubjectBreakdown,
    FacultyTrendPoint,
    QuestionCategoryBreakdown,
)
from .aggregation import (
    Snapshots,
    compute_faculty_performance,
    display_value,
    group_by,
    lecture_lab_summary,
    rating_summary,
)


def _key(*names):
    def key(snapshot):
        values = tuple(getattr(snapshot, name) for name in names)
        if values[0] is None:
            return None
        return values
    return key


def _question_categories(rows):
    results = []
    for (category_id,), cat_rows in group_by(rows, _key('question_category_id')).items():
        average, count = rating_summary(cat_rows)
        results.append(QuestionCategoryBreakdown(
            category_id=category_id,
            category_name=display_value(cat_rows, 'question_category_name'),
            average_rating=average,
            response_count=count,
        ))
    return results


def compute_faculty_detail(snapshots: Snapshots, faculty_id: str) -> Optional[FacultyDetail]:
    """
    Drill-down for one faculty member, ranked against every faculty in
    ``snapshots``. Returns None when the faculty does not appear.
    """
    if faculty_id is None:
        return None
    rows = [s for s in snapshots if s.faculty_id == faculty_id]
    if not rows:
        return None

    ranking = compute_faculty_performance(snapshots)
    total_faculty = len(ranking)
    rank = next((f.rank for f in ranking if f.faculty_id == faculty_id), None)
    if rank is None:
        return None
    percentile = (total_faculty - rank + 1) / total_faculty * 100

    subject_breakdown = []
    subject_key = _key('subject_id', 'lecture_type', 'semester_number', 'academic_year_id')
    for (subject_id, lecture_type, semester_number, _year), sub_rows in group_by(rows, subject_key).items():
        average, count = rating_summary(sub_rows)
        subject_breakdown.append(FacultySubjectBreakdown(
            subject_id=subject_id,
            subject_name=display_value(sub_rows, 'subject_name'),
            subject_abbreviation=display_value(sub_rows, 'subject_abbreviation'),
            lecture_type=lecture_type,
            semester_number=semester_number,
            academic_year_string=display_value(sub_rows, 'academic_year_string'),
            average_rating=average,
            response_count=count,
        ))

    division_breakdown = []
    division_key = _key('division_id', 'subject_id', 'lecture_type')
    for (division_id, _subject, lecture_type), div_rows in group_by(rows, division_key).items():
        average, count = rating_summary(div_rows)
        division_breakdown.append(FacultyDivisionBreakdown(
            division_id=division_id,
            division_name=display_value(div_rows, 'division_name'),
            subject_name=display_value(div_rows, 'subject_name'),
            lecture_type=lecture_type,
            average_rating=average,
            response_count=count,
        ))

    trend_data = []
    trend_groups = group_by(rows, _key('academic_year_id', 'semester_number'))
    for (year_id, semester_number), trend_rows in trend_groups.items():
        average, count = rating_summary(trend_rows)
        trend_data.append(FacultyTrendPoint(
            academic_year_id=year_id,
            academic_year_string=display_value(trend_rows, 'academic_year_string'),
            semester_number=semester_number,
            average_rating=average,
            response_count=count,
        ))
    trend_data.sort(key=lambda t: (t.academic_year_string or '', t.semester_number or 0))

    average, count = rating_summary(rows)
    return FacultyDetail(
        faculty_id=faculty_id,
        faculty_name=display_value(rows, 'faculty_name'),
        faculty_abbreviation=display_value(rows, 'faculty_abbreviation'),
        designation=display_value(rows, 'faculty_designation'),
        overall_rating=average,
        total_responses=count,
        rank=rank,
        total_faculty=total_faculty,
        percentile=percentile,
        subject_breakdown=subject_breakdown,
        division_breakdown=division_breakdown,
        question_category_breakdown=_question_categories(rows),
        trend_data=trend_data,
    )


def compute_division_detail(snapshots: Snapshots, division_id: str) -> Optional[DivisionDetail]:
    if division_id is None:
        return None
    rows = [s for s in snapshots if s.division_id == division_id]
    if not rows:
        return None

    faculty_breakdown = []
    faculty_key = _key('faculty_id', 'subject_id', 'lecture_type')
    for (faculty_id, _subject, lecture_type), fac_rows in group_by(rows, faculty_key).items():
        average, count = rating_summary(fac_rows)
        faculty_breakdown.append(DivisionFacultyBreakdown(
            faculty_id=faculty_id,
            faculty_name=display_value(fac_rows, 'faculty_name'),
            faculty_abbreviation=display_value(fac_rows, 'faculty_abbreviation'),
            subject_name=display_value(fac_rows, 'subject_name'),
            lecture_type=lecture_type,
            average_rating=average,
            response_count=count,
        ))

    subject_breakdown = []
    for (subject_id,), sub_rows in group_by(rows, _key('subject_id')).items():
        summary = lecture_lab_summary(sub_rows)
        subject_breakdown.append(DivisionSubjectBreakdown(
            subject_id=subject_id,
            subject_name=display_value(sub_rows, 'subject_name'),
            subject_abbreviation=display_value(sub_rows, 'subject_abbreviation'),
            lecture_rating=summary['lecture_rating'],
            lab_rating=summary['lab_rating'],
            overall_rating=summary['overall_rating'],
            response_count=summary['total_responses'],
        ))

    year_comparison = []
    for (year_id,), year_rows in group_by(rows, _key('academic_year_id')).items():
        average, count = rating_summary(year_rows)
        year_comparison.append(AcademicYearPoint(
            academic_year_id=year_id,
            academic_year_string=display_value(year_rows, 'academic_year_string'),
            average_rating=average,
            response_count=count,
        ))
    year_comparison.sort(key=lambda y: (y.academic_year_string or '', y.academic_year_id))

    average, count = rating_summary(rows)
    return DivisionDetail(
        division_id=division_id,
        division_name=display_value(rows, 'division_name'),
        department_name=display_value(rows, 'department_name'),
        semester_number=display_value(rows, 'semester_number'),
        overall_rating=average,
        total_responses=count,
        faculty_breakdown=faculty_breakdown,
        subject_breakdown=subject_breakdown,
        academic_year_comparison=year_comparison,
    )
