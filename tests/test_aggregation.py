import pytest

from feedback_analytics.models.snapshot import LectureType
from feedback_analytics.services.aggregation import (
    compute_academic_year_department_trends,
    compute_academic_year_division_trends,
    compute_academic_year_semester_trends,
    compute_batch_comparisons,
    compute_division_comparisons,
    compute_faculty_performance,
    compute_lecture_lab_comparison,
    compute_overall_stats,
    compute_subject_faculty_detail_performance,
    compute_subject_faculty_performance,
    compute_subject_ratings,
    get_filtering_options,
    group_by,
    process_analytics,
)
from feedback_analytics.services.filters import AnalyticsFilters


def by_id(items, attr):
    return {getattr(item, attr): item for item in items}


# Overall stats

def test_overall_stats_counts_every_snapshot(sample_snapshots):
    stats = compute_overall_stats(sample_snapshots)
    assert stats.total_responses == 6
    assert stats.average_rating == pytest.approx(3.6)
    assert stats.unique_subjects == 2
    assert stats.unique_faculties == 3
    assert stats.unique_students == 4
    assert stats.unique_divisions == 2
    assert stats.unique_departments == 2


def test_empty_input_gives_empty_views():
    assert compute_overall_stats([]) is None
    assert compute_lecture_lab_comparison([]) is None
    assert get_filtering_options([]) is None
    assert compute_subject_ratings([]) == []
    assert compute_faculty_performance([]) == []
    assert compute_division_comparisons([]) == []
    assert compute_academic_year_department_trends([]) == []
    assert compute_academic_year_semester_trends([]) == []
    assert compute_academic_year_division_trends([]) == []
    assert compute_subject_faculty_performance([]) == []


def test_two_ratings_average(make_snapshot):
    rows = [make_snapshot(rating=4), make_snapshot(student_id='ST2', rating=5)]
    stats = compute_overall_stats(rows)
    assert stats.average_rating == pytest.approx(4.5)
    assert stats.total_responses == 2

    subject = compute_subject_ratings(rows)[0]
    assert subject.overall_average_rating == pytest.approx(4.5)
    assert subject.total_overall_responses == 2


def test_unrated_snapshots_only(make_snapshot):
    stats = compute_overall_stats([make_snapshot(rating=None)])
    assert stats.total_responses == 1
    assert stats.average_rating is None


# Subject ratings

def test_subject_ratings_weigh_lecture_and_lab_by_count(sample_snapshots):
    ratings = by_id(compute_subject_ratings(sample_snapshots), 'subject_id')

    ds = ratings['SUB1']
    assert ds.lecture_rating == pytest.approx(4.5)
    assert ds.lecture_responses == 2
    assert ds.lab_rating == pytest.approx(3.0)
    assert ds.lab_responses == 1
    assert ds.overall_average_rating == pytest.approx(4.0)
    assert ds.total_overall_responses == 3
    assert ds.faculty_count == 2
    assert ds.subject_code == 'CS301'


def test_subject_without_rated_lab_uses_lecture_only(sample_snapshots):
    networks = by_id(compute_subject_ratings(sample_snapshots), 'subject_id')['SUB2']
    assert networks.lab_rating is None
    assert networks.lab_responses == 0
    assert networks.overall_average_rating == networks.lecture_rating == pytest.approx(3.0)
    assert networks.total_overall_responses == 2


def test_weighted_overall_is_not_simple_average(make_snapshot):
    rows = [make_snapshot(student_id=f'L{i}', rating=5) for i in range(3)]
    rows.append(make_snapshot(student_id='B1', lecture_type=LectureType.LAB, rating=1))
    rating = compute_subject_ratings(rows)[0]
    assert rating.overall_average_rating == pytest.approx((5 * 3 + 1) / 4)
    assert rating.overall_average_rating != pytest.approx((5 + 1) / 2)


def test_unknown_lecture_type_excluded_from_segments(make_snapshot):
    rows = [make_snapshot(rating=4), make_snapshot(student_id='ST2', lecture_type=None, rating=1)]
    rating = compute_subject_ratings(rows)[0]
    assert rating.overall_average_rating == pytest.approx(4.0)
    assert rating.total_overall_responses == 1


def test_snapshots_without_subject_are_skipped(make_snapshot):
    rows = [make_snapshot(), make_snapshot(subject_id=None)]
    assert [r.subject_id for r in compute_subject_ratings(rows)] == ['SUB1']
    assert compute_overall_stats(rows).total_responses == 2


# Faculty performance

def test_faculty_ranked_by_average(sample_snapshots):
    ranking = compute_faculty_performance(sample_snapshots)
    assert [f.faculty_id for f in ranking] == ['F1', 'F2', 'F3']
    assert [f.rank for f in ranking] == [1, 2, 3]
    assert ranking[0].average_rating == pytest.approx(4.5)
    assert ranking[2].total_responses == 1  # the unrated response is not counted


def test_faculty_rank_is_monotonic(sample_snapshots):
    ranking = compute_faculty_performance(sample_snapshots)
    averages = [f.average_rating for f in ranking]
    assert averages == sorted(averages, reverse=True)


def test_faculty_ties_keep_first_seen_order(make_snapshot):
    rows = [
        make_snapshot(faculty_id='F9', rating=4),
        make_snapshot(faculty_id='F2', rating=5),
        make_snapshot(faculty_id='F1', rating=4),
    ]
    ranking = compute_faculty_performance(rows)
    assert [f.faculty_id for f in ranking] == ['F2', 'F9', 'F1']
    assert [f.rank for f in ranking] == [1, 2, 3]


def test_unrated_faculty_rank_last(make_snapshot):
    rows = [make_snapshot(faculty_id='F1', rating=None), make_snapshot(faculty_id='F2', rating=1)]
    ranking = compute_faculty_performance(rows)
    assert [f.faculty_id for f in ranking] == ['F2', 'F1']
    assert ranking[1].average_rating is None
    assert ranking[1].total_responses == 0


# Divisions and lecture/lab

def test_division_comparisons(sample_snapshots):
    divisions = by_id(compute_division_comparisons(sample_snapshots), 'division_id')
    assert divisions['DV1'].average_rating == pytest.approx(4.0)
    assert divisions['DV1'].response_count == 3
    assert divisions['DV2'].average_rating == pytest.approx(3.0)
    assert divisions['DV2'].response_count == 2
    assert divisions['DV2'].faculty_count == 2


def test_batch_comparisons_restricted_to_division(sample_snapshots):
    batch = compute_batch_comparisons(sample_snapshots, 'DV2')
    assert [d.division_id for d in batch] == ['DV2']
    assert compute_batch_comparisons(sample_snapshots, None) == []
    assert compute_batch_comparisons(sample_snapshots, 'missing') == []


def test_lecture_lab_comparison(sample_snapshots):
    comparison = compute_lecture_lab_comparison(sample_snapshots)
    assert comparison.lecture_average_rating == pytest.approx(3.75)
    assert comparison.lecture_responses == 4
    assert comparison.lab_average_rating == pytest.approx(3.0)
    assert comparison.lab_responses == 1
    assert comparison.difference == pytest.approx(0.75)


def test_lecture_lab_without_lab(make_snapshot):
    comparison = compute_lecture_lab_comparison([make_snapshot()])
    assert comparison.lab_average_rating is None
    assert comparison.lab_responses == 0
    assert comparison.difference is None


# Trends

def test_department_trends_ordered_by_year(sample_snapshots):
    trends = compute_academic_year_department_trends(sample_snapshots)
    assert [t.academic_year_string for t in trends] == ['2023-24', '2024-25']
    older, newer = trends
    assert [d.department_name for d in older.department_data] == ['IT']
    assert older.average_rating == pytest.approx(2.0)
    assert newer.department_data[0].average_rating == pytest.approx(4.0)
    assert newer.total_responses == 4


def test_semester_trends(sample_snapshots):
    trends = compute_academic_year_semester_trends(sample_snapshots)
    assert [t.semester_number for t in trends] == [3, 5]
    sem3 = trends[0].academic_year_data
    assert [(p.academic_year_id, p.response_count) for p in sem3] == [('AY2', 4)]
    assert sem3[0].average_rating == pytest.approx(4.0)


def test_division_trends(sample_snapshots):
    trends = compute_academic_year_division_trends(sample_snapshots)
    newer = trends[-1]
    cells = by_id(newer.division_data, 'division_id')
    assert cells['DV1'].response_count == 3
    assert cells['DV2'].average_rating == pytest.approx(4.0)


# Subject/faculty

def test_subject_faculty_performance(sample_snapshots):
    pairs = {(p.subject_id, p.faculty_id): p for p in compute_subject_faculty_performance(sample_snapshots)}
    assert set(pairs) == {('SUB1', 'F1'), ('SUB1', 'F2'), ('SUB2', 'F2'), ('SUB2', 'F3')}
    f3 = pairs[('SUB2', 'F3')]
    assert f3.average_rating == pytest.approx(2.0)
    assert f3.response_count == 1
    assert f3.lecture_responses == 1
    assert f3.lab_responses == 0


def test_subject_detail(sample_snapshots):
    detail = compute_subject_faculty_detail_performance(sample_snapshots, 'SUB1')
    assert detail.overall_rating == pytest.approx(4.0)
    assert detail.total_responses == 3

    faculty = {(f.faculty_id, f.lecture_type): f for f in detail.faculty_breakdown}
    assert faculty[('F1', LectureType.LECTURE)].average_rating == pytest.approx(4.5)
    assert faculty[('F1', LectureType.LECTURE)].divisions == ['A']
    assert faculty[('F2', LectureType.LAB)].response_count == 1

    division = detail.division_breakdown[0]
    assert division.lecture_rating == pytest.approx(4.5)
    assert division.lab_rating == pytest.approx(3.0)
    assert division.overall_rating == pytest.approx(4.0)

    categories = by_id(detail.question_breakdown, 'category_id')
    assert categories['Q1'].average_rating == pytest.approx(4.5)
    assert categories['Q2'].response_count == 1


def test_subject_detail_for_unknown_subject(sample_snapshots):
    assert compute_subject_faculty_detail_performance(sample_snapshots, 'NOPE') is None


# Filtering options

def test_filtering_options_cover_every_value(sample_snapshots):
    options = get_filtering_options(sample_snapshots)
    assert [o.id for o in options.academic_years] == ['AY1', 'AY2']
    assert {o.id for o in options.departments} == {'D1', 'D2'}
    assert [(o.id, o.name) for o in options.semesters] == [('S3', 'Semester 3'), ('S5', 'Semester 5')]
    assert {o.id for o in options.faculties} == {s.faculty_id for s in sample_snapshots}
    assert {o.id for o in options.subjects} == {s.subject_id for s in sample_snapshots}
    assert options.lecture_types == ['LECTURE', 'LAB']
    assert {o.id for o in options.question_categories} == {'Q1', 'Q2'}


# Grouping and full pipeline

def test_group_by_keeps_first_seen_order(make_snapshot):
    rows = [make_snapshot(faculty_id='B'), make_snapshot(faculty_id='A'), make_snapshot(faculty_id=None)]
    assert list(group_by(rows, lambda s: s.faculty_id)) == ['B', 'A']


def test_process_analytics_is_idempotent(sample_snapshots):
    first = process_analytics(sample_snapshots)
    second = process_analytics(sample_snapshots)
    assert first == second
    assert first.batch_comparisons == []
    assert first.subject_faculty_detail is None


def test_process_analytics_does_not_mutate_input(sample_snapshots):
    before = list(sample_snapshots)
    process_analytics(sample_snapshots)
    assert sample_snapshots == before


def test_process_analytics_accepts_generators(sample_snapshots):
    result = process_analytics(s for s in sample_snapshots)
    assert result.overall_stats.total_responses == 6
    assert len(result.faculty_performance) == 3


def test_process_analytics_uses_division_and_subject_filters(sample_snapshots):
    filters = AnalyticsFilters(division_id='DV1', subject_id='SUB2')
    result = process_analytics(sample_snapshots, filters)
    assert [d.division_id for d in result.batch_comparisons] == ['DV1']
    assert result.subject_faculty_detail.subject_id == 'SUB2'
    # the rest is computed over the whole input
    assert result.overall_stats.total_responses == 6


def test_process_analytics_empty():
    result = process_analytics([])
    assert result.overall_stats is None
    assert result.filtering_options is None
    assert result.subject_ratings == []


def test_processed_to_dict_is_plain(sample_snapshots):
    data = process_analytics(sample_snapshots).to_dict()
    assert data['overall_stats']['total_responses'] == 6
    assert data['filtering_options']['lecture_types'] == ['LECTURE', 'LAB']


# Order independence

def keyed(items, *attrs):
    return {tuple(getattr(item, a) for a in attrs): item.to_dict() for item in items}


def per_key_views(snapshots):
    result = process_analytics(snapshots, AnalyticsFilters(division_id='DV2', subject_id='SUB1'))
    options = result.filtering_options
    detail = result.subject_faculty_detail
    return {
        'overall': result.overall_stats,
        'lecture_lab': result.lecture_lab_comparison,
        'subjects': keyed(result.subject_ratings, 'subject_id'),
        'faculty': keyed(result.faculty_performance, 'faculty_id'),
        'divisions': keyed(result.division_comparisons, 'division_id'),
        'batch': keyed(result.batch_comparisons, 'division_id'),
        'subject_faculty': keyed(result.subject_faculty_performance, 'subject_id', 'faculty_id'),
        'department_trends': {
            (t.academic_year_id, d.department_id): (t.average_rating, t.total_responses, d.to_dict())
            for t in result.academic_year_department_trends for d in t.department_data
        },
        'semester_trends': {
            (t.semester_number, p.academic_year_id): p.to_dict()
            for t in result.academic_year_semester_trends for p in t.academic_year_data
        },
        'division_trends': {
            (t.academic_year_id, d.division_id): d.to_dict()
            for t in result.academic_year_division_trends for d in t.division_data
        },
        'options': {
            name: {(o.id, o.name) for o in getattr(options, name)}
            for name in ('academic_years', 'departments', 'semesters', 'divisions',
                         'subjects', 'faculties', 'question_categories')
        },
        'lecture_types': set(options.lecture_types),
        'detail': (
            detail.overall_rating, detail.total_responses,
            keyed(detail.faculty_breakdown, 'faculty_id', 'lecture_type'),
            keyed(detail.division_breakdown, 'division_id'),
            keyed(detail.question_breakdown, 'category_id'),
        ),
    }


@pytest.mark.parametrize("reorder", [
    lambda rows: list(reversed(rows)),
    lambda rows: rows[3:] + rows[:3],
    lambda rows: rows[1::2] + rows[::2],
])
def test_views_do_not_depend_on_input_order(sample_snapshots, reorder):
    assert per_key_views(reorder(sample_snapshots)) == per_key_views(sample_snapshots)


def test_division_description_comes_from_latest_year(sample_snapshots):
    for rows in (sample_snapshots, list(reversed(sample_snapshots))):
        dv2 = by_id(compute_division_comparisons(rows), 'division_id')['DV2']
        assert dv2.department_name == 'Computer'
        assert dv2.semester_number == 3


def test_subject_detail_for_missing_id(make_snapshot):
    rows = [make_snapshot(), make_snapshot(subject_id=None)]
    assert compute_subject_faculty_detail_performance(rows, None) is None
