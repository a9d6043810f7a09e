import pytest

from feedback_analytics.models.snapshot import LectureType
from feedback_analytics.services.detail import compute_division_detail, compute_faculty_detail


def test_faculty_detail_rank_and_percentile(sample_snapshots):
    detail = compute_faculty_detail(sample_snapshots, 'F2')
    assert detail.faculty_name == 'Ravi Kumar'
    assert detail.rank == 2
    assert detail.total_faculty == 3
    assert detail.percentile == pytest.approx(200 / 3)
    assert detail.overall_rating == pytest.approx(3.5)
    assert detail.total_responses == 2


def test_top_faculty_is_hundredth_percentile(sample_snapshots):
    assert compute_faculty_detail(sample_snapshots, 'F1').percentile == pytest.approx(100.0)


def test_faculty_detail_breakdowns(sample_snapshots):
    detail = compute_faculty_detail(sample_snapshots, 'F2')

    subjects = {(s.subject_id, s.lecture_type): s for s in detail.subject_breakdown}
    assert set(subjects) == {('SUB1', LectureType.LAB), ('SUB2', LectureType.LECTURE)}
    assert subjects[('SUB1', LectureType.LAB)].average_rating == pytest.approx(3.0)
    assert subjects[('SUB2', LectureType.LECTURE)].academic_year_string == '2024-25'

    divisions = {(d.division_id, d.lecture_type): d for d in detail.division_breakdown}
    assert divisions[('DV2', LectureType.LECTURE)].subject_name == 'Networks'

    assert {q.category_id for q in detail.question_category_breakdown} == {'Q1', 'Q2'}
    assert [(t.academic_year_id, t.semester_number) for t in detail.trend_data] == [('AY2', 3)]


def test_faculty_trend_ordered_by_year(sample_snapshots):
    detail = compute_faculty_detail(sample_snapshots, 'F3')
    assert [t.academic_year_string for t in detail.trend_data] == ['2023-24', '2024-25']
    assert detail.trend_data[0].average_rating == pytest.approx(2.0)
    assert detail.trend_data[1].average_rating is None
    assert detail.trend_data[1].response_count == 0


def test_unknown_faculty(sample_snapshots):
    assert compute_faculty_detail(sample_snapshots, 'F404') is None


def test_division_detail(sample_snapshots):
    detail = compute_division_detail(sample_snapshots, 'DV2')
    assert detail.division_name == 'B'
    assert detail.overall_rating == pytest.approx(3.0)
    assert detail.total_responses == 2

    faculty = {(f.faculty_id, f.lecture_type): f for f in detail.faculty_breakdown}
    assert faculty[('F2', LectureType.LECTURE)].average_rating == pytest.approx(4.0)
    assert faculty[('F3', LectureType.LAB)].average_rating is None
    assert faculty[('F3', LectureType.LECTURE)].average_rating == pytest.approx(2.0)

    networks = detail.subject_breakdown[0]
    assert networks.lecture_rating == pytest.approx(3.0)
    assert networks.lab_rating is None
    assert networks.overall_rating == pytest.approx(3.0)

    years = detail.academic_year_comparison
    assert [y.academic_year_string for y in years] == ['2023-24', '2024-25']
    assert [y.response_count for y in years] == [1, 1]


def test_unknown_division(sample_snapshots):
    assert compute_division_detail(sample_snapshots, 'DV9') is None


def test_missing_ids_return_none(make_snapshot):
    rows = [make_snapshot(), make_snapshot(faculty_id=None, division_id=None)]
    assert compute_faculty_detail(rows, None) is None
    assert compute_division_detail(rows, None) is None


def test_division_detail_independent_of_order(sample_snapshots):
    forward = compute_division_detail(sample_snapshots, 'DV2')
    backward = compute_division_detail(list(reversed(sample_snapshots)), 'DV2')
    assert (backward.department_name, backward.semester_number) == ('Computer', 3)
    assert (forward.department_name, forward.semester_number) == ('Computer', 3)
    assert backward.academic_year_comparison == forward.academic_year_comparison
