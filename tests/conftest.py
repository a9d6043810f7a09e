import pytest

from feedback_analytics.models.snapshot import FeedbackSnapshot, LectureType

DEFAULTS = dict(
    student_id='ST1',
    subject_id='SUB1',
    subject_name='Data Structures',
    subject_code='CS301',
    faculty_id='F1',
    faculty_name='Asha Rao',
    division_id='DV1',
    division_name='A',
    department_id='D1',
    department_name='Computer',
    academic_year_id='AY2',
    academic_year_string='2024-25',
    semester_id='S3',
    semester_number=3,
    lecture_type=LectureType.LECTURE,
    rating=4.0,
)


def build_snapshot(**overrides):
    values = dict(DEFAULTS)
    values.update(overrides)
    return FeedbackSnapshot(**values)


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def sample_snapshots():
    """
    Two years, two departments, two divisions, two subjects, three faculty.

    One response has no rating and lands in the lab segment of Networks.
    """
    return [
        build_snapshot(student_id='ST1', rating=5, question_category_id='Q1',
                       question_category_name='Teaching'),
        build_snapshot(student_id='ST2', rating=4, question_category_id='Q1',
                       question_category_name='Teaching'),
        build_snapshot(student_id='ST1', faculty_id='F2', faculty_name='Ravi Kumar',
                       lecture_type=LectureType.LAB, rating=3, question_category_id='Q2',
                       question_category_name='Lab Support'),
        build_snapshot(student_id='ST3', subject_id='SUB2', subject_name='Networks', subject_code='CS305',
                       faculty_id='F2', faculty_name='Ravi Kumar', division_id='DV2', division_name='B',
                       rating=4, question_category_id='Q1', question_category_name='Teaching'),
        build_snapshot(student_id='ST3', subject_id='SUB2', subject_name='Networks', subject_code='CS305',
                       faculty_id='F3', faculty_name='Meera Iyer', division_id='DV2', division_name='B',
                       lecture_type=LectureType.LAB, rating=None),
        build_snapshot(student_id='ST4', subject_id='SUB2', subject_name='Networks', subject_code='CS305',
                       faculty_id='F3', faculty_name='Meera Iyer', division_id='DV2', division_name='B',
                       department_id='D2', department_name='IT',
                       academic_year_id='AY1', academic_year_string='2023-24',
                       semester_id='S5', semester_number=5, rating=2),
    ]
