import pandas as pd
import pytest
from openpyxl import load_workbook

from feedback_analytics.services import excel_service
from feedback_analytics.services.aggregation import (
    compute_subject_faculty_detail_performance,
    process_analytics,
)
from feedback_analytics.services.detail import compute_division_detail, compute_faculty_detail


@pytest.fixture
def snapshot_frame():
    return pd.DataFrame({
        'Student ID': ['ST1', 'ST2', 'ST3', None],
        'subjectId': ['SUB1', 'SUB1', 'SUB2', None],
        'Subject Name': ['Data Structures', 'Data Structures', 'Networks', None],
        'Faculty ID': ['F1', 'F2', 'F2', None],
        'Lecture Type': ['Theory', 'Lab', 'LECTURE', None],
        'Rating': [5, 'n/a', 3.5, None],
        'Remarks': ['ok', '', '', None],
    })


def test_validate_reports_missing_columns():
    ok, message, df = excel_service.validate_snapshot_frame(pd.DataFrame({'Student ID': ['ST1']}))
    assert not ok
    assert 'subject_id' in message
    assert df is None


def test_validate_rejects_empty_frame():
    ok, message, _ = excel_service.validate_snapshot_frame(pd.DataFrame())
    assert not ok
    assert message == "File is empty"


def test_read_csv_snapshots(tmp_path, snapshot_frame):
    path = tmp_path / "feedback.csv"
    snapshot_frame.to_csv(path, index=False)

    ok, message, snapshots = excel_service.read_snapshots_file(str(path))
    assert ok, message
    assert len(snapshots) == 3
    assert snapshots[0].subject_name == 'Data Structures'
    assert snapshots[0].rating == 5.0
    assert snapshots[1].rating is None
    assert snapshots[2].lecture_type.value == 'LECTURE'


def test_read_excel_snapshots(tmp_path, snapshot_frame):
    path = tmp_path / "feedback.xlsx"
    snapshot_frame.to_excel(path, index=False)

    ok, _, snapshots = excel_service.read_snapshots_file(str(path))
    assert ok
    assert [s.faculty_id for s in snapshots] == ['F1', 'F2', 'F2']


def test_read_rejects_other_extensions(tmp_path):
    path = tmp_path / "feedback.txt"
    path.write_text("student_id\n")
    ok, message, snapshots = excel_service.read_snapshots_file(str(path))
    assert not ok
    assert message.startswith("Invalid file type")
    assert snapshots == []


def test_read_missing_file(tmp_path):
    ok, message, _ = excel_service.read_snapshots_file(str(tmp_path / "missing.xlsx"))
    assert not ok
    assert "not found" in message


@pytest.mark.parametrize("key, header", [
    ('averageRating', 'Average Rating'),
    ('total_overall_responses', 'Total Overall Responses'),
    ('overall_stats.unique_faculties', 'Unique Faculties'),
])
def test_format_header_from_key(key, header):
    assert excel_service.format_header_from_key(key) == header


def test_rows_for_export_formats_values():
    df = excel_service.rows_for_export([{'name': 'A', 'divisions': ['A', 'B'], 'nested': {'x': 1}}])
    assert list(df.columns) == ['Name', 'Divisions', 'Nested']
    assert df.iloc[0]['Divisions'] == 'A, B'
    assert df.iloc[0]['Nested'] == '{"x": 1}'


def test_export_faculty_ranking_to_csv(tmp_path, sample_snapshots):
    path = str(tmp_path / "ranking.csv")
    processed = process_analytics(sample_snapshots)
    assert excel_service.export_processed_analytics(processed, path) == path

    df = pd.read_csv(path)
    assert list(df.columns) == [header for _, header in excel_service.FACULTY_PERFORMANCE_COLUMNS]
    assert list(df['Rank']) == [1, 2, 3]


def test_export_workbook_sheets(tmp_path, sample_snapshots):
    path = str(tmp_path / "analytics.xlsx")
    processed = process_analytics(sample_snapshots)
    excel_service.export_processed_analytics(processed, path)

    workbook = load_workbook(path)
    assert workbook.sheetnames[:3] == ['Overview', 'Subject Ratings', 'Faculty Performance']
    # batch comparison is empty without a division filter
    assert 'Batch Comparison' not in workbook.sheetnames
    assert all(len(name) <= 31 for name in workbook.sheetnames)
    widths = [dim.width for dim in workbook['Subject Ratings'].column_dimensions.values()]
    assert widths and max(widths) <= 50


def test_export_nothing_when_empty(tmp_path):
    path = tmp_path / "empty.xlsx"
    assert excel_service.export_processed_analytics(process_analytics([]), str(path)) is None
    assert not path.exists()


def test_long_sheet_names_are_truncated(tmp_path):
    path = str(tmp_path / "long.xlsx")
    excel_service.export_to_excel([('A' * 40, [{'value': 1}], None)], path)
    assert load_workbook(path).sheetnames == ['A' * 31]


def test_detail_exports(tmp_path, sample_snapshots):
    subject = compute_subject_faculty_detail_performance(sample_snapshots, 'SUB1')
    faculty = compute_faculty_detail(sample_snapshots, 'F2')
    division = compute_division_detail(sample_snapshots, 'DV2')

    subject_path = excel_service.export_subject_details(subject, str(tmp_path / "subject.xlsx"))
    faculty_path = excel_service.export_faculty_details(faculty, str(tmp_path / "faculty.xlsx"))
    division_path = excel_service.export_division_details(division, str(tmp_path / "division.xlsx"))

    summary = pd.read_excel(faculty_path, sheet_name='Summary')
    assert summary.loc[0, 'Rank'] == '2 of 3'

    breakdown = load_workbook(division_path)['Subject Breakdown']
    assert breakdown['C1'].value == 'Lab Rating'
    assert breakdown['C2'].value == 'N/A'

    faculty_sheet = pd.read_excel(subject_path, sheet_name='Faculty Breakdown')
    assert list(faculty_sheet['Type']) == ['LECTURE', 'LAB']
