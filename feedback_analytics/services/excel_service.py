"""
Service for spreadsheet import of feedback snapshots and export of
computed analytics rows.
"""

import json
import logging
import os
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl.utils import get_column_letter

from ..config import (
    ALLOWED_EXTENSIONS,
    EXCEL_MAX_COLUMN_WIDTH,
    EXCEL_SHEET_NAME_LIMIT,
    MAX_FILE_SIZE,
    SNAPSHOT_OPTIONAL_HEADERS,
    SNAPSHOT_REQUIRED_HEADERS,
)
from ..models.snapshot import FeedbackSnapshot
from ..models.views import View

logger = logging.getLogger(__name__)

Column = Tuple[str, str]  # (key, header)


# ── Import ──────────────────────────────────────────────────────────

def allowed_file(filename):
    """Check if file extension is allowed"""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def normalize_header(header) -> str:
    """'Subject ID', 'subjectId' and 'subject_id' all become 'subject_id'."""
    text = str(header).strip()
    text = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', '_', text)
    return '_'.join(text.lower().replace('-', ' ').split())


def validate_snapshot_frame(df: pd.DataFrame) -> Tuple[bool, str, Optional[pd.DataFrame]]:
    """
    Validate a snapshot data frame read from an upload.

    Returns:
        Tuple of (is_valid, error_message, dataframe)
    """
    if df is None or df.empty:
        return False, "File is empty", None

    df = df.rename(columns=normalize_header)
    missing_headers = [h for h in SNAPSHOT_REQUIRED_HEADERS if h not in df.columns]
    if missing_headers:
        return False, (f"Missing required columns: {', '.join(missing_headers)}. "
                       f"Required: {', '.join(SNAPSHOT_REQUIRED_HEADERS)}"), None

    ignored = [c for c in df.columns if c not in SNAPSHOT_REQUIRED_HEADERS + SNAPSHOT_OPTIONAL_HEADERS]
    if ignored:
        logger.info(f"Ignoring unrecognised columns: {', '.join(map(str, ignored))}")

    # Drop rows that are blank across every required column
    df = df.dropna(how='all', subset=SNAPSHOT_REQUIRED_HEADERS)
    if df.empty:
        return False, "No feedback records found after cleaning", None

    return True, "", df


def read_snapshots_file(file_path: str) -> Tuple[bool, str, List[FeedbackSnapshot]]:
    """
    Read feedback snapshots from an Excel or CSV file.

    Rows with missing ids or ratings are kept; the aggregation services skip
    them where they cannot be classified.

    Returns:
        Tuple of (success, message, snapshots)
    """
    if not allowed_file(file_path):
        return False, f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}", []
    if not os.path.exists(file_path):
        return False, f"File not found: {file_path}", []
    if os.path.getsize(file_path) > MAX_FILE_SIZE:
        return False, f"File too large. Maximum size is {MAX_FILE_SIZE / (1024*1024):.0f}MB", []

    try:
        if file_path.lower().endswith('.csv'):
            df = pd.read_csv(file_path)
        else:
            df = pd.read_excel(file_path)
    except Exception as e:
        logger.error(f"Error reading snapshot file {file_path}: {e}")
        return False, f"Error reading file: {str(e)}", []

    is_valid, error_msg, df = validate_snapshot_frame(df)
    if not is_valid:
        return False, error_msg, []

    df = df.astype(object).where(df.notna(), None)
    snapshots = [FeedbackSnapshot.from_dict(row) for row in df.to_dict(orient='records')]

    unrated = sum(1 for s in snapshots if s.rating is None)
    if unrated:
        logger.warning(f"{unrated} records have no usable rating and will be left out of averages")

    message = f"Loaded {len(snapshots)} feedback records from {os.path.basename(file_path)}"
    logger.info(message)
    return True, message, snapshots


# ── Export ──────────────────────────────────────────────────────────

def format_header_from_key(key: str) -> str:
    """Convert camelCase, snake_case or dotted keys to Title Case."""
    text = re.sub(r'([A-Z])', r' \1', key.split('.')[-1])
    words = text.replace('_', ' ').split()
    return ' '.join(word[:1].upper() + word[1:].lower() for word in words)


def format_value_for_export(value):
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return ', '.join(str(format_value_for_export(v)) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return value


def get_nested_value(obj: Dict[str, Any], path: str):
    current = obj
    for part in path.split('.'):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _as_dict(row) -> Dict[str, Any]:
    if isinstance(row, View):
        return row.to_dict()
    return dict(row)


def rows_for_export(rows: Sequence[Any], columns: Optional[Sequence[Column]] = None) -> pd.DataFrame:
    """
    Tabulate view objects or dicts for export.

    Columns default to the keys of the first row with headers derived from
    the key names.
    """
    records = [_as_dict(row) for row in rows]
    if not records:
        return pd.DataFrame()
    if columns is None:
        columns = [(key, format_header_from_key(key)) for key in records[0]]
    data = [[format_value_for_export(get_nested_value(record, key)) for key, _ in columns]
            for record in records]
    return pd.DataFrame(data, columns=[header for _, header in columns])


def export_to_csv(rows: Sequence[Any], file_path: str,
                  columns: Optional[Sequence[Column]] = None) -> Optional[str]:
    df = rows_for_export(rows, columns)
    if df.empty:
        logger.warning("No data to export")
        return None
    df.to_csv(file_path, index=False)
    logger.info(f"CSV export saved: {file_path}")
    return file_path


def _autosize_columns(worksheet, df: pd.DataFrame):
    for index, header in enumerate(df.columns, start=1):
        values = [len(str(v)) for v in df.iloc[:, index - 1] if pd.notna(v)]
        width = max([len(str(header))] + values)
        worksheet.column_dimensions[get_column_letter(index)].width = min(width + 2, EXCEL_MAX_COLUMN_WIDTH)


def export_to_excel(sheets: Sequence[Tuple[str, Sequence[Any], Optional[Sequence[Column]]]],
                    file_path: str) -> Optional[str]:
    """
    Write one worksheet per (name, rows, columns) entry.

    Sheets without rows are skipped; nothing is written when all are empty.
    """
    frames = []
    for name, rows, columns in sheets:
        df = rows_for_export(rows, columns)
        if not df.empty:
            frames.append((name[:EXCEL_SHEET_NAME_LIMIT], df))

    if not frames:
        logger.warning("No sheets to export")
        return None

    with pd.ExcelWriter(file_path, engine='openpyxl') as writer:
        for name, df in frames:
            df.to_excel(writer, sheet_name=name, index=False)
            _autosize_columns(writer.sheets[name], df)

    logger.info(f"Excel export saved: {file_path} ({len(frames)} sheets)")
    return file_path


def _flatten_department_trends(trends):
    return [{'academic_year': t.academic_year_string, 'department': d.department_name,
             'average_rating': d.average_rating, 'response_count': d.response_count}
            for t in trends for d in t.department_data]


def _flatten_semester_trends(trends):
    return [{'semester': t.semester_number, 'academic_year': y.academic_year_string,
             'average_rating': y.average_rating, 'response_count': y.response_count}
            for t in trends for y in t.academic_year_data]


def _flatten_division_trends(trends):
    return [{'academic_year': t.academic_year_string, 'division': d.division_name,
             'department': d.department_name, 'average_rating': d.average_rating,
             'response_count': d.response_count}
            for t in trends for d in t.division_data]


SUBJECT_RATING_COLUMNS = [
    ('subject_name', 'Subject'), ('subject_code', 'Code'),
    ('lecture_rating', 'Lecture Rating'), ('lab_rating', 'Lab Rating'),
    ('overall_average_rating', 'Overall Rating'),
    ('lecture_responses', 'Lecture Responses'), ('lab_responses', 'Lab Responses'),
    ('total_overall_responses', 'Total Responses'),
    ('faculty_count', 'Faculty'), ('division_count', 'Divisions'),
]

FACULTY_PERFORMANCE_COLUMNS = [
    ('rank', 'Rank'), ('faculty_name', 'Faculty'), ('designation', 'Designation'),
    ('average_rating', 'Average Rating'), ('total_responses', 'Responses'),
    ('subject_count', 'Subjects'), ('division_count', 'Divisions'),
]


def export_processed_analytics(processed, file_path: str) -> Optional[str]:
    """Export every processed view, to a workbook or (faculty ranking only) to CSV."""
    if file_path.lower().endswith('.csv'):
        return export_to_csv(processed.faculty_performance, file_path, FACULTY_PERFORMANCE_COLUMNS)

    overview = [processed.overall_stats] if processed.overall_stats else []
    lecture_lab = [processed.lecture_lab_comparison] if processed.lecture_lab_comparison else []
    sheets = [
        ('Overview', overview, None),
        ('Subject Ratings', processed.subject_ratings, SUBJECT_RATING_COLUMNS),
        ('Faculty Performance', processed.faculty_performance, FACULTY_PERFORMANCE_COLUMNS),
        ('Division Comparison', processed.division_comparisons, None),
        ('Batch Comparison', processed.batch_comparisons, None),
        ('Lecture vs Lab', lecture_lab, None),
        ('Department Trends', _flatten_department_trends(processed.academic_year_department_trends), None),
        ('Semester Trends', _flatten_semester_trends(processed.academic_year_semester_trends), None),
        ('Division Trends', _flatten_division_trends(processed.academic_year_division_trends), None),
        ('Subject Faculty', processed.subject_faculty_performance, None),
    ]
    return export_to_excel(sheets, file_path)


def _rating_or_na(value):
    return 'N/A' if value is None else value


def export_subject_details(detail, file_path: str) -> Optional[str]:
    sheets = [
        ('Summary', [{
            'Subject': detail.subject_name,
            'Code': detail.subject_code,
            'Overall Rating': detail.overall_rating,
            'Total Responses': detail.total_responses,
        }], None),
        ('Faculty Breakdown', [{
            'Faculty': f.faculty_name,
            'Type': f.lecture_type,
            'Rating': f.average_rating,
            'Responses': f.response_count,
            'Divisions': f.divisions,
        } for f in detail.faculty_breakdown], None),
        ('Division Breakdown', [{
            'Division': d.division_name,
            'Lecture Rating': _rating_or_na(d.lecture_rating),
            'Lab Rating': _rating_or_na(d.lab_rating),
            'Overall Rating': d.overall_rating,
            'Responses': d.response_count,
        } for d in detail.division_breakdown], None),
        ('Question Categories', [{
            'Category': q.category_name,
            'Rating': q.average_rating,
            'Responses': q.response_count,
        } for q in detail.question_breakdown], None),
    ]
    return export_to_excel(sheets, file_path)


def export_faculty_details(detail, file_path: str) -> Optional[str]:
    sheets = [
        ('Summary', [{
            'Faculty': detail.faculty_name,
            'Designation': detail.designation,
            'Overall Rating': detail.overall_rating,
            'Total Responses': detail.total_responses,
            'Rank': f"{detail.rank} of {detail.total_faculty}",
        }], None),
        ('Subject Performance', [{
            'Subject': s.subject_name,
            'Type': s.lecture_type,
            'Rating': s.average_rating,
            'Responses': s.response_count,
            'Semester': s.semester_number,
            'Academic Year': s.academic_year_string,
        } for s in detail.subject_breakdown], None),
        ('Division Breakdown', [{
            'Division': d.division_name,
            'Subject': d.subject_name,
            'Type': d.lecture_type,
            'Rating': d.average_rating,
            'Responses': d.response_count,
        } for d in detail.division_breakdown], None),
    ]
    return export_to_excel(sheets, file_path)


def export_division_details(detail, file_path: str) -> Optional[str]:
    sheets = [
        ('Summary', [{
            'Division': detail.division_name,
            'Department': detail.department_name,
            'Semester': detail.semester_number,
            'Overall Rating': detail.overall_rating,
            'Total Responses': detail.total_responses,
        }], None),
        ('Faculty Performance', [{
            'Faculty': f.faculty_name,
            'Subject': f.subject_name,
            'Type': f.lecture_type,
            'Rating': f.average_rating,
            'Responses': f.response_count,
        } for f in detail.faculty_breakdown], None),
        ('Subject Breakdown', [{
            'Subject': s.subject_name,
            'Lecture Rating': _rating_or_na(s.lecture_rating),
            'Lab Rating': _rating_or_na(s.lab_rating),
            'Overall Rating': s.overall_rating,
            'Responses': s.response_count,
        } for s in detail.subject_breakdown], None),
    ]
    return export_to_excel(sheets, file_path)
