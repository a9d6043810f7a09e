import sqlite3
import os
from contextlib import contextmanager
import logging

from ..config import DATABASE_PATH
from .snapshot import FeedbackSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = [
    'student_id', 'subject_id', 'subject_name', 'subject_code', 'subject_abbreviation',
    'faculty_id', 'faculty_name', 'faculty_abbreviation', 'faculty_designation',
    'division_id', 'division_name',
    'department_id', 'department_name', 'department_abbreviation',
    'academic_year_id', 'academic_year_string',
    'semester_id', 'semester_number',
    'lecture_type', 'rating',
    'question_category_id', 'question_category_name',
]

# Filters that can be pushed down into SQL
FILTER_COLUMNS = ['academic_year_id', 'department_id', 'semester_id', 'division_id',
                  'subject_id', 'faculty_id', 'lecture_type']


def get_db_path(database_path=None):
    """Get the database path and ensure the directory exists."""
    path = database_path or DATABASE_PATH
    db_dir = os.path.dirname(path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    return path


@contextmanager
def get_db(database_path=None):
    """Context manager for database connections."""
    conn = None
    try:
        conn = sqlite3.connect(get_db_path(database_path))
        conn.row_factory = sqlite3.Row
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn:
            conn.close()


def init_db(database_path=None):
    """Initialize the database with the feedback snapshot table."""
    with get_db(database_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS feedback_snapshots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                student_id TEXT,
                subject_id TEXT,
                subject_name TEXT,
                subject_code TEXT,
                subject_abbreviation TEXT,
                faculty_id TEXT,
                faculty_name TEXT,
                faculty_abbreviation TEXT,
                faculty_designation TEXT,
                division_id TEXT,
                division_name TEXT,
                department_id TEXT,
                department_name TEXT,
                department_abbreviation TEXT,
                academic_year_id TEXT,
                academic_year_string TEXT,
                semester_id TEXT,
                semester_number INTEGER,
                lecture_type TEXT,
                rating REAL,
                question_category_id TEXT,
                question_category_name TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_snapshots_year_dept_sem
            ON feedback_snapshots(academic_year_id, department_id, semester_id)
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_snapshots_subject_faculty
            ON feedback_snapshots(subject_id, faculty_id)
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_snapshots_division
            ON feedback_snapshots(division_id)
        ''')

        logger.info("Database initialized successfully")


def insert_snapshots(snapshots, database_path=None):
    """Append snapshots to the store. Returns the number of rows written."""
    placeholders = ', '.join(['?'] * len(SNAPSHOT_COLUMNS))
    columns = ', '.join(SNAPSHOT_COLUMNS)
    count = 0
    with get_db(database_path) as conn:
        cursor = conn.cursor()
        for snapshot in snapshots:
            row = snapshot.to_dict()
            cursor.execute(
                f'INSERT INTO feedback_snapshots ({columns}) VALUES ({placeholders})',
                tuple(row[c] for c in SNAPSHOT_COLUMNS),
            )
            count += 1
    logger.info(f"Inserted {count} feedback snapshots")
    return count


def load_snapshots(filters=None, database_path=None):
    """
    Load snapshots, scoped by any set filters.

    Rows come back in insertion order so that first-seen ordering in the
    aggregation views follows the order the data was recorded in.
    """
    params = filters.to_dict() if filters is not None else {}
    clauses = []
    values = []
    for column in FILTER_COLUMNS:
        if column in params:
            clauses.append(f'{column} = ?')
            values.append(params[column])

    query = f'SELECT {", ".join(SNAPSHOT_COLUMNS)} FROM feedback_snapshots'
    if clauses:
        query += ' WHERE ' + ' AND '.join(clauses)
    query += ' ORDER BY id'

    with get_db(database_path) as conn:
        cursor = conn.cursor()
        cursor.execute(query, values)
        snapshots = [FeedbackSnapshot.from_dict(dict(row)) for row in cursor.fetchall()]

    logger.info(f"Loaded {len(snapshots)} feedback snapshots")
    return snapshots


def count_snapshots(database_path=None):
    """Get total number of stored snapshots."""
    with get_db(database_path) as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM feedback_snapshots')
        return cursor.fetchone()[0]


def clear_snapshots(database_path=None):
    """Delete every stored snapshot - use with caution!"""
    with get_db(database_path) as conn:
        cursor = conn.cursor()
        cursor.execute('DELETE FROM feedback_snapshots')
        deleted = cursor.rowcount
    logger.warning(f"Deleted {deleted} rows from feedback_snapshots table")
    return deleted
