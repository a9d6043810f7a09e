import os
from dataclasses import dataclass

# Database configuration
DATABASE_PATH = os.path.join('data', 'feedback_analytics.db')

# Import/export configuration
ALLOWED_EXTENSIONS = {'xlsx', 'xls', 'csv'}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
EXCEL_MAX_COLUMN_WIDTH = 50
EXCEL_SHEET_NAME_LIMIT = 31

# Required headers for snapshot import files (snake_case after normalisation)
SNAPSHOT_REQUIRED_HEADERS = ['student_id', 'subject_id', 'faculty_id', 'lecture_type', 'rating']

SNAPSHOT_OPTIONAL_HEADERS = [
    'subject_name', 'subject_code', 'subject_abbreviation',
    'faculty_name', 'faculty_abbreviation', 'faculty_designation',
    'division_id', 'division_name',
    'department_id', 'department_name', 'department_abbreviation',
    'academic_year_id', 'academic_year_string',
    'semester_id', 'semester_number',
    'question_category_id', 'question_category_name',
]

# Rating bands used for the faculty distribution (lower bound inclusive)
RATING_BANDS = [
    ('Excellent (4.5+)', 4.5),
    ('Good (4.0-4.5)', 4.0),
    ('Average (3.5-4.0)', 3.5),
    ('Needs Improvement (<3.5)', None),
]

# Executive summary thresholds
TOP_PERFORMERS_LIMIT = 5
LOW_RESPONSE_THRESHOLD = 50
DECLINING_TREND_THRESHOLD = -5.0
STRONG_PERFORMANCE_SHARE = 0.3
DEPARTMENT_GAP_THRESHOLD = 1.0
ATTENTION_HIGH_PRIORITY_COUNT = 3

# Response rate heuristic: responses / (unique students * expected per student), as a capped percentage
EXPECTED_RESPONSES_PER_STUDENT = 10
RESPONSE_RATE_CAP = 100

CACHE_MAX_ENTRIES = 64


def _env(name, default):
    return os.environ.get(f'FEEDBACK_ANALYTICS_{name}', default)


@dataclass(frozen=True)
class AnalyticsSettings:
    """Settings handed explicitly to the services that need them."""
    database_path: str = DATABASE_PATH
    expected_responses_per_student: float = EXPECTED_RESPONSES_PER_STUDENT
    response_rate_cap: float = RESPONSE_RATE_CAP
    top_performers_limit: int = TOP_PERFORMERS_LIMIT
    low_response_threshold: int = LOW_RESPONSE_THRESHOLD
    cache_max_entries: int = CACHE_MAX_ENTRIES
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls):
        """Build settings from FEEDBACK_ANALYTICS_* environment variables."""
        return cls(
            database_path=_env('DATABASE_PATH', DATABASE_PATH),
            expected_responses_per_student=float(_env('EXPECTED_RESPONSES_PER_STUDENT', EXPECTED_RESPONSES_PER_STUDENT)),
            response_rate_cap=float(_env('RESPONSE_RATE_CAP', RESPONSE_RATE_CAP)),
            top_performers_limit=int(_env('TOP_PERFORMERS_LIMIT', TOP_PERFORMERS_LIMIT)),
            low_response_threshold=int(_env('LOW_RESPONSE_THRESHOLD', LOW_RESPONSE_THRESHOLD)),
            cache_max_entries=int(_env('CACHE_MAX_ENTRIES', CACHE_MAX_ENTRIES)),
            log_level=_env('LOG_LEVEL', 'INFO').upper(),
        )
