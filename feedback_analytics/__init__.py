"""
Feedback analytics: aggregation of student feedback snapshots into
ratings, rankings, comparisons and trends.
"""

from .config import AnalyticsSettings
from .models.snapshot import FeedbackSnapshot, LectureType
from .services import (
    AnalyticsCache,
    AnalyticsFilters,
    apply_filters,
    build_filter_dictionary,
    compute_division_detail,
    compute_executive_summary,
    compute_faculty_detail,
    compute_subject_faculty_detail_performance,
    get_filtering_options,
    process_analytics,
)

__version__ = "0.1.0"

__all__ = [
    'AnalyticsSettings', 'FeedbackSnapshot', 'LectureType',
    'AnalyticsCache', 'AnalyticsFilters', 'apply_filters', 'build_filter_dictionary',
    'compute_division_detail', 'compute_executive_summary', 'compute_faculty_detail',
    'compute_subject_faculty_detail_performance', 'get_filtering_options', 'process_analytics',
]
