from .aggregation import (
    compute_overall_stats,
    compute_subject_ratings,
    compute_faculty_performance,
    compute_division_comparisons,
    compute_batch_comparisons,
    compute_lecture_lab_comparison,
    compute_academic_year_department_trends,
    compute_academic_year_semester_trends,
    compute_academic_year_division_trends,
    compute_subject_faculty_performance,
    compute_subject_faculty_detail_performance,
    get_filtering_options,
    process_analytics,
)
from .filters import AnalyticsFilters, apply_filters, build_filter_dictionary
from .detail import compute_faculty_detail, compute_division_detail
from .executive import compute_executive_summary
from .cache import AnalyticsCache, generate_cache_key, snapshot_version

__all__ = [
    'compute_overall_stats', 'compute_subject_ratings', 'compute_faculty_performance',
    'compute_division_comparisons', 'compute_batch_comparisons', 'compute_lecture_lab_comparison',
    'compute_academic_year_department_trends', 'compute_academic_year_semester_trends',
    'compute_academic_year_division_trends', 'compute_subject_faculty_performance',
    'compute_subject_faculty_detail_performance', 'get_filtering_options', 'process_analytics',
    'AnalyticsFilters', 'apply_filters', 'build_filter_dictionary',
    'compute_faculty_detail', 'compute_division_detail', 'compute_executive_summary',
    'AnalyticsCache', 'generate_cache_key', 'snapshot_version',
]
