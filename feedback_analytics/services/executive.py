"""
Executive summary: headline metrics and insights over processed analytics.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import (
    AnalyticsSettings,
    ATTENTION_HIGH_PRIORITY_COUNT,
    DECLINING_TREND_THRESHOLD,
    DEPARTMENT_GAP_THRESHOLD,
    RATING_BANDS,
    STRONG_PERFORMANCE_SHARE,
)
from ..models.views import ProcessedAnalytics, View
from ..utils import mean, round_rating, weighted_mean

logger = logging.getLogger(__name__)


@dataclass
class Performer(View):
    id: str
    name: Optional[str]
    rating: float
    responses: int
    trend: Optional[float] = None


@dataclass
class DistributionBand(View):
    label: str
    value: int


@dataclass
class TrendPoint(View):
    label: str
    rating: Optional[float]
    responses: int


@dataclass
class Insight(View):
    priority: str  # 'high', 'medium', 'low'
    title: str
    description: str
    action: Optional[str] = None


@dataclass
class ExecutiveSummary(View):
    health_score: float
    health_trend: float
    response_rate: int
    total_responses: int
    total_faculty: int
    total_subjects: int
    total_divisions: int
    total_departments: int
    above_avg_faculty: int
    above_avg_subjects: int
    top_performers: List[Performer] = field(default_factory=list)
    bottom_performers: List[Performer] = field(default_factory=list)
    subject_performers: List[Performer] = field(default_factory=list)
    faculty_distribution: List[DistributionBand] = field(default_factory=list)
    semester_trends: List[TrendPoint] = field(default_factory=list)
    academic_year_trends: List[TrendPoint] = field(default_factory=list)
    department_comparison: List[TrendPoint] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)


def response_rate(total_responses, unique_students, settings: AnalyticsSettings) -> int:
    """
    Approximate response rate as a percentage.

    Assumes each student is expected to submit
    ``settings.expected_responses_per_student`` responses; the result is
    capped at ``settings.response_rate_cap``.
    """
    if not unique_students or not settings.expected_responses_per_student:
        return 0
    rate = total_responses / (unique_students * settings.expected_responses_per_student) * 100
    return int(min(settings.response_rate_cap, round(rate)))


def rating_band(rating) -> str:
    for label, lower in RATING_BANDS:
        if lower is None or rating >= lower:
            return label
    return RATING_BANDS[-1][0]


def _relative_trend(value, baseline):
    if not baseline:
        return 0.0
    return round((value - baseline) / baseline * 100, 1)


def _percent(part, whole):
    return round(part / whole * 100) if whole else 0


def _build_insights(rated_faculty, band_counts, health_trend, total_responses,
                    department_comparison, settings) -> List[Insight]:
    insights = []
    needs_work = band_counts[RATING_BANDS[-1][0]]
    excellent = band_counts[RATING_BANDS[0][0]]

    if needs_work > 0:
        insights.append(Insight(
            priority='high' if needs_work > ATTENTION_HIGH_PRIORITY_COUNT else 'medium',
            title=f"{needs_work} Faculty Need Attention",
            description=f"{_percent(needs_work, len(rated_faculty))}% of faculty have ratings below 3.5. "
                        "Consider mentoring programs.",
            action="View Details",
        ))

    if health_trend < DECLINING_TREND_THRESHOLD:
        insights.append(Insight(
            priority='high',
            title="Declining Performance Trend",
            description=f"Overall ratings dropped by {abs(health_trend):.1f}% from previous period.",
            action="Analyze Causes",
        ))

    if rated_faculty and excellent > len(rated_faculty) * STRONG_PERFORMANCE_SHARE:
        insights.append(Insight(
            priority='low',
            title="Strong Faculty Performance",
            description=f"{_percent(excellent, len(rated_faculty))}% of faculty have excellent ratings (4.5+).",
            action="Recognize Top Performers",
        ))

    if total_responses and total_responses < settings.low_response_threshold:
        insights.append(Insight(
            priority='medium',
            title="Low Response Volume",
            description=f"Only {total_responses} responses collected. Consider extending feedback window.",
            action="View Response Status",
        ))

    rated_departments = [d for d in department_comparison if d.rating is not None]
    if len(rated_departments) > 1:
        highest = max(d.rating for d in rated_departments)
        lowest = min(rated_departments, key=lambda d: d.rating)
        gap = highest - lowest.rating
        if gap > DEPARTMENT_GAP_THRESHOLD:
            insights.append(Insight(
                priority='medium',
                title="Department Performance Gap",
                description=f"{lowest.label or 'A department'} is {gap:.1f} points below top performer.",
                action="Compare Departments",
            ))

    if not insights:
        insights.append(Insight(
            priority='low',
            title="Performance On Track",
            description="All metrics are within healthy ranges. Keep up the good work!",
        ))
    return insights


def compute_executive_summary(processed: ProcessedAnalytics,
                              settings: Optional[AnalyticsSettings] = None) -> ExecutiveSummary:
    settings = settings or AnalyticsSettings()
    stats = processed.overall_stats
    limit = settings.top_performers_limit

    rated_faculty = [f for f in processed.faculty_performance if f.average_rating is not None]
    avg_faculty = mean(f.average_rating for f in rated_faculty) or 0.0

    rated_subjects = [s for s in processed.subject_ratings if s.overall_average_rating is not None]
    avg_subject = mean(s.overall_average_rating for s in rated_subjects) or 0.0

    # faculty_performance is already ranked best first
    def performer(f):
        return Performer(id=f.faculty_id, name=f.faculty_name, rating=f.average_rating,
                         responses=f.total_responses,
                         trend=_relative_trend(f.average_rating, avg_faculty))

    top_performers = [performer(f) for f in rated_faculty[:limit]]
    bottom_performers = [performer(f) for f in reversed(rated_faculty[-limit:])]

    ranked_subjects = sorted(rated_subjects, key=lambda s: -s.overall_average_rating)
    subject_performers = [Performer(id=s.subject_id, name=s.subject_name, rating=s.overall_average_rating,
                                    responses=s.total_overall_responses)
                          for s in ranked_subjects[:limit]]

    band_counts = {label: 0 for label, _ in RATING_BANDS}
    for f in rated_faculty:
        band_counts[rating_band(f.average_rating)] += 1
    distribution = [DistributionBand(label=label, value=band_counts[label]) for label, _ in RATING_BANDS]

    semester_trends = []
    for trend in processed.academic_year_semester_trends:
        latest = trend.academic_year_data[-1] if trend.academic_year_data else None
        semester_trends.append(TrendPoint(
            label=f"Sem {trend.semester_number}",
            rating=latest.average_rating if latest else None,
            responses=latest.response_count if latest else 0,
        ))

    year_trends = []
    for trend in processed.academic_year_department_trends:
        rating = weighted_mean([(d.average_rating, d.response_count) for d in trend.department_data])
        year_trends.append(TrendPoint(
            label=trend.academic_year_string or trend.academic_year_id,
            rating=round_rating(rating),
            responses=sum(d.response_count for d in trend.department_data),
        ))

    department_comparison = []
    if processed.academic_year_department_trends:
        latest_year = processed.academic_year_department_trends[-1]
        department_comparison = [TrendPoint(label=d.department_name or d.department_id,
                                            rating=d.average_rating, responses=d.response_count)
                                 for d in latest_year.department_data]

    health_trend = 0.0
    if len(year_trends) >= 2:
        current = year_trends[-1].rating or 0
        previous = year_trends[-2].rating or 0
        health_trend = _relative_trend(current, previous) if previous > 0 else 0.0

    total_responses = stats.total_responses if stats else 0
    insights = _build_insights(rated_faculty, band_counts, health_trend, total_responses,
                               department_comparison, settings)
    logger.debug("Executive summary built with %d insights", len(insights))

    return ExecutiveSummary(
        health_score=(stats.average_rating or 0.0) if stats else 0.0,
        health_trend=health_trend,
        response_rate=response_rate(total_responses, stats.unique_students if stats else 0, settings),
        total_responses=total_responses,
        total_faculty=len(processed.faculty_performance),
        total_subjects=len(processed.subject_ratings),
        total_divisions=len(processed.division_comparisons),
        total_departments=stats.unique_departments if stats else 0,
        above_avg_faculty=sum(1 for f in rated_faculty if f.average_rating >= avg_faculty),
        above_avg_subjects=sum(1 for s in rated_subjects if s.overall_average_rating >= avg_subject),
        top_performers=top_performers,
        bottom_performers=bottom_performers,
        subject_performers=subject_performers,
        faculty_distribution=distribution,
        semester_trends=semester_trends,
        academic_year_trends=year_trends,
        department_comparison=department_comparison,
        insights=insights,
    )
