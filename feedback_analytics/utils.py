"""
Utils module - shared normalisation helpers and logging setup.
"""
import math
import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level='INFO'):
    """Install the rich console handler on the root logger, writing to stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
    )
    logging.root.setLevel(level)
    logging.root.handlers = [
        RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                    log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                    )
    ]
    return logging.getLogger("feedback_analytics")


def normalize_id(value):
    """Normalize an identifier to a stripped string, or None when blank."""
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


def normalize_text(value):
    """Strip a display name and collapse repeated spaces."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = ' '.join(str(value).split())
    return text or None


def normalize_semester(semester):
    """Normalize a semester value ("Semester 4", "4", 4.0) to an int."""
    if semester is None or isinstance(semester, bool):
        return None
    if isinstance(semester, (int, float)):
        if isinstance(semester, float) and (math.isnan(semester) or not semester.is_integer()):
            return None
        return int(semester)
    digits = ''.join(filter(str.isdigit, str(semester)))
    return int(digits) if digits else None


def coerce_rating(value):
    """
    Convert a raw rating to float.

    Missing, blank, NaN, infinite and non-numeric values become None so that
    they drop out of every mean instead of counting as zero.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(rating) or math.isinf(rating):
        return None
    return rating


def mean(values):
    """Arithmetic mean of the non-None values, or None when there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return math.fsum(present) / len(present)


def weighted_mean(parts):
    """
    Combine (mean, count) pairs proportionally to their counts.

    Parts with a None mean or zero count contribute nothing.
    """
    total = 0
    weighted = []
    for part_mean, count in parts:
        if part_mean is None or not count:
            continue
        weighted.append(part_mean * count)
        total += count
    if not total:
        return None
    return math.fsum(weighted) / total


def round_rating(value, places=2):
    if value is None:
        return None
    return round(value, places)
