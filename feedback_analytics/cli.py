"""
Command line entry point for feedback analytics.

Loads snapshots from the SQLite store (default) or an Excel/CSV file and
prints, exports or reports the computed views.
"""

import argparse
import json
import logging
import sys

from .config import AnalyticsSettings
from .models import database
from .services import (
    AnalyticsCache,
    AnalyticsFilters,
    apply_filters,
    compute_division_detail,
    compute_executive_summary,
    compute_faculty_detail,
    compute_subject_faculty_detail_performance,
    process_analytics,
)
from .services import excel_service
from .utils import configure_logging

logger = logging.getLogger(__name__)

FILTER_ARGUMENTS = [
    ('--academic-year', 'academic_year_id'),
    ('--department', 'department_id'),
    ('--semester', 'semester_id'),
    ('--division', 'division_id'),
    ('--subject', 'subject_id'),
    ('--faculty', 'faculty_id'),
    ('--lecture-type', 'lecture_type'),
]


def build_parser():
    parser = argparse.ArgumentParser(prog='feedback-analytics',
                                     description='Student feedback analytics')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--db', help='SQLite database path (default from settings)')
    source.add_argument('--file', help='Excel or CSV file with feedback snapshots')
    for flag, dest in FILTER_ARGUMENTS:
        parser.add_argument(flag, dest=dest)
    parser.add_argument('--log-level', help='Logging level (default from settings)')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('summary', help='Print overall stats and the executive summary as JSON')

    export = commands.add_parser('export', help='Export every view to .xlsx (or faculty ranking to .csv)')
    export.add_argument('output')

    report = commands.add_parser('report', help='Write a PDF faculty performance report')
    report.add_argument('output')
    report.add_argument('--title', default='STUDENT FEEDBACK ANALYTICS')

    detail = commands.add_parser('detail', help='Drill down into one subject, faculty or division')
    detail.add_argument('kind', choices=['subject', 'faculty', 'division'])
    detail.add_argument('id')
    detail.add_argument('--export', dest='output', help='Write the drill-down to an .xlsx workbook')

    load = commands.add_parser('import', help='Import an Excel/CSV file into the database')
    load.add_argument('input')
    load.add_argument('--replace', action='store_true',
                      help='Delete the stored snapshots before importing')
    return parser


def filters_from_args(args):
    return AnalyticsFilters.from_dict({dest: getattr(args, dest) for _, dest in FILTER_ARGUMENTS
                                       if getattr(args, dest) is not None})


def load_snapshots(args, settings, filters):
    if args.file:
        ok, message, snapshots = excel_service.read_snapshots_file(args.file)
        if not ok:
            raise ValueError(message)
        return apply_filters(snapshots, filters)

    db_path = args.db or settings.database_path
    database.init_db(db_path)
    return database.load_snapshots(filters, db_path)


def _print_json(data):
    print(json.dumps(data, indent=2, default=str))


def run(args, settings, cache=None):
    cache = cache or AnalyticsCache(settings.cache_max_entries)

    if args.command == 'import':
        ok, message, snapshots = excel_service.read_snapshots_file(args.input)
        if not ok:
            raise ValueError(message)
        db_path = args.db or settings.database_path
        database.init_db(db_path)
        if args.replace:
            database.clear_snapshots(db_path)
        database.insert_snapshots(snapshots, db_path)
        return 0

    filters = filters_from_args(args)
    snapshots = load_snapshots(args, settings, filters)
    processed = cache.get_or_compute('analytics:processed', filters, snapshots,
                                     lambda: process_analytics(snapshots, filters))

    if args.command == 'summary':
        summary = compute_executive_summary(processed, settings)
        _print_json({
            'filters': filters.to_dict(),
            'overall_stats': processed.overall_stats.to_dict() if processed.overall_stats else None,
            'lecture_lab_comparison': (processed.lecture_lab_comparison.to_dict()
                                       if processed.lecture_lab_comparison else None),
            'executive_summary': summary.to_dict(),
        })
    elif args.command == 'export':
        if excel_service.export_processed_analytics(processed, args.output) is None:
            logger.warning("Nothing exported: no feedback data for the selected filters")
            return 1
    elif args.command == 'report':
        labels = [f"{key.replace('_', ' ').title()}: {value}" for key, value in filters.to_dict().items()]
        generate_faculty_report(processed, args.output, title=args.title, scope_labels=labels)
    elif args.command == 'detail':
        return _run_detail(args, snapshots)
    return 0


def _run_detail(args, snapshots):
    if args.kind == 'subject':
        detail = compute_subject_faculty_detail_performance(snapshots, args.id)
        exporter = excel_service.export_subject_details
    elif args.kind == 'faculty':
        detail = compute_faculty_detail(snapshots, args.id)
        exporter = excel_service.export_faculty_details
    else:
        detail = compute_division_detail(snapshots, args.id)
        exporter = excel_service.export_division_details

    if detail is None:
        logger.error(f"No feedback found for {args.kind} {args.id}")
        return 1
    if args.output:
        exporter(detail, args.output)
    else:
        _print_json(detail.to_dict())
    return 0


def generate_faculty_report(*args, **kwargs):
    # reportlab and matplotlib load only when a report is requested
    from .report_generator import generate_faculty_report as generate
    return generate(*args, **kwargs)


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = AnalyticsSettings.from_env()
    configure_logging(args.log_level.upper() if args.log_level else settings.log_level)

    try:
        return run(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
