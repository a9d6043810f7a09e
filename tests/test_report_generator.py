import pytest

from feedback_analytics.report_generator import create_rating_graph, generate_faculty_report
from feedback_analytics.services.aggregation import compute_faculty_performance, process_analytics


def test_rating_graph_is_png(sample_snapshots):
    buf = create_rating_graph(compute_faculty_performance(sample_snapshots))
    assert buf.read(8) == b'\x89PNG\r\n\x1a\n'


def test_generate_report(tmp_path, sample_snapshots):
    path = tmp_path / "report.pdf"
    written = generate_faculty_report(process_analytics(sample_snapshots), str(path),
                                      scope_labels=["Academic Year: AY2"])
    assert written == str(path)
    assert path.read_bytes().startswith(b'%PDF')


def test_report_requires_responses(tmp_path):
    with pytest.raises(ValueError):
        generate_faculty_report(process_analytics([]), str(tmp_path / "empty.pdf"))
