import io
import logging
import os
from datetime import datetime

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image


logger = logging.getLogger(__name__)

MAX_CHART_BARS = 20


def _fmt(value, places=2):
    return 'N/A' if value is None else f"{value:.{places}f}"


def create_rating_graph(faculty_performance):
    """
    Create a bar graph image of faculty average ratings.

    Only rated faculty are drawn, best first, capped at MAX_CHART_BARS.
    """
    rated = [f for f in faculty_performance if f.average_rating is not None][:MAX_CHART_BARS]
    labels = [f.faculty_abbreviation or f.faculty_name or f.faculty_id for f in rated]
    ratings = [f.average_rating for f in rated]

    plt.rcParams['figure.dpi'] = 300
    fig, ax = plt.subplots(figsize=(10, 4))
    bars = ax.bar(labels, ratings, color='#007bff')

    ax.set_xlabel('')
    ax.set_ylabel('Average rating')
    ax.set_title('')
    top = max(ratings) if ratings else 5
    ax.set_ylim(0, max(5, top) * 1.1)

    plt.xticks(fontsize=8, rotation=45, ha='right')
    plt.yticks(fontsize=9)

    # Add value labels on top of each bar
    for bar, rating in zip(bars, ratings):
        height = bar.get_height()
        ax.text(bar.get_x() + bar.get_width()/2.0, height,
                f'{rating:.2f}',
                ha='center', va='bottom',
                fontsize=8)

    ax.grid(True, axis='y', linestyle='--', alpha=0.7)
    plt.tight_layout()

    buf = io.BytesIO()
    plt.savefig(buf, format='png', bbox_inches='tight', dpi=300)
    plt.close(fig)
    buf.seek(0)
    return buf


class FooterCanvas:
    def __init__(self, canvas, doc, footer_text):
        self.canvas = canvas
        self.doc = doc
        self.footer_text = footer_text

    def draw_footer(self):
        self.canvas.saveState()
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        self.canvas.drawString(25, 20, self.footer_text)

        page_text = f"Page {self.doc.page}"
        right_text_width = self.canvas.stringWidth(page_text, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_text_width - 25, 20, page_text)

        self.canvas.restoreState()


def _table(rows, header_background=colors.grey):
    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 8),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 1), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('ALIGN', (0, 0), (1, -1), 'LEFT'),
        ('ALIGN', (2, 0), (-1, -1), 'CENTER'),
        ('BACKGROUND', (0, 0), (-1, 0), header_background),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ('LEFTPADDING', (0, 0), (-1, -1), 2),
        ('RIGHTPADDING', (0, 0), (-1, -1), 2),
    ]))
    return table


def generate_faculty_report(processed, filepath, title="STUDENT FEEDBACK ANALYTICS", scope_labels=None):
    """
    Generate a PDF report with overview, faculty ranking, chart and subject ratings.

    Returns the absolute path of the written file. Raises ValueError when the
    processed analytics hold no responses.
    """
    if processed.overall_stats is None:
        raise ValueError("No feedback responses to report on")

    filepath = os.path.abspath(filepath)
    logger.info(f"Generating report: {filepath}")

    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        rightMargin=20,
        leftMargin=20,
        topMargin=20,
        bottomMargin=40
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=12,
        alignment=1,
        spaceAfter=2
    )
    info_style = ParagraphStyle(
        'InfoStyle',
        parent=styles['Normal'],
        fontSize=9,
        alignment=1,
        spaceAfter=4
    )
    section_style = ParagraphStyle(
        'SectionTitle',
        parent=styles['Normal'],
        fontSize=9,
        leading=10,
        fontName='Helvetica-Bold',
        spaceBefore=6,
        spaceAfter=3
    )

    elements = []
    elements.append(Paragraph(title, title_style))
    if scope_labels:
        elements.append(Paragraph("    ".join(scope_labels), info_style))

    stats = processed.overall_stats
    overview = (f"Responses: {stats.total_responses}    "
                f"Average rating: {_fmt(stats.average_rating)}    "
                f"Subjects: {stats.unique_subjects}    "
                f"Faculty: {stats.unique_faculties}    "
                f"Divisions: {stats.unique_divisions}")
    elements.append(Paragraph(overview, info_style))

    comparison = processed.lecture_lab_comparison
    if comparison is not None:
        elements.append(Paragraph(
            f"Lecture: {_fmt(comparison.lecture_average_rating)} ({comparison.lecture_responses})    "
            f"Lab: {_fmt(comparison.lab_average_rating)} ({comparison.lab_responses})",
            info_style))
    elements.append(Spacer(1, 3))

    elements.append(Paragraph("Faculty Performance", section_style))
    faculty_rows = [['Rank', 'Faculty', 'Average', 'Responses', 'Subjects', 'Divisions']]
    for f in processed.faculty_performance:
        faculty_rows.append([f.rank, f.faculty_name or f.faculty_id, _fmt(f.average_rating),
                             f.total_responses, f.subject_count, f.division_count])
    elements.append(_table(faculty_rows))
    elements.append(Spacer(1, 5))

    if any(f.average_rating is not None for f in processed.faculty_performance):
        graph_buffer = create_rating_graph(processed.faculty_performance)
        img = Image(graph_buffer)
        img.drawWidth = A4[0] - 50
        img.drawHeight = 2.5 * inch
        elements.append(img)
        elements.append(Spacer(1, 5))

    elements.append(Paragraph("Subject Ratings", section_style))
    subject_rows = [['Subject', 'Code', 'Lecture', 'Lab', 'Overall', 'Responses']]
    for s in processed.subject_ratings:
        subject_rows.append([s.subject_name or s.subject_id, s.subject_code or '',
                             _fmt(s.lecture_rating), _fmt(s.lab_rating),
                             _fmt(s.overall_average_rating), s.total_overall_responses])
    elements.append(_table(subject_rows))

    footer_text = f"Generated {datetime.now().strftime('%d-%b-%Y %H:%M')}"
    try:
        def footer_func(canvas, doc):
            FooterCanvas(canvas, doc, footer_text).draw_footer()

        doc.build(elements, onFirstPage=footer_func, onLaterPages=footer_func)
        logger.info(f"Report saved: {filepath}")
        return filepath
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise
