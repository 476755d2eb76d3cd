import io
import os
import logging
from datetime import datetime
from xml.sax.saxutils import escape

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm, inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image, KeepTogether

from feedback_console import config

logger = logging.getLogger(__name__)

GRID_COLOR = colors.black
HEADER_BACKGROUND = colors.HexColor('#e5e7eb')


def _fmt(value):
    """Render a number without a trailing '.0'."""
    return f"{float(value):g}"


def create_score_graph(report):
    """
    Create a bar graph of the overall percentage per teacher/subject.
    """
    labels = [f"{r.teacher_name}\n{r.subject_name}" for r in report.records]
    totals = [float(report.overall(r)) for r in report.records]

    fig, ax = plt.subplots(figsize=(10, 3.5), dpi=200)
    bars = ax.bar(labels, totals, color='#007bff')
    ax.set_ylim(0, 100)
    ax.set_ylabel('Overall (%)', fontsize=8)

    plt.xticks(fontsize=7)
    plt.yticks(fontsize=8)

    for bar, total in zip(bars, totals):
        ax.text(bar.get_x() + bar.get_width() / 2.0, bar.get_height(),
                f'{total:.2f}', ha='center', va='bottom', fontsize=7)

    ax.grid(True, axis='y', linestyle='--', alpha=0.7)
    fig.tight_layout()

    buf = io.BytesIO()
    fig.savefig(buf, format='png', bbox_inches='tight')
    plt.close(fig)
    buf.seek(0)
    return buf


class FooterCanvas:
    def __init__(self, canvas, doc, generated_at):
        self.canvas = canvas
        self.doc = doc
        self.generated_at = generated_at

    def draw_footer(self):
        self.canvas.saveState()
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        left = f"Generated on {self.generated_at:%d/%m/%Y %I:%M %p}"
        self.canvas.drawString(25, 15, left)

        right = f"Page {self.doc.page}"
        right_width = self.canvas.stringWidth(right, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_width - 25, 15, right)

        self.canvas.restoreState()


def _styles():
    styles = getSampleStyleSheet()
    return {
        'title': ParagraphStyle('ReportInstitution', parent=styles['Heading1'],
                                fontSize=14, alignment=1, spaceAfter=2),
        'subtitle': ParagraphStyle('ReportTitle', parent=styles['Heading2'],
                                   fontSize=12, alignment=1, spaceAfter=8),
        'heading': ParagraphStyle('SectionHeading', parent=styles['Heading3'],
                                  fontSize=11, spaceBefore=6, spaceAfter=4),
        'cell': ParagraphStyle('Cell', parent=styles['Normal'], fontSize=8, leading=10),
        'signature': ParagraphStyle('Signature', parent=styles['Normal'],
                                    fontSize=9, alignment=2),
    }


def _identity_table(report, record, width):
    """Batch/year/semester/branch/section/responses, then subject/teacher/type."""
    q = report.query
    data = [
        [f"Academic Year: {q.academic_year}", f"Year: {q.year}", f"Semester: {q.semester}",
         f"Branch: {q.branch}", f"Section: {q.section}", f"Total Responses: {record.total_responses}"],
        [f"Subject: {record.subject_name}", '', '',
         f"Teacher: {record.teacher_name}", '',
         f"Type: {record.type}"],
    ]
    table = Table(data, colWidths=[width / 6.0] * 6)
    table.setStyle(TableStyle([
        ('SPAN', (0, 1), (2, 1)),
        ('SPAN', (3, 1), (4, 1)),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    return table


def _score_table(report, record, width):
    overall = report.overall(record)
    data = [
        ['Metric'] + config.QUESTION_KEYS + ['Overall'],
        ['Score'] + [_fmt(record.question(k).score) for k in config.QUESTION_KEYS] + [overall],
        ['Percentage (%)'] + [f"{_fmt(record.question(k).percentage)}%" for k in config.QUESTION_KEYS] + [f"{overall}%"],
    ]
    first = width * 0.16
    rest = (width - first) / 11.0
    table = Table(data, colWidths=[first] + [rest] * 11)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, 1), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (-1, 1), (-1, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 1), (-2, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BACKGROUND),
        ('BACKGROUND', (-1, 2), (-1, 2), HEADER_BACKGROUND),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    return table


def _comments_table(report, styles, width):
    data = [['College Feedback', 'Department Feedback']]
    for comment in report.comments:
        data.append([
            Paragraph(escape(comment.college_text), styles['cell']),
            Paragraph(escape(comment.department_text), styles['cell']),
        ])
    table = Table(data, colWidths=[width / 2.0] * 2, repeatRows=1)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 9),
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BACKGROUND),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    return table


def _image(path, width, height):
    if path and os.path.exists(path):
        return Image(path, width=width, height=height)
    return None


def report_filename(query):
    return (f"feedback_report_{query.branch}_{query.academic_year}"
            f"_Y{query.year}_S{query.semester}_{query.section}.pdf")


def generate_feedback_report(report, include_chart=False):
    """Render the printable feedback report and return it as a PDF buffer."""
    buf = io.BytesIO()
    q = report.query
    logger.info(f"Generating report: {report_filename(q)}")

    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        rightMargin=20,
        leftMargin=20,
        topMargin=20,
        bottomMargin=35,
        title=config.REPORT_TITLE,
    )
    styles = _styles()
    elements = []

    # Header block
    logo = _image(config.LOGO_PATH, 1.2 * inch, 1.2 * inch)
    if logo is not None:
        elements.append(logo)
    elements.append(Paragraph(escape(config.INSTITUTION_NAME), styles['title']))
    elements.append(Paragraph(config.REPORT_TITLE, styles['subtitle']))

    # One block per teacher/subject
    for record in report.records:
        elements.append(KeepTogether([
            _identity_table(report, record, doc.width),
            Spacer(1, 4),
            _score_table(report, record, doc.width),
            Spacer(1, 0.6 * cm),
        ]))

    if include_chart and report.records:
        img = Image(create_score_graph(report))
        img.drawWidth = doc.width
        img.drawHeight = 2.5 * inch
        elements.append(img)
        elements.append(Spacer(1, 0.4 * cm))

    if report.comments:
        elements.append(Paragraph("Overall Student Comments", styles['heading']))
        elements.append(_comments_table(report, styles, doc.width))

    # Signature block
    elements.append(Spacer(1, 1.2 * cm))
    signature = _image(config.SIGNATURE_PATH, 1.5 * inch, 0.6 * inch)
    if signature is not None:
        signature.hAlign = 'RIGHT'
        elements.append(signature)
    elements.append(Paragraph(config.SIGNATURE_CAPTION, styles['signature']))

    generated_at = datetime.now()

    def footer_func(canvas, doc):
        FooterCanvas(canvas, doc, generated_at).draw_footer()

    try:
        doc.build(elements, onFirstPage=footer_func, onLaterPages=footer_func)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise
    buf.seek(0)
    return buf
