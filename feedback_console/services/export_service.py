"""
Service for exporting a feedback summary as an Excel workbook.
"""

import io
import logging

import pandas as pd

from feedback_console.config import QUESTION_KEYS

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ['Teacher', 'Subject', 'Type', 'Total Responses'] + QUESTION_KEYS + ['Overall']
COMMENT_COLUMNS = ['College Feedback', 'Department Feedback', 'Submitted At']


def summary_dataframe(report) -> pd.DataFrame:
    """One row per teacher/subject with per-question percentages."""
    rows = []
    for record in report.records:
        row = {
            'Teacher': record.teacher_name,
            'Subject': record.subject_name,
            'Type': record.type,
            'Total Responses': record.total_responses,
        }
        for key in QUESTION_KEYS:
            row[key] = record.question(key).percentage
        row['Overall'] = float(report.overall(record))
        rows.append(row)
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def comments_dataframe(report) -> pd.DataFrame:
    rows = [
        {
            'College Feedback': comment.college_text,
            'Department Feedback': comment.department_text,
            'Submitted At': comment.submitted_at.strftime('%Y-%m-%d %H:%M') if comment.submitted_at else '',
        }
        for comment in report.comments
    ]
    return pd.DataFrame(rows, columns=COMMENT_COLUMNS)


def export_filename(query) -> str:
    return (f"feedback_summary_{query.branch}_{query.academic_year}"
            f"_Y{query.year}_S{query.semester}_{query.section}.xlsx")


def export_summary_excel(report) -> io.BytesIO:
    """Write the Summary and Comments sheets to an in-memory workbook."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine='openpyxl') as writer:
        summary_dataframe(report).to_excel(writer, sheet_name='Summary', index=False)
        comments_dataframe(report).to_excel(writer, sheet_name='Comments', index=False)
    buf.seek(0)
    logger.info(f"Exported {len(report.records)} summary rows for {report.query.branch}")
    return buf
