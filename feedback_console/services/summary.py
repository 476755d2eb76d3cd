"""
Feedback summary retrieval for the summary page, the PDF report and the
Excel export.
"""
import logging

from feedback_console import config
from feedback_console.models import NotFoundError, SummaryQuery, ValidationError
from feedback_console.services.scoring import ScorePolicy, overall_percentage
from feedback_console.services.validators import (
    ACADEMIC_YEAR_MESSAGE,
    SECTION_MESSAGE,
    validate_academic_year,
    validate_section,
)
from feedback_console.utils import normalize_semester

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = 'No feedback data found for the selected criteria'


def build_summary_query(academic_year, year, semester, section, branch, is_bsh=False):
    """Check the summary filters and return a SummaryQuery.

    All filters are required; the branch list depends on the BSH toggle.
    """
    section = (section or '').strip().upper()
    if not academic_year or not year or not semester or not section:
        raise ValidationError({'query': 'Please fill all required fields'})
    if not branch:
        raise ValidationError({'branch': 'Please select a BSH branch' if is_bsh else 'Please select a branch'})

    allowed = config.BSH_BRANCHES if is_bsh else config.BRANCH_OPTIONS
    if branch not in allowed:
        raise ValidationError({'branch': f'Unknown branch: {branch}'})
    if not validate_academic_year(academic_year):
        raise ValidationError({'academicYear': ACADEMIC_YEAR_MESSAGE})
    if not validate_section(section):
        raise ValidationError({'section': SECTION_MESSAGE})
    try:
        year = int(year)
        semester = normalize_semester(semester)
    except ValueError:
        raise ValidationError({'query': 'Year and semester must be numbers'})

    return SummaryQuery(
        academic_year=academic_year,
        year=year,
        semester=semester,
        branch=branch,
        section=section,
        is_bsh=is_bsh,
    )


class SummaryReport:
    """A fetched summary together with the query that produced it."""

    def __init__(self, query, summary, policy=None):
        self.query = query
        self.records = summary.summary
        self.comments = summary.comments
        self.policy = ScorePolicy(policy or config.SCORE_POLICY)

    def overall(self, record):
        return overall_percentage(record.question_scores, self.policy)

    def to_dict(self):
        return {
            'query': self.query.to_wire(),
            'policy': self.policy.value,
            'summary': [
                dict(record.to_wire(), overallPercentage=self.overall(record))
                for record in self.records
            ],
            'comments': [comment.to_display() for comment in self.comments],
        }


def fetch_summary(gateway, query, policy=None):
    """Fetch the summary for a query; raises NotFoundError when it is empty."""
    summary = gateway.get_summary(**query.params())
    if summary.is_empty:
        logger.info(f"No feedback data for {query.branch} {query.year}/{query.semester} {query.section}")
        raise NotFoundError(NO_DATA_MESSAGE)
    return SummaryReport(query, summary, policy)
