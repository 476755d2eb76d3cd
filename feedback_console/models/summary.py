from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field

from feedback_console.config import NO_COLLEGE_COMMENT, NO_DEPARTMENT_COMMENT
from .base import Record


class QuestionScore(Record):
    score: float = 0
    percentage: float = 0


class FeedbackSummaryRecord(Record):
    teacher_name: str
    subject_name: str
    type: Literal['Theory', 'Lab']
    total_responses: int = Field(default=0, ge=0)
    # Q1..Q10 -> score/percentage; missing keys count as zero
    question_scores: Dict[str, QuestionScore] = Field(default_factory=dict)

    def question(self, key):
        return self.question_scores.get(key) or QuestionScore()


class Comment(Record):
    college_comments: Optional[str] = None
    department_comments: Optional[str] = None
    submitted_at: Optional[datetime] = None

    @property
    def college_text(self):
        return self.college_comments or NO_COLLEGE_COMMENT

    @property
    def department_text(self):
        return self.department_comments or NO_DEPARTMENT_COMMENT

    def to_display(self):
        """Wire form with placeholders filled in."""
        return {
            'collegeComments': self.college_text,
            'departmentComments': self.department_text,
            'submittedAt': self.submitted_at.isoformat() if self.submitted_at else None,
        }


class FeedbackSummary(Record):
    summary: List[FeedbackSummaryRecord] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)

    @property
    def is_empty(self):
        return not self.summary


class SummaryQuery(Record):
    """Filters for one summary page: a single class section."""
    academic_year: str
    year: int
    semester: int
    branch: str
    section: str
    is_bsh: bool = Field(default=False, alias='isBSH')

    def params(self):
        return self.to_wire()
