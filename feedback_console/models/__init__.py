from .configuration import Configuration, TheorySubject, LabSubject, Saved, DuplicateTitle, SaveResult
from .summary import QuestionScore, FeedbackSummaryRecord, Comment, FeedbackSummary, SummaryQuery
from .user import User
from .errors import (
    ConsoleError, ValidationError, DuplicateIdentityError, AuthenticationError,
    NotFoundError, SubmissionInProgressError, ServerError, TransportError,
)

__all__ = [
    'Configuration', 'TheorySubject', 'LabSubject', 'Saved', 'DuplicateTitle', 'SaveResult',
    'QuestionScore', 'FeedbackSummaryRecord', 'Comment', 'FeedbackSummary', 'SummaryQuery',
    'User',
    'ConsoleError', 'ValidationError', 'DuplicateIdentityError', 'AuthenticationError',
    'NotFoundError', 'SubmissionInProgressError', 'ServerError', 'TransportError',
]
