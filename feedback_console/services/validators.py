"""
Validators for configuration form fields.

Pure predicates over raw strings. Callers uppercase titles and sections
before validating; a lowercase value is invalid here.
"""
import re

from feedback_console.config import BRANCH_OPTIONS
from feedback_console.utils import strip_bsh_suffix

# Matched with fullmatch, so a trailing newline is rejected
TITLE_PATTERN = re.compile(r'[A-Z]+-[A-Z]-[1-4]-[1-2]')
SECTION_PATTERN = re.compile(r'[A-Z]')
ACADEMIC_YEAR_PATTERN = re.compile(r'[0-9]{4}-[0-9]{4}')

TITLE_FORMAT_MESSAGE = 'Title must be in format BRANCH-SECTION-SEMESTER-YEAR'
TITLE_EMPTY_MESSAGE = 'Title cannot be empty'
SECTION_MESSAGE = 'Section must be a single uppercase letter (A-Z)'
ACADEMIC_YEAR_MESSAGE = 'Academic year must be in format YYYY-YYYY with consecutive years'
BRANCH_MESSAGE = 'Please select a valid branch'
THEORY_MESSAGE = 'At least one theory subject is required'
LAB_MESSAGE = 'At least one lab subject is required'


def validate_title(title, is_bsh):
    if is_bsh:
        return len(title.strip()) > 0
    return TITLE_PATTERN.fullmatch(title) is not None


def validate_section(section):
    return SECTION_PATTERN.fullmatch(section) is not None


def validate_academic_year(value):
    if ACADEMIC_YEAR_PATTERN.fullmatch(value) is None:
        return False
    start, end = (int(part) for part in value.split('-'))
    return end == start + 1 and start >= 2000 and end <= 2100


def validate_branch(branch, is_bsh):
    """Only BSH branches may carry the -BSH suffix."""
    if is_bsh:
        return strip_bsh_suffix(branch) in BRANCH_OPTIONS
    return branch in BRANCH_OPTIONS


def title_error(title, is_bsh):
    if validate_title(title, is_bsh):
        return None
    return TITLE_EMPTY_MESSAGE if is_bsh else TITLE_FORMAT_MESSAGE


def section_error(section):
    return None if validate_section(section) else SECTION_MESSAGE


def academic_year_error(value):
    return None if validate_academic_year(value) else ACADEMIC_YEAR_MESSAGE


def form_errors(form, is_bsh, advisory=False):
    """Collect field errors for a Configuration form.

    In advisory mode (while the user is typing) empty text fields are not
    reported yet; at submit time every failing check is reported.
    """
    errors = {}

    def check(field, value, error):
        if advisory and not value:
            return
        if error is not None:
            errors[field] = error

    check('title', form.title, title_error(form.title, is_bsh))
    check('section', form.section, section_error(form.section))
    check('academicYear', form.academic_year, academic_year_error(form.academic_year))
    if not advisory:
        if not validate_branch(form.branch, is_bsh):
            errors['branch'] = BRANCH_MESSAGE
        if not form.theory_subjects:
            errors['theorySubjects'] = THEORY_MESSAGE
        if not form.lab_subjects:
            errors['labSubjects'] = LAB_MESSAGE
    return errors
