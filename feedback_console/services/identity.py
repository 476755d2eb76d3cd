"""
Configuration identity resolver.

Keeps title, section and branch consistent while a configuration form is
edited and applies the BSH branch naming convention. Every function takes
a Configuration and returns a new one; nothing is mutated in place.

The title/section sync is a convenience only: it rewrites the title when
the title already looks like BRANCH-SECTION-SEMESTER-YEAR and leaves any
other title alone.
"""
import logging

from feedback_console.config import BRANCH_OPTIONS
from feedback_console.models import Configuration, LabSubject, TheorySubject, ValidationError
from feedback_console.services.validators import BRANCH_MESSAGE, form_errors, validate_branch
from feedback_console.utils import effective_branch, is_bsh, strip_bsh_suffix, with_bsh_suffix

logger = logging.getLogger(__name__)

THEORY_FIELDS = {
    'teacherName': 'teacher_name',
    'teacher_name': 'teacher_name',
    'subjectName': 'subject_name',
    'subject_name': 'subject_name',
}
LAB_FIELDS = {
    'labTeacherName': 'lab_teacher_name',
    'lab_teacher_name': 'lab_teacher_name',
    'labName': 'lab_name',
    'lab_name': 'lab_name',
}
SCALAR_FIELDS = {
    'academicYear': 'academic_year',
    'academic_year': 'academic_year',
    'year': 'year',
    'semester': 'semester',
}


def new_form(role):
    """Blank form for a new configuration."""
    return Configuration(branch=effective_branch(BRANCH_OPTIONS[0], role))


def load_for_editing(record, role):
    """Prepare a stored record for editing under the given role."""
    branch = record.branch or BRANCH_OPTIONS[0]
    branch = with_bsh_suffix(branch) if is_bsh(role) else strip_bsh_suffix(branch)
    return record.model_copy(update={
        'branch': branch,
        'title': record.title.upper(),
    })


def branch_choice(form):
    """The enumeration entry currently selected (suffix removed)."""
    return strip_bsh_suffix(form.branch)


def set_title(form, value):
    return form.model_copy(update={'title': value.upper()})


def set_section(form, value):
    section = value.upper()
    segments = form.title.split('-')
    title = form.title
    if len(segments) == 4:
        title = '-'.join([segments[0], section, segments[2], segments[3]])
    return form.model_copy(update={'section': section, 'title': title})


def set_branch(form, branch, role):
    if not validate_branch(branch, is_bsh(role)):
        raise ValidationError({'branch': BRANCH_MESSAGE})
    new_branch = effective_branch(branch, role)
    title = form.title
    if title.startswith(form.branch):
        title = new_branch + title[len(form.branch):]
    return form.model_copy(update={'branch': new_branch, 'title': title})


def set_field(form, name, value):
    """Set academicYear, year or semester."""
    try:
        attr = SCALAR_FIELDS[name]
    except KeyError:
        raise ValidationError({name: f'Unknown field: {name}'})
    if attr in ('year', 'semester'):
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValidationError({name: f'{name.capitalize()} must be a number'})
    return form.model_copy(update={attr: value})


def add_theory_subject(form):
    return form.model_copy(update={'theory_subjects': form.theory_subjects + (TheorySubject(),)})


def remove_theory_subject(form, index):
    rows = tuple(row for i, row in enumerate(form.theory_subjects) if i != index)
    return form.model_copy(update={'theory_subjects': rows})


def update_theory_subject(form, index, field, value):
    rows = _replace_row(form.theory_subjects, index, THEORY_FIELDS, field, value)
    return form.model_copy(update={'theory_subjects': rows})


def add_lab_subject(form):
    return form.model_copy(update={'lab_subjects': form.lab_subjects + (LabSubject(),)})


def remove_lab_subject(form, index):
    rows = tuple(row for i, row in enumerate(form.lab_subjects) if i != index)
    return form.model_copy(update={'lab_subjects': rows})


def update_lab_subject(form, index, field, value):
    rows = _replace_row(form.lab_subjects, index, LAB_FIELDS, field, value)
    return form.model_copy(update={'lab_subjects': rows})


def _replace_row(rows, index, fields, field, value):
    if field not in fields:
        raise ValidationError({field: f'Unknown field: {field}'})
    if not 0 <= index < len(rows):
        raise ValidationError({field: f'No row at position {index + 1}'})
    updated = rows[index].model_copy(update={fields[field]: value})
    return rows[:index] + (updated,) + rows[index + 1:]


def apply_edit(form, role, action, field=None, value=None, index=None):
    """Apply one form edit described by name, as posted by the console UI.

    Actions: set, add_theory, remove_theory, update_theory, add_lab,
    remove_lab, update_lab.
    """
    if action == 'set':
        if field == 'title':
            return set_title(form, value or '')
        if field == 'section':
            return set_section(form, value or '')
        if field == 'branch':
            return set_branch(form, value or '', role)
        return set_field(form, field, value)
    if action == 'add_theory':
        return add_theory_subject(form)
    if action == 'remove_theory':
        return remove_theory_subject(form, _index(index))
    if action == 'update_theory':
        return update_theory_subject(form, _index(index), field, value or '')
    if action == 'add_lab':
        return add_lab_subject(form)
    if action == 'remove_lab':
        return remove_lab_subject(form, _index(index))
    if action == 'update_lab':
        return update_lab_subject(form, _index(index), field, value or '')
    raise ValidationError({'action': f'Unknown action: {action}'})


def _index(index):
    try:
        return int(index)
    except (TypeError, ValueError):
        raise ValidationError({'index': 'Row index must be a number'})


def advisory_errors(form, role):
    """Errors to show while typing; empty fields are not flagged yet."""
    return form_errors(form, is_bsh(role), advisory=True)


def finalize(form, role):
    """Validate and normalize a form for submission.

    Raises ValidationError when any check fails, so nothing is sent to the
    backend for an invalid form.
    """
    form = form.model_copy(update={'title': form.title.upper()})
    errors = form_errors(form, is_bsh(role))
    if errors:
        logger.info(f"Rejected configuration {form.title!r}: {', '.join(errors)}")
        raise ValidationError(errors)
    if is_bsh(role):
        form = form.model_copy(update={'branch': with_bsh_suffix(form.branch)})
    return form
