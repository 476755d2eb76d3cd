from typing import Literal, Optional, Tuple, Union

from pydantic import Field

from .base import Record


class TheorySubject(Record):
    teacher_name: str = ''
    subject_name: str = ''


class LabSubject(Record):
    lab_teacher_name: str = ''
    lab_name: str = ''


class Configuration(Record):
    """A unique academic-unit descriptor; `title` is the identity key.

    Also used as the editable form state, so field values are not checked
    on construction. Validation lives in `services.validators` and runs on
    every edit and again before submission.
    """
    id: Optional[str] = Field(default=None, alias='_id')
    title: str = ''
    branch: str = 'CSE'
    academic_year: str = ''
    year: int = 1
    semester: int = 1
    section: str = 'A'
    theory_subjects: Tuple[TheorySubject, ...] = (TheorySubject(),)
    lab_subjects: Tuple[LabSubject, ...] = (LabSubject(),)

    def to_payload(self):
        """Request body for create/update; the backend assigns `_id`."""
        return self.to_wire(exclude={'id'})


class Saved(Record):
    kind: Literal['saved'] = 'saved'
    configuration: Configuration


class DuplicateTitle(Record):
    kind: Literal['duplicate_title'] = 'duplicate_title'
    title: str

    @property
    def message(self):
        return f'Configuration with title "{self.title}" already exists'


# Outcome of create: either persisted, or rejected because the title is taken
SaveResult = Union[Saved, DuplicateTitle]
