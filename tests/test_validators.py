"""Tests for the configuration form validators."""

import pytest

from feedback_console.models import Configuration, LabSubject, TheorySubject
from feedback_console.services.validators import (
    ACADEMIC_YEAR_MESSAGE,
    BRANCH_MESSAGE,
    LAB_MESSAGE,
    SECTION_MESSAGE,
    THEORY_MESSAGE,
    TITLE_EMPTY_MESSAGE,
    TITLE_FORMAT_MESSAGE,
    form_errors,
    validate_academic_year,
    validate_branch,
    validate_section,
    validate_title,
)


class TestTitle:
    @pytest.mark.parametrize("title", ["CSE-D-4-1", "ECE-A-1-2", "AIML-Z-3-1"])
    def test_accepts_structured_titles(self, title):
        assert validate_title(title, is_bsh=False)

    @pytest.mark.parametrize("title", [
        "cse-d-4-1",      # not uppercased
        "CSE-D-5-1",      # semester out of range
        "CSE-D-4-3",      # year out of range
        "CSE-DD-4-1",     # section must be one letter
        "CSE-D-4",        # missing segment
        "CSE-D-4-1-X",
        "CSE-D-4-1\n",
        "",
    ])
    def test_rejects_other_shapes(self, title):
        assert not validate_title(title, is_bsh=False)

    def test_bsh_title_only_needs_content(self):
        assert validate_title("Physics batch 1", is_bsh=True)
        assert not validate_title("   ", is_bsh=True)


class TestSection:
    @pytest.mark.parametrize("section", ["A", "M", "Z"])
    def test_single_uppercase_letter(self, section):
        assert validate_section(section)

    @pytest.mark.parametrize("section", ["a", "AB", "", "1", "A\n"])
    def test_rejects_everything_else(self, section):
        assert not validate_section(section)


class TestAcademicYear:
    @pytest.mark.parametrize("value", ["2024-2025", "2000-2001", "2099-2100"])
    def test_consecutive_years(self, value):
        assert validate_academic_year(value)

    @pytest.mark.parametrize("value", [
        "2024-2026",
        "2025-2024",
        "1999-2000",
        "2100-2101",
        "24-25",
        "2024/2025",
        "2024-2025\n",
    ])
    def test_rejects_invalid(self, value):
        assert not validate_academic_year(value)


class TestBranch:
    def test_known_branch(self):
        assert validate_branch("CSE", is_bsh=False)
        assert validate_branch("CSE", is_bsh=True)
        assert validate_branch("CSE-BSH", is_bsh=True)

    def test_suffix_only_for_bsh(self):
        assert not validate_branch("CSE-BSH", is_bsh=False)

    def test_unknown_branch(self):
        assert not validate_branch("ARTS", is_bsh=False)
        assert not validate_branch("ARTS-BSH", is_bsh=True)


class TestFormErrors:
    def _form(self, **overrides):
        values = dict(title="CSE-D-4-1", branch="CSE", academic_year="2024-2025",
                      year=4, semester=1, section="D")
        values.update(overrides)
        return Configuration(**values)

    def test_valid_form_has_no_errors(self):
        assert form_errors(self._form(), is_bsh=False) == {}

    def test_reports_every_failing_field(self):
        form = self._form(title="bad", section="dd", academic_year="2024-2026", branch="ARTS",
                          theory_subjects=(), lab_subjects=())
        errors = form_errors(form, is_bsh=False)
        assert errors == {
            'title': TITLE_FORMAT_MESSAGE,
            'section': SECTION_MESSAGE,
            'academicYear': ACADEMIC_YEAR_MESSAGE,
            'branch': BRANCH_MESSAGE,
            'theorySubjects': THEORY_MESSAGE,
            'labSubjects': LAB_MESSAGE,
        }

    def test_bsh_uses_empty_title_message(self):
        errors = form_errors(self._form(title=""), is_bsh=True)
        assert errors == {'title': TITLE_EMPTY_MESSAGE}

    def test_advisory_mode_ignores_empty_fields(self):
        form = self._form(title="", academic_year="", theory_subjects=(), lab_subjects=())
        assert form_errors(form, is_bsh=False, advisory=True) == {}

    def test_advisory_mode_still_flags_bad_input(self):
        form = self._form(title="CSE-D", section="d")
        errors = form_errors(form, is_bsh=False, advisory=True)
        assert set(errors) == {'title', 'section'}

    def test_coordinator_cannot_store_bsh_branch(self):
        errors = form_errors(self._form(branch="CSE-BSH"), is_bsh=False)
        assert errors == {'branch': BRANCH_MESSAGE}

    def test_blank_subject_rows_are_accepted(self):
        form = self._form(theory_subjects=(TheorySubject(),), lab_subjects=(LabSubject(),))
        assert form_errors(form, is_bsh=False) == {}
