from __future__ import annotations

from datetime import date

import pytest

from kickoff.domain.errors import InputValidationError
from kickoff.domain.form import Milestone, ProjectForm
from kickoff.domain.placeholders import build_replacements, format_long_date
from tests.helpers.fakes import make_form


def test_blank_project_name_is_rejected() -> None:
    with pytest.raises(InputValidationError):
        ProjectForm(name="   ")


def test_end_date_before_start_date_is_rejected() -> None:
    with pytest.raises(InputValidationError):
        ProjectForm(name="Dashboard", start_date=date(2024, 5, 1), end_date=date(2024, 4, 1))


def test_submission_key_prefers_submission_id() -> None:
    assert make_form(" Water Quality ").submission_key == "water quality"
    assert make_form(submission_id="sub-1").submission_key == "sub-1"


def test_milestone_assignee_defaults_to_coordinator() -> None:
    form = make_form()
    audit, launch = form.milestones

    assert form.milestone_assignee_name(audit) == "Sam Ortiz"
    assert form.milestone_assignee_name(launch) == "Dana Reyes"


def test_named_milestones_drop_blank_rows() -> None:
    form = make_form(milestones=[Milestone(name=" "), Milestone(name="Launch")])

    assert [milestone.name for milestone in form.named_milestones] == ["Launch"]


def test_format_long_date() -> None:
    assert format_long_date(date(2024, 3, 5)) == "March 5, 2024"
    assert format_long_date(None) == "TBD"


def test_build_replacements_uses_custom_tokens() -> None:
    replacements = build_replacements(
        make_form(),
        today=date(2024, 3, 1),
        tokens={"project_name": "<<NAME>>"},
    )

    assert replacements["<<NAME>>"] == "Water Quality Dashboard"
    assert replacements["{{START_DATE}}"] == "March 5, 2024"
    assert replacements["{{CREATED_DATE}}"] == "March 1, 2024"
    assert replacements["{{PROJECT_OWNER}}"] == "Dana Reyes"
    assert replacements["{{PROJECT_COORDINATOR}}"] == "Sam Ortiz"
