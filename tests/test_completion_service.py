from datetime import date
from types import SimpleNamespace

import pytest

from app.services.completion_service import score, section_breakdown


def _snapshot(**overrides):
    values = {
        "full_name": None,
        "email": None,
        "date_of_birth": None,
        "gender": None,
        "city": None,
        "preferred_locations": [],
        "work_availability": [],
        "experience_level": None,
        "skills": [],
        "job_categories": [],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_empty_profile_scores_zero():
    result = score(_snapshot())

    assert result.percentage == 0
    assert result.completed is False


def test_name_email_city_scores_thirty_then_eighty():
    profile = _snapshot(full_name="Asha Rao", email="asha@example.com", city="Pune")

    first = score(profile)
    assert (first.percentage, first.completed) == (30, False)

    profile.preferred_locations = [{"city": "Mumbai", "priority": 1}]
    profile.work_availability = ["full-time"]
    profile.experience_level = "fresher"
    profile.skills = [{"name": "Cooking", "level": "expert"}]
    profile.job_categories = ["hospitality"]

    second = score(profile)
    assert (second.percentage, second.completed) == (80, True)


def test_blank_strings_do_not_count():
    result = score(_snapshot(full_name="   ", city="", experience_level="fresher"))

    assert result.percentage == 10


@pytest.mark.parametrize("matched, expected", [(7, 70), (8, 80), (10, 100)])
def test_completed_flag_threshold(matched, expected):
    fields = {
        "full_name": "A B",
        "email": "a@b.co",
        "date_of_birth": date(1990, 1, 1),
        "gender": "female",
        "city": "Delhi",
        "preferred_locations": [{"city": "Delhi", "priority": 1}],
        "work_availability": ["contract"],
        "experience_level": "experienced",
        "skills": [{"name": "Driving"}],
        "job_categories": ["logistics"],
    }
    kept = dict(list(fields.items())[:matched])

    result = score(_snapshot(**kept))

    assert result.percentage == expected
    assert result.completed is (expected >= 80)


def test_section_breakdown_requires_name_city_and_email_for_personal_details():
    breakdown = section_breakdown(_snapshot(full_name="Asha", city="Pune", skills=[{"name": "x"}]))

    assert breakdown["personal_details"] is False
    assert breakdown["skills"] is True
    assert breakdown["checks"]["email"] is False
