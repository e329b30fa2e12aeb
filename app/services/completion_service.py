from dataclasses import dataclass
from typing import Any, Callable

COMPLETION_THRESHOLD = 80


def _present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _non_empty(value: Any) -> bool:
    return bool(value)


# Ordered (name, predicate) pairs; each predicate receives the profile snapshot.
COMPLETION_PREDICATES: tuple[tuple[str, Callable[[Any], bool]], ...] = (
    ("full_name", lambda p: _present(p.full_name)),
    ("email", lambda p: _present(p.email)),
    ("date_of_birth", lambda p: _present(p.date_of_birth)),
    ("gender", lambda p: _present(p.gender)),
    ("city", lambda p: _present(p.city)),
    ("preferred_locations", lambda p: _non_empty(p.preferred_locations)),
    ("work_availability", lambda p: _non_empty(p.work_availability)),
    ("experience_level", lambda p: _present(p.experience_level)),
    ("skills", lambda p: _non_empty(p.skills)),
    ("job_categories", lambda p: _non_empty(p.job_categories)),
)


@dataclass(frozen=True)
class CompletionScore:
    percentage: int
    completed: bool
    matched: int
    total: int


def _round_half_up_percentage(matched: int, total: int) -> int:
    # Integer arithmetic keeps .5 cases from drifting through float rounding.
    return (matched * 200 + total) // (total * 2)


def evaluate(profile) -> dict[str, bool]:
    return {name: predicate(profile) for name, predicate in COMPLETION_PREDICATES}


def score(profile) -> CompletionScore:
    """
    Compute the completion percentage and flag for a profile snapshot.

    Works on anything exposing the profile attributes, so it can run inside
    ORM flush events as well as on plain objects in tests.
    """
    results = evaluate(profile)
    matched = sum(1 for passed in results.values() if passed)
    total = len(results)
    percentage = _round_half_up_percentage(matched, total)
    return CompletionScore(
        percentage=percentage,
        completed=percentage >= COMPLETION_THRESHOLD,
        matched=matched,
        total=total,
    )


def section_breakdown(profile) -> dict:
    checks = evaluate(profile)
    return {
        "personal_details": checks["full_name"] and checks["city"] and checks["email"],
        "location_preferences": checks["preferred_locations"],
        "work_availability": checks["work_availability"],
        "experience": checks["experience_level"],
        "skills": checks["skills"],
        "job_preferences": checks["job_categories"],
        "checks": checks,
    }
