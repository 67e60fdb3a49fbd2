# src/models/preferences.py

"""Diagnosis answers handed to the scorer."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.models.errors import PreferenceValidationError

GOALS = ("diet", "muscle", "health", "beauty")
EXERCISE_LEVELS = ("none", "light", "moderate", "heavy")
BODY_HINTS = ("", "male", "female", "plant", "budget")
BUDGET_TIERS = ("low", "mid", "high", "any")
FLAVOR_PREFERENCES = ("sweet", "light", "any", "chocolate", "fruit", "coffee")
TIMINGS = ("", "any", "morning", "post_workout", "night")

_REQUIRED_FIELDS = (
    "goal",
    "exercise",
    "budget",
    "flavor",
    "lactose_intolerant",
)

_ALLOWED: dict[str, tuple[str, ...]] = {
    "goal": GOALS,
    "exercise": EXERCISE_LEVELS,
    "body": BODY_HINTS,
    "budget": BUDGET_TIERS,
    "flavor": FLAVOR_PREFERENCES,
    "timing": TIMINGS,
}

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


@dataclass(frozen=True)
class UserPreferenceProfile:
    """One user's diagnosis answers, built fresh per request."""

    goal: str
    exercise: str
    budget: str
    flavor: str
    lactose_intolerant: bool = False
    body: str = ""
    timing: str = ""

    @classmethod
    def from_answers(
        cls, answers: Mapping[str, Any],
    ) -> "UserPreferenceProfile":
        """Validate raw form/query answers and build a profile.

        Raises:
            PreferenceValidationError: listing every missing or unknown answer.
        """
        problems: list[str] = []
        for name in _REQUIRED_FIELDS:
            value = answers.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                problems.append(f"missing required answer '{name}'")

        values: dict[str, str] = {}
        for name, allowed in _ALLOWED.items():
            raw = answers.get(name)
            value = "" if raw is None else str(raw).strip().lower()
            if value and value not in allowed:
                problems.append(
                    f"unknown {name} '{value}' "
                    f"(expected one of: {', '.join(a for a in allowed if a)})"
                )
            values[name] = value

        raw_lactose = answers.get("lactose_intolerant")
        lactose = _parse_flag(raw_lactose)
        if lactose is None and raw_lactose not in (None, ""):
            problems.append("lactose_intolerant must be a boolean")

        if problems:
            raise PreferenceValidationError(problems)

        return cls(
            goal=values["goal"],
            exercise=values["exercise"],
            budget=values["budget"],
            flavor=values["flavor"],
            lactose_intolerant=bool(lactose),
            body=values["body"],
            timing=values["timing"],
        )


def _parse_flag(value: Any) -> bool | None:
    """Coerce a form value to bool, or ``None`` when it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None
