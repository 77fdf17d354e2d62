"""
Merge active health profiles into a combined risk context.

Everything here is a pure function of the profiles passed in. Callers resolve
which profiles are active (see profile_service) and hand them over.
"""

import re
from typing import Optional, Sequence

from safecheck.services.prompts import (
    NO_PROFILE_CONTEXT,
    PROFILE_CONTEXT_INSTRUCTIONS,
    PROFILE_CONTEXT_TEMPLATE,
    PROFILE_LINE_TEMPLATE,
)
from safecheck.services.schemas import (
    AgeGroupFlags,
    Profile,
    ProfileContext,
    RiskContext,
)


_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def parse_age(value: Optional[str]) -> Optional[int]:
    """
    Read the leading integer of an age field ("8", "8 years", "2.5" -> 2).

    Returns None when the field has no leading integer.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def classify_age(age: int) -> str:
    """Age group for an age in years. Thresholds are inclusive upper bounds."""
    if age <= 2:
        return "babies"
    if age <= 12:
        return "children"
    if age <= 60:
        return "adults"
    return "elderly"


def build_risk_context(profiles: Sequence[Profile]) -> RiskContext:
    allergies: dict[str, None] = {}
    flags = AgeGroupFlags()

    for profile in profiles:
        for allergy in profile.allergies:
            allergies.setdefault(allergy.lower(), None)

        age = parse_age(profile.age)
        if age is not None:
            setattr(flags, classify_age(age), True)

    return RiskContext(combined_allergies=list(allergies), age_groups=flags)


def _join_or(values: Sequence[str], empty: str) -> str:
    return ", ".join(values) or empty


class ProfileContextPrompt:
    """
    Instruction block describing the active profiles to the provider.

    Each named slot is available through slots() so the wording of one part
    can be checked without the surrounding template.
    """

    def __init__(self, profiles: Sequence[Profile], risk: RiskContext):
        self.profiles = list(profiles)
        self.risk = risk

    def profile_lines(self) -> str:
        lines = []
        for profile in self.profiles:
            line = PROFILE_LINE_TEMPLATE.format(
                name=profile.name,
                age=profile.age,
                allergies=_join_or(profile.allergies, "None"),
            )
            if profile.conditions:
                line += f" | Conditions: {profile.conditions}"
            lines.append(line)
        return "\n".join(lines)

    def combined_allergies(self) -> str:
        return _join_or(self.risk.combined_allergies, "None")

    def age_group_lines(self) -> str:
        return "\n".join(f"- {group}" for group in self.risk.age_groups.active())

    def instructions(self) -> str:
        return PROFILE_CONTEXT_INSTRUCTIONS.format(
            critical_allergies=_join_or(self.risk.combined_allergies, "none")
        )

    def slots(self) -> dict[str, str]:
        return {
            "profile_lines": self.profile_lines(),
            "combined_allergies": self.combined_allergies(),
            "age_group_lines": self.age_group_lines(),
            "instructions": self.instructions(),
        }

    def render(self) -> str:
        if not self.profiles:
            return NO_PROFILE_CONTEXT
        return PROFILE_CONTEXT_TEMPLATE.format(**self.slots())


def build_profile_context(profiles: Sequence[Profile]) -> ProfileContext:
    """Risk context plus the rendered instruction block for these profiles."""
    risk = build_risk_context(profiles)
    text = ProfileContextPrompt(profiles, risk).render()
    return ProfileContext(risk=risk, text=text)
