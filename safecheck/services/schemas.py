"""
Pydantic records shared by the analysis pipeline and the store.

AnalysisReport is the validated, fixed-shape result. Provider output never
reaches it directly: report_normalizer coerces a LooseReport first.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


AGE_GROUPS = ("babies", "children", "adults", "elderly")

# Untrusted provider JSON, before coercion
LooseReport = dict[str, Any]


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unique_lower(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = value.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Profiles & families ---


class Profile(CamelModel):
    id: str = Field(default_factory=_new_id)
    name: str
    age: str = ""
    allergies: list[str] = []
    conditions: Optional[str] = None
    weight: Optional[str] = None

    @field_validator("allergies")
    @classmethod
    def normalize_allergies(cls, value: list[str]) -> list[str]:
        return _unique_lower(value)


class Family(CamelModel):
    id: str = Field(default_factory=_new_id)
    name: str
    member_ids: list[str] = []

    @field_validator("member_ids")
    @classmethod
    def unique_members(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class Selection(CamelModel):
    active_profile_id: Optional[str] = None
    active_family_id: Optional[str] = None


# --- Derived risk context ---


class AgeGroupFlags(CamelModel):
    babies: bool = False
    children: bool = False
    adults: bool = False
    elderly: bool = False

    def active(self) -> list[str]:
        return [group for group in AGE_GROUPS if getattr(self, group)]


class RiskContext(CamelModel):
    combined_allergies: list[str] = []
    age_groups: AgeGroupFlags = Field(default_factory=AgeGroupFlags)

    @property
    def allergy_set(self) -> frozenset[str]:
        return frozenset(self.combined_allergies)


class ProfileContext(CamelModel):
    risk: RiskContext
    text: str


# --- Analysis report ---


class AgeSpecificWarnings(CamelModel):
    babies: str = ""
    children: str = ""
    adults: str = ""
    elderly: str = ""


class AnalysisReport(CamelModel):
    product_name: str = ""
    # None is the "unrated" sentinel
    safety_rating: Optional[int] = Field(default=None, ge=1, le=5)
    overall_safety: str = ""
    general_safety: str = ""
    harmful_ingredients: list[str] = []
    allergy_warnings: list[str] = []
    family_warnings: list[str] = []
    age_specific_warnings: AgeSpecificWarnings = Field(
        default_factory=AgeSpecificWarnings
    )
    compound_interactions: list[str] = []
    recommendations: list[str] = []
    personalized_warnings: list[str] = []

    @property
    def is_rated(self) -> bool:
        return self.safety_rating is not None


# --- History & favorites ---


class HistoryEntry(CamelModel):
    id: str = Field(default_factory=_new_id)
    image_reference: str
    timestamp: datetime = Field(default_factory=_utcnow)
    report: AnalysisReport
    usage: Optional[dict[str, int]] = None
    model: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Favorite(CamelModel):
    id: str
    product_name: str
    safety_rating: Optional[int] = None
    timestamp: datetime = Field(default_factory=_utcnow)
