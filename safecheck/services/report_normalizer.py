"""
Turn raw provider text into a complete AnalysisReport.

The provider is asked for a fixed JSON shape but regularly wraps it in prose or
code fences, renames keys inside list items, or leaves fields out. Only a
missing outer object is an error; every sub-field is coerced or defaulted.
"""

import json
import logging
import re
from typing import Any

from safecheck.services.schemas import (
    AGE_GROUPS,
    AgeSpecificWarnings,
    AnalysisReport,
    LooseReport,
)


logger = logging.getLogger(__name__)

LIST_FIELDS = (
    "harmfulIngredients",
    "allergyWarnings",
    "familyWarnings",
    "compoundInteractions",
    "recommendations",
    "personalizedWarnings",
)
TEXT_FIELDS = ("productName", "overallSafety", "generalSafety")

_LABEL_KEYS = ("ingredient", "name")
_DETAIL_KEYS = ("explanation", "description", "warning")

# Greedy: first "{" through the last "}" in the text
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class ParseError(ValueError):
    """The provider response holds no parseable JSON object."""


def _fix_trailing_commas(text: str) -> str:
    """Fix trailing commas in JSON (common LLM error)."""
    text = re.sub(r",\s*}", "}", text)
    text = re.sub(r",\s*]", "]", text)
    return text


def extract_json_object(text: str) -> LooseReport:
    """
    Locate and decode the JSON object embedded in provider text.

    Raises:
        ParseError: If there is no {...} span or it does not decode to an object
    """
    match = _OBJECT_PATTERN.search(text or "")
    if not match:
        raise ParseError("Could not parse analysis results")

    # ValueError also covers oversized integer literals; RecursionError covers
    # nesting deeper than the decoder can follow
    candidate = match.group(0)
    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError):
        try:
            parsed = json.loads(_fix_trailing_commas(candidate))
        except (ValueError, RecursionError) as e:
            logger.warning("Provider response is not valid JSON: %s", e)
            raise ParseError("Could not parse analysis results") from e

    if not isinstance(parsed, dict):
        raise ParseError("Could not parse analysis results")
    return parsed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _first_present(item: dict, keys: tuple[str, ...]) -> str | None:
    """First non-empty string or number under keys, as text."""
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value:
            return value
        if _is_number(value):
            return str(value)
    return None


def coerce_list_item(item: Any) -> str | None:
    """
    One list element as a display string.

    Objects become "<ingredient|name>: <explanation|description|warning>".
    None, booleans and nested lists carry nothing displayable and yield None.
    """
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        label = _first_present(item, _LABEL_KEYS) or "Unknown"
        detail = _first_present(item, _DETAIL_KEYS) or ""
        return f"{label}: {detail}"
    if _is_number(item):
        return str(item)
    return None


def coerce_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    coerced = (coerce_list_item(item) for item in value)
    return [item for item in coerced if item is not None]


def coerce_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    return ""


def coerce_rating(value: Any) -> int | None:
    """
    Safety rating as an int in 1..5, or None (unrated).

    Accepts integral floats and numeric strings; anything else is unrated.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and 1 <= value <= 5:
        return value
    return None


def coerce_age_warnings(value: Any) -> AgeSpecificWarnings:
    if not isinstance(value, dict):
        return AgeSpecificWarnings()
    return AgeSpecificWarnings(
        **{group: coerce_text(value.get(group)) for group in AGE_GROUPS}
    )


def normalize_report_data(data: LooseReport) -> AnalysisReport:
    """Coerce an already decoded provider object into an AnalysisReport."""
    fields: dict[str, Any] = {
        name: coerce_text(data.get(name)) for name in TEXT_FIELDS
    }
    fields.update({name: coerce_list(data.get(name)) for name in LIST_FIELDS})
    fields["safetyRating"] = coerce_rating(data.get("safetyRating"))
    fields["ageSpecificWarnings"] = coerce_age_warnings(
        data.get("ageSpecificWarnings")
    )
    return AnalysisReport.model_validate(fields)


def normalize_report(text: str) -> AnalysisReport:
    """
    Parse raw provider text into a fully populated AnalysisReport.

    Raises:
        ParseError: If no JSON object can be located in the text
    """
    return normalize_report_data(extract_json_object(text))
