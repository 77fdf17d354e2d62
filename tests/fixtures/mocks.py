"""
Mock services for testing AI functionality.

These mocks provide deterministic responses for testing without API calls.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional


SAMPLE_REPORT_JSON = {
    "productName": "Crunchy Peanut Bar",
    "safetyRating": 2,
    "overallSafety": "Contains major allergens",
    "generalSafety": "Generally safe for people without nut allergies.",
    "harmfulIngredients": [{"ingredient": "BHA", "description": "preservative"}],
    "allergyWarnings": ["Contains peanuts"],
    "familyWarnings": ["Al (8) is allergic to nuts"],
    "ageSpecificWarnings": {
        "babies": "Choking hazard",
        "children": "High sugar",
        "adults": "",
        "elderly": "",
    },
    "compoundInteractions": [],
    "recommendations": ["Choose a nut-free bar"],
    "personalizedWarnings": ["Avoid: contains peanuts"],
}


class MockClaudeService:
    """
    Mock Claude service for testing analysis.

    Configure the raw provider text per test; calls are recorded for assertions.
    """

    def __init__(self):
        self.model = "claude-test-model"
        self.is_configured = True

        # Track method calls for assertions
        self.calls: Dict[str, List[Dict]] = {}

        self._response_text = (
            "Here is the analysis:\n```json\n"
            + json.dumps(SAMPLE_REPORT_JSON, indent=2)
            + "\n```"
        )
        self._usage: Optional[Dict[str, int]] = {
            "input_tokens": 1200,
            "output_tokens": 300,
        }

        # Error simulation
        self._raise_error: Optional[Exception] = None

    def _record_call(self, method: str, **kwargs):
        """Record a method call for assertion."""
        if method not in self.calls:
            self.calls[method] = []
        self.calls[method].append(
            {"timestamp": datetime.now(timezone.utc).isoformat(), "kwargs": kwargs}
        )

    def reset(self):
        """Reset all recorded calls and responses."""
        self.calls = {}
        self._raise_error = None

    def set_error(self, error: Exception):
        """Set an error to raise on next call."""
        self._raise_error = error

    def set_response_text(self, text: str):
        """Configure the raw text analyze_product_image returns."""
        self._response_text = text

    async def analyze_product_image(self, image_reference: str, prompt: str) -> dict:
        """Mock product label analysis."""
        self._record_call(
            "analyze_product_image", image_reference=image_reference, prompt=prompt
        )

        if self._raise_error:
            error = self._raise_error
            self._raise_error = None
            raise error

        return {"text": self._response_text, "usage": self._usage, "model": self.model}


def create_mock_with_error(error: Exception) -> MockClaudeService:
    """Create a mock that raises an error on any call."""
    mock = MockClaudeService()
    mock.set_error(error)
    return mock


def create_mock_with_text(text: str) -> MockClaudeService:
    """Create a mock that answers with the given raw text."""
    mock = MockClaudeService()
    mock.set_response_text(text)
    return mock
