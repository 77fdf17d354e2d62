"""Test fixtures for SafeCheck."""

from tests.fixtures.mocks import (
    MockClaudeService,
    SAMPLE_REPORT_JSON,
    create_mock_with_error,
    create_mock_with_text,
)

__all__ = [
    "MockClaudeService",
    "SAMPLE_REPORT_JSON",
    "create_mock_with_error",
    "create_mock_with_text",
]
