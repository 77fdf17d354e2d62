"""
One product analysis, end to end.

Resolves the active profiles, builds the prompt, calls the provider once,
normalizes the answer and records it in history. History is only written
after normalization succeeds.
"""

import logging

from safecheck.services.context_builder import build_profile_context
from safecheck.services.history_service import HistoryService, history_service
from safecheck.services.profile_service import ProfileService
from safecheck.services.prompts import build_analysis_prompt
from safecheck.services.report_normalizer import ParseError, normalize_report
from safecheck.services.schemas import HistoryEntry
from safecheck.services.store import AppStore


logger = logging.getLogger(__name__)


class InputValidationError(ValueError):
    """Required local input is missing; nothing was sent to the provider."""


class AnalysisService:
    """Glue between the store, the pure pipeline and the AI provider."""

    def __init__(self, ai_service, history: HistoryService | None = None):
        self.ai_service = ai_service
        self.history = history or history_service

    def validate_inputs(self, provider_image: str | None) -> None:
        if not provider_image:
            raise InputValidationError("Please upload or capture an image first.")
        if not self.ai_service.is_configured:
            raise InputValidationError("Please configure your AI provider API key.")

    async def analyze(
        self,
        store: AppStore,
        provider_image: str,
        image_reference: str | None = None,
    ) -> HistoryEntry:
        """
        Analyze a product image against the active profile or family.

        Args:
            store: Store holding profiles, selection and history
            provider_image: Remote URL or data URI sent to the provider
            image_reference: What history keeps for the image (defaults to
                provider_image)

        Raises:
            InputValidationError: No image or no API key
            ParseError: Provider response held no parseable JSON object
            ProviderError: Provider request failed
        """
        self.validate_inputs(provider_image)

        profiles = ProfileService.active_profiles(store)
        context = build_profile_context(profiles)
        prompt = build_analysis_prompt(context.text)

        result = await self.ai_service.analyze_product_image(provider_image, prompt)

        try:
            report = normalize_report(result["text"])
        except ParseError:
            logger.warning(
                "Could not parse analysis response (%d chars)", len(result["text"] or "")
            )
            raise

        return self.history.record_analysis(
            store,
            image_reference=image_reference or provider_image,
            report=report,
            usage=result.get("usage"),
            model=result.get("model"),
        )
