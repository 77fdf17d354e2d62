"""Analysis history and favorites."""

import logging
from typing import List, Optional

from safecheck.config import settings
from safecheck.services.schemas import AnalysisReport, Favorite, HistoryEntry
from safecheck.services.store import AppStore, FAVORITES, HISTORY


logger = logging.getLogger(__name__)


class HistoryService:
    """Newest-first history of analyses plus a favorites list."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit if limit is not None else settings.history_limit

    def list_history(self, store: AppStore) -> List[HistoryEntry]:
        return store.get(HISTORY)

    def get_entry(self, store: AppStore, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in store.get(HISTORY) if e.id == entry_id), None)

    def record_analysis(
        self,
        store: AppStore,
        image_reference: str,
        report: AnalysisReport,
        usage: Optional[dict] = None,
        model: Optional[str] = None,
    ) -> HistoryEntry:
        """
        Prepend a finished analysis to history in a single write.

        Entries beyond the configured limit are dropped from the tail.
        """
        entry = HistoryEntry(
            image_reference=image_reference, report=report, usage=usage, model=model
        )
        history = [entry, *store.get(HISTORY)]
        if self.limit > 0:
            history = history[: self.limit]
        store.set(HISTORY, history)

        logger.info(
            "Recorded analysis %s for %r (rating=%s)",
            entry.id,
            report.product_name,
            report.safety_rating,
        )
        return entry

    def list_favorites(self, store: AppStore) -> List[Favorite]:
        return store.get(FAVORITES)

    def toggle_favorite(self, store: AppStore, report: AnalysisReport) -> bool:
        """
        Add the report's product to favorites, or remove it if already there.

        Favorites are keyed by product name.

        Returns:
            True if the product is a favorite afterwards
        """
        favorites = store.get(FAVORITES)
        favorite_id = report.product_name

        if any(f.id == favorite_id for f in favorites):
            store.set(FAVORITES, [f for f in favorites if f.id != favorite_id])
            return False

        favorites.append(
            Favorite(
                id=favorite_id,
                product_name=report.product_name,
                safety_rating=report.safety_rating,
            )
        )
        store.set(FAVORITES, favorites)
        return True


# Singleton instance
history_service = HistoryService()
