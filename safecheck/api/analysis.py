"""API endpoints for product analysis, history and favorites."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from safecheck.api.dependencies import get_claude_service, get_store
from safecheck.services.ai_service import (
    ClaudeService,
    ProviderError,
    RateLimitError,
    ServiceUnavailableError,
)
from safecheck.services.analysis_service import AnalysisService, InputValidationError
from safecheck.services.history_service import history_service
from safecheck.services.image_service import image_service, is_remote_url
from safecheck.services.report_normalizer import ParseError
from safecheck.services.schemas import Favorite, HistoryEntry
from safecheck.services.store import AppStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


@router.post("/analysis", response_model=HistoryEntry, status_code=201)
async def analyze_product(
    image: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None),
    store: AppStore = Depends(get_store),
    claude_service: ClaudeService = Depends(get_claude_service),
):
    """
    Analyze a product label photo against the active profile or family.

    Accepts either an uploaded image or a remote http(s) image URL.

    Returns: The new history entry holding the normalized report
    """
    provider_image = None
    image_reference = None

    if image and image.filename:
        try:
            prepared = await image_service.prepare_upload(image)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        provider_image = prepared.data_uri
        image_reference = prepared.path
    elif image_url:
        if not is_remote_url(image_url):
            raise HTTPException(status_code=400, detail="image_url must be http(s)")
        provider_image = image_url

    service = AnalysisService(claude_service)
    try:
        return await service.analyze(store, provider_image, image_reference)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ParseError:
        raise HTTPException(
            status_code=502, detail="Analysis failed - could not parse result"
        )
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ProviderError as e:
        logger.warning("Provider rejected analysis request: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


# =============================================================================
# History & favorites
# =============================================================================


@router.get("/history", response_model=List[HistoryEntry])
async def list_history(store: AppStore = Depends(get_store)):
    """Past analyses, newest first."""
    return history_service.list_history(store)


@router.get("/history/{entry_id}", response_model=HistoryEntry)
async def get_history_entry(entry_id: str, store: AppStore = Depends(get_store)):
    entry = history_service.get_entry(store, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    return entry


@router.get("/favorites", response_model=List[Favorite])
async def list_favorites(store: AppStore = Depends(get_store)):
    return history_service.list_favorites(store)


@router.post("/favorites/{entry_id}/toggle")
async def toggle_favorite(entry_id: str, store: AppStore = Depends(get_store)):
    """Star or unstar the product of a history entry."""
    entry = history_service.get_entry(store, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    is_favorite = history_service.toggle_favorite(store, entry.report)
    return {"productName": entry.report.product_name, "favorite": is_favorite}
