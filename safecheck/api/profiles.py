"""API endpoints for health profiles, families and the active selection."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from safecheck.api.dependencies import get_store
from safecheck.services.context_builder import build_profile_context
from safecheck.services.profile_service import profile_service
from safecheck.services.schemas import (
    CamelModel,
    Family,
    Profile,
    ProfileContext,
    Selection,
)
from safecheck.services.store import AppStore

router = APIRouter(tags=["profiles"])


class ProfileCreate(CamelModel):
    name: str
    age: str = ""
    allergies: List[str] = []
    conditions: Optional[str] = None
    weight: Optional[str] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    age: Optional[str] = None
    allergies: Optional[List[str]] = None
    conditions: Optional[str] = None
    weight: Optional[str] = None


class FamilyCreate(CamelModel):
    name: str
    member_ids: List[str] = []


class FamilyUpdate(CamelModel):
    name: Optional[str] = None
    member_ids: Optional[List[str]] = None


# =============================================================================
# Profiles
# =============================================================================


@router.get("/profiles", response_model=List[Profile])
async def list_profiles(store: AppStore = Depends(get_store)):
    return profile_service.list_profiles(store)


@router.post("/profiles", response_model=Profile, status_code=201)
async def create_profile(body: ProfileCreate, store: AppStore = Depends(get_store)):
    return profile_service.create_profile(store, **body.model_dump())


@router.put("/profiles/{profile_id}", response_model=Profile)
async def update_profile(
    profile_id: str, body: ProfileUpdate, store: AppStore = Depends(get_store)
):
    profile = profile_service.update_profile(
        store, profile_id, **body.model_dump(exclude_unset=True, exclude_none=True)
    )
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.delete("/profiles/{profile_id}", status_code=204)
async def delete_profile(profile_id: str, store: AppStore = Depends(get_store)):
    """Delete a profile and remove it from every family."""
    if not profile_service.delete_profile(store, profile_id):
        raise HTTPException(status_code=404, detail="Profile not found")


# =============================================================================
# Families
# =============================================================================


@router.get("/families", response_model=List[Family])
async def list_families(store: AppStore = Depends(get_store)):
    return profile_service.list_families(store)


@router.post("/families", response_model=Family, status_code=201)
async def create_family(body: FamilyCreate, store: AppStore = Depends(get_store)):
    try:
        return profile_service.create_family(store, body.name, body.member_ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/families/{family_id}", response_model=Family)
async def update_family(
    family_id: str, body: FamilyUpdate, store: AppStore = Depends(get_store)
):
    try:
        family = profile_service.update_family(
            store, family_id, name=body.name, member_ids=body.member_ids
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not family:
        raise HTTPException(status_code=404, detail="Family not found")
    return family


@router.delete("/families/{family_id}", status_code=204)
async def delete_family(family_id: str, store: AppStore = Depends(get_store)):
    if not profile_service.delete_family(store, family_id):
        raise HTTPException(status_code=404, detail="Family not found")


# =============================================================================
# Selection
# =============================================================================


@router.get("/selection", response_model=Selection)
async def get_selection(store: AppStore = Depends(get_store)):
    return profile_service.get_selection(store)


@router.put("/selection", response_model=Selection)
async def update_selection(body: Selection, store: AppStore = Depends(get_store)):
    """Select the active profile or family; an empty body clears it."""
    try:
        return profile_service.select(
            store,
            profile_id=body.active_profile_id,
            family_id=body.active_family_id,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/selection/context", response_model=ProfileContext)
async def preview_context(store: AppStore = Depends(get_store)):
    """Risk context and instruction text the next analysis would send."""
    return build_profile_context(profile_service.active_profiles(store))
