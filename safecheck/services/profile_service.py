"""Business logic for health profiles, families and the active selection."""

import logging
from typing import List, Optional

from safecheck.services.schemas import Family, Profile, Selection
from safecheck.services.store import AppStore, FAMILIES, PROFILES, SELECTION


logger = logging.getLogger(__name__)


class ProfileService:
    """Service for profile and family operations."""

    # =========================================================================
    # PROFILES
    # =========================================================================

    @staticmethod
    def list_profiles(store: AppStore) -> List[Profile]:
        return store.get(PROFILES)

    @staticmethod
    def get_profile(store: AppStore, profile_id: str) -> Optional[Profile]:
        return next((p for p in store.get(PROFILES) if p.id == profile_id), None)

    @staticmethod
    def create_profile(
        store: AppStore,
        name: str,
        age: str = "",
        allergies: Optional[List[str]] = None,
        conditions: Optional[str] = None,
        weight: Optional[str] = None,
    ) -> Profile:
        profile = Profile(
            name=name,
            age=age,
            allergies=allergies or [],
            conditions=conditions,
            weight=weight,
        )
        store.set(PROFILES, [*store.get(PROFILES), profile])
        logger.info("Created profile %s", profile.id)
        return profile

    @staticmethod
    def update_profile(store: AppStore, profile_id: str, **changes) -> Optional[Profile]:
        """
        Apply changes to a profile.

        Returns:
            The updated profile, or None if it does not exist
        """
        profiles = store.get(PROFILES)
        for index, profile in enumerate(profiles):
            if profile.id == profile_id:
                updated = Profile.model_validate(
                    {**profile.model_dump(), **changes, "id": profile_id}
                )
                profiles[index] = updated
                store.set(PROFILES, profiles)
                return updated
        return None

    @staticmethod
    def delete_profile(store: AppStore, profile_id: str) -> bool:
        """
        Delete a profile and drop it from every family and the selection.

        Returns:
            True if deleted, False if not found
        """
        profiles = store.get(PROFILES)
        remaining = [p for p in profiles if p.id != profile_id]
        if len(remaining) == len(profiles):
            return False

        families = store.get(FAMILIES)
        for family in families:
            if profile_id in family.member_ids:
                family.member_ids = [m for m in family.member_ids if m != profile_id]

        writes = [(FAMILIES, families), (PROFILES, remaining)]
        selection = store.get(SELECTION)
        if selection.active_profile_id == profile_id:
            selection.active_profile_id = None
            writes.append((SELECTION, selection))

        # Families and profiles must never disagree about membership
        store.set_many(*writes)

        logger.info("Deleted profile %s", profile_id)
        return True

    # =========================================================================
    # FAMILIES
    # =========================================================================

    @staticmethod
    def _check_members(store: AppStore, member_ids: List[str]) -> None:
        known = {p.id for p in store.get(PROFILES)}
        unknown = [m for m in member_ids if m not in known]
        if unknown:
            raise ValueError(f"Unknown profile ids: {', '.join(unknown)}")

    @staticmethod
    def list_families(store: AppStore) -> List[Family]:
        return store.get(FAMILIES)

    @staticmethod
    def get_family(store: AppStore, family_id: str) -> Optional[Family]:
        return next((f for f in store.get(FAMILIES) if f.id == family_id), None)

    @staticmethod
    def create_family(
        store: AppStore, name: str, member_ids: Optional[List[str]] = None
    ) -> Family:
        """
        Create a family of existing profiles.

        Raises:
            ValueError: If any member id does not reference a profile
        """
        member_ids = member_ids or []
        ProfileService._check_members(store, member_ids)

        family = Family(name=name, member_ids=member_ids)
        store.set(FAMILIES, [*store.get(FAMILIES), family])
        logger.info("Created family %s with %d members", family.id, len(member_ids))
        return family

    @staticmethod
    def update_family(
        store: AppStore,
        family_id: str,
        name: Optional[str] = None,
        member_ids: Optional[List[str]] = None,
    ) -> Optional[Family]:
        """
        Rename a family or replace its members.

        Raises:
            ValueError: If any member id does not reference a profile
        """
        if member_ids is not None:
            ProfileService._check_members(store, member_ids)

        families = store.get(FAMILIES)
        for index, family in enumerate(families):
            if family.id == family_id:
                updated = Family(
                    id=family_id,
                    name=name if name is not None else family.name,
                    member_ids=member_ids if member_ids is not None else family.member_ids,
                )
                families[index] = updated
                store.set(FAMILIES, families)
                return updated
        return None

    @staticmethod
    def delete_family(store: AppStore, family_id: str) -> bool:
        families = store.get(FAMILIES)
        remaining = [f for f in families if f.id != family_id]
        if len(remaining) == len(families):
            return False
        store.set(FAMILIES, remaining)

        selection = store.get(SELECTION)
        if selection.active_family_id == family_id:
            selection.active_family_id = None
            store.set(SELECTION, selection)
        return True

    # =========================================================================
    # SELECTION
    # =========================================================================

    @staticmethod
    def get_selection(store: AppStore) -> Selection:
        return store.get(SELECTION)

    @staticmethod
    def select(
        store: AppStore,
        profile_id: Optional[str] = None,
        family_id: Optional[str] = None,
    ) -> Selection:
        """
        Set the active profile or family. Passing neither clears the selection.

        Raises:
            LookupError: If the referenced profile or family does not exist
        """
        if profile_id and ProfileService.get_profile(store, profile_id) is None:
            raise LookupError(f"Profile {profile_id} not found")
        if family_id and ProfileService.get_family(store, family_id) is None:
            raise LookupError(f"Family {family_id} not found")

        selection = Selection(active_profile_id=profile_id, active_family_id=family_id)
        store.set(SELECTION, selection)
        return selection

    @staticmethod
    def active_profiles(store: AppStore) -> List[Profile]:
        """
        Profiles the next analysis should consider.

        A selected family wins over a selected profile. Family members come back
        in profile-list order; ids that no longer resolve are skipped.
        """
        selection = store.get(SELECTION)
        profiles = store.get(PROFILES)

        if selection.active_family_id:
            family = ProfileService.get_family(store, selection.active_family_id)
            if family:
                members = set(family.member_ids)
                return [p for p in profiles if p.id in members]
            return []

        if selection.active_profile_id:
            return [p for p in profiles if p.id == selection.active_profile_id]

        return []


# Singleton instance
profile_service = ProfileService()
