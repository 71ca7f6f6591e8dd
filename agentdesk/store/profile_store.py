"""Per-user, per-mode configuration on top of a document store."""

import logging
from typing import Any

from agentdesk.errors import NotFoundError
from agentdesk.models import Mode, UserProfile
from agentdesk.store.base import DocumentStore

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class ProfileStore:
    """Reads and merges UserProfile documents.

    There is no locking across processes: concurrent writers to the same
    field path resolve as last-write-wins.
    """

    def __init__(self, store: DocumentStore, collection: str = USERS_COLLECTION) -> None:
        self.store = store
        self.collection = collection

    async def get(self, user_id: str) -> UserProfile:
        """Load a user's profile.

        Raises:
            NotFoundError: If the user has no profile document
        """
        document = await self.store.get(self.collection, user_id)
        if document is None:
            raise NotFoundError(f"Profile for user {user_id} not found")
        return UserProfile.model_validate(document)

    async def merge(self, user_id: str, partial: dict[str, Any]) -> UserProfile:
        """Merge ``partial`` into the profile, preserving fields it does not name.

        Args:
            user_id: Profile owner
            partial: JSON-shaped fields to write

        Returns:
            The profile after the merge
        """
        merged = await self.store.merge(self.collection, user_id, partial)
        logger.info(f"Updated profile {user_id}: {', '.join(sorted(partial))}")
        return UserProfile.model_validate(merged)

    async def merge_mode(self, user_id: str, mode: Mode, **fields: Any) -> UserProfile:
        """Merge fields into one mode's settings."""
        return await self.merge(user_id, {"modes": {Mode(mode).value: fields}})

    async def create(self, user_id: str, profile: UserProfile) -> UserProfile:
        """Write a full profile document (used when provisioning an account)."""
        return await self.merge(user_id, profile.model_dump(mode="json", exclude_none=True))

    async def save_call_analytics(
        self, user_id: str, mode: Mode, call_id: str, payload: dict[str, Any]
    ) -> None:
        """Store the analytics payload for one call under ``analytics[mode][call_id]``."""
        await self.merge(user_id, {"analytics": {Mode(mode).value: {call_id: payload}}})
        logger.info(f"Saved analytics for call {call_id} ({Mode(mode).value}) of user {user_id}")
