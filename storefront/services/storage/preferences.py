"""Per-session shopper state: filters, wishlist, recently viewed and cart."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Annotated

from fastapi import Depends
from pydantic import ValidationError
from redis import RedisError

from storefront.config import settings
from storefront.models.cart import Cart
from storefront.models.filters import FilterState
from storefront.services.storage.kv_store import KeyValueStore, KeyValueStoreDependency

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (RedisError, OSError)


def push_recently_viewed(
    product_ids: Sequence[str],
    product_id: str,
    limit: int = 5,
) -> list[str]:
    """Put product_id first, drop any older occurrence and cap the length."""
    updated = [product_id, *(pid for pid in product_ids if pid != product_id)]
    return updated[:limit]


def toggle_membership(product_ids: set[str], product_id: str) -> set[str]:
    updated = set(product_ids)
    if product_id in updated:
        updated.remove(product_id)
    else:
        updated.add(product_id)
    return updated


class PreferenceRepository:
    """Reads and writes shopper state through a key-value store.

    Loads never raise: missing or malformed values come back as the default
    for that kind of state. Writes are best-effort and only logged on failure.
    """

    def __init__(
        self,
        store: KeyValueStore,
        recently_viewed_limit: int | None = None,
    ) -> None:
        self._store = store
        self._recent_limit = recently_viewed_limit or settings.RECENTLY_VIEWED_LIMIT

    @staticmethod
    def filters_key(session_id: str) -> str:
        return f"filters:{session_id}"

    @staticmethod
    def wishlist_key(session_id: str) -> str:
        return f"wishlist:{session_id}"

    @staticmethod
    def recently_viewed_key(session_id: str) -> str:
        return f"recently-viewed:{session_id}"

    @staticmethod
    def cart_key(session_id: str) -> str:
        return f"cart:{session_id}"

    async def _load_raw(self, key: str) -> str | None:
        try:
            return await self._store.load(key)
        except _STORAGE_ERRORS as exc:
            logger.warning("Failed to read %s from storage: %s", key, exc)
            return None

    async def _save_raw(self, key: str, value: str) -> bool:
        try:
            await self._store.save(key, value)
        except _STORAGE_ERRORS as exc:
            logger.warning("Failed to persist %s: %s", key, exc)
            return False
        return True

    async def _update_raw(self, key: str, mutate: Callable[[str | None], str]) -> str:
        """Atomic read-modify-write, applied to empty state if storage fails."""
        try:
            return await self._store.update(key, mutate)
        except _STORAGE_ERRORS as exc:
            logger.warning("Failed to update %s: %s", key, exc)
            return mutate(None)

    @staticmethod
    def _decode_ids(raw: str | None, label: str) -> list[str]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("Error reading %s: %s", label, exc)
            return []
        if not isinstance(data, list):
            return []
        return [str(item) for item in data]

    @staticmethod
    def _decode_cart(raw: str | None, session_id: str) -> Cart:
        if not raw:
            return Cart()
        try:
            return Cart.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed cart for %s: %s", session_id, exc)
            return Cart()

    # Filters

    async def load_filters_raw(self, session_id: str) -> str | None:
        """Stored filter JSON, revalidated by the filter engine."""
        return await self._load_raw(self.filters_key(session_id))

    async def save_filters(self, session_id: str, state: FilterState) -> bool:
        return await self._save_raw(self.filters_key(session_id), state.to_storage())

    # Wishlist

    async def load_wishlist(self, session_id: str) -> set[str]:
        raw = await self._load_raw(self.wishlist_key(session_id))
        return set(self._decode_ids(raw, f"wishlist for {session_id}"))

    async def toggle_wishlist(self, session_id: str, product_id: str) -> set[str]:
        def toggle(raw: str | None) -> str:
            current = set(self._decode_ids(raw, f"wishlist for {session_id}"))
            return json.dumps(sorted(toggle_membership(current, product_id)))

        stored = await self._update_raw(self.wishlist_key(session_id), toggle)
        return set(json.loads(stored))

    # Recently viewed

    async def load_recently_viewed(self, session_id: str) -> list[str]:
        raw = await self._load_raw(self.recently_viewed_key(session_id))
        ids = self._decode_ids(raw, f"recently viewed for {session_id}")
        return ids[: self._recent_limit]

    async def add_recently_viewed(self, session_id: str, product_id: str) -> list[str]:
        def push(raw: str | None) -> str:
            current = self._decode_ids(raw, f"recently viewed for {session_id}")
            return json.dumps(
                push_recently_viewed(current, product_id, limit=self._recent_limit)
            )

        stored = await self._update_raw(self.recently_viewed_key(session_id), push)
        return json.loads(stored)

    # Cart

    async def load_cart(self, session_id: str) -> Cart:
        raw = await self._load_raw(self.cart_key(session_id))
        return self._decode_cart(raw, session_id)

    async def save_cart(self, session_id: str, cart: Cart) -> bool:
        return await self._save_raw(self.cart_key(session_id), cart.model_dump_json())

    async def update_cart(
        self,
        session_id: str,
        change: Callable[[Cart], Cart],
    ) -> Cart:
        """Apply change to the stored cart without losing concurrent writes."""

        def apply(raw: str | None) -> str:
            return change(self._decode_cart(raw, session_id)).model_dump_json()

        stored = await self._update_raw(self.cart_key(session_id), apply)
        return Cart.model_validate_json(stored)


def get_preference_repository(store: KeyValueStoreDependency) -> PreferenceRepository:
    """FastAPI dependency factory."""

    return PreferenceRepository(store)


PreferencesDependency = Annotated[PreferenceRepository, Depends(get_preference_repository)]
