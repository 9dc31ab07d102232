"""Supabase store for per-day meal log documents."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar
from uuid import UUID

from postgrest import APIResponse
from supabase import Client

from nutrition_analytics.adapters.documents import day_from_document, day_to_document
from nutrition_analytics.domain.day_logs import DailyLog
from nutrition_analytics.domain.errors import StoreUnavailable
from nutrition_analytics.services.day_logs import DayStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SupabaseDayStore(DayStore):
    """Supabase implementation keyed by user and ISO date."""

    client: Client
    table: str = "daily_logs"

    async def get_day(self, user_id: UUID, date_key: str) -> DailyLog | None:
        """Return the stored day log, if any.

        A document that cannot be parsed is reported as ``StoreUnavailable``
        so callers treat the day like any other failed read.
        """
        response = await self._run(self._select, user_id, date_key)
        if not response.data:
            return None
        document = response.data[0].get("document")
        if not isinstance(document, dict):
            return None
        try:
            return day_from_document(date_key, document)
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning(
                "Unreadable day document: user=%s date=%s error=%s",
                user_id,
                date_key,
                exc,
            )
            raise StoreUnavailable(f"Unreadable day document {date_key}") from exc

    async def set_day(self, user_id: UUID, date_key: str, log: DailyLog) -> None:
        """Upsert the day document."""
        await self._run(self._upsert, user_id, date_key, day_to_document(log))

    async def delete_day(self, user_id: UUID, date_key: str) -> bool:
        """Delete the day document and report whether one existed."""
        response = await self._run(self._delete, user_id, date_key)
        return bool(response.data)

    def _select(self, user_id: UUID, date_key: str) -> APIResponse:
        return (
            self.client.table(self.table)
            .select("date_key, document")
            .eq("user_id", str(user_id))
            .eq("date_key", date_key)
            .limit(1)
            .execute()
        )

    def _upsert(
        self, user_id: UUID, date_key: str, document: dict[str, object]
    ) -> APIResponse:
        return (
            self.client.table(self.table)
            .upsert(
                {
                    "user_id": str(user_id),
                    "date_key": date_key,
                    "document": document,
                },
                on_conflict="user_id,date_key",
            )
            .execute()
        )

    def _delete(self, user_id: UUID, date_key: str) -> APIResponse:
        return (
            self.client.table(self.table)
            .delete()
            .eq("user_id", str(user_id))
            .eq("date_key", date_key)
            .execute()
        )

    async def _run(
        self, call: Callable[..., T], user_id: UUID, date_key: str, *args: object
    ) -> T:
        """Run a blocking client call off the event loop."""
        try:
            return await asyncio.to_thread(call, user_id, date_key, *args)
        except Exception as exc:
            _logger.warning(
                "Day store call failed: %s date=%s", call.__name__, date_key
            )
            raise StoreUnavailable(str(exc)) from exc
