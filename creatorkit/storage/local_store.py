"""
Device-local key/value cache for profile, quota counters, saved items,
chat history and preferences.

Values are JSON strings. Every LocalStore method fails silently: engine
errors and corrupt values are logged and the caller gets the fallback.
"""
import os
import json
import asyncio
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from pydantic import ValidationError

from creatorkit.utils.schemas import OnboardingData, SavedItem, QuotaUsageRecord, ChatEntry

logger = logging.getLogger(__name__)


class StorageKeys:
    SAVED_ITEMS = "saved_items"
    QUOTA_USAGE = "quota_usage"
    ONBOARDING_DATA = "onboarding_data"
    CHAT_HISTORY = "chat_history"
    USER_PREFERENCES = "user_preferences"

    ALL = (SAVED_ITEMS, QUOTA_USAGE, ONBOARDING_DATA, CHAT_HISTORY, USER_PREFERENCES)


class InMemoryStorageEngine:
    """Fallback engine when no writable location is available"""

    name = "memory"

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)


class FileStorageEngine:
    """Single JSON document on disk; survives process restarts"""

    name = "file"

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"⚠️ Local store file {self.path} is corrupt, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def _update(self, updates: Dict[str, str], removals: Iterable[str] = ()) -> None:
        with self._lock:
            data = self._read_all()
            data.update(updates)
            for key in removals:
                data.pop(key, None)
            self._write_all(data)

    def _get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._update, {key: value})

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._update, {}, [key])

    async def multi_remove(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self._update, {}, list(keys))


def select_storage_engine(path: Optional[str]):
    """Use the file engine when its location is writable, memory otherwise"""
    if not path:
        logger.info("💾 Local store: in-memory engine")
        return InMemoryStorageEngine()

    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        probe = f"{path}.probe"
        with open(probe, "w", encoding="utf-8") as f:
            f.write("{}")
        os.remove(probe)
        logger.info(f"💾 Local store: file engine at {path}")
        return FileStorageEngine(path)
    except OSError as e:
        logger.warning(f"⚠️ Local store location {path} unusable ({e}), using in-memory fallback")
        return InMemoryStorageEngine()


class LocalStore:
    """Typed, fail-silent access to the local cache"""

    def __init__(self, engine=None):
        self.engine = engine or InMemoryStorageEngine()

    # Raw JSON access

    async def load_json(self, key: str, fallback: Any = None) -> Any:
        try:
            raw = await self.engine.get(key)
        except Exception as e:
            logger.error(f"❌ Local store read failed for '{key}': {e}")
            return fallback

        if raw is None:
            return fallback
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"⚠️ Corrupt local value for '{key}', using fallback: {e}")
            return fallback
        return value if value is not None else fallback

    async def save_json(self, key: str, value: Any) -> bool:
        """Persist a value; returns False when the write was rejected"""
        try:
            await self.engine.set(key, json.dumps(value, ensure_ascii=False))
            return True
        except Exception as e:
            logger.error(f"❌ Local store write failed for '{key}': {e}")
            return False

    async def remove(self, key: str) -> None:
        try:
            await self.engine.remove(key)
        except Exception as e:
            logger.error(f"❌ Local store remove failed for '{key}': {e}")

    # Onboarding profile

    async def get_onboarding_data(self) -> Optional[OnboardingData]:
        data = await self.load_json(StorageKeys.ONBOARDING_DATA)
        if not isinstance(data, dict):
            return None
        try:
            return OnboardingData(**data)
        except ValidationError as e:
            logger.warning(f"⚠️ Ignoring invalid onboarding data: {e}")
            return None

    async def set_onboarding_data(self, profile: OnboardingData) -> bool:
        return await self.save_json(StorageKeys.ONBOARDING_DATA, profile.model_dump())

    async def clear_onboarding_data(self) -> None:
        await self.remove(StorageKeys.ONBOARDING_DATA)

    # Saved items

    async def get_saved_items(self) -> List[SavedItem]:
        data = await self.load_json(StorageKeys.SAVED_ITEMS, [])
        if not isinstance(data, list):
            return []

        items = []
        for entry in data:
            try:
                items.append(SavedItem(**entry))
            except (ValidationError, TypeError) as e:
                logger.warning(f"⚠️ Dropping malformed saved item: {e}")
        return items

    async def set_saved_items(self, items: List[SavedItem]) -> bool:
        return await self.save_json(StorageKeys.SAVED_ITEMS, [item.model_dump() for item in items])

    async def add_saved_item(self, item: SavedItem) -> bool:
        items = await self.get_saved_items()
        return await self.set_saved_items([item] + [i for i in items if i.id != item.id])

    async def remove_saved_item(self, item_id: str) -> bool:
        items = await self.get_saved_items()
        return await self.set_saved_items([i for i in items if i.id != item_id])

    # Quota counters (guest)

    async def get_quota_usage(self) -> Optional[QuotaUsageRecord]:
        data = await self.load_json(StorageKeys.QUOTA_USAGE)
        if not isinstance(data, dict):
            return None
        try:
            return QuotaUsageRecord(**data)
        except ValidationError as e:
            logger.warning(f"⚠️ Ignoring invalid quota usage: {e}")
            return None

    async def set_quota_usage(self, usage: QuotaUsageRecord) -> bool:
        return await self.save_json(StorageKeys.QUOTA_USAGE, usage.model_dump())

    # Chat history (guest)

    async def get_chat_history(self) -> List[ChatEntry]:
        data = await self.load_json(StorageKeys.CHAT_HISTORY, [])
        if not isinstance(data, list):
            return []

        entries = []
        for entry in data:
            try:
                entries.append(ChatEntry(**entry))
            except (ValidationError, TypeError):
                logger.debug("Dropping malformed chat entry")
        return entries

    async def set_chat_history(self, entries: List[ChatEntry]) -> bool:
        return await self.save_json(StorageKeys.CHAT_HISTORY, [e.model_dump() for e in entries])

    # Preferences

    async def get_preferences(self) -> Dict[str, Any]:
        data = await self.load_json(StorageKeys.USER_PREFERENCES, {})
        return data if isinstance(data, dict) else {}

    async def set_preferences(self, preferences: Dict[str, Any]) -> bool:
        return await self.save_json(StorageKeys.USER_PREFERENCES, preferences)

    # Whole store

    async def clear_all(self) -> None:
        """Remove every key this app owns"""
        try:
            await self.engine.multi_remove(StorageKeys.ALL)
            logger.info("🗑️ Local store cleared")
        except Exception as e:
            logger.error(f"❌ Local store multi-remove failed, removing keys one by one: {e}")
            for key in StorageKeys.ALL:
                await self.remove(key)

    async def export_all(self) -> Dict[str, Any]:
        """Snapshot of all local data, for data export"""
        onboarding = await self.get_onboarding_data()
        quota = await self.get_quota_usage()
        return {
            "onboarding_data": onboarding.model_dump() if onboarding else None,
            "saved_items": [item.model_dump() for item in await self.get_saved_items()],
            "quota_usage": quota.model_dump() if quota else None,
            "chat_history": [entry.model_dump() for entry in await self.get_chat_history()],
            "user_preferences": await self.get_preferences(),
            "export_date": datetime.now().isoformat(),
        }

    async def check_availability(self) -> Dict[str, Any]:
        """Round-trip a probe value through the engine"""
        probe_key = "__storage_availability_test__"
        written = await self.save_json(probe_key, {"test": True})
        retrieved = await self.load_json(probe_key)
        await self.remove(probe_key)
        available = written and isinstance(retrieved, dict) and retrieved.get("test") is True
        return {"available": available, "engine": getattr(self.engine, "name", "unknown")}
