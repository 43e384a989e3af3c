"""
Daily quota for scarce completion requests.

Counters are kept per (user, kind, local day). Guests persist to the local
store, signed-in users to the usage_log table. There is no timer: a counter
whose stored day is not today reads as zero and a fresh counter stamped with
today is written back. The in-memory count is authoritative for the rest of
the process, so a failed write never hands the user extra allowance; the
next increment writes again.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional

from creatorkit.storage.local_store import LocalStore
from creatorkit.utils.schemas import QuotaUsageRecord
from creatorkit.utils.formatters import local_day

logger = logging.getLogger(__name__)

KINDS = ("text", "image")


@dataclass(frozen=True)
class QuotaUsage:
    kind: str
    day: str
    count: int
    max: int
    remaining: int
    is_pro: bool


@dataclass
class QuotaCounter:
    kind: str
    day: str
    count: int = 0


class QuotaService:
    """Tracks and enforces the per-day request allowance"""

    def __init__(self, session_manager, local_store: LocalStore, usage_repo, profile_repo=None,
                 max_text: int = 10, max_image: int = 1, pro_limit: int = 999999,
                 today: Optional[Callable[[], date]] = None):
        self.session_manager = session_manager
        self.local_store = local_store
        self.usage_repo = usage_repo
        self.profile_repo = profile_repo
        self.max_text = max_text
        self.max_image = max_image
        self.pro_limit = pro_limit
        self._today = today or date.today
        self._counters: Dict[str, QuotaCounter] = {}
        self._pro_user: Optional[str] = None
        self._is_pro = False

    def _day(self) -> str:
        return local_day(self._today())

    def _max_for(self, kind: str, is_pro: bool) -> int:
        if is_pro:
            return self.pro_limit
        return self.max_text if kind == "text" else self.max_image

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in KINDS:
            raise ValueError(f"Unknown quota kind: {kind}")

    def _counter(self, kind: str, day: str) -> QuotaCounter:
        counter = self._counters.get(kind)
        if counter is None or counter.day != day:
            counter = QuotaCounter(kind=kind, day=day)
            self._counters[kind] = counter
        return counter

    async def _resolve_pro(self, user_id: Optional[str]) -> bool:
        if user_id is None or self.profile_repo is None:
            return False
        if self._pro_user != user_id:
            try:
                self._is_pro = await self.profile_repo.is_pro(user_id)
            except Exception as e:
                logger.warning(f"⚠️ Pro status lookup failed, treating as free tier: {e}")
                self._is_pro = False
            self._pro_user = user_id
        return self._is_pro

    async def _read_persisted(self, kind: str, day: str, user_id: Optional[str]) -> Optional[int]:
        """Stored count for today, or None when the store could not be read"""
        if user_id is None:
            record = await self.local_store.get_quota_usage()
            if record is None or record.day != day:
                await self.local_store.set_quota_usage(QuotaUsageRecord(day=day))
                return 0
            return getattr(record, kind)

        try:
            counts = await self.usage_repo.get_daily_counts(user_id, day)
        except Exception as e:
            logger.warning(f"⚠️ Could not read usage for {user_id}: {e}")
            return None
        return counts.get(kind, 0)

    async def _persist(self, kind: str, day: str, count: int, user_id: Optional[str]) -> bool:
        if user_id is None:
            record = await self.local_store.get_quota_usage()
            if record is None or record.day != day:
                record = QuotaUsageRecord(day=day)
            saved = await self.local_store.set_quota_usage(record.model_copy(update={kind: count}))
        else:
            try:
                await self.usage_repo.set_count(user_id, kind, day, count)
                saved = True
            except Exception as e:
                logger.warning(f"⚠️ Could not write usage for {user_id}: {e}")
                saved = False

        if not saved:
            logger.warning(f"⚠️ {kind} usage kept in memory only ({count}), will retry on next increment")
        return saved

    def _usage(self, counter: QuotaCounter, is_pro: bool) -> QuotaUsage:
        limit = self._max_for(counter.kind, is_pro)
        return QuotaUsage(
            kind=counter.kind,
            day=counter.day,
            count=counter.count,
            max=limit,
            remaining=max(0, limit - counter.count),
            is_pro=is_pro
        )

    async def get_usage(self, kind: str) -> QuotaUsage:
        self._check_kind(kind)
        user_id = self.session_manager.user_id
        day = self._day()

        stored = await self._read_persisted(kind, day, user_id)
        counter = self._counter(kind, day)
        if stored is not None and stored > counter.count:
            counter.count = stored

        is_pro = await self._resolve_pro(user_id)
        return self._usage(counter, is_pro)

    async def can_use(self, kind: str) -> bool:
        usage = await self.get_usage(kind)
        return usage.is_pro or usage.count < usage.max

    async def remaining(self, kind: str) -> int:
        return (await self.get_usage(kind)).remaining

    async def increment(self, kind: str) -> QuotaUsage:
        """Raise today's count by one; memory first, then persist"""
        self._check_kind(kind)
        user_id = self.session_manager.user_id
        day = self._day()

        # Re-read just before writing
        stored = await self._read_persisted(kind, day, user_id)
        counter = self._counter(kind, day)
        counter.count = max(counter.count, stored or 0) + 1

        await self._persist(kind, day, counter.count, user_id)
        is_pro = await self._resolve_pro(user_id)
        return self._usage(counter, is_pro)

    async def refresh(self) -> Dict[str, QuotaUsage]:
        return {kind: await self.get_usage(kind) for kind in KINDS}

    async def on_session_change(self, session) -> None:
        """Storage target changed: drop in-memory counters and tier"""
        self._counters.clear()
        self._pro_user = None
        self._is_pro = False
