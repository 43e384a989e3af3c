import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set
from creatorkit.database.connection import Database
from creatorkit.core.errors import AuthError

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

AuthEventCallback = Callable[[str, Optional[str]], Awaitable[None]]


class SupabaseIdentity:
    """Narrow wrapper around Supabase auth used by the session manager"""

    def __init__(self, database: Database):
        self.db = database
        self._pending: Set[asyncio.Task] = set()

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in with email/password and return the user id"""
        try:
            response = await self.db.get_client().auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as e:
            raise AuthError(str(e)) from e

        if not response.user:
            raise AuthError("Sign-in returned no user")
        return response.user.id

    async def sign_up(self, email: str, password: str) -> Optional[str]:
        """Register; returns the user id only when a session was issued right away"""
        try:
            response = await self.db.get_client().auth.sign_up({
                "email": email,
                "password": password,
            })
        except Exception as e:
            raise AuthError(str(e)) from e

        if response.session and response.user:
            return response.user.id
        return None

    async def sign_out(self) -> None:
        await self.db.get_client().auth.sign_out()

    async def current_user_id(self) -> Optional[str]:
        session = await self.db.get_client().auth.get_session()
        if session and session.user:
            return session.user.id
        return None

    def subscribe(self, callback: AuthEventCallback) -> Callable[[], None]:
        """Forward SIGNED_IN / SIGNED_OUT events to an async callback"""

        def listener(event, session):
            event_name = getattr(event, "value", event)
            if event_name not in (SIGNED_IN, SIGNED_OUT):
                return
            user_id = session.user.id if session and session.user else None
            task = asyncio.get_running_loop().create_task(callback(event_name, user_id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        subscription = self.db.get_client().auth.on_auth_state_change(listener)
        return subscription.unsubscribe
