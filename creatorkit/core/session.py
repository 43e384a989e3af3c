"""
Authentication lifecycle for one running app instance.

The session manager is the single owner of the current Session. Components
that keep per-user state in memory subscribe to it and are notified after
every transition:

- signed_in:  the local store is reconciled into the remote store once,
              then listeners are notified.
- signed_out: the whole local store is cleared, then listeners are notified
              so they drop back to defaults.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from creatorkit.clients.supabase_auth import SIGNED_IN, SIGNED_OUT

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    SIGNED_OUT = "signed_out"
    SIGNING_IN = "signing_in"
    SIGNED_IN = "signed_in"
    SIGNING_OUT = "signing_out"


@dataclass(frozen=True)
class Session:
    auth_state: AuthState = AuthState.SIGNED_OUT
    user_id: Optional[str] = None

    @property
    def is_signed_in(self) -> bool:
        return self.auth_state is AuthState.SIGNED_IN and self.user_id is not None

    @property
    def is_guest(self) -> bool:
        return not self.is_signed_in


SessionListener = Callable[[Session], Awaitable[None]]


class SessionManager:
    """Owns the Session and drives sync/teardown side effects on transitions"""

    def __init__(self, identity, local_store, reconciler=None):
        self.identity = identity
        self.local_store = local_store
        self.reconciler = reconciler
        self._session = Session()
        self._listeners: List[SessionListener] = []
        self._detach_identity: Optional[Callable[[], None]] = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id if self._session.is_signed_in else None

    @property
    def is_guest(self) -> bool:
        return self._session.is_guest

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register an async listener; returns a callable that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def attach(self) -> None:
        """Start reacting to identity events"""
        if self._detach_identity is None:
            self._detach_identity = self.identity.subscribe(self.handle_auth_event)

    def detach(self) -> None:
        if self._detach_identity is not None:
            self._detach_identity()
            self._detach_identity = None

    async def restore(self) -> Session:
        """Adopt a session the identity service already holds (no reconciliation)"""
        try:
            user_id = await self.identity.current_user_id()
        except Exception as e:
            logger.warning(f"⚠️ Could not restore session: {e}")
            return self._session

        if user_id:
            await self._enter_signed_in(user_id, reconcile=False)
        return self._session

    async def sign_in(self, email: str, password: str) -> Session:
        previous = self._session
        self._session = Session(AuthState.SIGNING_IN, None)
        try:
            user_id = await self.identity.sign_in(email, password)
        except BaseException:
            self._session = previous
            raise

        await self._enter_signed_in(user_id)
        return self._session

    async def sign_up(self, email: str, password: str) -> Session:
        """Register; if the identity service issues a session right away this signs in"""
        previous = self._session
        self._session = Session(AuthState.SIGNING_IN, None)
        try:
            user_id = await self.identity.sign_up(email, password)
        except BaseException:
            self._session = previous
            raise

        if user_id:
            await self._enter_signed_in(user_id)
        else:
            self._session = previous
        return self._session

    async def sign_out(self) -> Session:
        """Sign out; local state is cleared even if the remote call fails"""
        self._session = Session(AuthState.SIGNING_OUT, self._session.user_id)
        try:
            await self.identity.sign_out()
        except Exception as e:
            # Remote session may stay valid until it expires
            logger.warning(f"⚠️ Remote sign-out failed, signing out locally: {e}")

        await self._enter_signed_out()
        return self._session

    async def handle_auth_event(self, event: str, user_id: Optional[str]) -> None:
        """Entry point for identity service events"""
        if event == SIGNED_IN and user_id:
            await self._enter_signed_in(user_id)
        elif event == SIGNED_OUT:
            if self._session.auth_state in (AuthState.SIGNED_OUT, AuthState.SIGNING_OUT):
                return
            await self._enter_signed_out()

    async def _enter_signed_in(self, user_id: str, reconcile: bool = True) -> None:
        current = self._session
        if current.is_signed_in and current.user_id == user_id:
            return

        # State is set before the first await so concurrent events see it
        self._session = Session(AuthState.SIGNED_IN, user_id)
        logger.info(f"🔑 Signed in as {user_id}")

        if reconcile and self.reconciler is not None:
            try:
                await self.reconciler.reconcile(user_id)
            except Exception as e:
                logger.error(f"❌ Reconciliation failed for {user_id}: {e}")

        await self._notify()

    async def _enter_signed_out(self) -> None:
        await self.local_store.clear_all()
        self._session = Session()
        logger.info("🔒 Signed out")
        await self._notify()

    async def _notify(self) -> None:
        session = self._session
        for listener in list(self._listeners):
            try:
                await listener(session)
            except Exception as e:
                logger.error(f"❌ Session listener {getattr(listener, '__qualname__', listener)} failed: {e}")
