"""
Implicit-flow controller: authorize redirect, redirect-back validation, session persistence,
expiry check and single logout.

States: anonymous -> redirecting (authorize URL dispatched) -> validating callback
-> authenticated | anonymous; authenticated -> logging out (end-session URL dispatched).
"""
import json
import logging
import time
from typing import Callable, Sequence

from implicit_client.config import CLIENT_ID, DEFAULT_SCOPE
from implicit_client.discovery import DiscoveryClient
from implicit_client.errors import (
    AuthorizationError,
    DiscoveryFetchError,
    InvalidStateError,
    SessionExpiredOrInvalid,
    UserInfoFetchError,
)
from implicit_client.models import CallbackResult, Session, UserInfo
from implicit_client.navigator import Navigator, Router
from implicit_client.nonce import SecureRandomSource, generate_nonce
from implicit_client.session_store import (
    ROUTE_STORAGE_KEY,
    SESSION_STORAGE_KEY,
    STATE_STORAGE_KEY,
    SessionStore,
)
from implicit_client.shared import SharedSource
from implicit_client.urls import build_authorize_url, build_end_session_url, parse_fragment
from implicit_client.userinfo import UserInfoFetcher

logger = logging.getLogger(__name__)


class SessionState:
    """Current login and its user-info source. Written only by LoginService; consumers read it."""

    def __init__(self):
        self.session: Session | None = None
        self.user_info: SharedSource[UserInfo] | None = None

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    def clear(self) -> None:
        self.session = None
        self.user_info = None


class LoginService:
    def __init__(
        self,
        *,
        navigator: Navigator,
        router: Router,
        store: SessionStore,
        discovery: DiscoveryClient,
        userinfo: UserInfoFetcher,
        client_id: str = CLIENT_ID,
        scope: str = DEFAULT_SCOPE,
        random_source: SecureRandomSource | None = None,
        clock: Callable[[], float] = time.time,
        state: SessionState | None = None,
    ):
        self._navigator = navigator
        self._router = router
        self._store = store
        self._discovery = discovery
        self._userinfo = userinfo
        self._client_id = client_id
        self._scope = scope
        self._random = random_source
        self._clock = clock
        self._state = state or SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._state.session

    @property
    def user_info(self) -> SharedSource[UserInfo] | None:
        return self._state.user_info

    def _now(self) -> int:
        return int(self._clock())

    def _set_session(self, session: Session) -> None:
        self._state.session = session
        # Fresh source per session; the old one closes over the previous token
        self._state.user_info = self._userinfo.source_for(session)

    def _destroy_session(self) -> None:
        """Remove the session from memory and session storage, along with any pending request."""
        self._store.remove(SESSION_STORAGE_KEY)
        self._store.remove(STATE_STORAGE_KEY)
        self._store.remove(ROUTE_STORAGE_KEY)
        self._state.clear()

    async def restore(self) -> bool:
        """
        Process-start hook: bring back a persisted session and confirm it with one UserInfo call.
        A session the provider no longer accepts is dropped silently. Returns True if a session survived.
        """
        raw = self._store.get(SESSION_STORAGE_KEY)
        if not raw:
            return False
        try:
            session = Session.from_json(raw)
        except (TypeError, ValueError) as e:
            logger.info("Discarding unreadable persisted session: %s", e)
            self._store.remove(SESSION_STORAGE_KEY)
            return False

        self._set_session(session)
        try:
            await self._confirm_with_provider(self._state.user_info)
        except SessionExpiredOrInvalid as e:
            # Only the restored record goes; a pending login or a session set up meanwhile by
            # process_hash() stays
            if self._state.session is session:
                logger.info("Restored session rejected, falling back to anonymous: %s", e)
                self._store.remove(SESSION_STORAGE_KEY)
                self._state.clear()
            return False
        return True

    @staticmethod
    async def _confirm_with_provider(source: SharedSource[UserInfo]) -> None:
        try:
            await source.get()
        except (UserInfoFetchError, DiscoveryFetchError) as e:
            # the access_token is most likely invalid or expired
            raise SessionExpiredOrInvalid(str(e)) from e

    async def authorize(self, return_path: Sequence[str] | None = None) -> None:
        """Store a fresh state (and the route to come back to), then send the browser to the provider."""
        state = generate_nonce(self._random)
        self._store.set(STATE_STORAGE_KEY, state)
        if return_path is not None:
            self._store.set(ROUTE_STORAGE_KEY, json.dumps([str(s) for s in return_path]))
        else:
            self._store.remove(ROUTE_STORAGE_KEY)

        try:
            config = await self._discovery.get_discovery_document().get()
        except DiscoveryFetchError as e:
            logger.warning("Cannot start login, discovery failed: %s", e)
            raise

        url = build_authorize_url(
            authorization_endpoint=config.authorization_endpoint,
            client_id=self._client_id,
            redirect_uri=self._navigator.origin,
            scope=self._scope,
            state=state,
            nonce=generate_nonce(self._random),
        )
        logger.info("Redirecting to authorization endpoint for client %s", self._client_id)
        self._navigator.assign(url)

    def process_hash(self) -> CallbackResult:
        """
        Handle the redirect-back fragment. No fragment: no-op. Otherwise the pending request is consumed,
        the fragment is cleared from the location, and the result carries either the session or the error.
        """
        fragment = self._navigator.hash
        if not fragment:
            return CallbackResult.noop()
        try:
            return self._handle_response(parse_fragment(fragment))
        finally:
            # Keep tokens out of history and referrers
            self._navigator.hash = ""

    def _handle_response(self, params: dict[str, str]) -> CallbackResult:
        expected_state = self._store.get(STATE_STORAGE_KEY)
        raw_route = self._store.get(ROUTE_STORAGE_KEY)
        self._store.remove(STATE_STORAGE_KEY)
        self._store.remove(ROUTE_STORAGE_KEY)

        if "error" in params:
            logger.warning("Authorization failed: %s", params["error"])
            return CallbackResult.failed(AuthorizationError(params["error"], params.get("error_description")))

        received_state = params.get("state")
        if expected_state is None or received_state != expected_state:
            logger.warning("Rejected redirect-back: state mismatch (pending state present: %s)", expected_state is not None)
            return CallbackResult.failed(InvalidStateError(received_state))

        session = Session.from_response(params, issued_at=self._now())
        self._set_session(session)
        self._store.set(SESSION_STORAGE_KEY, session.to_json())
        logger.info("Session established (expires_in=%s)", session.expires_in)

        route = self._decode_route(raw_route)
        if route is not None:
            self._router.navigate(route)
        return CallbackResult.authenticated(session)

    @staticmethod
    def _decode_route(raw: str | None) -> list[str] | None:
        if not raw:
            return None
        try:
            route = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable return route")
            return None
        if not isinstance(route, list) or not all(isinstance(s, str) for s in route):
            logger.warning("Ignoring malformed return route")
            return None
        return route

    def is_token_valid(self) -> bool:
        """Local expiry estimate: issued_at + expires_in strictly after now. Not revocation-aware."""
        session = self._state.session
        if session is None:
            return False
        try:
            return session.expires_at() > self._now()
        except (TypeError, ValueError):
            logger.debug("Session has non-integer expiry fields; treating as expired")
            return False

    async def logout(self) -> None:
        """
        Local logout first (always), then provider single logout. If discovery fails the error is raised
        after the local session is already gone: logged out here, still signed in at the provider.
        """
        session = self._state.session
        id_token = session.id_token if session else None
        self._destroy_session()

        try:
            config = await self._discovery.get_discovery_document().get()
        except DiscoveryFetchError as e:
            logger.warning("Local session cleared but provider sign-out skipped: %s", e)
            raise

        url = build_end_session_url(
            end_session_endpoint=config.end_session_endpoint,
            redirect_uri=self._navigator.origin,
            id_token_hint=id_token,
        )
        logger.info("Redirecting to end-session endpoint")
        self._navigator.assign(url)
