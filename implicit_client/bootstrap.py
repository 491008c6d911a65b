"""
Object graph for one page load: collaborators, discovery, login service and its consumers.
"""
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from implicit_client.config import BASE_URL, CLIENT_ID, DEFAULT_SCOPE
from implicit_client.discovery import DiscoveryClient
from implicit_client.flow import LoginService
from implicit_client.guard import AuthGuard
from implicit_client.navigator import BrowserLocation, RecordingRouter, Router
from implicit_client.session_store import SessionStore, TabSessionStore
from implicit_client.userinfo import UserInfoFetcher
from implicit_client.views import HomeView, ProfileView


@dataclass
class ClientApp:
    location: BrowserLocation
    store: SessionStore
    router: Router
    login_service: LoginService
    guard: AuthGuard
    home: HomeView
    profile: ProfileView

    async def start(self) -> bool:
        """Restore any persisted session. Returns True if the user is still logged in."""
        return await self.login_service.restore()


def create_app(
    href: str,
    *,
    store: SessionStore | None = None,
    router: Router | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    base_url: str = BASE_URL,
    client_id: str = CLIENT_ID,
    scope: str = DEFAULT_SCOPE,
    clock: Callable[[], float] = time.time,
) -> ClientApp:
    """Wire the client for a page at href. Pass the same store to simulate a reload in the same tab."""
    location = BrowserLocation(href)
    store = store if store is not None else TabSessionStore()
    router = router if router is not None else RecordingRouter()
    discovery = DiscoveryClient(base_url, transport=transport)
    login_service = LoginService(
        navigator=location,
        router=router,
        store=store,
        discovery=discovery,
        userinfo=UserInfoFetcher(discovery, transport=transport),
        client_id=client_id,
        scope=scope,
        clock=clock,
    )
    return ClientApp(
        location=location,
        store=store,
        router=router,
        login_service=login_service,
        guard=AuthGuard(login_service),
        home=HomeView(login_service),
        profile=ProfileView(login_service),
    )
