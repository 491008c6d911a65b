"""
Page-level consumers of the login service: home (login/logout, callback errors) and profile.
on_init must run inside the event loop because it subscribes to the user-info source.
"""
import logging

from implicit_client.flow import LoginService
from implicit_client.models import UserInfo
from implicit_client.shared import Subscription

logger = logging.getLogger(__name__)


class _UserInfoView:
    def __init__(self, login_service: LoginService):
        self.login_service = login_service
        self.user_info: UserInfo | None = None
        self.sub: Subscription | None = None

    def _subscribe(self) -> None:
        source = self.login_service.user_info
        if source is not None:
            self.sub = source.subscribe(self._on_user_info, self._on_user_info_error)

    def _on_user_info(self, info: UserInfo) -> None:
        self.user_info = info

    def _on_user_info_error(self, err: Exception) -> None:
        logger.debug("User info unavailable: %s", err)
        self.user_info = None

    def on_destroy(self) -> None:
        if self.sub:
            self.sub.unsubscribe()
            self.sub = None


class HomeView(_UserInfoView):
    def __init__(self, login_service: LoginService):
        super().__init__(login_service)
        self.error: str | None = None

    def on_init(self) -> None:
        result = self.login_service.process_hash()
        if result.error is not None:
            self.error = str(result.error)
        self._subscribe()

    async def login(self) -> None:
        await self.login_service.authorize()

    async def logout(self) -> None:
        self.user_info = None
        self.on_destroy()
        await self.login_service.logout()


class ProfileView(_UserInfoView):
    def on_init(self) -> None:
        self._subscribe()
