"""
OIDC UserInfo fetch. Each session gets its own lazily activated source; subscribers of one source
share a single request.
"""
import logging

import httpx

from implicit_client.config import HTTP_TIMEOUT
from implicit_client.discovery import DiscoveryClient
from implicit_client.errors import UserInfoFetchError
from implicit_client.models import Session, UserInfo
from implicit_client.shared import SharedSource

logger = logging.getLogger(__name__)


class UserInfoFetcher:
    def __init__(
        self,
        discovery: DiscoveryClient,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = HTTP_TIMEOUT,
    ):
        self._discovery = discovery
        self._transport = transport
        self._timeout = timeout

    def source_for(self, session: Session) -> SharedSource[UserInfo]:
        """New source bound to this session's access token. Nothing is sent until first subscription."""
        access_token = session.access_token

        async def fetch() -> UserInfo:
            config = await self._discovery.get_discovery_document().get()
            return await self._fetch(config.userinfo_endpoint, access_token)

        return SharedSource(fetch, name="user info")

    async def _fetch(self, endpoint: str, access_token: str) -> UserInfo:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                r = await client.get(
                    endpoint,
                    headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.warning("UserInfo request failed: %s", e)
            raise UserInfoFetchError(f"UserInfo request failed: {e}") from e

        if r.status_code != 200:
            logger.warning("UserInfo returned %s", r.status_code)
            raise UserInfoFetchError(f"UserInfo returned status {r.status_code}", status_code=r.status_code)
        try:
            return UserInfo.from_json(r.json())
        except ValueError as e:
            logger.warning("UserInfo response rejected: %s", e)
            raise UserInfoFetchError(f"Invalid UserInfo response: {e}", status_code=r.status_code) from e
