"""
OpenID provider discovery. The metadata document is fetched once per process and shared by every
operation that needs an endpoint (authorize, userinfo, end session).
"""
import logging

import httpx

from implicit_client.config import DISCOVERY_PATH, HTTP_TIMEOUT
from implicit_client.errors import DiscoveryFetchError
from implicit_client.models import DiscoveryDocument
from implicit_client.shared import SharedSource

logger = logging.getLogger(__name__)


class DiscoveryClient:
    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = HTTP_TIMEOUT,
    ):
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._source: SharedSource[DiscoveryDocument] = SharedSource(self._fetch, name="discovery document")

    @property
    def url(self) -> str:
        return f"{self._base_url}{DISCOVERY_PATH}"

    def get_discovery_document(self) -> SharedSource[DiscoveryDocument]:
        return self._source

    async def _fetch(self) -> DiscoveryDocument:
        url = self.url
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                r = await client.get(url, headers={"Accept": "application/json"})
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Discovery fetch from %s returned %s", url, e.response.status_code)
            raise DiscoveryFetchError(f"Discovery document request failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Discovery fetch from %s failed: %s", url, e)
            raise DiscoveryFetchError(f"Discovery document request failed: {e}") from e
        except ValueError as e:
            logger.warning("Discovery document from %s is not JSON: %s", url, e)
            raise DiscoveryFetchError("Discovery document is not valid JSON") from e

        try:
            document = DiscoveryDocument.from_json(payload)
        except ValueError as e:
            logger.warning("Discovery document from %s rejected: %s", url, e)
            raise DiscoveryFetchError(str(e)) from e
        logger.info("Loaded discovery document from %s", url)
        return document
