"""
Route guard: the first navigation without a valid session starts login and remembers the route.
"""
import logging
from typing import Sequence

from implicit_client.flow import LoginService

logger = logging.getLogger(__name__)


class AuthGuard:
    def __init__(self, login_service: LoginService):
        self._login_service = login_service

    async def can_activate(self, segments: Sequence[str]) -> bool:
        """True when the route may render; False when the browser is being sent to the provider."""
        if self._login_service.is_token_valid():
            return True
        logger.debug("No valid session for /%s; starting login", "/".join(segments))
        await self._login_service.authorize(list(segments))
        return False
