import structlog

from model_viewer.core.exceptions import AccessTokenError
from model_viewer.domain.interfaces import Authenticator
from model_viewer.domain.models import AccessToken
from model_viewer.services.ttl_cache import TtlCache

logger = structlog.get_logger()


class TokenService:
    """
    Hands out the APS access token, re-authenticating only when the
    cached one has expired.
    """

    def __init__(self, authenticator: Authenticator, cache: TtlCache, cache_key: str = "sdk_access_token"):
        self.authenticator = authenticator
        self.cache = cache
        self.cache_key = cache_key

    async def get_access_token(self) -> AccessToken:
        item = await self.cache.get(self.cache_key)

        if item and item.get("token"):
            # Viewer needs the remaining lifetime, not the original one
            remaining_ms = item["expires_at"] - self.cache.clock()
            return AccessToken(access_token=item["token"], expires_in=max(int(remaining_ms // 1000), 0))

        fresh = await self.authenticator.get_access_token()

        if not fresh.access_token:
            raise AccessTokenError("Could not get access token")

        ttl_ms = fresh.expires_in * 1000
        await self.cache.set(
            self.cache_key,
            {"token": fresh.access_token, "expires_at": self.cache.clock() + ttl_ms},
            ttl_ms,
        )
        logger.info("access_token_acquired", expires_in=fresh.expires_in)

        return fresh

    async def get_token(self) -> str:
        """TokenProvider for the APS connections."""
        return (await self.get_access_token()).access_token
