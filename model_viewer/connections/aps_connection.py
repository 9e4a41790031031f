from typing import Dict

import httpx

from model_viewer.core.exceptions import AccessTokenError
from model_viewer.domain.interfaces import TokenProvider


class APSConnection:
    """
    Shared plumbing for the bearer-authenticated APS endpoints.
    The httpx client is owned by the caller (see core.dependencies).
    """

    def __init__(self, client: httpx.AsyncClient, token_provider: TokenProvider):
        self.client = client
        self.token_provider = token_provider

    async def _auth_headers(self) -> Dict[str, str]:
        token = await self.token_provider()

        if not token:
            raise AccessTokenError("Access token not set. Acquire a token before calling APS.")

        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
