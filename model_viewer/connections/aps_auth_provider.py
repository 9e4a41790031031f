from typing import Optional

import httpx
import structlog

from model_viewer.core.config import Settings
from model_viewer.domain.interfaces import Authenticator
from model_viewer.domain.models import AccessToken

logger = structlog.get_logger()


class APSAuthenticator(Authenticator):
    """
    Two-legged OAuth (client_credentials) against APS Authentication v2.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings, scope: Optional[str] = None):
        self.client = client
        self.client_id = settings.APS_CLIENT_ID
        self.client_secret = settings.APS_CLIENT_SECRET
        self.scope = scope or settings.APS_SCOPE

    async def get_access_token(self) -> AccessToken:
        logger.info("requesting_access_token", scope=self.scope)

        # httpx sends the tuple as "Authorization: Basic base64(id:secret)"
        # and `data` as application/x-www-form-urlencoded
        resp = await self.client.post(
            "/authentication/v2/token",
            data={"grant_type": "client_credentials", "scope": self.scope},
            auth=(self.client_id, self.client_secret),
        )
        resp.raise_for_status()

        return AccessToken.model_validate(resp.json())
