import httpx
import structlog

from model_viewer.connections.aps_connection import APSConnection
from model_viewer.domain.formats import get_output_formats
from model_viewer.domain.interfaces import DerivativeService, TokenProvider
from model_viewer.domain.models import Manifest, TranslateJobResult

logger = structlog.get_logger()


class APSModelDerivative(APSConnection, DerivativeService):
    """
    APS Model Derivative v2: translation jobs and manifests.
    """

    def __init__(self, client: httpx.AsyncClient, token_provider: TokenProvider):
        super().__init__(client, token_provider)

    async def start_translate_job(self, urn: str, file_extension: str) -> TranslateJobResult:
        formats = get_output_formats(file_extension)

        headers = await self._auth_headers()
        # Re-translate even when derivatives already exist
        headers["x-ads-force"] = "true"

        logger.info("submitting_translate_job", urn=urn, formats=[f["type"] for f in formats])

        resp = await self.client.post(
            "/modelderivative/v2/designdata/job",
            json={"input": {"urn": urn}, "output": {"formats": formats}},
            headers=headers,
        )
        resp.raise_for_status()

        return TranslateJobResult.model_validate(resp.json())

    async def get_manifest(self, urn: str) -> Manifest:
        resp = await self.client.get(
            f"/modelderivative/v2/designdata/{urn}/manifest",
            headers=await self._auth_headers(),
        )
        resp.raise_for_status()

        return Manifest.model_validate(resp.json())
